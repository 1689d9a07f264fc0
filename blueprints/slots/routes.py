# blueprints/slots/routes.py
from __future__ import annotations
from datetime import datetime

from flask import jsonify, request

from errors import UnavailableError, ValidationError
from blueprints.core.tz import zone
from . import api_bp
from . import services as svc

def _parse_as_of() -> datetime | None:
    raw = request.args.get("as_of")
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("Data/hora inválida.", field="as_of")

@api_bp.get("/services/<int:service_id>/slots")
def api_open_slots(service_id: int):
    as_of = _parse_as_of()
    try:
        slots = svc.list_open_slots(service_id, as_of)
    except UnavailableError as ex:
        return jsonify({**ex.to_dict(), "items": [], "days": []}), ex.http_status

    tz = zone()
    days = [
        {
            "date": key,
            "label": grp.label,
            "slots": [svc.slot_to_dict(s, tz) for s in grp.slots],
        }
        for key, grp in svc.group_slots_by_date(slots, tz).items()
    ]
    return jsonify({
        "service_id": service_id,
        "items": [svc.slot_to_dict(s, tz) for s in slots],
        "days": days,
    })
