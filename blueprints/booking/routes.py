# blueprints/booking/routes.py
from __future__ import annotations
from flask import jsonify, request

from . import api_bp
from . import services as svc

@api_bp.post("/bookings")
def api_reserve():
    payload = request.get_json(silent=True) or {}
    out = svc.reserve(
        service_id=payload.get("service_id"),
        time_slot_id=payload.get("time_slot_id"),
        company_name=payload.get("company_name"),
        contact_name=payload.get("contact_name"),
        phone=payload.get("phone"),
    )
    # ValidationError / ConflictError / NotFoundError -> JSON в core error handlers
    return jsonify({"ok": True, "booking": out.model_dump(mode="json")}), 201
