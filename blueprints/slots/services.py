# blueprints/slots/services.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional

from errors import storage_guard
from extensions import db
from models import TimeSlot, utcnow
from blueprints.catalog.services import get_service
from blueprints.core.filters import date_label, fmt_time_range
from blueprints.core.tz import as_utc, date_key, zone

@dataclass
class DayGroup:
    label: str
    slots: List[TimeSlot] = field(default_factory=list)

@storage_guard
def list_open_slots(service_id: int, as_of: Optional[datetime] = None) -> List[TimeSlot]:
    """Свободные будущие слоты услуги, по возрастанию start_at.

    Past slots are never offered even when nobody booked them.
    """
    get_service(service_id)
    cutoff = as_utc(as_of) if as_of else utcnow()
    return (
        db.session.query(TimeSlot)
        .filter(
            TimeSlot.service_id == service_id,
            TimeSlot.is_booked.is_(False),
            TimeSlot.start_at >= cutoff,
        )
        .order_by(TimeSlot.start_at.asc(), TimeSlot.id.asc())
        .all()
    )

def group_slots_by_date(slots: Iterable[TimeSlot], tz: tzinfo | None = None) -> Dict[str, DayGroup]:
    """Bucket slots by local civil date; keys keep first-appearance order."""
    tz = tz or zone()
    out: Dict[str, DayGroup] = {}
    for s in slots:
        key = date_key(s.start_at, tz)
        if key not in out:
            out[key] = DayGroup(label=date_label(s.start_at, tz))
        out[key].slots.append(s)
    return out

def slot_to_dict(s: TimeSlot, tz: tzinfo | None = None) -> dict:
    return {
        "id": s.id,
        "service_id": s.service_id,
        "start_at": s.start_at.isoformat() + "Z",
        "end_at": s.end_at.isoformat() + "Z",
        "is_booked": bool(s.is_booked),
        "time_range": fmt_time_range(s.start_at, s.end_at, tz),
    }
