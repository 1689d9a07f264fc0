# blueprints/ledger/services.py
from __future__ import annotations
import csv
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from io import StringIO
from typing import Iterable, List, Optional

from flask import current_app, has_app_context
from sqlalchemy import or_

from errors import ValidationError, storage_guard
from extensions import db
from models import Booking, Service, TimeSlot
from blueprints.core.filters import fmt_datetime, fmt_time
from blueprints.core.tz import day_bounds, zone

DEFAULT_PAGE_SIZE = 20
LIKE_ESCAPE = "\\"

CSV_HEADER = ["Empresa", "Responsável", "Telefone", "Serviço", "Início", "Fim", "Criado em"]

@dataclass
class BookingFilter:
    service_name: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search_text: Optional[str] = None

@dataclass
class BookingView:
    booking_id: int
    company_name: str
    contact_name: str
    phone: str
    service_name: str
    start_at: datetime
    end_at: datetime
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.booking_id,
            "company_name": self.company_name,
            "contact_name": self.contact_name,
            "phone": self.phone,
            "service_name": self.service_name,
            "start_at": self.start_at.isoformat() + "Z",
            "end_at": self.end_at.isoformat() + "Z",
            "created_at": self.created_at.isoformat() + "Z",
        }

@dataclass
class BookingPage:
    items: List[BookingView] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = DEFAULT_PAGE_SIZE

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

def escape_like(text: str) -> str:
    """Literal substring: neutralise LIKE metacharacters."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )

def _page_size() -> int:
    if has_app_context():
        return int(current_app.config.get("BOOKINGS_PAGE_SIZE", DEFAULT_PAGE_SIZE))
    return DEFAULT_PAGE_SIZE

def _base_query():
    return (db.session.query(Booking, TimeSlot, Service)
            .join(TimeSlot, TimeSlot.id == Booking.time_slot_id)
            .join(Service, Service.id == Booking.service_id))

def _apply_filter(q, flt: BookingFilter):
    tz = zone()
    if flt.service_name:
        q = q.filter(Service.name == flt.service_name)
    if flt.date_from:
        start, _ = day_bounds(flt.date_from, tz)
        q = q.filter(TimeSlot.start_at >= start)
    if flt.date_to:
        _, end = day_bounds(flt.date_to, tz)
        q = q.filter(TimeSlot.start_at <= end)
    text = flt.search_text or ""
    if text.strip():
        pattern = f"%{escape_like(text)}%"
        q = q.filter(or_(
            Booking.company_name.ilike(pattern, escape=LIKE_ESCAPE),
            Booking.contact_name.ilike(pattern, escape=LIKE_ESCAPE),
            Booking.phone.ilike(pattern, escape=LIKE_ESCAPE),
        ))
    return q

@storage_guard
def query_bookings(flt: BookingFilter | None = None, page: int = 1,
                   per_page: int | None = None) -> BookingPage:
    """Filtered ledger page, most recent bookings first."""
    flt = flt or BookingFilter()
    if page < 1:
        raise ValidationError("Página inválida.", field="page")
    if flt.date_from and flt.date_to and flt.date_to < flt.date_from:
        raise ValidationError("Período inválido.", field="date_to")
    per_page = per_page or _page_size()

    q = _apply_filter(_base_query(), flt)
    total = q.count()
    rows = (q.order_by(Booking.created_at.desc(), Booking.id.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all())
    items = [
        BookingView(
            booking_id=b.id,
            company_name=b.company_name,
            contact_name=b.contact_name,
            phone=b.phone,
            service_name=svc.name,
            start_at=ts.start_at,
            end_at=ts.end_at,
            created_at=b.created_at,
        )
        for b, ts, svc in rows
    ]
    return BookingPage(items=items, total=total, page=page, per_page=per_page)

def bookings_csv(items: Iterable[BookingView]) -> str:
    """
    CSV: Empresa;Responsável;Telefone;Serviço;Início;Fim;Criado em
    Times in the booking zone; csv quotes fields with ';' or '"' and doubles quotes.
    """
    tz = zone()
    buf = StringIO()
    w = csv.writer(buf, delimiter=";", quotechar='"', quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    w.writerow(CSV_HEADER)
    for v in items:
        w.writerow([
            v.company_name or "",
            v.contact_name or "",
            v.phone or "",
            v.service_name or "",
            fmt_datetime(v.start_at, tz),
            fmt_time(v.end_at, tz),
            fmt_datetime(v.created_at, tz),
        ])
    return buf.getvalue()
