# blueprints/booking/services.py
from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from flask import current_app, has_app_context
from pydantic import ValidationError as SchemaError
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from errors import ConflictError, NotFoundError, ValidationError, storage_guard
from extensions import db
from models import Booking, TimeSlot, utcnow
from blueprints.catalog.services import get_service
from blueprints.core.tz import as_utc
from .schemas import MIN_PHONE_DIGITS, BookingOut, ReservationIn

log = logging.getLogger(__name__)

FIELD_MESSAGES = {
    "company_name": "Informe o nome da empresa.",
    "contact_name": "Informe o nome do responsável.",
    "phone": "Informe um telefone válido.",
    "service_id": "Selecione um serviço.",
    "time_slot_id": "Selecione um horário.",
}

def _error_message(name: str, e: dict) -> str:
    if e.get("type") == "string_too_long":
        return f"Máximo de {(e.get('ctx') or {}).get('max_length')} caracteres."
    return FIELD_MESSAGES.get(name, e.get("msg", "invalid"))

def _schema_errors(ve: SchemaError) -> list[dict]:
    out = []
    for e in ve.errors():
        loc = e.get("loc") or ("",)
        name = str(loc[0])
        out.append({"field": name, "msg": _error_message(name, e), "type": e.get("type")})
    return out

def validate_reservation(payload: Dict[str, Any]) -> ReservationIn:
    """Проверка входа до любой записи в БД."""
    min_digits = MIN_PHONE_DIGITS
    if has_app_context():
        min_digits = int(current_app.config.get("MIN_PHONE_DIGITS", MIN_PHONE_DIGITS))
    try:
        return ReservationIn.model_validate(payload, context={"min_phone_digits": min_digits})
    except SchemaError as ve:
        detail = _schema_errors(ve)
        first = detail[0]
        raise ValidationError(first["msg"], field=first["field"], detail=detail) from ve

def _claim_slot(service_id: int, time_slot_id: int, now: datetime) -> bool:
    # UPDATE ... WHERE is_booked = false: the row lock / writer lock of the
    # store picks exactly one winner per slot
    res = db.session.execute(
        update(TimeSlot)
        .where(
            TimeSlot.id == time_slot_id,
            TimeSlot.service_id == service_id,
            TimeSlot.is_booked.is_(False),
            TimeSlot.start_at >= now,
        )
        .values(is_booked=True)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1

@storage_guard
def reserve(*, service_id: Any, time_slot_id: Any, company_name: Any, contact_name: Any,
            phone: Any, now: Optional[datetime] = None) -> BookingOut:
    """Atomically mark the slot booked and record the booking.

    Raises ValidationError (nothing touched), NotFoundError for unknown
    service/slot, ConflictError when another reservation won the slot or the
    slot already started. Either both writes commit or neither does.
    """
    data = validate_reservation({
        "service_id": service_id,
        "time_slot_id": time_slot_id,
        "company_name": company_name,
        "contact_name": contact_name,
        "phone": phone,
    })

    get_service(data.service_id)
    slot: TimeSlot | None = db.session.get(TimeSlot, data.time_slot_id)
    if not slot:
        raise NotFoundError("Horário não encontrado.", code="slot_not_found", field="time_slot_id")
    if slot.service_id != data.service_id:
        raise ValidationError("O horário não pertence ao serviço selecionado.", field="time_slot_id")
    # снимок чтения не должен держать транзакцию до условного UPDATE
    db.session.rollback()

    now_utc = as_utc(now) if now else utcnow()
    extra = {"service_id": data.service_id, "time_slot_id": data.time_slot_id}

    if not _claim_slot(data.service_id, data.time_slot_id, now_utc):
        db.session.rollback()
        log.info("slot already taken", extra={"event": "slot_conflict", **extra})
        raise ConflictError("Este horário acabou de ser reservado. Escolha outro horário.")

    booking = Booking(
        company_name=data.company_name,
        contact_name=data.contact_name,
        phone=data.phone,
        service_id=data.service_id,
        time_slot_id=data.time_slot_id,
        created_at=now_utc,
    )
    db.session.add(booking)
    try:
        db.session.commit()
    except IntegrityError as ie:
        # uq_bookings_time_slot: slot flip and insert are rolled back together
        db.session.rollback()
        log.info("booking insert rejected", extra={"event": "slot_conflict", **extra})
        raise ConflictError("Este horário acabou de ser reservado. Escolha outro horário.") from ie

    log.info("booking created", extra={"event": "booking_created", "booking_id": booking.id, **extra})
    return BookingOut.model_validate(booking, from_attributes=True)
