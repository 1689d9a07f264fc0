from __future__ import annotations
import re
from datetime import datetime
from pydantic import BaseModel, Field, field_serializer, field_validator

NON_DIGITS = re.compile(r"\D")
MIN_PHONE_DIGITS = 10

def phone_digits(value: str | None) -> str:
    return NON_DIGITS.sub("", value or "")

# ---------- Reservation ----------
class ReservationIn(BaseModel):
    service_id: int = Field(gt=0)
    time_slot_id: int = Field(gt=0)
    company_name: str = Field(max_length=255)
    contact_name: str = Field(max_length=255)
    phone: str = Field(max_length=50)

    @field_validator("company_name", "contact_name", mode="before")
    @classmethod
    def _strip_required(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("required")
        return str(v).strip()

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, v, info):
        v = str(v or "").strip()
        min_digits = (info.context or {}).get("min_phone_digits", MIN_PHONE_DIGITS)
        if len(phone_digits(v)) < min_digits:
            raise ValueError("invalid_phone")
        return v

class BookingOut(BaseModel):
    id: int
    service_id: int
    time_slot_id: int
    company_name: str
    contact_name: str
    phone: str
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        # хранится naive UTC, наружу отдаём с Z, как остальные эндпоинты
        return value.isoformat() + "Z"
