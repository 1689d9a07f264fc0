from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, ForeignKey, UniqueConstraint, Index, Boolean, DateTime,
    Integer, String,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db


def utcnow() -> datetime:
    # instants are stored as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------- Reference data ----------
class Service(db.Model):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("name", name="uq_services_name"),
    )

    def __repr__(self):
        return f"<Service {self.name}>"


# ---------- Inventory ----------
class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id: Mapped[int] = mapped_column(primary_key=True)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id", ondelete="RESTRICT"), nullable=False)
    start_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    service = relationship("Service")

    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_time_slots_range"),
        Index("ix_time_slots_open", "service_id", "is_booked", "start_at"),
    )

    def __repr__(self):
        return f"<TimeSlot {self.id} {self.start_at:%Y-%m-%d %H:%M}>"


# ---------- Ledger ----------
class Booking(db.Model):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(primary_key=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id", ondelete="RESTRICT"), nullable=False)
    time_slot_id: Mapped[int] = mapped_column(ForeignKey("time_slots.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    service = relationship("Service")
    time_slot = relationship("TimeSlot")

    __table_args__ = (
        # one booking per slot, ever
        UniqueConstraint("time_slot_id", name="uq_bookings_time_slot"),
        Index("ix_bookings_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Booking {self.id} slot={self.time_slot_id}>"
