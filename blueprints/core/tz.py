from __future__ import annotations
import logging
from datetime import date, datetime, time, timezone, tzinfo

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from flask import current_app, has_app_context

log = logging.getLogger(__name__)

DEFAULT_TZ = "America/Sao_Paulo"


def zone(name: str | None = None) -> tzinfo:
    """Booking civil zone; configured name, then tzdata, then UTC."""
    if name is None:
        name = current_app.config.get("BOOKING_TIMEZONE", DEFAULT_TZ) if has_app_context() else DEFAULT_TZ
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        try:
            import tzdata  # noqa
            return ZoneInfo(name)
        except (ImportError, ZoneInfoNotFoundError):
            log.warning("unknown time zone, falling back to UTC",
                        extra={"event": "tz_fallback", "tz": name})
            return timezone.utc


def as_utc(value: datetime) -> datetime:
    """Normalise to the stored representation: naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime, tz: tzinfo | None = None) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz or zone())


def local_date(value: datetime, tz: tzinfo | None = None) -> date:
    return to_local(value, tz).date()


def date_key(value: datetime, tz: tzinfo | None = None) -> str:
    """YYYY-MM-DD of the instant in the civil zone, not in UTC."""
    return local_date(value, tz).isoformat()


def day_bounds(day: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """First and last instant of a local civil day, as naive UTC."""
    tz = tz or zone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return as_utc(start), as_utc(end)
