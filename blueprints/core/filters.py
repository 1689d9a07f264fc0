from __future__ import annotations
from datetime import datetime, tzinfo

from .tz import local_date, to_local

WEEKDAYS_PT = [
    "segunda-feira", "terça-feira", "quarta-feira", "quinta-feira",
    "sexta-feira", "sábado", "domingo",
]

def fmt_time(value: datetime | None, tz: tzinfo | None = None) -> str:
    if not value:
        return "-"
    return to_local(value, tz).strftime("%H:%M")

def fmt_datetime(value: datetime | None, tz: tzinfo | None = None) -> str:
    if not value:
        return "-"
    return to_local(value, tz).strftime("%d/%m/%Y %H:%M")

def fmt_time_range(start: datetime, end: datetime, tz: tzinfo | None = None) -> str:
    return f"{fmt_time(start, tz)} - {fmt_time(end, tz)}"

def date_label(value: datetime, tz: tzinfo | None = None) -> str:
    # segunda-feira, 22/09/2025
    d = local_date(value, tz)
    return f"{WEEKDAYS_PT[d.weekday()]}, {d.strftime('%d/%m/%Y')}"

def service_label(name: str, duration_minutes: int | None) -> str:
    if not duration_minutes:
        return name
    return f"{name} ({duration_minutes} min)"
