"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset   # дропнуть и пересоздать БД + демо-данные
  python seed.py           # мягкое наполнение недостающих данных (idempotent)
"""
from datetime import date, datetime, time, timedelta
import argparse

from app import create_app
from extensions import db
from models import Service, TimeSlot
from blueprints.core.tz import as_utc, zone

DEMO_SERVICES = [
    ("Consultoria", 60),
    ("Diagnóstico Rápido", 30),
]
DEMO_HOURS = [time(9, 0), time(10, 0), time(14, 0), time(15, 0)]
DEMO_DAYS = 5

def ensure_service(name: str, duration: int) -> Service:
    svc = Service.query.filter_by(name=name).first()
    if not svc:
        svc = Service(name=name, duration_minutes=duration)
        db.session.add(svc)
        db.session.flush()
    return svc

def ensure_slot(svc: Service, start_local: datetime) -> bool:
    start = as_utc(start_local)
    if TimeSlot.query.filter_by(service_id=svc.id, start_at=start).first():
        return False
    db.session.add(TimeSlot(
        service_id=svc.id,
        start_at=start,
        end_at=start + timedelta(minutes=svc.duration_minutes),
        is_booked=False,
    ))
    return True

def seed_demo(today: date | None = None) -> int:
    tz = zone()
    today = today or datetime.now(tz).date()
    created = 0
    for name, duration in DEMO_SERVICES:
        svc = ensure_service(name, duration)
        day = today
        for _ in range(DEMO_DAYS):
            day += timedelta(days=1)
            if day.weekday() >= 5:  # без выходных
                continue
            for h in DEMO_HOURS:
                if ensure_slot(svc, datetime.combine(day, h, tzinfo=tz)):
                    created += 1
    db.session.commit()
    return created

def main():
    ap = argparse.ArgumentParser(description="Seed demo services and slots")
    ap.add_argument("--reset", action="store_true", help="drop and recreate all tables first")
    args = ap.parse_args()

    app = create_app("dev")
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        created = seed_demo()
        print(f"Seed done: {created} new slot(s) ✅")

if __name__ == "__main__":
    main()
