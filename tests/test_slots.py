from __future__ import annotations
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo
import pytest

from app import create_app
from errors import NotFoundError
from extensions import db
from models import Service, TimeSlot
from blueprints.slots import services as svc

SP = ZoneInfo("America/Sao_Paulo")
NOW = datetime(2025, 9, 20, 12, 0)  # naive UTC

def _slot(service, start: datetime, booked: bool = False) -> TimeSlot:
    return TimeSlot(service=service, start_at=start,
                    end_at=start + timedelta(minutes=service.duration_minutes), is_booked=booked)

@pytest.fixture()
def app_ctx():
    app = create_app("dev")
    app.config.update(TESTING=True)
    with app.app_context():
        db.create_all()
        consulting = Service(name="Consulting", duration_minutes=60)
        other = Service(name="Mentoring", duration_minutes=30)
        db.session.add_all([consulting, other])
        db.session.add_all([
            # добавляем не по порядку: сортировка на стороне запроса
            _slot(consulting, datetime(2025, 9, 22, 14, 0)),
            _slot(consulting, datetime(2025, 9, 22, 13, 0)),
            _slot(consulting, datetime(2025, 9, 19, 13, 0)),              # прошедший
            _slot(consulting, datetime(2025, 9, 23, 13, 0), booked=True),  # занят
            _slot(other, datetime(2025, 9, 22, 13, 0)),
        ])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

def _service(name: str) -> Service:
    return Service.query.filter_by(name=name).one()

def test_open_slots_filtered_and_ordered(app_ctx):
    consulting = _service("Consulting")
    slots = svc.list_open_slots(consulting.id, NOW)
    assert [s.start_at for s in slots] == [datetime(2025, 9, 22, 13, 0), datetime(2025, 9, 22, 14, 0)]
    for s in slots:
        assert s.service_id == consulting.id
        assert s.is_booked is False
        assert s.start_at >= NOW

def test_as_of_accepts_aware_instant(app_ctx):
    consulting = _service("Consulting")
    # 10:30 local == 13:30Z, only the 14:00Z slot is left
    slots = svc.list_open_slots(consulting.id, datetime(2025, 9, 22, 10, 30, tzinfo=SP))
    assert [s.start_at for s in slots] == [datetime(2025, 9, 22, 14, 0)]

def test_open_slots_empty_is_not_an_error(app_ctx):
    consulting = _service("Consulting")
    assert svc.list_open_slots(consulting.id, datetime(2030, 1, 1)) == []

def test_open_slots_unknown_service(app_ctx):
    with pytest.raises(NotFoundError):
        svc.list_open_slots(9999, NOW)

def test_grouping_single_local_day(app_ctx):
    consulting = _service("Consulting")
    grouped = svc.group_slots_by_date(svc.list_open_slots(consulting.id, NOW), SP)
    assert list(grouped) == ["2025-09-22"]
    day = grouped["2025-09-22"]
    assert day.label == "segunda-feira, 22/09/2025"
    assert [s.start_at.hour for s in day.slots] == [13, 14]

def test_grouping_uses_local_date_not_utc(app_ctx):
    consulting = _service("Consulting")
    late = _slot(consulting, datetime(2025, 9, 23, 1, 0))   # 22:00 local on the 22nd
    early = _slot(consulting, datetime(2025, 9, 23, 12, 0))
    db.session.add_all([late, early])
    db.session.commit()

    grouped = svc.group_slots_by_date(svc.list_open_slots(consulting.id, NOW), SP)
    assert list(grouped) == ["2025-09-22", "2025-09-23"]
    assert len(grouped["2025-09-22"].slots) == 3
    assert grouped["2025-09-23"].slots[0].id == early.id

def test_grouping_idempotent(app_ctx):
    slots = svc.list_open_slots(_service("Consulting").id, NOW)
    a = svc.group_slots_by_date(slots, SP)
    b = svc.group_slots_by_date(slots, SP)
    assert list(a) == list(b)
    assert {k: [s.id for s in v.slots] for k, v in a.items()} == \
           {k: [s.id for s in v.slots] for k, v in b.items()}

def test_grouping_empty():
    assert svc.group_slots_by_date([], SP) == {}

def test_api_open_slots(app_ctx):
    consulting = _service("Consulting")
    client = app_ctx.test_client()
    r = client.get(f"/api/v1/services/{consulting.id}/slots?as_of=2025-09-20T12:00:00Z")
    assert r.status_code == 200
    js = r.get_json()
    assert [s["start_at"] for s in js["items"]] == ["2025-09-22T13:00:00Z", "2025-09-22T14:00:00Z"]
    assert js["days"][0]["date"] == "2025-09-22"
    assert js["days"][0]["slots"][0]["time_range"] == "10:00 - 11:00"

def test_api_open_slots_unknown_service(app_ctx):
    r = app_ctx.test_client().get("/api/v1/services/9999/slots")
    assert r.status_code == 404
    assert r.get_json()["error"] == "service_not_found"

def test_api_open_slots_bad_as_of(app_ctx):
    consulting = _service("Consulting")
    r = app_ctx.test_client().get(f"/api/v1/services/{consulting.id}/slots?as_of=yesterday")
    assert r.status_code == 422
