from __future__ import annotations
import csv
from datetime import date, datetime, timedelta
from io import StringIO
import pytest

from app import create_app
from errors import ValidationError
from extensions import db
from models import Booking, Service, TimeSlot
from blueprints.booking.services import reserve
from blueprints.ledger import services as svc
from blueprints.ledger.services import BookingFilter

NOW = datetime(2031, 9, 20, 12, 0)

def _book(service: Service, start: datetime, company: str, contact: str = "Jane Doe",
          phone: str = "11987654321", created_at: datetime | None = None) -> Booking:
    slot = TimeSlot(service_id=service.id, start_at=start,
                    end_at=start + timedelta(minutes=service.duration_minutes), is_booked=True)
    db.session.add(slot)
    db.session.flush()
    b = Booking(company_name=company, contact_name=contact, phone=phone, service_id=service.id,
                time_slot_id=slot.id, created_at=created_at or NOW)
    db.session.add(b)
    db.session.flush()
    return b

@pytest.fixture()
def app_ctx():
    app = create_app("dev")
    app.config.update(TESTING=True)
    with app.app_context():
        db.create_all()
        consulting = Service(name="Consulting", duration_minutes=60)
        mentoring = Service(name="Mentoring", duration_minutes=30)
        db.session.add_all([consulting, mentoring])
        db.session.flush()
        # 2031-03-10T02:30Z: ещё 9 марта по São Paulo
        _book(consulting, datetime(2031, 3, 10, 2, 30), "Late Evening Ltda", created_at=NOW - timedelta(hours=5))
        _book(consulting, datetime(2031, 3, 10, 13, 0), "100% Foco", contact="Ana Souza",
              phone="(63) 99999-0000", created_at=NOW - timedelta(hours=4))
        _book(mentoring, datetime(2031, 3, 11, 13, 0), "Foco_Total", contact="Bruno Lima",
              phone="(11) 3333-4444", created_at=NOW - timedelta(hours=3))
        _book(mentoring, datetime(2031, 3, 12, 13, 0), "Foco Total", contact="Carla Dias",
              phone="(21) 2222-1111", created_at=NOW - timedelta(hours=3))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

def _companies(page) -> list[str]:
    return [v.company_name for v in page.items]

def test_default_order_created_desc_ties_by_id(app_ctx):
    res = svc.query_bookings(BookingFilter(), 1)
    assert res.total == 4
    # Foco_Total и Foco Total созданы одновременно → по id
    assert _companies(res) == ["Foco_Total", "Foco Total", "100% Foco", "Late Evening Ltda"]

def test_filter_by_service_name(app_ctx):
    res = svc.query_bookings(BookingFilter(service_name="Mentoring"))
    assert res.total == 2
    assert {v.service_name for v in res.items} == {"Mentoring"}
    assert svc.query_bookings(BookingFilter(service_name="mentoring")).total == 0

def test_date_bounds_are_local_days(app_ctx):
    only_9th = svc.query_bookings(BookingFilter(date_from=date(2031, 3, 9), date_to=date(2031, 3, 9)))
    assert _companies(only_9th) == ["Late Evening Ltda"]

    from_10th = svc.query_bookings(BookingFilter(date_from=date(2031, 3, 10)))
    assert "Late Evening Ltda" not in _companies(from_10th)
    assert from_10th.total == 3

    to_11th = svc.query_bookings(BookingFilter(date_to=date(2031, 3, 11)))
    assert "Foco Total" not in _companies(to_11th)
    assert to_11th.total == 3

def test_inverted_period_rejected(app_ctx):
    with pytest.raises(ValidationError):
        svc.query_bookings(BookingFilter(date_from=date(2031, 3, 12), date_to=date(2031, 3, 10)))

def test_search_case_insensitive_across_fields(app_ctx):
    assert _companies(svc.query_bookings(BookingFilter(search_text="late evening"))) == ["Late Evening Ltda"]
    assert _companies(svc.query_bookings(BookingFilter(search_text="BRUNO"))) == ["Foco_Total"]
    assert _companies(svc.query_bookings(BookingFilter(search_text="2222-11"))) == ["Foco Total"]

def test_search_is_literal_not_pattern(app_ctx):
    assert _companies(svc.query_bookings(BookingFilter(search_text="%"))) == ["100% Foco"]
    assert _companies(svc.query_bookings(BookingFilter(search_text="_"))) == ["Foco_Total"]
    assert svc.query_bookings(BookingFilter(search_text="Foco%Total")).total == 0

def test_search_folds_accented_letters(app_ctx):
    consulting = Service.query.filter_by(name="Consulting").one()
    _book(consulting, datetime(2031, 4, 2, 13, 0), "AÇAÍ DO JOÃO", contact="Élcio Araújo")
    db.session.commit()
    assert _companies(svc.query_bookings(BookingFilter(search_text="joão"))) == ["AÇAÍ DO JOÃO"]
    assert _companies(svc.query_bookings(BookingFilter(search_text="Açaí"))) == ["AÇAÍ DO JOÃO"]
    assert _companies(svc.query_bookings(BookingFilter(search_text="élcio"))) == ["AÇAÍ DO JOÃO"]

def test_search_text_matched_as_given(app_ctx):
    # пробел значим: "Foco " не совпадает с "Foco_Total" и "100% Foco"
    assert _companies(svc.query_bookings(BookingFilter(search_text="Foco "))) == ["Foco Total"]
    assert svc.query_bookings(BookingFilter(search_text="   ")).total == 4

def test_filters_combine_with_and(app_ctx):
    res = svc.query_bookings(BookingFilter(service_name="Mentoring", search_text="foco",
                                           date_from=date(2031, 3, 12)))
    assert _companies(res) == ["Foco Total"]

def test_escape_like():
    assert svc.escape_like("50%_off\\") == "50\\%\\_off\\\\"

def test_round_trip_reserve_then_query(app_ctx):
    consulting = Service.query.filter_by(name="Consulting").one()
    slot = TimeSlot(service_id=consulting.id, start_at=datetime(2031, 9, 22, 13, 0),
                    end_at=datetime(2031, 9, 22, 14, 0))
    db.session.add(slot)
    db.session.commit()
    b = reserve(service_id=consulting.id, time_slot_id=slot.id, now=NOW,
                company_name=" Acme ", contact_name="Jane Doe", phone="11987654321")

    res = svc.query_bookings(BookingFilter(service_name="Consulting", date_from=date(2031, 9, 22),
                                           date_to=date(2031, 9, 22)))
    assert res.total == 1
    v = res.items[0]
    assert v.booking_id == b.id
    assert (v.company_name, v.contact_name, v.phone, v.service_name) == \
           ("Acme", "Jane Doe", "11987654321", "Consulting")
    assert (v.start_at, v.end_at) == (datetime(2031, 9, 22, 13, 0), datetime(2031, 9, 22, 14, 0))

    acme = svc.query_bookings(BookingFilter(search_text="Acme"), 1)
    assert acme.total == 1 and acme.items[0].booking_id == b.id

def test_pagination_partitions_result(app_ctx):
    consulting = Service.query.filter_by(name="Consulting").one()
    base = datetime(2031, 5, 1, 13, 0)
    for i in range(41):
        # несколько одинаковых created_at, чтобы проверить стабильность
        _book(consulting, base + timedelta(hours=i), f"Bulk {i:02d}", created_at=NOW + timedelta(minutes=i // 3))
    db.session.commit()

    full = svc.query_bookings(BookingFilter(), 1, per_page=100)
    assert full.total == 45

    seen = []
    for page in (1, 2, 3):
        res = svc.query_bookings(BookingFilter(), page)
        assert res.total == 45
        assert res.per_page == 20
        assert res.pages == 3
        seen.extend(v.booking_id for v in res.items)
    assert seen == [v.booking_id for v in full.items]
    assert len(set(seen)) == 45

    beyond = svc.query_bookings(BookingFilter(), 4)
    assert beyond.items == [] and beyond.total == 45

def test_page_must_be_positive(app_ctx):
    with pytest.raises(ValidationError):
        svc.query_bookings(BookingFilter(), 0)

# ---------- CSV ----------
def test_csv_field_order_and_local_times(app_ctx):
    res = svc.query_bookings(BookingFilter(search_text="100%"))
    text = svc.bookings_csv(res.items)
    lines = text.splitlines()
    assert lines[0] == "Empresa;Responsável;Telefone;Serviço;Início;Fim;Criado em"
    # 13:00Z → 10:00 в São Paulo
    assert lines[1] == "100% Foco;Ana Souza;(63) 99999-0000;Consulting;10/03/2031 10:00;11:00;20/09/2031 05:00"

def test_csv_quotes_delimiter_and_quote_chars(app_ctx):
    consulting = Service.query.filter_by(name="Consulting").one()
    _book(consulting, datetime(2031, 4, 1, 13, 0), 'Acme; "Quoted" Ltd', created_at=NOW + timedelta(days=1))
    db.session.commit()
    res = svc.query_bookings(BookingFilter(search_text="Quoted"))
    text = svc.bookings_csv(res.items)
    row = text.splitlines()[1]
    assert row.startswith('"Acme; ""Quoted"" Ltd";Jane Doe;')
    parsed = list(csv.reader(StringIO(text), delimiter=";"))
    assert parsed[1][0] == 'Acme; "Quoted" Ltd'
    assert len(parsed[1]) == 7

def test_csv_empty_page_has_header_only(app_ctx):
    assert svc.bookings_csv([]).splitlines() == ["Empresa;Responsável;Telefone;Serviço;Início;Fim;Criado em"]

# ---------- API ----------
def test_api_bookings_list(app_ctx):
    client = app_ctx.test_client()
    r = client.get("/api/v1/bookings?service=Mentoring&q=foco")
    assert r.status_code == 200
    js = r.get_json()
    assert js["meta"] == {"page": 1, "per_page": 20, "total": 2, "pages": 1}
    assert [i["company_name"] for i in js["items"]] == ["Foco_Total", "Foco Total"]
    assert js["items"][0]["service_name"] == "Mentoring"

def test_api_bookings_bad_date(app_ctx):
    r = app_ctx.test_client().get("/api/v1/bookings?date_from=31/12/2031")
    assert r.status_code == 422
    assert r.get_json()["field"] == "date_from"

def test_api_bookings_csv(app_ctx):
    r = app_ctx.test_client().get("/api/v1/bookings.csv?date_from=2031-03-09&date_to=2031-03-09")
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    assert "attachment" in r.headers["Content-Disposition"]
    lines = [ln for ln in r.data.decode("utf-8").splitlines() if ln.strip()]
    assert len(lines) == 2
    assert lines[1].startswith("Late Evening Ltda;")
