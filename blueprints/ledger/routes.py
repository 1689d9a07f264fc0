# blueprints/ledger/routes.py
from __future__ import annotations
from datetime import date

from flask import Response, jsonify, request

from errors import UnavailableError, ValidationError
from . import api_bp
from .services import BookingFilter, bookings_csv, query_bookings

def _parse_date(name: str) -> date | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError("Data inválida.", field=name)

def _parse_page() -> int:
    raw = request.args.get("page", "1")
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("Página inválida.", field="page")

def _filter_from_args() -> BookingFilter:
    return BookingFilter(
        service_name=(request.args.get("service") or "").strip() or None,
        date_from=_parse_date("date_from"),
        date_to=_parse_date("date_to"),
        search_text=request.args.get("q") or None,
    )

def _csv_resp(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@api_bp.get("/bookings")
def api_bookings():
    flt, page = _filter_from_args(), _parse_page()
    try:
        res = query_bookings(flt, page)
    except UnavailableError as ex:
        return jsonify({**ex.to_dict(), "items": []}), ex.http_status
    return jsonify({
        "items": [v.to_dict() for v in res.items],
        "meta": {"page": res.page, "per_page": res.per_page, "total": res.total, "pages": res.pages},
    })

@api_bp.get("/bookings.csv")
def api_bookings_csv():
    res = query_bookings(_filter_from_args(), _parse_page())
    return _csv_resp(bookings_csv(res.items), "agendamentos.csv")
