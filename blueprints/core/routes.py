from __future__ import annotations
import json, logging
from datetime import datetime, timezone
from uuid import uuid4

from flask import current_app, g, jsonify, request
from werkzeug.wrappers.response import Response

from flask_wtf.csrf import CSRFError, generate_csrf
from extensions import csrf
from errors import BookingError

from . import bp
from . import api_bp

VISITOR_COOKIE = "visitor_id"
VISITOR_MAX_AGE = 60 * 60 * 24 * 180  # 180 дней

LOG_FIELDS = (
    "event", "path", "method", "status", "duration_ms", "visitor_id",
    "service_id", "time_slot_id", "booking_id", "tz", "error",
)

def _now() -> datetime:
    return datetime.now(timezone.utc)

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": _now().isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

def _setup_structured_logging(app):
    # app logger + domain services (blueprints.*, errors)
    for logger in (app.logger, logging.getLogger("blueprints"), logging.getLogger("errors")):
        has_json = any(
            isinstance(h, logging.StreamHandler)
            and isinstance(getattr(h, "formatter", None), JSONFormatter)
            for h in logger.handlers
        )
        if not has_json:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)
            logger.setLevel(logging.INFO)

def _register_error_handlers(app):
    @app.errorhandler(BookingError)
    def _booking_error(ex: BookingError):
        app.logger.info(ex.message, extra={"event": "request_failed", "error": ex.code,
                                           "path": request.path})
        return jsonify(ex.to_dict()), ex.http_status

    @app.errorhandler(CSRFError)
    def _csrf_error(ex: CSRFError):
        return jsonify({"error": "csrf_failed", "message": ex.description}), 400

@api_bp.get("/csrf")
@csrf.exempt          # токен выдаём без проверки
def get_csrf():
    token = generate_csrf()
    resp = jsonify({"csrf": token})
    resp.set_cookie("csrf_token", token, samesite="Lax")
    return resp

@bp.before_app_request
def _ensure_visitor_and_start_timer():
    g._req_start = _now()
    vid = request.cookies.get(VISITOR_COOKIE)
    if not vid:
        vid = uuid4().hex
        g._set_visitor_cookie = vid
    g.visitor_id = vid

@bp.after_app_request
def _maybe_set_cookie_and_log(response: Response):
    if getattr(g, "_set_visitor_cookie", None):
        response.set_cookie(
            VISITOR_COOKIE,
            g._set_visitor_cookie,
            max_age=VISITOR_MAX_AGE,
            httponly=False,
            secure=request.is_secure,
            samesite="Lax",
            path="/",
        )
    start = getattr(g, "_req_start", None)
    duration_ms = int((_now() - start).total_seconds() * 1000) if start else None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "visitor_id": getattr(g, "visitor_id", None),
    }
    current_app.logger.info("request handled", extra=extra)
    return response

@bp.record_once
def _on_register(state):
    app = state.app
    _setup_structured_logging(app)
    _register_error_handlers(app)

@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": _now().isoformat(timespec="seconds").replace("+00:00", "Z"),
        "visitor_id": getattr(g, "visitor_id", None),
    })
