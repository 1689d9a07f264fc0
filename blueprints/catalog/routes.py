# blueprints/catalog/routes.py
from __future__ import annotations
from flask import jsonify

from errors import UnavailableError
from . import api_bp
from . import services as svc

@api_bp.get("/services")
def api_services():
    try:
        items = svc.list_services()
    except UnavailableError as ex:
        return jsonify({**ex.to_dict(), "items": []}), ex.http_status
    return jsonify({"items": [s.__dict__ for s in items]})

@api_bp.get("/services/names")
def api_service_names():
    try:
        names = svc.list_service_names()
    except UnavailableError as ex:
        return jsonify({**ex.to_dict(), "items": []}), ex.http_status
    return jsonify({"items": names})
