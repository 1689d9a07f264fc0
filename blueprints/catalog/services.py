# blueprints/catalog/services.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List

from errors import NotFoundError, storage_guard
from extensions import db
from models import Service
from blueprints.core.filters import service_label

@dataclass
class ServiceOut:
    id: int
    name: str
    duration_minutes: int
    label: str

def _out(s: Service) -> ServiceOut:
    return ServiceOut(id=s.id, name=s.name, duration_minutes=s.duration_minutes,
                      label=service_label(s.name, s.duration_minutes))

@storage_guard
def list_services() -> List[ServiceOut]:
    rows = db.session.query(Service).order_by(Service.name.asc(), Service.id.asc()).all()
    return [_out(s) for s in rows]

@storage_guard
def list_service_names() -> List[str]:
    rows = db.session.query(Service.name).order_by(Service.name.asc()).all()
    return [name for (name,) in rows]

def get_service(service_id: int) -> Service:
    svc = db.session.get(Service, service_id)
    if not svc:
        raise NotFoundError("Serviço não encontrado.", code="service_not_found", field="service_id")
    return svc
