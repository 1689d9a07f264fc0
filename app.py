from __future__ import annotations
import os
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate, csrf
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # таблица services может ещё не быть создана (alembic upgrade и т.п.)
        if not inspect(db.engine).has_table("services"):
            return

        from models import Service  # локальный импорт, чтобы избежать циклов
        created = 0
        for s in app.config.get("DEFAULT_SERVICES", []):
            if Service.query.filter_by(name=s["name"]).first():
                continue
            db.session.add(Service(name=s["name"], duration_minutes=s["duration_minutes"]))
            created += 1
        if created:
            db.session.commit()

def register_blueprints(app: Flask) -> None:
    # Жёстко импортируем модуль с маршрутами core перед взятием bp
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp, api_bp as core_api_bp
    from blueprints.catalog import api_bp as catalog_api_bp
    from blueprints.slots import api_bp as slots_api_bp
    from blueprints.booking import api_bp as booking_api_bp
    from blueprints.ledger import api_bp as ledger_api_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(core_api_bp, url_prefix="/api/v1")
    app.register_blueprint(catalog_api_bp, url_prefix="/api/v1")
    app.register_blueprint(slots_api_bp, url_prefix="/api/v1")
    app.register_blueprint(booking_api_bp, url_prefix="/api/v1")
    app.register_blueprint(ledger_api_bp, url_prefix="/api/v1")

def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.setdefault("SECRET_KEY", "change-me-in-prod")
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # --- ВАЖНО: изоляция БД в тестах ---
    # pytest всегда выставляет переменную окружения PYTEST_CURRENT_TEST.
    # Делаем БД в памяти, чтобы никакие изменения из одного теста не протекали в другой.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})
    # engines are built in db.init_app, so overrides must land before it
    if overrides:
        app.config.update(overrides)
    app.config.setdefault("WTF_CSRF_TIME_LIMIT", None)
    app.config.setdefault("WTF_CSRF_HEADERS", ["X-CSRF-Token", "X-CSRFToken"])

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
