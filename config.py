from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BOOKING_TIMEZONE = os.getenv("BOOKING_TZ", "America/Sao_Paulo")
    BOOKINGS_PAGE_SIZE = 20
    MIN_PHONE_DIGITS = 10

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    DEFAULT_SERVICES = [
        {"name": "Consultoria", "duration_minutes": 60},
        {"name": "Diagnóstico Rápido", "duration_minutes": 30},
    ]

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_TEST_DATA = False
    DEFAULT_SERVICES = []

config_map = {
    "dev": DevConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
