import sqlite3

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf import CSRFProtect
from sqlalchemy import event
from sqlalchemy.engine import Engine

db = SQLAlchemy()
csrf = CSRFProtect()
migrate = Migrate()


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


# SQLite: внешние ключи выключены по умолчанию, а встроенный lower() знает только ASCII
@event.listens_for(Engine, "connect")
def _sqlite_on_connect(dbapi_connection, _):
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
