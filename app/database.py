"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL (SQLite works for local runs and tests).
All models are auto-imported here so create_tables() creates every table in one call.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings


def enable_sqlite_savepoints(engine: Engine):
    """
    pysqlite starts transactions lazily and breaks SAVEPOINT semantics.
    Let SQLAlchemy emit BEGIN itself so nested transactions behave like PostgreSQL.
    """
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return enable_sqlite_savepoints(
            create_engine(url, connect_args={"check_same_thread": False}, echo=False)
        )
    return create_engine(
        url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=10,
        max_overflow=20,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


engine = _build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine = None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.car import Car                              # noqa
    from app.models.mileage_record import MileageRecord         # noqa
    from app.models.maintenance_rule import MaintenanceRule     # noqa
    from app.models.maintenance_record import MaintenanceRecord  # noqa
    from app.models.notification import Notification            # noqa

    Base.metadata.create_all(bind=bind or engine)
