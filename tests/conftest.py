"""Shared fixtures: an in-memory SQLite database and small factories for cars, rules and readings."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["API_KEY"] = ""

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import create_tables, enable_sqlite_savepoints
from app.models.car import Car
from app.models.maintenance_rule import MaintenanceRule
from app.models.mileage_record import MileageRecord

NOW = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def engine():
    engine = enable_sqlite_savepoints(create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
    ))
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_rule(db):
    def _make(name="VIDANGE", interval=10000, description=None):
        rule = MaintenanceRule(name=name, description=description or name.title(), mileage_interval=interval)
        db.add(rule)
        db.commit()
        return rule
    return _make


@pytest.fixture
def make_car(db):
    counter = {"n": 0}

    def _make(initial_mileage=0, plate=None):
        counter["n"] += 1
        car = Car(license_plate=plate or f"TEST-{counter['n']:03d}", make="Renault", model="Clio",
                  year=2020, initial_mileage=initial_mileage, created_at=NOW - timedelta(days=365))
        db.add(car)
        db.commit()
        return car
    return _make


@pytest.fixture
def add_reading(db):
    def _add(car, value, recorded_at=None):
        reading = MileageRecord(car_id=car.id, value=value, recorded_at=recorded_at or NOW - timedelta(days=1))
        db.add(reading)
        db.commit()
        return reading
    return _add
