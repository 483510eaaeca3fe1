"""Mileage lookups shared by the planner, car and maintenance services."""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.car import Car
from app.models.mileage_record import MileageRecord
from app.services.errors import ValidationError


def get_latest_mileage(db: Session, car_id: int, as_of: Optional[datetime] = None) -> Optional[MileageRecord]:
    """Most recent reading for a car, optionally restricted to readings at or before `as_of`."""
    q = db.query(MileageRecord).filter(MileageRecord.car_id == car_id)
    if as_of is not None:
        q = q.filter(MileageRecord.recorded_at <= as_of)
    return q.order_by(MileageRecord.recorded_at.desc(), MileageRecord.id.desc()).first()


def get_current_mileage(db: Session, car: Car) -> int:
    """Value of the latest reading, or the car's initial mileage when it has none."""
    latest = get_latest_mileage(db, car.id)
    return latest.value if latest else car.initial_mileage


def get_mileage_history(db: Session, car_id: int) -> list[MileageRecord]:
    return (
        db.query(MileageRecord)
        .filter(MileageRecord.car_id == car_id)
        .order_by(MileageRecord.recorded_at.desc(), MileageRecord.id.desc())
        .all()
    )


def check_reading_not_below(db: Session, car: Car, value: int, recorded_at: datetime):
    """
    Reject a reading taken at `recorded_at` that is lower than the latest
    reading recorded at or before that time.
    """
    previous = get_latest_mileage(db, car.id, as_of=recorded_at)
    floor = previous.value if previous else car.initial_mileage
    if value < floor:
        raise ValidationError(
            f"Mileage {value} is below the latest recorded mileage {floor} for car {car.license_plate}"
        )
