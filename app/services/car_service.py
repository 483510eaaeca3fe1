"""
Car registration and lifecycle.

A new car gets a first mileage reading equal to its initial mileage.
Once a car has history beyond that reading, its identifying fields are
locked and it can no longer be deleted.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.models.car import Car, LOCKED_FIELDS
from app.models.maintenance_record import MaintenanceRecord
from app.models.mileage_record import MileageRecord
from app.schemas.car import CarCreate, CarUpdate
from app.services.errors import NotFoundError, ConflictError
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_car(db: Session, car_id: int) -> Car:
    car = db.query(Car).filter(Car.id == car_id).first()
    if not car:
        raise NotFoundError(f"Car {car_id} not found")
    return car


def list_cars(db: Session, zone_id: Optional[int] = None, owner_id: Optional[int] = None) -> list[Car]:
    q = db.query(Car)
    if zone_id is not None:
        q = q.filter(Car.zone_id == zone_id)
    if owner_id is not None:
        q = q.filter(Car.owner_id == owner_id)
    return q.order_by(Car.id.asc()).all()


def has_history(db: Session, car: Car) -> bool:
    """True once the car has maintenance records or more than its initial reading."""
    if db.query(MaintenanceRecord.id).filter(MaintenanceRecord.car_id == car.id).first():
        return True
    return db.query(MileageRecord).filter(MileageRecord.car_id == car.id).count() > 1


def register_car(db: Session, body: CarCreate) -> Car:
    now = datetime.utcnow()
    car = Car(**body.model_dump(), created_at=now)
    try:
        db.add(car)
        db.flush()
        db.add(MileageRecord(car_id=car.id, value=car.initial_mileage, recorded_at=now))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"A car with plate {body.license_plate} or the same VIN already exists")

    logger.info(f"[CAR] Registered {car.license_plate} at {car.initial_mileage} km")
    return car


def update_car(db: Session, car_id: int, body: CarUpdate) -> Car:
    car = get_car(db, car_id)
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if getattr(car, k) != v}

    locked = [field for field in LOCKED_FIELDS if field in changes]
    if locked and has_history(db, car):
        raise ConflictError(f"Cannot change {', '.join(locked)} on a car with mileage or maintenance history")

    if "initial_mileage" in changes:
        # Without history the only reading is the registration one
        db.query(MileageRecord).filter(MileageRecord.car_id == car.id).update(
            {MileageRecord.value: changes["initial_mileage"]}
        )
    for field, value in changes.items():
        setattr(car, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Plate or VIN already used by another car")
    logger.info(f"[CAR] Updated {car.license_plate}: {sorted(changes)}")
    return car


def delete_car(db: Session, car_id: int):
    car = get_car(db, car_id)
    if has_history(db, car):
        raise ConflictError(f"Cannot delete car {car.license_plate} with existing records")

    db.query(MileageRecord).filter(MileageRecord.car_id == car.id).delete()
    db.delete(car)
    db.commit()
    logger.info(f"[CAR] Deleted {car.license_plate}")
