"""
Maintenance history, pending work and corrective repairs.

Corrective maintenance is never planned: it is logged after the fact,
directly as DONE, together with the odometer reading of the repair.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.maintenance_record import (
    MaintenanceRecord, CORRECTIVE, STATUS_DONE, STATUS_OVERDUE, PENDING_STATUSES,
)
from app.models.mileage_record import MileageRecord
from app.services.car_service import get_car
from app.services.mileage_service import check_reading_not_below
from app.services.notification_service import notify_maintenance
from app.utils.logger import get_logger
from app.utils.timeutils import to_naive_utc

logger = get_logger(__name__)


def log_corrective_maintenance(db: Session, car_id: int, date: datetime, recorded_mileage: int,
                               cost: float, description: str,
                               attachment_ref: Optional[str] = None) -> MaintenanceRecord:
    date = to_naive_utc(date)
    car = get_car(db, car_id)
    check_reading_not_below(db, car, recorded_mileage, date)

    record = MaintenanceRecord(car_id=car.id, rule_id=None, type=CORRECTIVE, date=date,
                               recorded_mileage=recorded_mileage, cost=cost,
                               description=description, status=STATUS_DONE,
                               attachment_ref=attachment_ref, created_at=datetime.utcnow())
    try:
        db.add(record)
        db.add(MileageRecord(car_id=car.id, value=recorded_mileage, recorded_at=date))
        db.flush()
        notify_maintenance(db, car, record)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"[CORRECTIVE] {description} for {car.license_plate} at {recorded_mileage} km, cost {cost}")
    return record


def get_maintenance_history(db: Session, car_id: int) -> list[MaintenanceRecord]:
    get_car(db, car_id)
    return (
        db.query(MaintenanceRecord)
        .filter(MaintenanceRecord.car_id == car_id)
        .order_by(MaintenanceRecord.date.desc(), MaintenanceRecord.id.desc())
        .all()
    )


def get_pending_maintenance(db: Session, car_ids: Optional[list[int]] = None) -> dict:
    """UPCOMING and OVERDUE records split in two lists, soonest first."""
    q = db.query(MaintenanceRecord).filter(MaintenanceRecord.status.in_(PENDING_STATUSES))
    if car_ids:
        q = q.filter(MaintenanceRecord.car_id.in_(car_ids))
    records = q.order_by(MaintenanceRecord.date.asc(), MaintenanceRecord.id.asc()).all()

    return {
        "upcoming": [r for r in records if r.status != STATUS_OVERDUE],
        "overdue": [r for r in records if r.status == STATUS_OVERDUE],
    }
