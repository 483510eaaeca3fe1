"""
Shared notification creation service.
Used by the planner and maintenance services whenever a record changes state.
Rows are added to the caller's transaction; the caller commits.
Extend here to add push notifications, SMS, email, etc.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.car import Car
from app.models.maintenance_record import MaintenanceRecord, STATUS_OVERDUE, STATUS_DONE
from app.models.notification import Notification
from app.services.errors import NotFoundError
from app.utils.logger import get_logger

logger = get_logger(__name__)

MAINTENANCE_UPCOMING = "MAINTENANCE_UPCOMING"
MAINTENANCE_OVERDUE = "MAINTENANCE_OVERDUE"
MAINTENANCE_COMPLETED = "MAINTENANCE_COMPLETED"


def notify_maintenance(db: Session, car: Car, record: MaintenanceRecord) -> Notification:
    """Queue a notification describing the record's current status."""
    if record.status == STATUS_DONE:
        ntype = MAINTENANCE_COMPLETED
        title = "Maintenance Completed"
        message = f"{record.description} completed for {car.license_plate} at {record.recorded_mileage} km"
    else:
        ntype = MAINTENANCE_OVERDUE if record.status == STATUS_OVERDUE else MAINTENANCE_UPCOMING
        title = f"{record.status} Maintenance: {record.description}"
        message = (f"Car {car.license_plate} has {record.status.lower()} maintenance "
                   f"(Due at {record.recorded_mileage} km)")

    notification = Notification(car_id=car.id, maintenance_id=record.id, type=ntype,
                                title=title, message=message, is_read=0,
                                created_at=datetime.utcnow())
    db.add(notification)
    logger.info(f"[NOTIFY][{ntype}] {message}")
    return notification


def list_notifications(db: Session, unread_only: bool = False, car_id: Optional[int] = None,
                       limit: int = 50) -> list[Notification]:
    q = db.query(Notification)
    if unread_only:
        q = q.filter(Notification.is_read == 0)
    if car_id is not None:
        q = q.filter(Notification.car_id == car_id)
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_read(db: Session, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if notification is None:
        raise NotFoundError(f"Notification {notification_id} not found")
    notification.is_read = 1
    db.commit()
    return notification


def mark_all_read(db: Session, car_id: Optional[int] = None) -> int:
    """Mark every unread notification as read, optionally for one car. Returns how many changed."""
    q = db.query(Notification).filter(Notification.is_read == 0)
    if car_id is not None:
        q = q.filter(Notification.car_id == car_id)
    updated = q.update({Notification.is_read: 1}, synchronize_session=False)
    db.commit()
    logger.info(f"[NOTIFY] Marked {updated} notifications as read")
    return updated
