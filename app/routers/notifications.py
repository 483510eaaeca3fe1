from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.notification import NotificationOut
from app.services import notification_service
from typing import Optional

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut], summary="Maintenance notifications")
def get_notifications(
    unread_only: bool = False,
    car_id: Optional[int] = None,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """Newest first. Filter by car or unread state."""
    return notification_service.list_notifications(db, unread_only=unread_only, car_id=car_id, limit=limit)


@router.put("/notifications/read-all", summary="Mark all notifications as read")
def mark_all_read(car_id: Optional[int] = None, db: Session = Depends(get_db)):
    return {"updated": notification_service.mark_all_read(db, car_id=car_id)}


@router.put("/notifications/{notification_id}/read", response_model=NotificationOut,
            summary="Mark a notification as read")
def mark_read(notification_id: int, db: Session = Depends(get_db)):
    return notification_service.mark_read(db, notification_id)
