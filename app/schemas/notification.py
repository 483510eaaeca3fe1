from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class NotificationOut(BaseModel):
    id: int
    car_id: int
    maintenance_id: Optional[int]
    type: str
    title: str
    message: Optional[str]
    is_read: int
    created_at: datetime

    class Config:
        from_attributes = True
