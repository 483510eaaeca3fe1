"""
Notifications table — one row per observable maintenance transition
(planned upcoming, overdue, completed). Delivery channels read from here.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(Integer, ForeignKey("cars.id"), nullable=False, index=True)
    maintenance_id = Column(Integer, ForeignKey("maintenance_records.id"), index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text)
    is_read = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification {self.id} type={self.type} read={self.is_read}>"
