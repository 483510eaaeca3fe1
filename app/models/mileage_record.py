"""
Odometer readings per car.
Append-only: rows are never updated or deleted. The latest recorded_at wins
for "current mileage" queries.
"""

from sqlalchemy import Column, Integer, DateTime, ForeignKey
from app.database import Base


class MileageRecord(Base):
    __tablename__ = "mileage_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(Integer, ForeignKey("cars.id"), nullable=False, index=True)
    value = Column(Integer, nullable=False)
    recorded_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<MileageRecord car={self.car_id} value={self.value} at={self.recorded_at}>"
