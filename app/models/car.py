"""
Registered cars table.
A car belongs to an owner (individual) or a zone (fleet managed by a chef de park).
initial_mileage is the odometer baseline used before any mileage record exists.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base

# Fields frozen once a car has maintenance or mileage history
LOCKED_FIELDS = ("license_plate", "vin_number", "initial_mileage")


class Car(Base):
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer)
    vin_number = Column(String(50), unique=True)
    initial_mileage = Column(Integer, default=0, nullable=False)
    owner_id = Column(Integer, index=True)    # owning user (external reference)
    zone_id = Column(Integer, index=True)     # owning zone (external reference)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Car {self.id} plate={self.license_plate} initial={self.initial_mileage}>"
