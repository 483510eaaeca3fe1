"""
Global preventive maintenance catalog.
One row per maintenance type with the mileage distance between two services.
Seeded at startup by rule_catalog.ensure_maintenance_rules().
"""

from sqlalchemy import Column, Integer, String, Text
from app.database import Base


class MaintenanceRule(Base):
    __tablename__ = "maintenance_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    mileage_interval = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<MaintenanceRule {self.name} every={self.mileage_interval}>"
