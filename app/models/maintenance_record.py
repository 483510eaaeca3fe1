"""
Maintenance records table — planned and completed work per car.

Preventive rows are created by the planner in UPCOMING or OVERDUE and closed
as DONE by complete_maintenance(). Corrective rows are logged directly as DONE.
For preventive rows `description` holds the rule name as a display label;
`rule_id` is the actual link to the catalog.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Text, ForeignKey, Index, text
from app.database import Base

PREVENTIVE = "PREVENTIVE_MAINTENANCE"
CORRECTIVE = "CORRECTIVE_MAINTENANCE"

STATUS_UPCOMING = "UPCOMING"
STATUS_OVERDUE = "OVERDUE"
STATUS_DONE = "DONE"

PENDING_STATUSES = (STATUS_UPCOMING, STATUS_OVERDUE)


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"
    __table_args__ = (
        # At most one pending planned instance per due point
        Index(
            "uq_pending_due_point",
            "car_id", "rule_id", "recorded_mileage",
            unique=True,
            postgresql_where=text("status <> 'DONE'"),
            sqlite_where=text("status <> 'DONE'"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(Integer, ForeignKey("cars.id"), nullable=False, index=True)
    rule_id = Column(Integer, ForeignKey("maintenance_rules.id"))   # NULL for corrective work
    type = Column(String(30), nullable=False)                       # PREVENTIVE_MAINTENANCE | CORRECTIVE_MAINTENANCE
    date = Column(DateTime, nullable=False)
    recorded_mileage = Column(Integer, nullable=False)
    cost = Column(Float, default=0, nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, index=True)         # UPCOMING | OVERDUE | DONE
    attachment_ref = Column(String(500))                            # invoice reference
    created_at = Column(DateTime)

    @property
    def is_done(self) -> bool:
        return self.status == STATUS_DONE

    def __repr__(self):
        return f"<MaintenanceRecord {self.id} {self.description} @{self.recorded_mileage} status={self.status}>"
