from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
from app.utils.timeutils import to_naive_utc


class MaintenanceComplete(BaseModel):
    actual_date: datetime
    actual_mileage: int = Field(..., ge=0)
    actual_cost: float = Field(..., ge=0)
    attachment_ref: Optional[str] = None

    @field_validator("actual_date")
    @classmethod
    def normalize_actual_date(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class CorrectiveMaintenanceCreate(BaseModel):
    date: datetime
    recorded_mileage: int = Field(..., ge=0)
    cost: float = Field(..., ge=0)
    description: str
    attachment_ref: Optional[str] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class MaintenanceOut(BaseModel):
    id: int
    car_id: int
    rule_id: Optional[int]
    type: str                # PREVENTIVE_MAINTENANCE | CORRECTIVE_MAINTENANCE
    date: datetime
    recorded_mileage: int
    cost: float
    description: Optional[str]
    status: str              # UPCOMING | OVERDUE | DONE
    attachment_ref: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class PendingMaintenanceOut(BaseModel):
    upcoming: list[MaintenanceOut]
    overdue: list[MaintenanceOut]


class MaintenanceRuleOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    mileage_interval: int

    class Config:
        from_attributes = True
