from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from app.utils.timeutils import to_naive_utc


class MileageCreate(BaseModel):
    value: int = Field(..., ge=0)
    recorded_at: datetime

    @field_validator("recorded_at")
    @classmethod
    def normalize_recorded_at(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class MileageOut(BaseModel):
    id: int
    car_id: int
    value: int
    recorded_at: datetime

    class Config:
        from_attributes = True
