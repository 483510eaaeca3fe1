from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class CarCreate(BaseModel):
    license_plate: str
    make: str
    model: str
    year: Optional[int] = None
    vin_number: Optional[str] = None
    initial_mileage: int = Field(0, ge=0)
    owner_id: Optional[int] = None
    zone_id: Optional[int] = None


class CarUpdate(BaseModel):
    license_plate: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    vin_number: Optional[str] = None
    initial_mileage: Optional[int] = Field(None, ge=0)
    zone_id: Optional[int] = None


class CarOut(BaseModel):
    id: int
    license_plate: str
    make: str
    model: str
    year: Optional[int]
    vin_number: Optional[str]
    initial_mileage: int
    owner_id: Optional[int]
    zone_id: Optional[int]
    created_at: Optional[datetime]
    current_mileage: Optional[int] = None

    class Config:
        from_attributes = True
