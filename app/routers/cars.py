"""Cars — registration, mileage readings and preventive planning per car."""

from typing import Optional
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.car import CarCreate, CarUpdate, CarOut
from app.schemas.mileage import MileageCreate, MileageOut
from app.schemas.maintenance import MaintenanceOut, CorrectiveMaintenanceCreate
from app.services import car_service, maintenance_service
from app.services.maintenance_planner import MaintenancePlanner
from app.services.mileage_service import get_current_mileage, get_mileage_history

router = APIRouter()


def _car_out(db: Session, car) -> CarOut:
    out = CarOut.model_validate(car)
    out.current_mileage = get_current_mileage(db, car)
    return out


@router.post("/cars", response_model=CarOut, status_code=201, summary="Register a car")
def register_car(body: CarCreate, db: Session = Depends(get_db)):
    """Creates the car and its first mileage reading (the initial mileage)."""
    return _car_out(db, car_service.register_car(db, body))


@router.get("/cars", response_model=list[CarOut], summary="List cars")
def list_cars(zone_id: Optional[int] = None, owner_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Filter by zone or owner. Each car carries its current mileage."""
    return [_car_out(db, car) for car in car_service.list_cars(db, zone_id=zone_id, owner_id=owner_id)]


@router.get("/cars/{car_id}", response_model=CarOut, summary="Car detail with current mileage")
def get_car(car_id: int, db: Session = Depends(get_db)):
    return _car_out(db, car_service.get_car(db, car_id))


@router.patch("/cars/{car_id}", response_model=CarOut, summary="Update or transfer a car")
def update_car(car_id: int, body: CarUpdate, db: Session = Depends(get_db)):
    return _car_out(db, car_service.update_car(db, car_id, body))


@router.delete("/cars/{car_id}", status_code=204, summary="Delete a car without history")
def delete_car(car_id: int, db: Session = Depends(get_db)):
    car_service.delete_car(db, car_id)
    return Response(status_code=204)


@router.post("/cars/{car_id}/plan", response_model=list[MaintenanceOut],
             summary="Plan due preventive maintenance")
def plan_due(car_id: int, db: Session = Depends(get_db)):
    """
    Creates the preventive records that are due or coming up and returns them.
    Returns an empty list when the plan is already up to date.
    """
    return MaintenancePlanner(db).plan_due(car_id)


@router.get("/cars/{car_id}/maintenance", response_model=list[MaintenanceOut],
            summary="Maintenance history of a car")
def get_maintenance_history(car_id: int, db: Session = Depends(get_db)):
    return maintenance_service.get_maintenance_history(db, car_id)


@router.post("/cars/{car_id}/maintenance/corrective", response_model=MaintenanceOut, status_code=201,
             summary="Log a corrective repair")
def log_corrective(car_id: int, body: CorrectiveMaintenanceCreate, db: Session = Depends(get_db)):
    return maintenance_service.log_corrective_maintenance(
        db, car_id, date=body.date, recorded_mileage=body.recorded_mileage, cost=body.cost,
        description=body.description, attachment_ref=body.attachment_ref,
    )


@router.post("/cars/{car_id}/mileage", response_model=MileageOut, status_code=201,
             summary="Record an odometer reading")
def record_mileage(car_id: int, body: MileageCreate, plan: bool = False, db: Session = Depends(get_db)):
    """Rejects readings below the latest known mileage. `plan=true` re-plans right after."""
    planner = MaintenancePlanner(db)
    reading = planner.record_mileage(car_id, body.value, body.recorded_at)
    if plan:
        planner.plan_due(car_id)
    return reading


@router.get("/cars/{car_id}/mileage", response_model=list[MileageOut], summary="Mileage history of a car")
def list_mileage(car_id: int, db: Session = Depends(get_db)):
    car_service.get_car(db, car_id)
    return get_mileage_history(db, car_id)
