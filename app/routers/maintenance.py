"""Maintenance completion, pending work and the rule catalog."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.maintenance import (
    MaintenanceComplete, MaintenanceOut, PendingMaintenanceOut, MaintenanceRuleOut,
)
from app.services import maintenance_service
from app.services.maintenance_planner import MaintenancePlanner
from app.services.rule_catalog import load_rules

router = APIRouter()


@router.post("/maintenance/{maintenance_id}/complete", response_model=MaintenanceOut,
             summary="Complete a planned maintenance")
def complete_maintenance(maintenance_id: int, body: MaintenanceComplete, db: Session = Depends(get_db)):
    """
    Stamps the actual date, mileage and cost and closes the record.
    The service mileage is stored as a new reading in the same transaction.
    """
    return MaintenancePlanner(db).complete_maintenance(
        maintenance_id, body.actual_date, body.actual_mileage, body.actual_cost, body.attachment_ref,
    )


@router.get("/maintenance/pending", response_model=PendingMaintenanceOut,
            summary="Upcoming and overdue maintenance")
def get_pending(car_id: Optional[list[int]] = Query(None), db: Session = Depends(get_db)):
    return maintenance_service.get_pending_maintenance(db, car_id)


@router.get("/maintenance-rules", response_model=list[MaintenanceRuleOut], summary="Preventive rule catalog")
def list_rules(db: Session = Depends(get_db)):
    return load_rules(db)
