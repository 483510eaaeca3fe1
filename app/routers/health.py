"""
System health check endpoint.
Returns status of backend + DB + rule catalog.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.models.maintenance_rule import MaintenanceRule
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Number of maintenance rules in the catalog
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "maintenance_rules": 0,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["maintenance_rules"] = db.query(MaintenanceRule).count()
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if result["maintenance_rules"] == 0:
        result["status"] = "degraded"

    return result
