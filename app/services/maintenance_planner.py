"""
Preventive maintenance planning.

For every rule in the catalog the planner walks the car's odometer forward from
the last completed occurrence of that rule (or the car's initial mileage) in
steps of the rule's interval, and materializes one record per due point up to
current mileage + MILEAGE_BUFFER:

  - due point <= current mileage  → OVERDUE, date = now
  - due point inside the buffer   → UPCOMING, date = now + DAYS_AHEAD_FOR_UPCOMING

The date on a planned record is only a visibility hint for dashboards.
Whether work is due is decided by mileage alone.

Due points that already exist (pending, or preventive with the same mileage)
are skipped, so plan_due() is safe to call on every car view. Concurrent
planners are kept apart by the partial unique index on pending due points:
each insert runs in a savepoint and a conflict there means the row already
exists.

record_mileage() and complete_maintenance() never re-plan on their own. The
caller invokes plan_due() afterwards.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.config import settings
from app.models.car import Car
from app.models.maintenance_record import (
    MaintenanceRecord, PREVENTIVE, STATUS_UPCOMING, STATUS_OVERDUE, STATUS_DONE, PENDING_STATUSES,
)
from app.models.maintenance_rule import MaintenanceRule
from app.models.mileage_record import MileageRecord
from app.services.errors import NotFoundError, ValidationError, ConflictError
from app.services.mileage_service import get_current_mileage, check_reading_not_below
from app.services.notification_service import notify_maintenance
from app.services.rule_catalog import load_rules
from app.utils.logger import get_logger
from app.utils.timeutils import to_naive_utc

logger = get_logger(__name__)


def matches_rule(record: MaintenanceRecord, rule: MaintenanceRule) -> bool:
    """Rows without a rule reference fall back to matching the rule name."""
    if record.rule_id is not None:
        return record.rule_id == rule.id
    return record.description == rule.name


class MaintenancePlanner:
    """
    Plans, records and closes maintenance for one DB session.

    `rules` is the catalog to plan against. When omitted it is loaded from
    the maintenance_rules table on first use.
    """

    def __init__(
        self,
        db: Session,
        rules: Optional[list[MaintenanceRule]] = None,
        mileage_buffer: Optional[int] = None,
        days_ahead: Optional[int] = None,
        sweep_overdue: Optional[bool] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self._rules = rules
        self.mileage_buffer = settings.MILEAGE_BUFFER if mileage_buffer is None else mileage_buffer
        self.days_ahead = settings.DAYS_AHEAD_FOR_UPCOMING if days_ahead is None else days_ahead
        self.sweep_overdue = settings.SWEEP_OVERDUE_STATUS if sweep_overdue is None else sweep_overdue
        self.clock = clock

    @property
    def rules(self) -> list[MaintenanceRule]:
        if self._rules is None:
            self._rules = load_rules(self.db)
        return self._rules

    def _get_car(self, car_id: int) -> Car:
        car = self.db.query(Car).filter(Car.id == car_id).first()
        if not car:
            raise NotFoundError(f"Car {car_id} not found")
        return car

    # ── Planning ─────────────────────────────────────────────────────────

    def plan_due(self, car_id: int, strict: bool = False) -> list[MaintenanceRecord]:
        """
        Create every missing preventive record due up to current mileage + buffer.
        Returns only the records created by this call.

        With strict=True a due point created concurrently by another planner
        raises ConflictError instead of being skipped.
        """
        car = self._get_car(car_id)
        current = get_current_mileage(self.db, car)

        existing = self.db.query(MaintenanceRecord).filter(
            MaintenanceRecord.car_id == car.id,
            or_(MaintenanceRecord.status.in_(PENDING_STATUSES),
                MaintenanceRecord.type == PREVENTIVE),
        ).all()
        done = (
            self.db.query(MaintenanceRecord)
            .filter(MaintenanceRecord.car_id == car.id,
                    MaintenanceRecord.type == PREVENTIVE,
                    MaintenanceRecord.status == STATUS_DONE)
            .order_by(MaintenanceRecord.recorded_mileage.desc())
            .all()
        )

        now = self.clock()
        horizon = current + self.mileage_buffer
        planned = []

        try:
            for rule in self.rules:
                if not rule.mileage_interval or rule.mileage_interval <= 0:
                    logger.warning(f"[PLAN] Rule {rule.name} has no positive interval — skipped")
                    continue

                last_done = next((m for m in done if matches_rule(m, rule)), None)
                next_due = (last_done.recorded_mileage if last_done else car.initial_mileage) + rule.mileage_interval

                while next_due <= horizon:
                    already_planned = any(
                        matches_rule(m, rule) and m.recorded_mileage == next_due for m in existing
                    )
                    if not already_planned:
                        record = self._create_planned(car, rule, next_due, current, now, strict)
                        if record is not None:
                            planned.append(record)
                            existing.append(record)
                    next_due += rule.mileage_interval

            swept = self._sweep_overdue(car, existing, current) if self.sweep_overdue else 0
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"[PLAN] Car {car.license_plate} @ {current} km: "
                    f"{len(planned)} planned, {swept} marked overdue")
        return planned

    def _create_planned(self, car: Car, rule: MaintenanceRule, due: int, current: int,
                        now: datetime, strict: bool) -> Optional[MaintenanceRecord]:
        overdue = due <= current
        record = MaintenanceRecord(
            car_id=car.id,
            rule_id=rule.id,
            type=PREVENTIVE,
            date=now if overdue else now + timedelta(days=self.days_ahead),
            recorded_mileage=due,
            cost=0,
            description=rule.name,
            status=STATUS_OVERDUE if overdue else STATUS_UPCOMING,
            created_at=now,
        )
        try:
            with self.db.begin_nested():
                self.db.add(record)
                self.db.flush()
        except IntegrityError:
            # Only a pending row at the same due point is a benign duplicate
            existing = (
                self.db.query(MaintenanceRecord.id)
                .filter(
                    MaintenanceRecord.car_id == car.id,
                    MaintenanceRecord.rule_id == rule.id,
                    MaintenanceRecord.recorded_mileage == due,
                    MaintenanceRecord.status != STATUS_DONE,
                )
                .first()
            )
            if existing is None:
                raise
            if strict:
                raise ConflictError(f"{rule.name} at {due} km is already planned for car {car.license_plate}")
            logger.info(f"[PLAN] {rule.name} at {due} km already planned for {car.license_plate} — skipped")
            return None

        notify_maintenance(self.db, car, record)
        return record

    def _sweep_overdue(self, car: Car, records: list[MaintenanceRecord], current: int) -> int:
        swept = 0
        for record in records:
            if (record.type == PREVENTIVE and record.status == STATUS_UPCOMING
                    and record.recorded_mileage <= current):
                record.status = STATUS_OVERDUE
                notify_maintenance(self.db, car, record)
                swept += 1
        return swept

    # ── State transitions ────────────────────────────────────────────────

    def record_mileage(self, car_id: int, value: int, recorded_at: datetime) -> MileageRecord:
        """Append an odometer reading. Readings never go below the car's current mileage."""
        recorded_at = to_naive_utc(recorded_at)
        car = self._get_car(car_id)
        current = get_current_mileage(self.db, car)
        if value < current:
            raise ValidationError(
                f"Mileage {value} is below the latest recorded mileage {current} for car {car.license_plate}"
            )

        reading = MileageRecord(car_id=car.id, value=value, recorded_at=recorded_at)
        self.db.add(reading)
        self.db.commit()
        logger.info(f"[MILEAGE] {car.license_plate}: {current} → {value} km")
        return reading

    def complete_maintenance(self, maintenance_id: int, actual_date: datetime, actual_mileage: int,
                             actual_cost: float, attachment_ref: Optional[str] = None) -> MaintenanceRecord:
        """
        Close a pending record with the actual service data.
        The service visit also becomes a mileage reading. Both writes commit together.
        """
        actual_date = to_naive_utc(actual_date)
        record = self.db.query(MaintenanceRecord).filter(MaintenanceRecord.id == maintenance_id).first()
        if not record:
            raise NotFoundError(f"Maintenance {maintenance_id} not found")
        if record.is_done:
            raise ConflictError(f"Maintenance {maintenance_id} is already completed and cannot be completed again")

        car = self._get_car(record.car_id)
        check_reading_not_below(self.db, car, actual_mileage, actual_date)

        try:
            self._add_mileage(car, actual_mileage, actual_date)
            record.date = actual_date
            record.recorded_mileage = actual_mileage
            record.cost = actual_cost
            record.attachment_ref = attachment_ref
            record.status = STATUS_DONE
            notify_maintenance(self.db, car, record)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"[COMPLETE] {record.description} done for {car.license_plate} "
                    f"at {actual_mileage} km, cost {actual_cost}")
        return record

    def _add_mileage(self, car: Car, value: int, recorded_at: datetime) -> MileageRecord:
        reading = MileageRecord(car_id=car.id, value=value, recorded_at=recorded_at)
        self.db.add(reading)
        self.db.flush()
        return reading
