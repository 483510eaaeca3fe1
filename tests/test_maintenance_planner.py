"""Unit tests for preventive maintenance planning."""

import pytest
from datetime import timedelta
from unittest.mock import patch
from sqlalchemy.exc import IntegrityError
from app.models.maintenance_record import MaintenanceRecord, STATUS_OVERDUE, STATUS_UPCOMING, PREVENTIVE
from app.models.notification import Notification
from app.services.errors import NotFoundError, ConflictError
from app.services.maintenance_planner import MaintenancePlanner
from conftest import NOW


def planner_for(db, **kwargs):
    kwargs.setdefault("mileage_buffer", 1000)
    kwargs.setdefault("days_ahead", 7)
    kwargs.setdefault("sweep_overdue", True)
    return MaintenancePlanner(db, clock=lambda: NOW, **kwargs)


class TestPlanDue:
    def test_plans_every_missed_interval_up_to_current_mileage(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 25000)

        planned = planner_for(db).plan_due(car.id)

        assert [r.recorded_mileage for r in planned] == [10000, 20000]
        assert all(r.status == STATUS_OVERDUE for r in planned)
        assert all(r.date == NOW for r in planned)
        assert all(r.type == PREVENTIVE and r.cost == 0 for r in planned)

    def test_far_behind_car_gets_one_instance_per_interval(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 55000)

        planned = planner_for(db).plan_due(car.id)

        assert [r.recorded_mileage for r in planned] == [10000, 20000, 30000, 40000, 50000]
        assert {r.status for r in planned} == {STATUS_OVERDUE}

    def test_due_point_inside_buffer_is_upcoming(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 9500)

        planned = planner_for(db).plan_due(car.id)

        assert len(planned) == 1
        assert planned[0].recorded_mileage == 10000
        assert planned[0].status == STATUS_UPCOMING
        assert planned[0].date == NOW + timedelta(days=7)

    def test_due_point_outside_buffer_is_not_planned(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 8000)

        assert planner_for(db).plan_due(car.id) == []

    def test_buffer_edge_is_inclusive(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 9000)

        planned = planner_for(db).plan_due(car.id)
        assert [r.recorded_mileage for r in planned] == [10000]

    def test_due_exactly_at_current_mileage_is_overdue(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 10000)

        planned = planner_for(db).plan_due(car.id)
        assert planned[0].status == STATUS_OVERDUE

    def test_second_call_creates_nothing(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        make_rule("FILTRE HABITACLE", 20000)
        car = make_car(initial_mileage=0)
        add_reading(car, 25000)
        planner = planner_for(db)

        first = planner.plan_due(car.id)
        second = planner.plan_due(car.id)

        assert len(first) == 3
        assert second == []
        assert db.query(MaintenanceRecord).count() == 3

    def test_initial_mileage_is_the_baseline_without_readings(self, db, make_rule, make_car):
        make_rule("CONTROLE", 1000)
        car = make_car(initial_mileage=9500)

        planned = planner_for(db).plan_due(car.id)

        assert [r.recorded_mileage for r in planned] == [10500]
        assert planned[0].status == STATUS_UPCOMING

    def test_initial_mileage_offsets_first_due_point(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=5000)
        add_reading(car, 14500)

        planned = planner_for(db).plan_due(car.id)
        assert [r.recorded_mileage for r in planned] == [15000]

    def test_rules_are_planned_independently(self, db, make_rule, make_car, add_reading):
        oil = make_rule("VIDANGE", 10000)
        brakes = make_rule("PATIN FREIN", 30000)
        car = make_car(initial_mileage=0)
        add_reading(car, 31000)

        planned = planner_for(db).plan_due(car.id)

        by_rule = {}
        for r in planned:
            by_rule.setdefault(r.description, []).append(r.recorded_mileage)
        assert by_rule == {"VIDANGE": [10000, 20000, 30000], "PATIN FREIN": [30000]}
        assert {r.rule_id for r in planned} == {oil.id, brakes.id}

    def test_explicit_catalog_overrides_database(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        custom = make_rule("PNEUS", 20000)
        car = make_car(initial_mileage=0)
        add_reading(car, 25000)

        planned = planner_for(db, rules=[custom]).plan_due(car.id)
        assert [(r.description, r.recorded_mileage) for r in planned] == [("PNEUS", 20000)]

    def test_empty_catalog_returns_empty_list(self, db, make_car, add_reading):
        car = make_car(initial_mileage=0)
        add_reading(car, 50000)

        assert planner_for(db).plan_due(car.id) == []

    def test_unknown_car_raises_not_found(self, db, make_rule):
        make_rule("VIDANGE", 10000)
        with pytest.raises(NotFoundError):
            planner_for(db).plan_due(999)

    def test_custom_buffer(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 8000)

        planned = planner_for(db, mileage_buffer=2500).plan_due(car.id)
        assert [r.recorded_mileage for r in planned] == [10000]

    def test_planned_records_notify(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 19500)

        planner_for(db).plan_due(car.id)

        types = sorted(n.type for n in db.query(Notification).all())
        assert types == ["MAINTENANCE_OVERDUE", "MAINTENANCE_UPCOMING"]


class TestRebaseline:
    def test_next_due_point_counts_from_actual_service_mileage(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 9500)
        planner = planner_for(db)

        (planned,) = planner.plan_due(car.id)
        planner.complete_maintenance(planned.id, NOW, 10200, 85.0)

        assert planner.plan_due(car.id) == []

        planner.record_mileage(car.id, 19500, NOW + timedelta(days=90))
        (next_due,) = planner.plan_due(car.id)
        assert next_due.recorded_mileage == 20200
        assert next_due.status == STATUS_UPCOMING

    def test_corrective_work_does_not_rebaseline(self, db, make_rule, make_car, add_reading):
        from app.services.maintenance_service import log_corrective_maintenance

        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        log_corrective_maintenance(db, car.id, NOW - timedelta(days=10), 9000, 120.0, "VIDANGE")

        planned = planner_for(db).plan_due(car.id)
        assert [r.recorded_mileage for r in planned] == [10000]


class TestOverdueSweep:
    def test_stale_upcoming_record_is_marked_overdue(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 9500)
        planner = planner_for(db)
        (planned,) = planner.plan_due(car.id)

        planner.record_mileage(car.id, 10100, NOW)
        assert planner.plan_due(car.id) == []

        db.refresh(planned)
        assert planned.status == STATUS_OVERDUE
        types = [n.type for n in db.query(Notification).order_by(Notification.id).all()]
        assert types == ["MAINTENANCE_UPCOMING", "MAINTENANCE_OVERDUE"]

    def test_sweep_can_be_disabled(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 9500)
        planner = planner_for(db, sweep_overdue=False)
        (planned,) = planner.plan_due(car.id)

        planner.record_mileage(car.id, 10100, NOW)
        planner.plan_due(car.id)

        db.refresh(planned)
        assert planned.status == STATUS_UPCOMING


class TestConcurrentPlanning:
    """A planner whose read missed rows created by another planner hits the unique index."""

    def _plan_with_stale_read(self, db, car_id, strict):
        planner = planner_for(db)
        with patch("app.services.maintenance_planner.matches_rule", return_value=False):
            return planner.plan_due(car_id, strict=strict)

    def test_conflict_is_absorbed(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 25000)
        assert len(planner_for(db).plan_due(car.id)) == 2

        assert self._plan_with_stale_read(db, car.id, strict=False) == []
        assert db.query(MaintenanceRecord).count() == 2

    def test_conflict_raises_in_strict_mode(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 25000)
        planner_for(db).plan_due(car.id)

        with pytest.raises(ConflictError):
            self._plan_with_stale_read(db, car.id, strict=True)
        assert db.query(MaintenanceRecord).count() == 2

    def test_unrelated_integrity_error_propagates(self, db, make_rule, make_car, add_reading):
        make_rule("VIDANGE", 10000)
        car = make_car(initial_mileage=0)
        add_reading(car, 9500)
        real_flush = db.flush

        def failing_flush(*args, **kwargs):
            if any(isinstance(obj, MaintenanceRecord) for obj in db.new):
                raise IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
            return real_flush(*args, **kwargs)

        with patch.object(db, "flush", side_effect=failing_flush):
            with pytest.raises(IntegrityError):
                planner_for(db).plan_due(car.id)

        assert db.query(MaintenanceRecord).count() == 0
        assert db.query(Notification).count() == 0
