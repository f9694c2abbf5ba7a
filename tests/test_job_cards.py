#!/usr/bin/env python3
"""Tests for recording job cards and their cascade."""

import pytest

from fleet import (
    FleetStore,
    InsufficientStockError,
    InvalidTransitionError,
    JobCardPart,
    JobStatus,
    NotFoundError,
    Policy,
    RecordJobCardRequest,
    RuleStatus,
    WorkStatus,
    record_job_card,
)
from fleet.job_cards import GENERAL_MAINTENANCE, update_job_card_status

from conftest import NOW, make_state


def oil(quantity=2, unit_price=820):
    return JobCardPart(item_id="INV001", quantity=quantity, unit_price=unit_price,
                       line_total=quantity * unit_price)


def filters(quantity=1, unit_price=45):
    return JobCardPart(item_id="INV002", quantity=quantity, unit_price=unit_price,
                       line_total=quantity * unit_price)


def request(**kwargs):
    defaults = dict(vehicle_id="V001", job_date="2024-06-01", total_km=45500, total_hours=1250)
    defaults.update(kwargs)
    return RecordJobCardRequest(**defaults)


class TestRecordJobCard:
    """Tests for record_job_card."""

    def test_oil_change_cascade(self, state):
        """Two litres of oil for an oil change at 45,500 km."""
        job_card = record_job_card(
            state, request(parts_used=[oil()], services_done=["Oil Change"]), now=NOW
        )

        assert job_card.id == "JC001"
        assert job_card.total_cost == 1640
        assert job_card.created_at == "2024-06-01T10:00:00"
        assert state.inventory["INV001"].stock_available == 23

        history = [h for h in state.service_history.values() if h.job_card_id == job_card.id]
        assert len(history) == 1
        assert history[0].service_type == "Oil Change"
        assert history[0].cost == 1640

        vehicle = state.vehicles["V001"]
        assert vehicle.current_km == 45500
        assert vehicle.total_hours == 1250
        assert state.pending_work["PW001"].status == WorkStatus.COMPLETED
        assert state.pending_work["PW001"].job_card_id == "JC001"

    def test_parts_snapshot_name_and_sku(self, state):
        job_card = record_job_card(state, request(parts_used=[oil()]), now=NOW)
        assert job_card.parts_used[0].item_name == "Engine Oil 15W-40"
        assert job_card.parts_used[0].sku == "OIL-15W40"

    def test_cost_split_across_services(self, state):
        record_job_card(
            state,
            request(parts_used=[oil(), filters()], services_done=["Oil Change", "Filter Change"]),
            now=NOW,
        )
        costs = [h.cost for h in state.service_history.values()]
        assert costs == [842.5, 842.5]
        assert sum(costs) == 1685

    def test_general_maintenance_for_parts_without_services(self, state):
        record_job_card(state, request(parts_used=[filters()]), now=NOW)
        history = list(state.service_history.values())
        assert len(history) == 1
        assert history[0].service_type == GENERAL_MAINTENANCE
        assert history[0].cost == 45

    def test_general_maintenance_for_remarks_only(self, state):
        record_job_card(state, request(remarks="Checked tyre pressure"), now=NOW)
        history = list(state.service_history.values())
        assert history[0].service_type == GENERAL_MAINTENANCE
        assert history[0].work_done == "Checked tyre pressure"
        assert history[0].cost == 0

    def test_empty_job_creates_no_history(self, state):
        job_card = record_job_card(state, request(), now=NOW)
        assert job_card.total_cost == 0
        assert state.service_history == {}

    def test_history_cost_conserved(self, state):
        job_card = record_job_card(
            state,
            request(parts_used=[oil(3), filters(2)], services_done=["A", "B", "C"]),
            now=NOW,
        )
        total = sum(h.cost for h in state.service_history.values())
        assert total == pytest.approx(job_card.total_cost)

    def test_stock_clamped_at_zero(self, state):
        record_job_card(state, request(parts_used=[filters(5)]), now=NOW)
        assert state.inventory["INV002"].stock_available == 0

    def test_matching_rule_projected(self, state):
        record_job_card(state, request(services_done=["Oil Change"]), now=NOW)
        rule = state.scheduled_services["SS001"]
        assert rule.status == RuleStatus.COMPLETED
        assert rule.next_due_km == 50500
        assert state.vehicles["V001"].next_service_km == 50500

    def test_hours_rule_sets_vehicle_threshold(self, state):
        record_job_card(state, request(services_done=["Hydraulic Service"]), now=NOW)
        vehicle = state.vehicles["V001"]
        assert vehicle.next_service_hours == 1750
        assert state.scheduled_services["SS002"].next_due_date == "2024-08-03"

    def test_unmatched_rule_becomes_due(self, state):
        """A job that reads 50,500 km without an oil change leaves the oil change due."""
        record_job_card(state, request(total_km=50500, services_done=["Brake Check"]), now=NOW)
        assert state.scheduled_services["SS001"].status == RuleStatus.DUE

    def test_other_vehicle_untouched(self, state):
        record_job_card(state, request(services_done=["Oil Change"]), now=NOW)
        assert state.pending_work["PW002"].status == WorkStatus.PENDING
        assert state.scheduled_services["SS004"].status == RuleStatus.UPCOMING

    def test_pending_work_kept_when_not_matching(self, state):
        policy = Policy(close_all_pending_work_on_any_service=False)
        record_job_card(state, request(services_done=["Oil Change"]), policy, NOW)
        assert state.pending_work["PW001"].status == WorkStatus.PENDING

    def test_pending_work_closed_when_matching(self, state):
        policy = Policy(close_all_pending_work_on_any_service=False)
        record_job_card(state, request(services_done=["Brake light"]), policy, NOW)
        assert state.pending_work["PW001"].status == WorkStatus.COMPLETED

    def test_sequential_ids(self, state):
        first = record_job_card(state, request(services_done=["A"]), now=NOW)
        second = record_job_card(state, request(services_done=["B"]), now=NOW)
        assert (first.id, second.id) == ("JC001", "JC002")
        assert sorted(state.service_history) == ["SH001", "SH002"]


class TestRecordJobCardRollback:
    """Failures leave the store exactly as it was."""

    def test_unknown_vehicle(self):
        store = FleetStore(make_state(), clock=lambda: NOW)
        before = store.snapshot()

        with pytest.raises(NotFoundError) as exc_info:
            store.record_job_card(request(vehicle_id="V999", parts_used=[oil()]))

        assert exc_info.value.details["step"] == "validate_vehicle"
        assert store.snapshot() is before
        assert store.snapshot().inventory["INV001"].stock_available == 25

    def test_unknown_item_after_valid_items(self):
        store = FleetStore(make_state(), clock=lambda: NOW)
        ghost = JobCardPart(item_id="INV999", quantity=1, unit_price=10, line_total=10)

        with pytest.raises(NotFoundError):
            store.record_job_card(request(parts_used=[oil(), ghost], services_done=["Oil Change"]))

        state = store.snapshot()
        assert state.job_cards == {}
        assert state.service_history == {}
        assert state.inventory["INV001"].stock_available == 25
        assert state.pending_work["PW001"].status == WorkStatus.PENDING

    def test_strict_stock(self):
        store = FleetStore(make_state(), Policy(strict_stock=True), clock=lambda: NOW)
        with pytest.raises(InsufficientStockError):
            store.record_job_card(request(parts_used=[filters(5)]))
        assert store.snapshot().job_cards == {}


class TestUpdateJobCardStatus:
    """Tests for update_job_card_status."""

    def test_moves_forward(self, state):
        job_card = record_job_card(state, request(status=JobStatus.OPEN), now=NOW)
        updated = update_job_card_status(state, job_card.id, JobStatus.IN_PROGRESS)
        assert updated.status == JobStatus.IN_PROGRESS
        assert updated.total_cost == job_card.total_cost

    def test_rejects_backwards(self, state):
        job_card = record_job_card(state, request(), now=NOW)
        with pytest.raises(InvalidTransitionError):
            update_job_card_status(state, job_card.id, JobStatus.OPEN)

    def test_unknown_job_card(self, state):
        with pytest.raises(NotFoundError):
            update_job_card_status(state, "JC999", JobStatus.COMPLETED)
