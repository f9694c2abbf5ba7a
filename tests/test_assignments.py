#!/usr/bin/env python3
"""Tests for the driver assignment timeline."""

from datetime import datetime

import pytest

from fleet import NotFoundError, driver_at, reassign_driver
from fleet.assignments import DEFAULT_ACTOR, open_assignment, seed_assignments


def open_records(state, vehicle_id):
    return [a for a in state.assignments.values() if a.vehicle_id == vehicle_id and a.is_open]


class TestSeedAssignments:
    """Tests for seed_assignments."""

    def test_seeds_one_open_interval_per_driven_vehicle(self, state):
        assert len(state.assignments) == 2
        record = open_assignment(state, "V001")
        assert record.driver_id == "D001"
        assert record.assigned_at == "2024-01-01T08:00:00"
        assert record.assigned_by == "System"

    def test_seeding_twice_adds_nothing(self, state):
        assert seed_assignments(state) == []
        assert len(state.assignments) == 2


class TestReassignDriver:
    """Tests for reassign_driver."""

    when = datetime(2024, 6, 1, 9, 30)

    def test_closes_old_and_opens_new(self, state):
        vehicle, touched = reassign_driver(state, "V001", "D003", self.when, reason="Shift change")

        assert vehicle.driver_id == "D003"
        assert state.vehicles["V001"].driver_id == "D003"
        closed, opened = touched
        assert closed.driver_id == "D001"
        assert closed.unassigned_at == "2024-06-01T09:30:00"
        assert opened.driver_id == "D003"
        assert opened.assigned_at == "2024-06-01T09:30:00"
        assert opened.reason == "Shift change"
        assert opened.assigned_by == DEFAULT_ACTOR
        assert opened.id == "DAH003"

    def test_at_most_one_open_interval(self, state):
        reassign_driver(state, "V001", "D003", datetime(2024, 6, 1))
        reassign_driver(state, "V001", "D002", datetime(2024, 6, 2))
        assert len(open_records(state, "V001")) == 1
        assert open_records(state, "V001")[0].driver_id == "D002"

    def test_same_driver_is_noop(self, state):
        vehicle, touched = reassign_driver(state, "V001", "D001", self.when)
        assert touched == []
        assert len(state.assignments) == 2

    def test_unassign(self, state):
        vehicle, touched = reassign_driver(state, "V001", None, self.when, actor="Fleet Manager")
        assert vehicle.driver_id is None
        assert len(touched) == 1
        assert open_records(state, "V001") == []

    def test_unknown_driver(self, state):
        with pytest.raises(NotFoundError) as exc_info:
            reassign_driver(state, "V001", "D999", self.when)
        assert exc_info.value.entity == "Driver"
        assert state.vehicles["V001"].driver_id == "D001"

    def test_unknown_vehicle(self, state):
        with pytest.raises(NotFoundError):
            reassign_driver(state, "V999", "D001", self.when)


class TestDriverAt:
    """Tests for driver_at."""

    def test_timeline(self, state):
        reassign_driver(state, "V001", "D003", datetime(2024, 3, 1, 12, 0))
        reassign_driver(state, "V001", "D002", datetime(2024, 5, 1, 12, 0))

        assert driver_at(state, "V001", "2023-12-31T00:00:00") is None
        assert driver_at(state, "V001", "2024-02-01T00:00:00") == "D001"
        assert driver_at(state, "V001", "2024-03-01T12:00:00") == "D003"
        assert driver_at(state, "V001", "2024-04-15T00:00:00") == "D003"
        assert driver_at(state, "V001", "2024-06-01T00:00:00") == "D002"

    def test_intervals_do_not_overlap(self, state):
        reassign_driver(state, "V001", "D003", datetime(2024, 3, 1))
        reassign_driver(state, "V001", "D002", datetime(2024, 5, 1))
        records = sorted(
            (a for a in state.assignments.values() if a.vehicle_id == "V001"),
            key=lambda a: a.assigned_at,
        )
        for earlier, later in zip(records, records[1:]):
            assert earlier.unassigned_at is not None
            assert earlier.unassigned_at <= later.assigned_at
