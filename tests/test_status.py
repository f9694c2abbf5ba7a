#!/usr/bin/env python3
"""Tests for status enums."""

from fleet import DocumentStatus, JobStatus, Priority, TriggerType, WorkStatus


class TestLifecycleOrder:
    """Tests for forward-only lifecycle ordering."""

    def test_job_status_order(self):
        assert JobStatus.OPEN.order < JobStatus.IN_PROGRESS.order < JobStatus.COMPLETED.order

    def test_work_status_order(self):
        assert WorkStatus.PENDING.order < WorkStatus.IN_PROGRESS.order < WorkStatus.COMPLETED.order


class TestPriority:
    """Tests for Priority ranking."""

    def test_high_ranks_first(self):
        """Lower rank = more urgent."""
        assert Priority.HIGH.rank < Priority.MEDIUM.rank < Priority.LOW.rank

    def test_sort_by_rank(self):
        ordered = sorted([Priority.LOW, Priority.HIGH, Priority.MEDIUM], key=lambda p: p.rank)
        assert ordered == [Priority.HIGH, Priority.MEDIUM, Priority.LOW]


class TestValues:
    """Enum values match the fleet file format."""

    def test_values(self):
        assert TriggerType("Hours") == TriggerType.HOURS
        assert DocumentStatus("Expiring Soon") == DocumentStatus.EXPIRING_SOON
        assert WorkStatus("In Progress") == WorkStatus.IN_PROGRESS
