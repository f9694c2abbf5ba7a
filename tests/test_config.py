#!/usr/bin/env python3
"""Tests for engine policy settings."""

import pytest

from fleet import Policy
from fleet.config import apply_env_overrides, camel_case, policy_from_dict, policy_to_dict


class TestCamelCase:
    """Tests for camel_case."""

    def test_converts_snake_case(self):
        assert camel_case("strict_stock") == "strictStock"
        assert camel_case("close_all_pending_work_on_any_service") == "closeAllPendingWorkOnAnyService"

    def test_single_word(self):
        assert camel_case("id") == "id"


class TestPolicyFromDict:
    """Tests for policy_from_dict."""

    def test_none_gives_defaults(self):
        assert policy_from_dict(None) == Policy()

    def test_reads_camel_case_keys(self):
        policy = policy_from_dict({"strictStock": True, "lowStockThreshold": 20})
        assert policy.strict_stock is True
        assert policy.low_stock_threshold == 20
        assert policy.hours_per_operating_day == 8

    def test_ignores_unknown_keys(self):
        assert policy_from_dict({"colour": "blue"}) == Policy()

    def test_coerces_strings(self):
        policy = policy_from_dict({"strictStock": "yes", "expiringSoonDays": "45"})
        assert policy.strict_stock is True
        assert policy.expiring_soon_days == 45


class TestPolicyToDict:
    """Tests for policy_to_dict."""

    def test_defaults_serialize_empty(self):
        assert policy_to_dict(Policy()) == {}

    def test_only_changed_fields(self):
        policy = Policy(strict_stock=True, date_rule_interval_months=12)
        assert policy_to_dict(policy) == {"strictStock": True, "dateRuleIntervalMonths": 12}

    def test_round_trip(self):
        policy = Policy(close_all_pending_work_on_any_service=False, critical_stock_threshold=2)
        assert policy_from_dict(policy_to_dict(policy)) == policy


class TestApplyEnvOverrides:
    """Tests for apply_env_overrides."""

    def test_overrides_from_environment(self):
        environ = {"FLEET_STRICT_STOCK": "true", "FLEET_HOURS_PER_OPERATING_DAY": "10"}
        policy = apply_env_overrides(Policy(), environ)
        assert policy.strict_stock is True
        assert policy.hours_per_operating_day == 10

    def test_false_values(self):
        environ = {"FLEET_CLOSE_ALL_PENDING_WORK_ON_ANY_SERVICE": "0"}
        assert apply_env_overrides(Policy(), environ).close_all_pending_work_on_any_service is False

    def test_no_overrides_keeps_policy(self):
        policy = Policy(low_stock_threshold=3)
        assert apply_env_overrides(policy, {}) == policy

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("FLEET_EXPIRING_SOON_DAYS", "60")
        assert apply_env_overrides(Policy()).expiring_soon_days == 60

    def test_invalid_number_raises(self):
        with pytest.raises(ValueError):
            apply_env_overrides(Policy(), {"FLEET_LOW_STOCK_THRESHOLD": "many"})
