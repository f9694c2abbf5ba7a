#!/usr/bin/env python3
"""Tests for fleet YAML loading and saving utilities."""

from datetime import datetime

import yaml

from fleet import (
    DocumentStatus,
    FleetStore,
    JobCardPart,
    Policy,
    Priority,
    RecordJobCardRequest,
    RuleStatus,
    TriggerType,
    VehicleStatus,
    load_fleet,
    save_fleet,
)
from fleet.loader import entity_from_dict, entity_to_dict, fleet_from_dict, fleet_to_dict, yaml_writer

from conftest import NOW, make_state


class TestLoadFleet:
    """Tests for load_fleet."""

    def test_loads_collections(self, fleet_file):
        state, policy = load_fleet(fleet_file)

        assert list(state.vehicles) == ["V001", "V002"]
        assert state.vehicles["V001"].current_km == 45000
        assert state.vehicles["V001"].next_service_km == 50000
        assert state.vehicles["V002"].status == VehicleStatus.IDLE
        assert state.drivers["D001"].license_number == "LIC-001"
        assert state.workers["W001"].role == "Mechanic"
        assert policy == Policy()

    def test_loads_nested_purchases(self, fleet_file):
        state, _ = load_fleet(fleet_file)
        item = state.inventory["INV001"]
        assert [p.id for p in item.purchase_history] == ["P001", "P002"]
        assert item.purchase_history[0].supplier == "Petromin"
        assert item.average_price == 816

    def test_loads_enums(self, fleet_file):
        state, _ = load_fleet(fleet_file)
        assert state.scheduled_services["SS001"].trigger_type == TriggerType.KM
        assert state.scheduled_services["SS001"].status == RuleStatus.UPCOMING
        assert state.pending_work["PW001"].priority == Priority.HIGH
        assert state.documents["DOC001"].status == DocumentStatus.EXPIRING_SOON

    def test_seeds_assignments_when_absent(self, fleet_file):
        state, _ = load_fleet(fleet_file)
        assert len(state.assignments) == 1
        record = next(iter(state.assignments.values()))
        assert (record.vehicle_id, record.driver_id) == ("V001", "D001")
        assert record.is_open

    def test_unquoted_dates_load_as_strings(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        path.write_text("""
vehicles:
  - id: V001
    vehicleNumber: TRK-1001
documents:
  - id: DOC001
    documentType: Insurance
    documentNumber: INS-1
    expiryDate: 2024-06-20
""")
        state, _ = load_fleet(path)
        assert state.documents["DOC001"].expiry_date == "2024-06-20"

    def test_loads_policy(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        path.write_text("policy:\n  strictStock: true\n  lowStockThreshold: 4\n")
        state, policy = load_fleet(path)
        assert policy.strict_stock is True
        assert policy.low_stock_threshold == 4
        assert state.vehicles == {}


class TestFleetFromDict:
    """Tests for fleet_from_dict."""

    def test_empty(self):
        state, policy = fleet_from_dict(None)
        assert state.vehicles == {}
        assert policy == Policy()

    def test_existing_assignments_not_reseeded(self):
        data = {
            "vehicles": [{"id": "V001", "vehicleNumber": "TRK-1001", "driverId": "D001"}],
            "driverAssignments": [],
        }
        state, _ = fleet_from_dict(data)
        assert state.assignments == {}

    def test_seed_timestamp(self):
        data = {"vehicles": [{"id": "V001", "vehicleNumber": "TRK-1001", "driverId": "D001"}]}
        state, _ = fleet_from_dict(data, now=datetime(2024, 1, 1, 8, 0))
        assert state.assignments["DAH001"].assigned_at == "2024-01-01T08:00:00"


class TestEntityDicts:
    """Tests for entity_to_dict and entity_from_dict."""

    def test_km_keys_and_omitted_none(self, state):
        d = entity_to_dict(state.vehicles["V002"])
        assert d["currentKM"] == 30000
        assert d["nextServiceKM"] == 35000
        assert d["status"] == "Active"
        assert "driverId" in d
        assert "nextServiceDate" not in d

    def test_nested_parts(self):
        part = JobCardPart(item_id="INV001", quantity=2, unit_price=820, line_total=1640, sku="OIL")
        assert entity_to_dict(part) == {
            "itemId": "INV001",
            "quantity": 2,
            "unitPrice": 820,
            "lineTotal": 1640,
            "itemName": "",
            "sku": "OIL",
        }
        assert entity_from_dict(JobCardPart, entity_to_dict(part)) == part


class TestSaveFleet:
    """Tests for save_fleet."""

    def test_save_and_reload(self, tmp_path):
        store = FleetStore(make_state(), clock=lambda: NOW)
        store.record_job_card(
            RecordJobCardRequest(
                vehicle_id="V001",
                job_date="2024-06-01",
                total_km=45500,
                parts_used=[JobCardPart("INV001", 2, 820, 1640)],
                services_done=["Oil Change"],
            )
        )
        path = tmp_path / "out.yaml"
        save_fleet(path, store.snapshot(), Policy(strict_stock=True))

        state, policy = load_fleet(path)
        assert policy.strict_stock is True
        assert fleet_to_dict(state) == fleet_to_dict(store.snapshot())
        assert state.job_cards["JC001"].parts_used[0].line_total == 1640

    def test_writes_camel_case_yaml(self, tmp_path):
        path = tmp_path / "out.yaml"
        save_fleet(path, make_state())
        data = yaml.safe_load(path.read_text())
        assert "policy" not in data
        assert data["jobCards"] == []
        assert data["driverAssignments"][0]["assignedBy"] == "System"
        assert data["scheduledServices"][0]["triggerType"] == "KM"

    def test_dates_stay_strings(self, tmp_path):
        path = tmp_path / "out.yaml"
        save_fleet(path, make_state())
        data = yaml.safe_load(path.read_text())
        assert data["scheduledServices"][2]["nextDueDate"] == "2024-12-01"


class TestYamlWriter:
    """Tests for yaml_writer."""

    def test_store_writes_on_commit(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        store = FleetStore(make_state(), on_commit=yaml_writer(path), clock=lambda: NOW)
        store.adjust_stock("INV002", 5)

        state, _ = load_fleet(path)
        assert state.inventory["INV002"].stock_available == 8
