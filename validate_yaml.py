#!/usr/bin/env python3
"""Validate fleet snapshot YAML files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def check_references(data: dict) -> list[str]:
    """Check that records point at vehicles, drivers and items that exist."""
    errors = []
    vehicle_ids = {v["id"] for v in data.get("vehicles") or []}
    driver_ids = {d["id"] for d in data.get("drivers") or []}
    item_ids = {i["id"] for i in data.get("inventory") or []}

    for v in data.get("vehicles") or []:
        if v.get("driverId") and v["driverId"] not in driver_ids:
            errors.append(f"vehicles.{v['id']}: unknown driver {v['driverId']}")

    for key in ("jobCards", "serviceHistory", "pendingWork", "scheduledServices", "driverAssignments"):
        for record in data.get(key) or []:
            if record.get("vehicleId") not in vehicle_ids:
                errors.append(f"{key}.{record.get('id')}: unknown vehicle {record.get('vehicleId')}")

    for jc in data.get("jobCards") or []:
        for part in jc.get("partsUsed") or []:
            if part.get("itemId") not in item_ids:
                errors.append(f"jobCards.{jc.get('id')}: unknown item {part.get('itemId')}")

    open_intervals = {}
    for a in data.get("driverAssignments") or []:
        if a.get("driverId") not in driver_ids:
            errors.append(f"driverAssignments.{a.get('id')}: unknown driver {a.get('driverId')}")
        if not a.get("unassignedAt"):
            open_intervals[a.get("vehicleId")] = open_intervals.get(a.get("vehicleId"), 0) + 1
    for vehicle_id, count in open_intervals.items():
        if count > 1:
            errors.append(f"driverAssignments: {count} open assignments for vehicle {vehicle_id}")

    return errors


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
        errors.extend(check_references(data))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the fleet YAML files named on the command line."""
    paths = [Path(p) for p in (sys.argv[1:] if argv is None else argv)]

    if not paths:
        print("Usage: validate_yaml.py FLEET_FILE [FLEET_FILE ...]")
        return 1

    schema = load_schema()
    all_valid = True
    for filepath in paths:
        errors = validate_fleet_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
