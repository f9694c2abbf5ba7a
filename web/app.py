"""Flask JSON API for fleet maintenance."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request

from fleet import (
    FleetError,
    FleetState,
    FleetStore,
    JobCardPart,
    JobStatus,
    Policy,
    RecordJobCardRequest,
    RecordPurchaseRequest,
)
from fleet import queries
from fleet.config import apply_env_overrides
from fleet.loader import entity_to_dict, load_fleet, yaml_writer

logger = logging.getLogger(__name__)

# Default fleet file (relative to project root)
DEFAULT_FLEET_FILE = Path(__file__).parent.parent / "fleet.yaml"

# Error code -> HTTP status
ERROR_STATUS = {
    "NOT_FOUND": 404,
    "INSUFFICIENT_STOCK": 409,
    "INVALID_TRANSITION": 409,
    "DUPLICATE": 409,
}


def open_store(path: Path) -> FleetStore:
    """Load ``path`` into a store that writes every commit back to it."""
    if path.exists():
        state, policy = load_fleet(path)
    else:
        logger.warning("Fleet file %s not found, starting empty", path)
        state, policy = FleetState(), Policy()
    policy = apply_env_overrides(policy)
    return FleetStore(state, policy, on_commit=yaml_writer(path, policy))


def get_store() -> FleetStore:
    return current_app.config["FLEET_STORE"]


def payload() -> Dict[str, Any]:
    """JSON request body, or an empty dict."""
    return request.get_json(silent=True) or {}


def as_json(obj):
    """Serialize an entity (or list of entities) with fleet file keys."""
    if isinstance(obj, list):
        return [entity_to_dict(o) for o in obj]
    return entity_to_dict(obj)


def invalid(message: str) -> FleetError:
    return FleetError(message, code="INVALID_REQUEST")


def count(value: Any, name: str) -> int:
    """A positive whole quantity. Raises ValueError otherwise."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"'{name}' must be a whole number")
    quantity = int(value)
    if quantity <= 0:
        raise ValueError(f"'{name}' must be greater than zero")
    return quantity


def amount(value: Any, name: str) -> float:
    """A non-negative JSON number. Raises ValueError otherwise."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{name}' must be a number")
    if value < 0:
        raise ValueError(f"'{name}' must not be negative")
    return value


def job_card_request(data: Dict[str, Any], today: str) -> RecordJobCardRequest:
    """Build a RecordJobCardRequest from a camelCase JSON body."""
    try:
        parts = []
        for p in data.get("partsUsed") or []:
            quantity = count(p["quantity"], "quantity")
            unit_price = amount(p["unitPrice"], "unitPrice")
            line_total = p.get("lineTotal")
            parts.append(
                JobCardPart(
                    item_id=p["itemId"],
                    quantity=quantity,
                    unit_price=unit_price,
                    line_total=(
                        quantity * unit_price if line_total is None
                        else amount(line_total, "lineTotal")
                    ),
                )
            )
        return RecordJobCardRequest(
            vehicle_id=data["vehicleId"],
            job_date=data.get("jobDate") or today,
            start_time=data.get("startTime", ""),
            end_time=data.get("endTime", ""),
            total_km=int(data.get("totalKM", 0)),
            total_hours=int(data.get("totalHours", 0)),
            worker_ids=list(data.get("workers") or []),
            parts_used=parts,
            services_done=list(data.get("servicesDone") or []),
            remarks=data.get("remarks", ""),
            photo_refs=list(data.get("photoProofs") or []),
            document_refs=list(data.get("documents") or []),
            status=JobStatus(data.get("status", JobStatus.COMPLETED.value)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise invalid(f"Invalid job card: {e}")


# =============================================================================
# Routes
# =============================================================================


def list_vehicles():
    """All vehicles."""
    return jsonify(as_json(list(get_store().snapshot().vehicles.values())))


def vehicle_detail(vehicle_id: str):
    """Vehicle with its open work, rules, documents and last job card."""
    state = get_store().snapshot()
    vehicle = state.require_vehicle(vehicle_id)
    last = queries.last_job_card(state, vehicle_id)
    return jsonify({
        "vehicle": as_json(vehicle),
        "pendingWork": as_json(queries.vehicle_pending_work(state, vehicle_id)),
        "scheduledServices": as_json(queries.vehicle_scheduled_services(state, vehicle_id)),
        "documents": as_json(queries.vehicle_documents(state, vehicle_id)),
        "lastJobCard": as_json(last) if last else None,
    })


def vehicle_due_services(vehicle_id: str):
    """Rules due at the given (or current) readings."""
    state = get_store().snapshot()
    vehicle = state.require_vehicle(vehicle_id)
    try:
        km = int(request.args.get("currentKM", vehicle.current_km))
        hours = int(request.args.get("totalHours", vehicle.total_hours))
    except ValueError as e:
        raise invalid(f"Invalid reading: {e}")
    return jsonify(as_json(queries.due_services(state, vehicle_id, km, hours)))


def vehicle_history(vehicle_id: str):
    """Service history for a vehicle, newest first."""
    state = get_store().snapshot()
    state.require_vehicle(vehicle_id)
    return jsonify(as_json(queries.vehicle_service_history(state, vehicle_id)))


def create_job_card():
    """Record a job card and everything it cascades to."""
    store = get_store()
    job_card = store.record_job_card(job_card_request(payload(), store.today().isoformat()))
    return jsonify(as_json(job_card)), 201


def update_job_card(job_card_id: str):
    """Move a job card's status forward."""
    try:
        status = JobStatus(payload()["status"])
    except (KeyError, ValueError) as e:
        raise invalid(f"Invalid status: {e}")
    return jsonify(as_json(get_store().update_job_card_status(job_card_id, status)))


def record_purchase(item_id: str):
    """Receive stock for an item."""
    store = get_store()
    data = payload()
    try:
        purchase = RecordPurchaseRequest(
            item_id=item_id,
            quantity=count(data["quantity"], "quantity"),
            unit_price=amount(data["unitPrice"], "unitPrice"),
            purchase_date=data.get("purchaseDate") or store.today().isoformat(),
            supplier=data.get("supplier", ""),
            branch=data.get("branch", ""),
            sub_branch=data.get("subBranch", ""),
            invoice_url=data.get("invoiceUrl"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise invalid(f"Invalid purchase: {e}")
    return jsonify(as_json(store.record_purchase(purchase))), 201


def adjust_stock(item_id: str):
    """Apply a signed stock adjustment."""
    try:
        delta = int(payload()["delta"])
    except (KeyError, TypeError, ValueError) as e:
        raise invalid(f"Invalid adjustment: {e}")
    return jsonify(as_json(get_store().adjust_stock(item_id, delta)))


def assign_driver(vehicle_id: str):
    """Assign a driver to a vehicle, or unassign with a null driverId."""
    data = payload()
    if "driverId" not in data:
        raise invalid("Invalid assignment: 'driverId' is required")
    vehicle, touched = get_store().reassign_driver(
        vehicle_id, data["driverId"], reason=data.get("reason"), actor=data.get("assignedBy")
    )
    return jsonify({"vehicle": as_json(vehicle), "assignments": as_json(touched)})


def driver_history(driver_id: str):
    """A driver's vehicles and the work done on them."""
    state = get_store().snapshot()
    state.require_driver(driver_id)
    history = queries.driver_history(state, driver_id)
    result = as_json(history)
    result["vehicleIds"] = history.vehicle_ids
    return jsonify(result)


def notifications():
    store = get_store()
    return jsonify(as_json(queries.notification_set(store.snapshot(), store.policy, store.now())))


def report_summary():
    """Totals and breakdowns over an optional start/end window."""
    state = get_store().snapshot()
    start, end = request.args.get("start"), request.args.get("end")
    return jsonify({
        "totals": queries.fleet_totals(state, start, end),
        "jobCards": queries.job_card_summary(state, start, end),
        "parts": queries.parts_consumption(state, start, end),
        "stock": queries.stock_valuation(state),
        "services": queries.service_cost_analysis(state, start, end),
        "workers": queries.worker_productivity(state, start, end),
        "purchases": queries.purchase_summary(state, start, end),
    })


def handle_fleet_error(error: FleetError):
    return jsonify(error.to_dict()), ERROR_STATUS.get(error.code, 400)


def create_app(store: Optional[FleetStore] = None) -> Flask:
    """
    Build the API around ``store``, or around the file named by FLEET_FILE
    (default: fleet.yaml in the project root) when no store is given.
    """
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
    if store is None:
        store = open_store(Path(os.environ.get("FLEET_FILE", DEFAULT_FLEET_FILE)))
    app.config["FLEET_STORE"] = store

    app.add_url_rule("/vehicles", view_func=list_vehicles)
    app.add_url_rule("/vehicles/<vehicle_id>", view_func=vehicle_detail)
    app.add_url_rule("/vehicles/<vehicle_id>/due-services", view_func=vehicle_due_services)
    app.add_url_rule("/vehicles/<vehicle_id>/history", view_func=vehicle_history)
    app.add_url_rule("/vehicles/<vehicle_id>/driver", view_func=assign_driver, methods=["PUT"])
    app.add_url_rule("/job-cards", view_func=create_job_card, methods=["POST"])
    app.add_url_rule("/job-cards/<job_card_id>", view_func=update_job_card, methods=["PATCH"])
    app.add_url_rule("/inventory/<item_id>/purchases", view_func=record_purchase, methods=["POST"])
    app.add_url_rule("/inventory/<item_id>/adjustments", view_func=adjust_stock, methods=["POST"])
    app.add_url_rule("/drivers/<driver_id>/history", view_func=driver_history)
    app.add_url_rule("/notifications", view_func=notifications)
    app.add_url_rule("/reports/summary", view_func=report_summary)
    app.register_error_handler(FleetError, handle_fleet_error)
    return app


app = create_app()


if __name__ == "__main__":
    # Run with debug mode for development
    app.run(debug=True, host="0.0.0.0", port=5001)
