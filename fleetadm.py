#!/usr/bin/env python3
"""
Unified CLI for fleet maintenance administration.

Commands:
  vehicles       - List vehicles with readings and service thresholds
  due            - Show scheduled services that are due or upcoming
  history        - View service history
  job            - Record a job card
  purchase       - Record a stock purchase
  reassign       - Change the driver of a vehicle
  driver         - Show a driver's vehicles and their work
  notifications  - Show current alerts
  inventory      - List stock levels
  report         - Summaries over a date window
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from fleet import (
    FleetError,
    FleetState,
    FleetStore,
    JobCard,
    JobCardPart,
    RecordJobCardRequest,
    RecordPurchaseRequest,
    RuleStatus,
    ScheduledService,
    ServiceHistoryEntry,
    load_fleet,
)
from fleet.loader import yaml_writer
from fleet import queries

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format an odometer reading for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format a currency amount for display."""
    return f"SAR {cost:,.2f}" if cost is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    text = text.replace("\n", " ")
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_part(spec: str, state: FleetState) -> JobCardPart:
    """
    Parse an ITEM:QTY part spec, priced at the item's average price.

    Raises:
        ValueError: If the spec is malformed
        NotFoundError: If the item does not exist
    """
    item_id, sep, qty = spec.partition(":")
    if not sep or not qty.isdigit() or int(qty) <= 0:
        raise ValueError(f"Invalid part '{spec}', expected ITEM:QTY")
    item = state.require_item(item_id, step="parse_part")
    quantity = int(qty)
    return JobCardPart(
        item_id=item.id,
        item_name=item.name,
        sku=item.sku,
        quantity=quantity,
        unit_price=item.average_price,
        line_total=quantity * item.average_price,
    )


def make_rule_table(rules: List[ScheduledService], state: FleetState) -> List[List[str]]:
    """Convert scheduled services to table rows."""
    rows = []
    for rule in rules:
        vehicle = state.get_vehicle(rule.vehicle_id)
        last_done = "-"
        if rule.last_service_date or rule.last_service_km:
            parts = []
            if rule.last_service_date:
                parts.append(rule.last_service_date)
            if rule.last_service_km:
                parts.append(format_km(rule.last_service_km))
            last_done = " @ ".join(parts)
        rows.append(
            [
                vehicle.vehicle_number if vehicle else rule.vehicle_id,
                rule.service_type,
                f"{rule.trigger_value} {rule.trigger_type.value}",
                last_done,
                format_km(rule.next_due_km),
                rule.next_due_date or "-",
            ]
        )
    return rows


def make_history_table(entries: List[ServiceHistoryEntry], state: FleetState) -> List[List[str]]:
    """Convert service history entries to table rows."""
    rows = []
    for entry in entries:
        vehicle = state.get_vehicle(entry.vehicle_id)
        rows.append(
            [
                entry.service_date,
                vehicle.vehicle_number if vehicle else entry.vehicle_id,
                entry.service_type,
                format_cost(entry.cost),
                entry.job_card_id or "-",
                truncate(entry.work_done),
            ]
        )
    return rows


def print_job_card(job_card: JobCard) -> None:
    print(f"  Job card: {job_card.id}")
    print(f"  Vehicle:  {job_card.vehicle_number}")
    print(f"  Date:     {job_card.job_date}")
    print(f"  KM:       {format_km(job_card.total_km)}")
    print(f"  Hours:    {format_km(job_card.total_hours)}")
    if job_card.services_done:
        print(f"  Services: {', '.join(job_card.services_done)}")
    if job_card.parts_used:
        rows = [
            [p.sku, p.item_name, p.quantity, format_cost(p.unit_price), format_cost(p.line_total)]
            for p in job_card.parts_used
        ]
        print(tabulate(rows, headers=["SKU", "Part", "Qty", "Unit", "Total"], tablefmt="simple"))
    print(f"  Total:    {format_cost(job_card.total_cost)}")


def open_store(args) -> FleetStore:
    """Load the fleet file into a store that saves on commit unless dry-run."""
    state, policy = load_fleet(args.fleet_file)
    on_commit = None if getattr(args, "dry_run", False) else yaml_writer(args.fleet_file, policy)
    return FleetStore(state, policy, on_commit=on_commit)


# =============================================================================
# Read commands
# =============================================================================


def cmd_vehicles(args):
    """List vehicles."""
    state = open_store(args).snapshot()
    rows = []
    for v in state.vehicles.values():
        driver = state.get_driver(v.driver_id) if v.driver_id else None
        rows.append(
            [
                v.vehicle_number,
                v.model,
                driver.name if driver else "-",
                format_km(v.current_km),
                format_km(v.next_service_km),
                format_km(v.total_hours),
                format_km(v.next_service_hours),
                v.status.value,
            ]
        )
    headers = ["Vehicle", "Model", "Driver", "KM", "Next KM", "Hours", "Next Hours", "Status"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_due(args):
    """Show scheduled services grouped by status."""
    state = open_store(args).snapshot()
    headers = ["Vehicle", "Service", "Trigger", "Last Done", "Due (km)", "Due (date)"]

    if args.vehicle:
        vehicle = state.require_vehicle(args.vehicle)
        km = args.km if args.km is not None else vehicle.current_km
        hours = args.hours if args.hours is not None else vehicle.total_hours
        print(f"Vehicle: {vehicle.name}")
        print(f"Current KM: {format_km(km)}  Hours: {format_km(hours)}")
        print()
        due = queries.due_services(state, vehicle.id, km, hours)
        if not due:
            print("No services due.")
            return 0
        print("DUE:")
        print(tabulate(make_rule_table(due, state), headers=headers, tablefmt="simple"))
        return 0

    groups = [(RuleStatus.DUE, "DUE:"), (RuleStatus.UPCOMING, "UPCOMING:")]
    if args.all:
        groups.append((RuleStatus.COMPLETED, "COMPLETED:"))
    for status, title in groups:
        selected = [r for r in state.scheduled_services.values() if r.status == status]
        selected.sort(key=lambda r: (r.vehicle_id, r.service_type))
        if selected:
            print(title)
            print(tabulate(make_rule_table(selected, state), headers=headers, tablefmt="simple"))
            print()
    return 0


def cmd_history(args):
    """View service history."""
    state = open_store(args).snapshot()
    if args.vehicle:
        entries = queries.vehicle_service_history(state, state.require_vehicle(args.vehicle).id)
    else:
        entries = sorted(state.service_history.values(), key=lambda h: h.service_date, reverse=True)

    if args.service:
        entries = [e for e in entries if args.service.lower() in e.service_type.lower()]
    if args.since or args.until:
        entries = [e for e in entries if queries.in_window(e.service_date, args.since, args.until)]

    total_cost = sum(e.cost for e in entries)
    print(f"Entries: {len(entries)}")
    if total_cost > 0:
        print(f"Total cost: {format_cost(total_cost)}")
    print()

    if not entries:
        print("No history entries found.")
        return 0

    headers = ["Date", "Vehicle", "Service", "Cost", "Job Card", "Work Done"]
    print(tabulate(make_history_table(entries, state), headers=headers, tablefmt="simple"))
    return 0


def cmd_driver(args):
    """Show a driver's vehicles and their work."""
    state = open_store(args).snapshot()
    driver = state.require_driver(args.driver_id)
    history = queries.driver_history(state, driver.id)

    print(f"Driver: {driver.name} ({driver.license_number or 'no license on file'})")
    print()
    rows = [
        [a.vehicle_number or a.vehicle_id, a.assigned_at, a.unassigned_at or "current", a.reason or "-"]
        for a in history.assignments
    ]
    print(tabulate(rows, headers=["Vehicle", "Assigned", "Unassigned", "Reason"], tablefmt="simple"))
    print()
    print(f"Job cards on these vehicles: {len(history.job_cards)}")
    print(f"Service entries on these vehicles: {len(history.service_history)}")
    return 0


def cmd_notifications(args):
    """Show current alerts."""
    store = open_store(args)
    notes = queries.notification_set(store.snapshot(), store.policy, store.now())
    if not notes:
        print("No notifications.")
        return 0
    rows = [[n.priority.value, n.title, n.message] for n in notes]
    print(tabulate(rows, headers=["Priority", "Alert", "Detail"], tablefmt="simple"))
    return 0


def cmd_inventory(args):
    """List stock levels."""
    state = open_store(args).snapshot()
    rows = [
        [
            i.sku,
            truncate(i.name),
            i.stock_available,
            format_cost(i.last_purchase_price),
            format_cost(i.average_price),
            format_cost(i.stock_value),
        ]
        for i in state.inventory.values()
    ]
    headers = ["SKU", "Item", "Stock", "Last Price", "Avg Price", "Value"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_report(args):
    """Summaries over a date window."""
    state = open_store(args).snapshot()
    totals = queries.fleet_totals(state, args.start, args.end)
    print(f"Job cards: {totals['total_job_cards']}")
    print(f"Service cost: {format_cost(totals['total_service_cost'])}")
    print(f"Inventory value: {format_cost(totals['total_inventory_value'])}")
    print(f"Active vehicles: {totals['active_vehicles']}")
    print()

    monthly = queries.job_card_summary(state, args.start, args.end)
    if monthly:
        rows = [[r["month"], r["count"], format_cost(r["cost"])] for r in monthly]
        print(tabulate(rows, headers=["Month", "Job Cards", "Cost"], tablefmt="simple"))
        print()

    services = queries.service_cost_analysis(state, args.start, args.end)
    if services:
        rows = [[r["type"], r["count"], format_cost(r["total_cost"])] for r in services]
        print(tabulate(rows, headers=["Service", "Count", "Cost"], tablefmt="simple"))
        print()

    parts = queries.parts_consumption(state, args.start, args.end)
    if parts:
        rows = [[r["name"], r["quantity"], format_cost(r["cost"])] for r in parts]
        print(tabulate(rows, headers=["Part", "Qty", "Cost"], tablefmt="simple"))
    return 0


# =============================================================================
# Write commands
# =============================================================================


def cmd_job(args):
    """Record a job card."""
    store = open_store(args)
    state = store.snapshot()
    vehicle = state.require_vehicle(args.vehicle_id)
    try:
        parts = [parse_part(spec, state) for spec in args.part or []]
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    request = RecordJobCardRequest(
        vehicle_id=vehicle.id,
        job_date=args.date or date.today().isoformat(),
        start_time=args.start or "",
        end_time=args.end or "",
        total_km=args.km if args.km is not None else vehicle.current_km,
        total_hours=args.hours if args.hours is not None else vehicle.total_hours,
        worker_ids=args.worker or [],
        parts_used=parts,
        services_done=args.service or [],
        remarks=args.remarks or "",
    )
    job_card = store.record_job_card(request)

    print(f"Recorded job card for {vehicle.name}:")
    print_job_card(job_card)
    print()
    if args.dry_run:
        print("(dry run - no changes made)")
    else:
        print("Job card saved.")
    return 0


def cmd_purchase(args):
    """Record a stock purchase."""
    store = open_store(args)
    before = store.snapshot().require_item(args.item_id)
    item = store.record_purchase(
        RecordPurchaseRequest(
            item_id=args.item_id,
            quantity=args.quantity,
            unit_price=args.unit_price,
            purchase_date=args.date or date.today().isoformat(),
            supplier=args.supplier or "",
        )
    )
    print(f"Item:          {item.name}")
    print(f"Stock:         {before.stock_available} -> {item.stock_available}")
    print(f"Average price: {format_cost(before.average_price)} -> {format_cost(item.average_price)}")
    print()
    print("(dry run - no changes made)" if args.dry_run else "Purchase saved.")
    return 0


def cmd_reassign(args):
    """Change the driver of a vehicle."""
    store = open_store(args)
    new_driver = None if args.driver_id.lower() == "none" else args.driver_id
    before = store.snapshot().require_vehicle(args.vehicle_id)
    vehicle, touched = store.reassign_driver(
        args.vehicle_id, new_driver, reason=args.reason, actor=args.by
    )
    if not touched:
        print(f"{vehicle.name} already has driver {before.driver_id or 'none'}; nothing to do.")
        return 0
    print(f"{vehicle.name}: {before.driver_id or 'none'} -> {vehicle.driver_id or 'none'}")
    print()
    print("(dry run - no changes made)" if args.dry_run else "Assignment saved.")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet maintenance administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fleet.yaml vehicles
  %(prog)s fleet.yaml due --vehicle V001
  %(prog)s fleet.yaml history --vehicle V001 --since 2024-01-01
  %(prog)s fleet.yaml job V001 --km 45500 --part INV001:2 \\
      --service "Oil Change" --worker W001
  %(prog)s fleet.yaml purchase INV001 20 790 --supplier "Petromin"
  %(prog)s fleet.yaml reassign V001 D002 --reason "Shift change"
  %(prog)s fleet.yaml notifications
""",
    )
    parser.add_argument("fleet_file", type=Path, help="Path to fleet YAML file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine activity")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List vehicles")

    due_parser = subparsers.add_parser("due", help="Show due and upcoming scheduled services")
    due_parser.add_argument("--vehicle", type=str, help="Only services due for this vehicle id")
    due_parser.add_argument("--km", type=int, help="Odometer reading to check against (with --vehicle)")
    due_parser.add_argument("--hours", type=int, help="Engine hours to check against (with --vehicle)")
    due_parser.add_argument("--all", action="store_true", help="Include completed services")

    history_parser = subparsers.add_parser("history", help="View service history")
    history_parser.add_argument("--vehicle", type=str, help="Filter to a vehicle id")
    history_parser.add_argument("--service", type=str, help="Filter to service types containing text")
    history_parser.add_argument("--since", type=str, help="Entries on or after date (YYYY-MM-DD)")
    history_parser.add_argument("--until", type=str, help="Entries on or before date (YYYY-MM-DD)")

    job_parser = subparsers.add_parser("job", help="Record a job card")
    job_parser.add_argument("vehicle_id", type=str, help="Vehicle id (e.g., V001)")
    job_parser.add_argument("--date", type=str, help="Job date YYYY-MM-DD (default: today)")
    job_parser.add_argument("--start", type=str, help="Start time (HH:MM)")
    job_parser.add_argument("--end", type=str, help="End time (HH:MM)")
    job_parser.add_argument("--km", type=int, help="Odometer at service (default: current)")
    job_parser.add_argument("--hours", type=int, help="Engine hours at service (default: current)")
    job_parser.add_argument("--part", action="append", help="Consumed part as ITEM:QTY (repeatable)")
    job_parser.add_argument("--service", action="append", help="Service performed (repeatable)")
    job_parser.add_argument("--worker", action="append", help="Worker id (repeatable)")
    job_parser.add_argument("--remarks", type=str, help="Free-text remarks")
    job_parser.add_argument("--dry-run", action="store_true", help="Show the result without saving")

    purchase_parser = subparsers.add_parser("purchase", help="Record a stock purchase")
    purchase_parser.add_argument("item_id", type=str, help="Inventory item id")
    purchase_parser.add_argument("quantity", type=int, help="Quantity received")
    purchase_parser.add_argument("unit_price", type=float, help="Unit price")
    purchase_parser.add_argument("--supplier", type=str, help="Supplier name")
    purchase_parser.add_argument("--date", type=str, help="Purchase date YYYY-MM-DD (default: today)")
    purchase_parser.add_argument("--dry-run", action="store_true", help="Show the result without saving")

    reassign_parser = subparsers.add_parser("reassign", help="Change the driver of a vehicle")
    reassign_parser.add_argument("vehicle_id", type=str, help="Vehicle id")
    reassign_parser.add_argument("driver_id", type=str, help="New driver id, or 'none' to unassign")
    reassign_parser.add_argument("--reason", type=str, help="Reason for the change")
    reassign_parser.add_argument("--by", type=str, help="Who made the change")
    reassign_parser.add_argument("--dry-run", action="store_true", help="Show the result without saving")

    driver_parser = subparsers.add_parser("driver", help="Show a driver's history")
    driver_parser.add_argument("driver_id", type=str, help="Driver id")

    subparsers.add_parser("notifications", help="Show current alerts")
    subparsers.add_parser("inventory", help="List stock levels")

    report_parser = subparsers.add_parser("report", help="Summaries over a date window")
    report_parser.add_argument("--start", type=str, help="Window start YYYY-MM-DD")
    report_parser.add_argument("--end", type=str, help="Window end YYYY-MM-DD")

    return parser


COMMANDS = {
    "vehicles": cmd_vehicles,
    "due": cmd_due,
    "history": cmd_history,
    "job": cmd_job,
    "purchase": cmd_purchase,
    "reassign": cmd_reassign,
    "driver": cmd_driver,
    "notifications": cmd_notifications,
    "inventory": cmd_inventory,
    "report": cmd_report,
}


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Validate fleet file exists
    if not args.fleet_file.exists():
        print(f"Error: File not found: {args.fleet_file}")
        return 1

    try:
        return COMMANDS[args.command](args)
    except FleetError as e:
        print(f"Error: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
