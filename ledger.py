#!/usr/bin/env python3
"""
Unified CLI for vehicle expense tracking.

Commands:
  vehicles      - List vehicles in the garage
  add-vehicle   - Register a new vehicle
  fuel          - Show fuel logs with efficiency figures
  log-fuel      - Add a fuel log
  log-service   - Add a maintenance record
  costs         - Maintenance cost breakdown and total cost of ownership
  monthly       - Monthly expenses, with an alert on unusual spend
  suggest       - Suggest upcoming services
  update-miles  - Update current vehicle mileage
  reminders     - List reminders, flagging overdue ones
"""

import argparse
import logging
import sys
import uuid
from dataclasses import replace
from datetime import date
from dateutil.parser import isoparse
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from autoledger import (
    FuelLog,
    MaintenanceCategory,
    MaintenanceRecord,
    RecordStore,
    Vehicle,
    VehicleType,
    calculate_cost_per_km,
    calculate_fuel_efficiency,
    calculate_total_cost_of_ownership,
    get_best_worst_fuel_economy,
    get_expense_summary,
    get_maintenance_cost_breakdown,
    get_monthly_expenses,
    get_overdue_reminders,
    should_trigger_expense_alert,
    sort_by_date,
    sort_reminders,
    suggest_next_service,
    validate_odometer,
)

CURRENCY = "€"

# =============================================================================
# Formatting helpers
# =============================================================================


def format_distance(distance: Optional[float]) -> str:
    """Format a distance or odometer reading for display."""
    return f"{distance:,.0f}" if distance is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format cost for display."""
    return f"{CURRENCY}{cost:,.2f}" if cost is not None else "-"


def format_efficiency(efficiency: Optional[float]) -> str:
    """Format consumption per 100 distance units."""
    return f"{efficiency:.2f}" if efficiency else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def iso_date(value: str) -> str:
    """Argument type accepting an ISO date or timestamp, kept as given."""
    try:
        isoparse(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date '{value}' (expected YYYY-MM-DD)"
        ) from None
    return value


def load_vehicle(store: RecordStore, vehicle_id: str) -> Optional[Vehicle]:
    """Look up a vehicle, printing an error when it does not exist."""
    vehicle = store.get_vehicle(vehicle_id)
    if vehicle is None:
        print(f"Error: Unknown vehicle '{vehicle_id}'")
    return vehicle


def check_odometer(vehicle: Vehicle, mileage: float, force: bool) -> bool:
    """Warn about a decreasing reading. Returns False if the save should stop."""
    check = validate_odometer(mileage, vehicle.current_mileage)
    if check.valid:
        return True
    print(check.message)
    print(f"  Current mileage: {format_distance(vehicle.current_mileage)}")
    print(f"  New mileage:     {format_distance(mileage)}")
    if force:
        print("(--force given, saving anyway)")
        return True
    print("Use --force to save this reading anyway.")
    return False


# =============================================================================
# Vehicles
# =============================================================================


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    """Convert vehicles to table rows."""
    return [
        [
            v.id,
            v.name,
            v.license_plate or "-",
            v.purchase_date,
            format_cost(v.purchase_price),
            format_distance(v.current_mileage),
        ]
        for v in vehicles
    ]


def cmd_vehicles(store: RecordStore, args) -> int:
    """List vehicles in the garage."""
    vehicles = store.get_vehicles()
    if not vehicles:
        print("No vehicles found.")
        return 0
    headers = ["ID", "Vehicle", "Plate", "Purchased", "Price", "Mileage"]
    print(tabulate(make_vehicle_table(vehicles), headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(store: RecordStore, args) -> int:
    """Register a new vehicle."""
    if store.get_vehicle(args.id) is not None:
        print(f"Error: Vehicle '{args.id}' already exists")
        return 1

    vehicle = Vehicle(
        id=args.id,
        make=args.make,
        model=args.model,
        year=args.year,
        purchase_date=args.purchase_date,
        purchase_price=args.purchase_price,
        current_mileage=args.mileage,
        type=VehicleType(args.type),
        vin=args.vin,
        license_plate=args.plate,
    )
    store.save_vehicle(vehicle)
    print(f"Added {vehicle.name} as '{vehicle.id}'.")
    return 0


def cmd_update_miles(store: RecordStore, args) -> int:
    """Update current vehicle mileage."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1

    print(f"Vehicle: {vehicle.name}")
    print(f"Current mileage: {format_distance(vehicle.current_mileage)}")
    print(f"New mileage:     {format_distance(args.mileage)}")
    print()

    if not check_odometer(vehicle, args.mileage, args.force):
        return 1

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.save_vehicle(replace(vehicle, current_mileage=args.mileage))
    print("Mileage updated.")
    return 0


# =============================================================================
# Fuel
# =============================================================================


def make_fuel_table(logs: List[FuelLog]) -> List[List[str]]:
    """Convert fuel logs to table rows, with efficiency at each full fill."""
    ordered = sort_by_date(logs)
    rows = []
    for previous, log in zip([None] + ordered, ordered):
        efficiency = calculate_fuel_efficiency(log, previous) if previous else 0
        rows.append(
            [
                log.date,
                format_distance(log.mileage),
                f"{log.amount:.2f}",
                format_cost(log.cost),
                "partial" if log.partial_fill else "full",
                format_efficiency(efficiency),
                truncate(log.station),
            ]
        )
    return rows


def cmd_fuel(store: RecordStore, args) -> int:
    """Show fuel logs with efficiency figures."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1
    logs = store.get_fuel_logs(vehicle.id)

    print(f"Vehicle: {vehicle.name}")
    print(f"Fuel logs: {len(logs)}")
    if not logs:
        print("No fuel logs found.")
        return 0

    cost_per_km = calculate_cost_per_km(logs)
    if cost_per_km:
        print(f"Cost per km: {format_cost(cost_per_km)}")
    extremes = get_best_worst_fuel_economy(logs)
    if extremes.best:
        print(f"Best:  {extremes.best.efficiency:.2f} /100 km ({extremes.best.date})")
        print(f"Worst: {extremes.worst.efficiency:.2f} /100 km ({extremes.worst.date})")
    print()

    headers = ["Date", "Mileage", "Amount", "Cost", "Fill", "Per 100", "Station"]
    print(tabulate(make_fuel_table(logs), headers=headers, tablefmt="simple"))
    return 0


def cmd_log_fuel(store: RecordStore, args) -> int:
    """Add a fuel log."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1

    log = FuelLog(
        id=new_id(),
        vehicle_id=vehicle.id,
        date=args.date or date.today().isoformat(),
        mileage=args.mileage,
        amount=args.amount,
        cost=args.cost,
        fuel_type=args.fuel_type,
        partial_fill=args.partial,
        station=args.station,
    )

    print(f"Adding fuel log to {vehicle.name}:")
    print(f"  Date:    {log.date}")
    print(f"  Mileage: {format_distance(log.mileage)}")
    print(f"  Amount:  {log.amount:.2f} ({log.fuel_type})")
    print(f"  Cost:    {format_cost(log.cost)}")
    if log.price_per_unit is not None:
        print(f"  Price:   {CURRENCY}{log.price_per_unit:.3f}/unit")
    if log.partial_fill:
        print("  Partial fill")
    if log.station:
        print(f"  Station: {log.station}")
    print()

    if not check_odometer(vehicle, log.mileage, args.force):
        return 1

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.save_fuel_log(log)
    store.update_current_mileage(vehicle.id, log.mileage)
    print("Entry saved.")
    return 0


# =============================================================================
# Maintenance
# =============================================================================


def cmd_log_service(store: RecordStore, args) -> int:
    """Add a maintenance record."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1

    try:
        category = MaintenanceCategory(args.category.lower())
    except ValueError:
        print(f"Error: Unknown category '{args.category}'")
        print("\nAvailable categories:")
        for c in MaintenanceCategory:
            print(f"  {c.value}")
        return 1

    parts = args.parts.split(",") if args.parts else []
    record = MaintenanceRecord.create(
        id=new_id(),
        vehicle_id=vehicle.id,
        date=args.date or date.today().isoformat(),
        mileage=args.mileage,
        category=category,
        labor_cost=args.labor,
        parts_cost=args.parts_cost,
        tax_cost=args.tax,
        parts_replaced=parts,
        warranty_expiry=args.warranty_expiry,
        service_provider=args.by,
        notes=args.notes,
    )

    print(f"Adding service entry to {vehicle.name}:")
    print(f"  Service: {category.display_name}")
    print(f"  Date:    {record.date}")
    print(f"  Mileage: {format_distance(record.mileage)}")
    print(f"  Cost:    {format_cost(record.total_cost)}")
    if record.parts_replaced:
        print(f"  Parts:   {', '.join(record.parts_replaced)}")
    if record.service_provider:
        print(f"  By:      {record.service_provider}")
    if record.notes:
        print(f"  Notes:   {record.notes}")
    print()

    if not check_odometer(vehicle, record.mileage, args.force):
        return 1

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.save_maintenance_record(record)
    store.update_current_mileage(vehicle.id, record.mileage)
    print("Entry saved.")
    return 0


def cmd_costs(store: RecordStore, args) -> int:
    """Maintenance cost breakdown and total cost of ownership."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1

    fuel_logs = store.get_fuel_logs(vehicle.id)
    records = store.get_maintenance_records(vehicle.id)
    policies = store.get_insurance_policies(vehicle.id)
    mods = store.get_modifications(vehicle.id)

    print(f"Vehicle: {vehicle.name}")
    summary = get_expense_summary(vehicle, fuel_logs, records)
    print(f"Total spent: {format_cost(summary.total_spent)}")
    print()

    breakdown = get_maintenance_cost_breakdown(records)
    if breakdown:
        print("MAINTENANCE BY CATEGORY:")
        rows = [
            [item.category.display_name, item.count, format_cost(item.total_cost)]
            for item in breakdown
        ]
        print(tabulate(rows, headers=["Category", "Count", "Cost"], tablefmt="simple"))
        print()

    tco = calculate_total_cost_of_ownership(
        vehicle, fuel_logs, records, policies, mods, as_of=args.as_of or date.today()
    )
    print("TOTAL COST OF OWNERSHIP:")
    rows = [
        ["Purchase price", format_cost(tco.purchase_price)],
        ["Fuel", format_cost(tco.total_fuel)],
        ["Maintenance", format_cost(tco.total_maintenance)],
        ["Insurance", format_cost(tco.total_insurance)],
        ["Modifications", format_cost(tco.total_modifications)],
        ["Depreciation", f"-{format_cost(tco.depreciation)}"],
        ["Total", format_cost(tco.total)],
    ]
    print(tabulate(rows, tablefmt="simple"))
    return 0


def cmd_monthly(store: RecordStore, args) -> int:
    """Monthly expenses, with an alert on unusual spend."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1

    monthly = get_monthly_expenses(
        store.get_fuel_logs(vehicle.id),
        store.get_maintenance_records(vehicle.id),
        store.get_insurance_policies(vehicle.id),
    )
    if args.since:
        monthly = [m for m in monthly if m.month >= args.since]

    print(f"Vehicle: {vehicle.name}")
    print()
    if not monthly:
        print("No expenses recorded.")
        return 0

    rows = [
        [
            m.month,
            format_cost(m.fuel),
            format_cost(m.maintenance),
            format_cost(m.insurance),
            format_cost(m.total),
        ]
        for m in monthly
    ]
    headers = ["Month", "Fuel", "Maintenance", "Insurance", "Total"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))

    alert = should_trigger_expense_alert(monthly, currency=CURRENCY)
    if alert.alert:
        print()
        print(f"ALERT: {alert.message}")
    return 0


def cmd_suggest(store: RecordStore, args) -> int:
    """Suggest upcoming services."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1

    suggestions = suggest_next_service(
        store.get_maintenance_records(vehicle.id), vehicle.current_mileage
    )
    print(f"Vehicle: {vehicle.name}")
    print(f"Current mileage: {format_distance(vehicle.current_mileage)}")
    print()
    if not suggestions:
        print("Nothing due.")
        return 0

    rows = [
        [s.category.display_name, format_distance(s.suggested_mileage), s.reason]
        for s in suggestions
    ]
    print(tabulate(rows, headers=["Service", "At (km)", "Reason"], tablefmt="simple"))
    return 0


def cmd_reminders(store: RecordStore, args) -> int:
    """List reminders, flagging overdue ones."""
    vehicle = load_vehicle(store, args.vehicle_id)
    if vehicle is None:
        return 1

    reminders = store.get_reminders(vehicle.id)
    if not args.all:
        reminders = [r for r in reminders if not r.completed]

    print(f"Vehicle: {vehicle.name}")
    print()
    if not reminders:
        print("No reminders.")
        return 0

    overdue = {
        r.id
        for r in get_overdue_reminders(
            reminders, date.today(), vehicle.current_mileage
        )
    }
    rows = [
        [
            "done" if r.completed else ("OVERDUE" if r.id in overdue else ""),
            r.title,
            r.due_date,
            format_distance(r.due_mileage),
            truncate(r.description),
        ]
        for r in sort_reminders(reminders)
    ]
    headers = ["", "Reminder", "Due", "Due (km)", "Description"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle expense tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/garage.yaml vehicles
  %(prog)s data/garage.yaml add-vehicle golf --make VW --model Golf --year 2019 \\
      --purchase-date 2020-03-01 --purchase-price 18000 --mileage 24000
  %(prog)s data/garage.yaml log-fuel golf --mileage 31250 --amount 41.2 --cost 72.10
  %(prog)s data/garage.yaml log-service golf oil_change --mileage 31300 \\
      --labor 40 --parts-cost 55 --tax 20 --parts "oil,oil filter"
  %(prog)s data/garage.yaml fuel golf
  %(prog)s data/garage.yaml monthly golf --since 2024-01
  %(prog)s data/garage.yaml suggest golf
""",
    )
    parser.add_argument("data_file", type=Path, help="Path to garage YAML file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List vehicles in the garage")

    add_vehicle_parser = subparsers.add_parser("add-vehicle", help="Register a new vehicle")
    add_vehicle_parser.add_argument("id", type=str, help="Vehicle ID (e.g., 'golf')")
    add_vehicle_parser.add_argument("--make", type=str, required=True)
    add_vehicle_parser.add_argument("--model", type=str, required=True)
    add_vehicle_parser.add_argument("--year", type=int, required=True)
    add_vehicle_parser.add_argument(
        "--purchase-date",
        type=iso_date,
        required=True,
        help="Purchase date (YYYY-MM-DD)",
    )
    add_vehicle_parser.add_argument("--purchase-price", type=float, required=True)
    add_vehicle_parser.add_argument(
        "--mileage", type=float, default=0, help="Current odometer reading"
    )
    add_vehicle_parser.add_argument(
        "--type", choices=[t.value for t in VehicleType], default=VehicleType.CAR.value
    )
    add_vehicle_parser.add_argument("--vin", type=str)
    add_vehicle_parser.add_argument("--plate", type=str, help="License plate")

    fuel_parser = subparsers.add_parser("fuel", help="Show fuel logs with efficiency")
    fuel_parser.add_argument("vehicle_id", type=str)

    log_fuel_parser = subparsers.add_parser("log-fuel", help="Add a fuel log")
    log_fuel_parser.add_argument("vehicle_id", type=str)
    log_fuel_parser.add_argument("--mileage", type=float, required=True)
    log_fuel_parser.add_argument(
        "--amount", type=float, required=True, help="Fuel dispensed (litres or kWh)"
    )
    log_fuel_parser.add_argument("--cost", type=float, required=True)
    log_fuel_parser.add_argument("--fuel-type", type=str, default="petrol")
    log_fuel_parser.add_argument(
        "--partial", action="store_true", help="Tank was not filled to capacity"
    )
    log_fuel_parser.add_argument("--station", type=str)
    log_fuel_parser.add_argument(
        "--date", type=iso_date, help="Fill date in YYYY-MM-DD format (default: today)"
    )

    log_service_parser = subparsers.add_parser(
        "log-service", help="Add a maintenance record"
    )
    log_service_parser.add_argument("vehicle_id", type=str)
    log_service_parser.add_argument(
        "category", type=str, help="Service category (e.g., 'oil_change')"
    )
    log_service_parser.add_argument("--mileage", type=float, required=True)
    log_service_parser.add_argument("--labor", type=float, default=0.0)
    log_service_parser.add_argument("--parts-cost", type=float, default=0.0)
    log_service_parser.add_argument("--tax", type=float, default=0.0)
    log_service_parser.add_argument(
        "--parts", type=str, help="Parts replaced (comma-separated)"
    )
    log_service_parser.add_argument(
        "--warranty-expiry", type=iso_date, help="Warranty expiry date (YYYY-MM-DD)"
    )
    log_service_parser.add_argument(
        "--by", type=str, help="Who performed the service (e.g., 'self', 'Dealer')"
    )
    log_service_parser.add_argument("--notes", type=str)
    log_service_parser.add_argument(
        "--date", type=iso_date, help="Service date in YYYY-MM-DD format (default: today)"
    )

    for writing_parser in (log_fuel_parser, log_service_parser):
        writing_parser.add_argument(
            "--force",
            action="store_true",
            help="Save even if the mileage is lower than the vehicle's current mileage",
        )
        writing_parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be added without saving",
        )

    costs_parser = subparsers.add_parser(
        "costs", help="Maintenance breakdown and total cost of ownership"
    )
    costs_parser.add_argument("vehicle_id", type=str)
    costs_parser.add_argument(
        "--as-of", type=iso_date, help="Reference date for depreciation (default: today)"
    )

    monthly_parser = subparsers.add_parser("monthly", help="Monthly expenses")
    monthly_parser.add_argument("vehicle_id", type=str)
    monthly_parser.add_argument(
        "--since", type=str, help="Show only months since YYYY-MM"
    )

    suggest_parser = subparsers.add_parser("suggest", help="Suggest upcoming services")
    suggest_parser.add_argument("vehicle_id", type=str)

    update_miles_parser = subparsers.add_parser(
        "update-miles", help="Update current vehicle mileage"
    )
    update_miles_parser.add_argument("vehicle_id", type=str)
    update_miles_parser.add_argument("mileage", type=float, help="Current mileage")
    update_miles_parser.add_argument(
        "--force",
        action="store_true",
        help="Save even if the mileage is lower than the current mileage",
    )
    update_miles_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    reminders_parser = subparsers.add_parser("reminders", help="List reminders")
    reminders_parser.add_argument("vehicle_id", type=str)
    reminders_parser.add_argument(
        "--all", action="store_true", help="Include completed reminders"
    )

    return parser


COMMANDS = {
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "fuel": cmd_fuel,
    "log-fuel": cmd_log_fuel,
    "log-service": cmd_log_service,
    "costs": cmd_costs,
    "monthly": cmd_monthly,
    "suggest": cmd_suggest,
    "update-miles": cmd_update_miles,
    "reminders": cmd_reminders,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Every command except add-vehicle needs existing data
    if args.command != "add-vehicle" and not args.data_file.exists():
        print(f"Error: File not found: {args.data_file}")
        return 1

    store = RecordStore(args.data_file)
    return COMMANDS[args.command](store, args)


if __name__ == "__main__":
    sys.exit(main() or 0)
