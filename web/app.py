"""Flask JSON API serving vehicle expense analytics."""

import logging
import os
import uuid
from dataclasses import asdict
from datetime import date
from pathlib import Path

from dateutil.parser import isoparse
from flask import Flask, abort, jsonify, request

# Add parent directory to path for package imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from autoledger import (
    FuelLog,
    RecordStore,
    calculate_cost_per_km,
    calculate_total_cost_of_ownership,
    get_best_worst_fuel_economy,
    get_expense_summary,
    get_fuel_efficiency_trend,
    get_maintenance_cost_breakdown,
    get_monthly_expenses,
    get_overdue_reminders,
    should_trigger_expense_alert,
    sort_reminders,
    summarize_trips,
    suggest_next_service,
    validate_odometer,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

# Path to the garage file (relative to project root unless absolute)
app.config["DATA_FILE"] = Path(
    os.environ.get(
        "AUTOLEDGER_DATA", str(Path(__file__).parent.parent / "data" / "garage.yaml")
    )
)


def get_store() -> RecordStore:
    return RecordStore(app.config["DATA_FILE"])


def get_vehicle_or_404(store: RecordStore, vehicle_id: str):
    vehicle = store.get_vehicle(vehicle_id)
    if vehicle is None:
        abort(404, description=f"Vehicle '{vehicle_id}' not found")
    return vehicle


def parse_date_value(value, field: str) -> str:
    """Return an ISO date string unchanged, or abort with 400 if it does not parse."""
    if not isinstance(value, str):
        abort(400, description=f"{field} must be an ISO date string")
    try:
        isoparse(value)
    except ValueError:
        abort(400, description=f"Invalid {field} '{value}' (expected YYYY-MM-DD)")
    return value


def as_of_param() -> str:
    """Reference date from ?as_of=YYYY-MM-DD, defaulting to today."""
    as_of = request.args.get("as_of")
    if not as_of:
        return date.today().isoformat()
    return parse_date_value(as_of, "as_of")


@app.errorhandler(400)
@app.errorhandler(404)
def json_error(error):
    return jsonify({"error": error.description}), error.code


@app.route("/api/vehicles")
def list_vehicles():
    """All vehicles in the garage."""
    store = get_store()
    return jsonify([dict(asdict(v), name=v.name) for v in store.get_vehicles()])


@app.route("/api/vehicles/<vehicle_id>")
def vehicle_detail(vehicle_id: str):
    """Vehicle with its dashboard summary."""
    store = get_store()
    vehicle = get_vehicle_or_404(store, vehicle_id)
    fuel_logs = store.get_fuel_logs(vehicle_id)
    records = store.get_maintenance_records(vehicle_id)

    return jsonify(
        {
            "vehicle": dict(asdict(vehicle), name=vehicle.name),
            "summary": asdict(get_expense_summary(vehicle, fuel_logs, records)),
            "trips": asdict(summarize_trips(store.get_trip_logs(vehicle_id))),
            "counts": {
                "fuelLogs": len(fuel_logs),
                "maintenance": len(records),
            },
        }
    )


@app.route("/api/vehicles/<vehicle_id>/fuel")
def vehicle_fuel(vehicle_id: str):
    """Efficiency trend, best/worst fills and cost per km."""
    store = get_store()
    get_vehicle_or_404(store, vehicle_id)
    logs = store.get_fuel_logs(vehicle_id)

    extremes = get_best_worst_fuel_economy(logs)
    return jsonify(
        {
            "trend": [asdict(e) for e in get_fuel_efficiency_trend(logs)],
            "best": asdict(extremes.best) if extremes.best else None,
            "worst": asdict(extremes.worst) if extremes.worst else None,
            "costPerKm": calculate_cost_per_km(logs),
        }
    )


@app.route("/api/vehicles/<vehicle_id>/fuel", methods=["POST"])
def add_fuel_log(vehicle_id: str):
    """
    Record a fuel log from a JSON body.

    A reading below the vehicle's current mileage is refused with 409 and the
    odometer warning, unless the body sets "force": true.
    """
    store = get_store()
    vehicle = get_vehicle_or_404(store, vehicle_id)
    body = request.get_json(silent=True) or {}

    missing = [f for f in ("mileage", "amount", "cost") if body.get(f) is None]
    if missing:
        abort(400, description=f"Missing fields: {', '.join(missing)}")
    try:
        mileage = float(body["mileage"])
        amount = float(body["amount"])
        cost = float(body["cost"])
    except (TypeError, ValueError):
        abort(400, description="mileage, amount and cost must be numbers")

    fill_date = body.get("date")
    if fill_date is None:
        fill_date = date.today().isoformat()
    else:
        fill_date = parse_date_value(fill_date, "date")

    partial_fill = body.get("partialFill", False)
    if not isinstance(partial_fill, bool):
        abort(400, description="partialFill must be true or false")

    check = validate_odometer(mileage, vehicle.current_mileage)
    if not check.valid and not body.get("force"):
        return jsonify({"error": check.message}), 409

    # Ids are server-assigned; an "id" in the body is ignored
    log = FuelLog(
        id=uuid.uuid4().hex[:12],
        vehicle_id=vehicle_id,
        date=fill_date,
        mileage=mileage,
        amount=amount,
        cost=cost,
        fuel_type=body.get("fuelType", "petrol"),
        partial_fill=partial_fill,
        station=body.get("station"),
    )
    store.save_fuel_log(log)
    store.update_current_mileage(vehicle_id, mileage)
    logger.info("Saved fuel log %s for %s", log.id, vehicle_id)

    return jsonify(asdict(log)), 201


@app.route("/api/vehicles/<vehicle_id>/costs")
def vehicle_costs(vehicle_id: str):
    """Maintenance breakdown by category and total cost of ownership."""
    store = get_store()
    vehicle = get_vehicle_or_404(store, vehicle_id)
    fuel_logs = store.get_fuel_logs(vehicle_id)
    records = store.get_maintenance_records(vehicle_id)

    tco = calculate_total_cost_of_ownership(
        vehicle,
        fuel_logs,
        records,
        store.get_insurance_policies(vehicle_id),
        store.get_modifications(vehicle_id),
        as_of=as_of_param(),
    )
    return jsonify(
        {
            "breakdown": [asdict(item) for item in get_maintenance_cost_breakdown(records)],
            "totalCostOfOwnership": asdict(tco),
        }
    )


@app.route("/api/vehicles/<vehicle_id>/monthly")
def vehicle_monthly(vehicle_id: str):
    """Monthly expenses plus the unusual-spend alert."""
    store = get_store()
    get_vehicle_or_404(store, vehicle_id)

    monthly = get_monthly_expenses(
        store.get_fuel_logs(vehicle_id),
        store.get_maintenance_records(vehicle_id),
        store.get_insurance_policies(vehicle_id),
    )
    return jsonify(
        {
            "months": [asdict(m) for m in monthly],
            "alert": asdict(should_trigger_expense_alert(monthly)),
        }
    )


@app.route("/api/vehicles/<vehicle_id>/suggestions")
def vehicle_suggestions(vehicle_id: str):
    """Upcoming services by typical interval."""
    store = get_store()
    vehicle = get_vehicle_or_404(store, vehicle_id)
    suggestions = suggest_next_service(
        store.get_maintenance_records(vehicle_id), vehicle.current_mileage
    )
    return jsonify([asdict(s) for s in suggestions])


@app.route("/api/vehicles/<vehicle_id>/reminders")
def vehicle_reminders(vehicle_id: str):
    """Reminders sorted by due date, with the overdue ones listed by id."""
    store = get_store()
    vehicle = get_vehicle_or_404(store, vehicle_id)
    reminders = store.get_reminders(vehicle_id)
    overdue = get_overdue_reminders(reminders, as_of_param(), vehicle.current_mileage)

    return jsonify(
        {
            "reminders": [asdict(r) for r in sort_reminders(reminders)],
            "overdue": [r.id for r in overdue],
        }
    )


@app.route("/api/vehicles/<vehicle_id>/reminders/<reminder_id>/toggle", methods=["POST"])
def toggle_reminder(vehicle_id: str, reminder_id: str):
    """Flip a reminder between open and completed."""
    store = get_store()
    get_vehicle_or_404(store, vehicle_id)
    for reminder in store.get_reminders(vehicle_id):
        if reminder.id == reminder_id:
            updated = reminder.toggled()
            store.save_reminder(updated)
            return jsonify(asdict(updated))
    abort(404, description=f"Reminder '{reminder_id}' not found")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
