"""
Cost and efficiency analytics over vehicle records.

Every function here is pure: records come in as sequences, derived values go
out as new dataclasses. Nothing reads the clock; callers pass the reference
date where one is needed. Insufficient or inconsistent data is reported
through the return value (0, None, empty lists, valid=False), never by
raising.
"""

import logging
import math
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from .category import MaintenanceCategory, TripPurpose
from .fuel_log import FuelLog
from .insurance_policy import InsurancePolicy
from .maintenance_record import MaintenanceRecord
from .modification import Modification
from .reminder import Reminder
from .results import (
    BestWorstEconomy,
    ExpenseAlert,
    ExpenseSummary,
    FuelEfficiencyData,
    MaintenanceCostData,
    MonthlyExpenseData,
    OdometerCheck,
    ServiceSuggestion,
    TotalCostOfOwnership,
    TripSummary,
)
from .trip_log import TripLog
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]

# Straight-line depreciation rate per year of ownership
DEPRECIATION_RATE = 0.10

# Current month must exceed the recent average by this factor to alert
EXPENSE_ALERT_FACTOR = 1.2

# Suggest a service this many distance units before it falls due
SERVICE_LOOKAHEAD = 1000

# Typical service intervals, in distance units. Declaration order is output order.
SERVICE_INTERVALS: Dict[MaintenanceCategory, float] = {
    MaintenanceCategory.OIL_CHANGE: 15000,
    MaintenanceCategory.TIRE_ROTATION: 10000,
    MaintenanceCategory.BRAKE_SERVICE: 50000,
    MaintenanceCategory.INSPECTION: 20000,
    MaintenanceCategory.AIR_FILTER: 30000,
    MaintenanceCategory.CABIN_FILTER: 20000,
    MaintenanceCategory.SPARK_PLUGS: 60000,
    MaintenanceCategory.COOLANT: 40000,
}

_SECONDS_PER_DAY = 60 * 60 * 24


# =============================================================================
# Helpers
# =============================================================================


def _to_datetime(value: DateLike) -> datetime:
    """Parse an ISO date or timestamp into a naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = isoparse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _month_key(value: DateLike) -> str:
    return _to_datetime(value).strftime("%Y-%m")


def _round2(value: float) -> float:
    """Round to 2 decimals, halves rounding up."""
    return math.floor(value * 100 + 0.5) / 100


def _format_number(value: float) -> str:
    """Render whole numbers without a trailing '.0'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def sort_by_date(logs: Sequence[FuelLog]) -> List[FuelLog]:
    """Fuel logs in date order, comparing timestamps in UTC."""
    return sorted(logs, key=lambda log: _to_datetime(log.date))


# =============================================================================
# Fuel
# =============================================================================


def calculate_fuel_efficiency(current: FuelLog, previous: FuelLog) -> float:
    """
    Consumption per 100 distance units between two consecutive fills.

    Returns 0 when it cannot be computed: the current fill is partial, or the
    odometer did not advance between the two logs.
    """
    if current.partial_fill:
        return 0
    distance_traveled = current.mileage - previous.mileage
    if distance_traveled <= 0:
        return 0
    return _round2(current.amount / distance_traveled * 100)


def get_fuel_efficiency_trend(logs: Sequence[FuelLog]) -> List[FuelEfficiencyData]:
    """Efficiency at each full fill, in date order."""
    sorted_logs = sort_by_date(logs)
    trend = []
    for previous, current in zip(sorted_logs, sorted_logs[1:]):
        if current.partial_fill:
            logger.debug("Skipping partial fill %s", current.id)
            continue
        efficiency = calculate_fuel_efficiency(current, previous)
        if efficiency > 0:
            trend.append(
                FuelEfficiencyData(date=current.date, efficiency=efficiency, cost=current.cost)
            )
        else:
            logger.debug("Odometer did not advance at fuel log %s", current.id)
    return trend


def get_best_worst_fuel_economy(logs: Sequence[FuelLog]) -> BestWorstEconomy:
    """
    Lowest (best) and highest (worst) consumption in the trend.

    Ties go to the earliest entry.
    """
    trend = get_fuel_efficiency_trend(logs)
    if not trend:
        return BestWorstEconomy(best=None, worst=None)

    best = worst = trend[0]
    for entry in trend[1:]:
        if entry.efficiency < best.efficiency:
            best = entry
        if entry.efficiency > worst.efficiency:
            worst = entry
    return BestWorstEconomy(best=best, worst=worst)


def calculate_cost_per_km(logs: Sequence[FuelLog]) -> float:
    """
    Fuel spend per distance unit over the whole log.

    Partial fills count towards spend. Distance runs from the earliest to the
    latest log by date.
    """
    if len(logs) < 2:
        return 0
    sorted_logs = sort_by_date(logs)
    total_cost = sum(log.cost for log in sorted_logs)
    total_distance = sorted_logs[-1].mileage - sorted_logs[0].mileage
    if total_distance <= 0:
        return 0
    return _round2(total_cost / total_distance)


# =============================================================================
# Costs
# =============================================================================


def get_maintenance_cost_breakdown(
    records: Sequence[MaintenanceRecord],
) -> List[MaintenanceCostData]:
    """Total cost and record count per category, in first-seen order."""
    totals: Dict[MaintenanceCategory, float] = {}
    counts: Dict[MaintenanceCategory, int] = {}
    for record in records:
        totals[record.category] = totals.get(record.category, 0) + record.total_cost
        counts[record.category] = counts.get(record.category, 0) + 1
    return [
        MaintenanceCostData(category=category, total_cost=total, count=counts[category])
        for category, total in totals.items()
    ]


def get_monthly_expenses(
    fuel_logs: Sequence[FuelLog],
    maintenance_records: Sequence[MaintenanceRecord],
    insurance_policies: Sequence[InsurancePolicy],
) -> List[MonthlyExpenseData]:
    """
    Fuel, maintenance and insurance spend per calendar month.

    A policy premium is spread evenly over ceil(days / 30) months and booked
    to each calendar month from the start date up to the expiry date.
    """
    buckets: Dict[str, Dict[str, float]] = {}

    def bucket(month: str) -> Dict[str, float]:
        if month not in buckets:
            buckets[month] = {"fuel": 0.0, "maintenance": 0.0, "insurance": 0.0}
        return buckets[month]

    for log in fuel_logs:
        bucket(_month_key(log.date))["fuel"] += log.cost

    for record in maintenance_records:
        bucket(_month_key(record.date))["maintenance"] += record.total_cost

    for policy in insurance_policies:
        if not policy.premium:
            continue
        start = _to_datetime(policy.start_date)
        end = _to_datetime(policy.expiry_date)
        months = math.ceil((end - start).total_seconds() / (_SECONDS_PER_DAY * 30))
        monthly_premium = policy.premium / months if months > 0 else policy.premium

        step = 0
        current = start
        while current <= end:
            bucket(current.strftime("%Y-%m"))["insurance"] += monthly_premium
            step += 1
            current = start + relativedelta(months=step)

    return [
        MonthlyExpenseData(
            month=month,
            fuel=data["fuel"],
            maintenance=data["maintenance"],
            insurance=data["insurance"],
            total=data["fuel"] + data["maintenance"] + data["insurance"],
        )
        for month, data in sorted(buckets.items())
    ]


def calculate_total_cost_of_ownership(
    vehicle: Vehicle,
    fuel_logs: Sequence[FuelLog],
    maintenance_records: Sequence[MaintenanceRecord],
    insurance_policies: Sequence[InsurancePolicy],
    modifications: Sequence[Modification],
    as_of: DateLike,
) -> TotalCostOfOwnership:
    """
    Everything spent on a vehicle, net of straight-line depreciation.

    Depreciation is 10% of the purchase price per year owned, counting
    years as 365 days up to as_of.
    """
    total_fuel = sum(log.cost for log in fuel_logs)
    total_maintenance = sum(record.total_cost for record in maintenance_records)
    total_insurance = sum(policy.premium or 0 for policy in insurance_policies)
    total_modifications = sum(mod.cost for mod in modifications)

    owned = _to_datetime(as_of) - _to_datetime(vehicle.purchase_date)
    years_owned = owned.total_seconds() / (_SECONDS_PER_DAY * 365)
    depreciation = vehicle.purchase_price * DEPRECIATION_RATE * years_owned

    total = (
        vehicle.purchase_price
        + total_fuel
        + total_maintenance
        + total_insurance
        + total_modifications
        - depreciation
    )
    return TotalCostOfOwnership(
        purchase_price=vehicle.purchase_price,
        depreciation=depreciation,
        total_fuel=total_fuel,
        total_maintenance=total_maintenance,
        total_insurance=total_insurance,
        total_modifications=total_modifications,
        total=total,
    )


def get_expense_summary(
    vehicle: Vehicle,
    fuel_logs: Sequence[FuelLog],
    maintenance_records: Sequence[MaintenanceRecord],
) -> ExpenseSummary:
    """Fuel and maintenance totals plus overall spend including purchase."""
    total_fuel = sum(log.cost for log in fuel_logs)
    total_maintenance = sum(record.total_cost for record in maintenance_records)
    return ExpenseSummary(
        total_fuel=total_fuel,
        total_maintenance=total_maintenance,
        total_spent=vehicle.purchase_price + total_fuel + total_maintenance,
    )


# =============================================================================
# Checks and alerts
# =============================================================================


def validate_odometer(new_mileage: float, current_mileage: float) -> OdometerCheck:
    """Warn when a reading is lower than the last known mileage."""
    if new_mileage < current_mileage:
        return OdometerCheck(
            valid=False,
            message=(
                "Warning: New mileage is less than current mileage. "
                "This may indicate an error."
            ),
        )
    return OdometerCheck(valid=True)


def should_trigger_expense_alert(
    monthly_expenses: Sequence[MonthlyExpenseData], currency: str = "€"
) -> ExpenseAlert:
    """
    Alert when the latest month is more than 20% above the recent average.

    The average covers up to two months before the latest one.
    """
    if len(monthly_expenses) < 2:
        return ExpenseAlert(alert=False)

    recent = list(monthly_expenses)[-3:]
    previous = recent[:-1]
    average = sum(data.total for data in previous) / len(previous)
    current = recent[-1].total

    if current > average * EXPENSE_ALERT_FACTOR:
        return ExpenseAlert(
            alert=True,
            message=(
                f"Your expenses this month ({currency}{current:.2f}) are 20% "
                f"higher than your average ({currency}{average:.2f})."
            ),
        )
    return ExpenseAlert(alert=False)


def suggest_next_service(
    records: Sequence[MaintenanceRecord], current_mileage: float
) -> List[ServiceSuggestion]:
    """
    Services that are due soon, or were never recorded, per SERVICE_INTERVALS.

    The last service of a category is the one at the highest mileage.
    """
    suggestions = []
    for category, interval in SERVICE_INTERVALS.items():
        matching = [r for r in records if r.category == category]
        if not matching:
            suggestions.append(
                ServiceSuggestion(
                    category=category,
                    suggested_mileage=current_mileage + interval,
                    reason="no previous service recorded",
                )
            )
            continue

        last_service = max(matching, key=lambda r: r.mileage)
        next_service_mileage = last_service.mileage + interval
        if current_mileage >= next_service_mileage - SERVICE_LOOKAHEAD:
            suggestions.append(
                ServiceSuggestion(
                    category=category,
                    suggested_mileage=next_service_mileage,
                    reason=(
                        "Due soon (last service at "
                        f"{_format_number(last_service.mileage)} km)"
                    ),
                )
            )
    return suggestions


# =============================================================================
# Trips and reminders
# =============================================================================


def summarize_trips(trips: Sequence[TripLog]) -> TripSummary:
    """Distance driven split by business and personal purpose."""
    business = sum(t.distance for t in trips if t.purpose == TripPurpose.BUSINESS)
    personal = sum(t.distance for t in trips if t.purpose == TripPurpose.PERSONAL)
    return TripSummary(
        business_distance=business,
        personal_distance=personal,
        total_distance=business + personal,
        count=len(trips),
    )


def sort_reminders(reminders: Sequence[Reminder]) -> List[Reminder]:
    return sorted(reminders, key=lambda r: _to_datetime(r.due_date))


def get_overdue_reminders(
    reminders: Sequence[Reminder],
    as_of: DateLike,
    current_mileage: Optional[float] = None,
) -> List[Reminder]:
    """Open reminders whose due date has arrived or whose due mileage is reached."""
    today = _to_datetime(as_of).date()
    overdue = []
    for reminder in sort_reminders(reminders):
        if reminder.completed:
            continue
        date_due = _to_datetime(reminder.due_date).date() <= today
        mileage_due = (
            reminder.due_mileage is not None
            and current_mileage is not None
            and current_mileage >= reminder.due_mileage
        )
        if date_due or mileage_due:
            overdue.append(reminder)
    return overdue
