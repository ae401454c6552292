"""
Vehicle expense tracking models and analytics.

This package provides:
- Records: Vehicle, FuelLog, MaintenanceRecord, InsurancePolicy,
  Modification, Reminder, TripLog
- Analytics: pure functions deriving efficiency and cost figures from records
- RecordStore: YAML persistence for all records of a garage
"""

from .category import MaintenanceCategory, VehicleType, TripPurpose
from .vehicle import Vehicle
from .fuel_log import FuelLog
from .maintenance_record import MaintenanceRecord
from .insurance_policy import InsurancePolicy
from .modification import Modification
from .reminder import Reminder
from .trip_log import TripLog
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
from .analytics import (
    SERVICE_INTERVALS,
    calculate_cost_per_km,
    calculate_fuel_efficiency,
    calculate_total_cost_of_ownership,
    get_best_worst_fuel_economy,
    get_expense_summary,
    get_fuel_efficiency_trend,
    get_maintenance_cost_breakdown,
    get_monthly_expenses,
    get_overdue_reminders,
    should_trigger_expense_alert,
    sort_by_date,
    sort_reminders,
    suggest_next_service,
    summarize_trips,
    validate_odometer,
)
from .store import RecordStore

__all__ = [
    "MaintenanceCategory",
    "VehicleType",
    "TripPurpose",
    "Vehicle",
    "FuelLog",
    "MaintenanceRecord",
    "InsurancePolicy",
    "Modification",
    "Reminder",
    "TripLog",
    "BestWorstEconomy",
    "ExpenseAlert",
    "ExpenseSummary",
    "FuelEfficiencyData",
    "MaintenanceCostData",
    "MonthlyExpenseData",
    "OdometerCheck",
    "ServiceSuggestion",
    "TotalCostOfOwnership",
    "TripSummary",
    "SERVICE_INTERVALS",
    "calculate_cost_per_km",
    "calculate_fuel_efficiency",
    "calculate_total_cost_of_ownership",
    "get_best_worst_fuel_economy",
    "get_expense_summary",
    "get_fuel_efficiency_trend",
    "get_maintenance_cost_breakdown",
    "get_monthly_expenses",
    "get_overdue_reminders",
    "should_trigger_expense_alert",
    "sort_by_date",
    "sort_reminders",
    "suggest_next_service",
    "summarize_trips",
    "validate_odometer",
    "RecordStore",
]
