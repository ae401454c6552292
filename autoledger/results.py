"""Dataclasses for values derived by the analytics functions."""

from dataclasses import dataclass
from typing import Optional

from .category import MaintenanceCategory


@dataclass(frozen=True)
class FuelEfficiencyData:
    """Consumption per 100 distance units measured at one full fill."""

    date: str
    efficiency: float
    cost: float


@dataclass(frozen=True)
class BestWorstEconomy:
    best: Optional[FuelEfficiencyData] = None
    worst: Optional[FuelEfficiencyData] = None


@dataclass(frozen=True)
class MaintenanceCostData:
    category: MaintenanceCategory
    total_cost: float
    count: int


@dataclass(frozen=True)
class MonthlyExpenseData:
    """Spend bucketed into one calendar month (month is 'YYYY-MM')."""

    month: str
    fuel: float = 0.0
    maintenance: float = 0.0
    insurance: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class TotalCostOfOwnership:
    purchase_price: float
    depreciation: float
    total_fuel: float
    total_maintenance: float
    total_insurance: float
    total_modifications: float
    total: float


@dataclass(frozen=True)
class OdometerCheck:
    valid: bool
    message: Optional[str] = None


@dataclass(frozen=True)
class ExpenseAlert:
    alert: bool
    message: Optional[str] = None


@dataclass(frozen=True)
class ServiceSuggestion:
    category: MaintenanceCategory
    suggested_mileage: float
    reason: str


@dataclass(frozen=True)
class ExpenseSummary:
    """Headline spend figures shown on a vehicle dashboard."""

    total_fuel: float
    total_maintenance: float
    total_spent: float


@dataclass(frozen=True)
class TripSummary:
    business_distance: float
    personal_distance: float
    total_distance: float
    count: int
