"""MaintenanceRecord class for services performed on a vehicle."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .category import MaintenanceCategory


@dataclass(frozen=True)
class MaintenanceRecord:
    """
    A record of maintenance performed.

    total_cost is stored alongside its components and is never re-derived
    from them; build new records with create() to get it filled in.
    """

    id: str
    vehicle_id: str
    date: str
    mileage: float
    category: MaintenanceCategory
    labor_cost: float = 0.0
    parts_cost: float = 0.0
    tax_cost: float = 0.0
    total_cost: float = 0.0
    parts_replaced: Tuple[str, ...] = ()
    warranty_expiry: Optional[str] = None
    service_provider: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def create(
        cls,
        id: str,
        vehicle_id: str,
        date: str,
        mileage: float,
        category: MaintenanceCategory,
        labor_cost: float = 0.0,
        parts_cost: float = 0.0,
        tax_cost: float = 0.0,
        parts_replaced: Sequence[str] = (),
        warranty_expiry: Optional[str] = None,
        service_provider: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "MaintenanceRecord":
        """Build a new record, computing total_cost from its components."""
        return cls(
            id=id,
            vehicle_id=vehicle_id,
            date=date,
            mileage=mileage,
            category=MaintenanceCategory(category),
            labor_cost=labor_cost,
            parts_cost=parts_cost,
            tax_cost=tax_cost,
            total_cost=labor_cost + parts_cost + tax_cost,
            parts_replaced=tuple(p.strip() for p in parts_replaced if p.strip()),
            warranty_expiry=warranty_expiry,
            service_provider=service_provider,
            notes=notes,
        )
