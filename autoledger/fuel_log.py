"""FuelLog class for refuelling events."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FuelLog:
    """A single refuelling, recorded at the odometer reading of the fill."""

    id: str
    vehicle_id: str
    date: str
    mileage: float
    amount: float
    cost: float
    fuel_type: str = "petrol"
    partial_fill: bool = False
    station: Optional[str] = None

    @property
    def price_per_unit(self) -> Optional[float]:
        """Cost of one unit of fuel, None when no amount was dispensed."""
        if not self.amount:
            return None
        return self.cost / self.amount
