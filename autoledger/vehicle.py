"""Vehicle class for identification and purchase information."""

from dataclasses import dataclass
from typing import Optional

from .category import VehicleType


@dataclass(frozen=True)
class Vehicle:
    """A vehicle with its purchase details and latest odometer reading."""

    id: str
    make: str
    model: str
    year: int
    purchase_date: str
    purchase_price: float
    current_mileage: float
    type: VehicleType = VehicleType.CAR
    vin: Optional[str] = None
    license_plate: Optional[str] = None
    notes: Optional[str] = None

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.year} {self.make} {self.model}"
