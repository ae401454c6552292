"""TripLog class for recorded journeys."""

from dataclasses import dataclass
from typing import Optional

from .category import TripPurpose


@dataclass(frozen=True)
class TripLog:
    id: str
    vehicle_id: str
    date: str
    distance: float
    purpose: TripPurpose = TripPurpose.PERSONAL
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    notes: Optional[str] = None
