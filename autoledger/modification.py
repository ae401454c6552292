"""Modification class for aftermarket changes."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Modification:
    id: str
    vehicle_id: str
    cost: float
    date: Optional[str] = None
    description: Optional[str] = None
