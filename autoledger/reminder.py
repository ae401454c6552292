"""Reminder class for user-defined due dates."""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Reminder:
    """Something the owner wants to be told about by date and/or mileage."""

    id: str
    vehicle_id: str
    title: str
    due_date: str
    due_mileage: Optional[float] = None
    completed: bool = False
    description: Optional[str] = None

    def toggled(self) -> "Reminder":
        """Copy of this reminder with completed flipped."""
        return replace(self, completed=not self.completed)
