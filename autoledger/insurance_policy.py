"""InsurancePolicy class."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class InsurancePolicy:
    """An insurance contract covering a vehicle between two dates."""

    id: str
    vehicle_id: str
    premium: Optional[float]
    start_date: str
    expiry_date: str
    provider: Optional[str] = None
    policy_number: Optional[str] = None
