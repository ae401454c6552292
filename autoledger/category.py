"""Closed enumerations used by vehicle records."""

from enum import Enum


class MaintenanceCategory(str, Enum):
    """Kinds of service a maintenance record can describe."""

    OIL_CHANGE = "oil_change"
    TIRE_ROTATION = "tire_rotation"
    BRAKE_SERVICE = "brake_service"
    INSPECTION = "inspection"
    BATTERY = "battery"
    AIR_FILTER = "air_filter"
    CABIN_FILTER = "cabin_filter"
    SPARK_PLUGS = "spark_plugs"
    COOLANT = "coolant"
    TRANSMISSION = "transmission"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        """Human-readable label, e.g. 'Oil change'."""
        return self.value.replace("_", " ").capitalize()


class VehicleType(str, Enum):
    CAR = "car"
    MOTORCYCLE = "motorcycle"


class TripPurpose(str, Enum):
    BUSINESS = "business"
    PERSONAL = "personal"
