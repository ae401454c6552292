"""YAML-backed record store for vehicles and their child records."""

import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from .category import MaintenanceCategory, TripPurpose, VehicleType
from .fuel_log import FuelLog
from .insurance_policy import InsurancePolicy
from .maintenance_record import MaintenanceRecord
from .modification import Modification
from .reminder import Reminder
from .trip_log import TripLog
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

VEHICLES = "vehicles"
MAINTENANCE = "maintenance"
FUEL_LOGS = "fuelLogs"
TRIP_LOGS = "tripLogs"
MODIFICATIONS = "modifications"
INSURANCE_POLICIES = "insurancePolicies"
REMINDERS = "reminders"

CHILD_SECTIONS = (
    MAINTENANCE,
    FUEL_LOGS,
    TRIP_LOGS,
    MODIFICATIONS,
    INSURANCE_POLICIES,
    REMINDERS,
)


def _date_str(value: Any) -> Optional[str]:
    """YAML loads unquoted dates as date objects; keep them as ISO strings."""
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values for cleaner YAML."""
    return {k: v for k, v in d.items() if v is not None}


# =============================================================================
# Parsing (YAML dict -> record)
# =============================================================================


def _parse_vehicle(dct: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        id=str(dct["id"]),
        make=dct["make"],
        model=dct["model"],
        year=dct["year"],
        purchase_date=_date_str(dct["purchaseDate"]),
        purchase_price=dct["purchasePrice"],
        current_mileage=dct["currentMileage"],
        type=VehicleType(dct.get("type", VehicleType.CAR.value)),
        vin=dct.get("vin"),
        license_plate=dct.get("licensePlate"),
        notes=dct.get("notes"),
    )


def _parse_maintenance(dct: Dict[str, Any]) -> MaintenanceRecord:
    return MaintenanceRecord(
        id=str(dct["id"]),
        vehicle_id=str(dct["vehicleId"]),
        date=_date_str(dct["date"]),
        mileage=dct["mileage"],
        category=MaintenanceCategory(dct["category"]),
        labor_cost=dct.get("laborCost", 0.0),
        parts_cost=dct.get("partsCost", 0.0),
        tax_cost=dct.get("taxCost", 0.0),
        total_cost=dct.get("totalCost", 0.0),
        parts_replaced=tuple(dct.get("partsReplaced") or ()),
        warranty_expiry=_date_str(dct.get("warrantyExpiry")),
        service_provider=dct.get("serviceProvider"),
        notes=dct.get("notes"),
    )


def _parse_fuel_log(dct: Dict[str, Any]) -> FuelLog:
    return FuelLog(
        id=str(dct["id"]),
        vehicle_id=str(dct["vehicleId"]),
        date=_date_str(dct["date"]),
        mileage=dct["mileage"],
        amount=dct["amount"],
        cost=dct["cost"],
        fuel_type=dct.get("fuelType", "petrol"),
        partial_fill=dct.get("partialFill", False),
        station=dct.get("station"),
    )


def _parse_trip_log(dct: Dict[str, Any]) -> TripLog:
    return TripLog(
        id=str(dct["id"]),
        vehicle_id=str(dct["vehicleId"]),
        date=_date_str(dct["date"]),
        distance=dct["distance"],
        purpose=TripPurpose(dct.get("purpose", TripPurpose.PERSONAL.value)),
        start_location=dct.get("startLocation"),
        end_location=dct.get("endLocation"),
        notes=dct.get("notes"),
    )


def _parse_modification(dct: Dict[str, Any]) -> Modification:
    return Modification(
        id=str(dct["id"]),
        vehicle_id=str(dct["vehicleId"]),
        cost=dct["cost"],
        date=_date_str(dct.get("date")),
        description=dct.get("description"),
    )


def _parse_insurance_policy(dct: Dict[str, Any]) -> InsurancePolicy:
    return InsurancePolicy(
        id=str(dct["id"]),
        vehicle_id=str(dct["vehicleId"]),
        premium=dct.get("premium"),
        start_date=_date_str(dct["startDate"]),
        expiry_date=_date_str(dct["expiryDate"]),
        provider=dct.get("provider"),
        policy_number=dct.get("policyNumber"),
    )


def _parse_reminder(dct: Dict[str, Any]) -> Reminder:
    return Reminder(
        id=str(dct["id"]),
        vehicle_id=str(dct["vehicleId"]),
        title=dct["title"],
        due_date=_date_str(dct["dueDate"]),
        due_mileage=dct.get("dueMileage"),
        completed=dct.get("completed", False),
        description=dct.get("description"),
    )


# =============================================================================
# Serialization (record -> YAML dict, camelCase keys)
# =============================================================================


def _vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    return _compact(
        {
            "id": vehicle.id,
            "type": VehicleType(vehicle.type).value,
            "make": vehicle.make,
            "model": vehicle.model,
            "year": vehicle.year,
            "purchaseDate": vehicle.purchase_date,
            "purchasePrice": vehicle.purchase_price,
            "currentMileage": vehicle.current_mileage,
            "vin": vehicle.vin,
            "licensePlate": vehicle.license_plate,
            "notes": vehicle.notes,
        }
    )


def _maintenance_to_dict(record: MaintenanceRecord) -> Dict[str, Any]:
    d = _compact(
        {
            "id": record.id,
            "vehicleId": record.vehicle_id,
            "date": record.date,
            "mileage": record.mileage,
            "category": MaintenanceCategory(record.category).value,
            "laborCost": record.labor_cost,
            "partsCost": record.parts_cost,
            "taxCost": record.tax_cost,
            "totalCost": record.total_cost,
            "warrantyExpiry": record.warranty_expiry,
            "serviceProvider": record.service_provider,
            "notes": record.notes,
        }
    )
    if record.parts_replaced:
        d["partsReplaced"] = list(record.parts_replaced)
    return d


def _fuel_log_to_dict(log: FuelLog) -> Dict[str, Any]:
    return _compact(
        {
            "id": log.id,
            "vehicleId": log.vehicle_id,
            "date": log.date,
            "mileage": log.mileage,
            "amount": log.amount,
            "cost": log.cost,
            "fuelType": log.fuel_type,
            "partialFill": log.partial_fill,
            "station": log.station,
        }
    )


def _trip_log_to_dict(trip: TripLog) -> Dict[str, Any]:
    return _compact(
        {
            "id": trip.id,
            "vehicleId": trip.vehicle_id,
            "date": trip.date,
            "distance": trip.distance,
            "purpose": TripPurpose(trip.purpose).value,
            "startLocation": trip.start_location,
            "endLocation": trip.end_location,
            "notes": trip.notes,
        }
    )


def _modification_to_dict(mod: Modification) -> Dict[str, Any]:
    return _compact(
        {
            "id": mod.id,
            "vehicleId": mod.vehicle_id,
            "cost": mod.cost,
            "date": mod.date,
            "description": mod.description,
        }
    )


def _insurance_policy_to_dict(policy: InsurancePolicy) -> Dict[str, Any]:
    return _compact(
        {
            "id": policy.id,
            "vehicleId": policy.vehicle_id,
            "premium": policy.premium,
            "startDate": policy.start_date,
            "expiryDate": policy.expiry_date,
            "provider": policy.provider,
            "policyNumber": policy.policy_number,
        }
    )


def _reminder_to_dict(reminder: Reminder) -> Dict[str, Any]:
    return _compact(
        {
            "id": reminder.id,
            "vehicleId": reminder.vehicle_id,
            "title": reminder.title,
            "dueDate": reminder.due_date,
            "dueMileage": reminder.due_mileage,
            "completed": reminder.completed,
            "description": reminder.description,
        }
    )


# =============================================================================
# Store
# =============================================================================


class RecordStore:
    """
    All records of a garage in a single YAML file.

    Each section holds a list of camelCase dicts. Saves are upserts keyed by
    record id: an existing entry is replaced in place, a new one is appended.
    Every call re-reads the file, so one store instance never serves stale
    data after another writer has saved.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    # -------------------------------------------------------------------------
    # Raw file access
    # -------------------------------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as fp:
            return yaml.load(fp, Loader=yaml.SafeLoader) or {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as fp:
            yaml.dump(
                data,
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )

    def _get(
        self,
        section: str,
        parse: Callable[[Dict[str, Any]], Any],
        vehicle_id: Optional[str] = None,
    ) -> List[Any]:
        records = [parse(dct) for dct in self._read().get(section) or []]
        if vehicle_id is not None:
            records = [r for r in records if r.vehicle_id == vehicle_id]
        return records

    def _save(self, section: str, record_dict: Dict[str, Any]) -> None:
        data = self._read()
        if data.get(section) is None:
            data[section] = []
        entries = data[section]

        for index, existing in enumerate(entries):
            if str(existing.get("id")) == record_dict["id"]:
                if str(existing.get("vehicleId")) != str(record_dict.get("vehicleId")):
                    raise ValueError(
                        f"{section} entry '{record_dict['id']}' belongs to vehicle "
                        f"'{existing.get('vehicleId')}'"
                    )
                entries[index] = record_dict
                logger.debug("Updated %s entry %s", section, record_dict["id"])
                break
        else:
            entries.append(record_dict)
            logger.debug("Added %s entry %s", section, record_dict["id"])

        self._write(data)

    def _delete(self, section: str, record_id: str) -> None:
        data = self._read()
        entries = data.get(section) or []
        remaining = [e for e in entries if str(e.get("id")) != record_id]
        if len(remaining) == len(entries):
            raise KeyError(f"No {section} entry with id '{record_id}'")
        data[section] = remaining
        self._write(data)
        logger.debug("Deleted %s entry %s", section, record_id)

    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    def get_vehicles(self) -> List[Vehicle]:
        return self._get(VEHICLES, _parse_vehicle)

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        """Find a vehicle by id."""
        for vehicle in self.get_vehicles():
            if vehicle.id == vehicle_id:
                return vehicle
        return None

    def save_vehicle(self, vehicle: Vehicle) -> None:
        self._save(VEHICLES, _vehicle_to_dict(vehicle))

    def delete_vehicle(self, vehicle_id: str) -> None:
        """Remove a vehicle together with every record that belongs to it."""
        data = self._read()
        vehicles = data.get(VEHICLES) or []
        remaining = [v for v in vehicles if str(v.get("id")) != vehicle_id]
        if len(remaining) == len(vehicles):
            raise KeyError(f"No vehicle with id '{vehicle_id}'")
        data[VEHICLES] = remaining

        for section in CHILD_SECTIONS:
            if data.get(section):
                data[section] = [
                    e for e in data[section] if str(e.get("vehicleId")) != vehicle_id
                ]

        self._write(data)
        logger.info("Deleted vehicle %s and its records", vehicle_id)

    def update_current_mileage(self, vehicle_id: str, mileage: float) -> bool:
        """
        Raise a vehicle's current mileage to a newly logged reading.

        Readings at or below the stored mileage leave it unchanged. Returns
        True when the vehicle was updated.
        """
        vehicle = self.get_vehicle(vehicle_id)
        if vehicle is None:
            raise KeyError(f"No vehicle with id '{vehicle_id}'")
        if mileage <= vehicle.current_mileage:
            return False
        self.save_vehicle(replace(vehicle, current_mileage=mileage))
        return True

    # -------------------------------------------------------------------------
    # Child records
    # -------------------------------------------------------------------------

    def get_maintenance_records(
        self, vehicle_id: Optional[str] = None
    ) -> List[MaintenanceRecord]:
        return self._get(MAINTENANCE, _parse_maintenance, vehicle_id)

    def save_maintenance_record(self, record: MaintenanceRecord) -> None:
        self._save(MAINTENANCE, _maintenance_to_dict(record))

    def delete_maintenance_record(self, record_id: str) -> None:
        self._delete(MAINTENANCE, record_id)

    def get_fuel_logs(self, vehicle_id: Optional[str] = None) -> List[FuelLog]:
        return self._get(FUEL_LOGS, _parse_fuel_log, vehicle_id)

    def save_fuel_log(self, log: FuelLog) -> None:
        self._save(FUEL_LOGS, _fuel_log_to_dict(log))

    def delete_fuel_log(self, log_id: str) -> None:
        self._delete(FUEL_LOGS, log_id)

    def get_trip_logs(self, vehicle_id: Optional[str] = None) -> List[TripLog]:
        return self._get(TRIP_LOGS, _parse_trip_log, vehicle_id)

    def save_trip_log(self, trip: TripLog) -> None:
        self._save(TRIP_LOGS, _trip_log_to_dict(trip))

    def delete_trip_log(self, trip_id: str) -> None:
        self._delete(TRIP_LOGS, trip_id)

    def get_modifications(self, vehicle_id: Optional[str] = None) -> List[Modification]:
        return self._get(MODIFICATIONS, _parse_modification, vehicle_id)

    def save_modification(self, mod: Modification) -> None:
        self._save(MODIFICATIONS, _modification_to_dict(mod))

    def delete_modification(self, mod_id: str) -> None:
        self._delete(MODIFICATIONS, mod_id)

    def get_insurance_policies(
        self, vehicle_id: Optional[str] = None
    ) -> List[InsurancePolicy]:
        return self._get(INSURANCE_POLICIES, _parse_insurance_policy, vehicle_id)

    def save_insurance_policy(self, policy: InsurancePolicy) -> None:
        self._save(INSURANCE_POLICIES, _insurance_policy_to_dict(policy))

    def delete_insurance_policy(self, policy_id: str) -> None:
        self._delete(INSURANCE_POLICIES, policy_id)

    def get_reminders(self, vehicle_id: Optional[str] = None) -> List[Reminder]:
        return self._get(REMINDERS, _parse_reminder, vehicle_id)

    def save_reminder(self, reminder: Reminder) -> None:
        self._save(REMINDERS, _reminder_to_dict(reminder))

    def delete_reminder(self, reminder_id: str) -> None:
        self._delete(REMINDERS, reminder_id)
