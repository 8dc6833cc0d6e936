"""
Canonical vehicle and trip schema consumed by the anomaly engine.

The dashboard's data-access layer hands over plain records in camelCase
(``fuelEfficiency``, ``maintenanceInfo.insuranceExpiry``). These models accept
both the camelCase aliases and snake_case field names, so records can be
validated straight from JSON.

Design rationale:
- Only the identifier is required; every telemetry field is optional so a
  missing reading skips its rule instead of rejecting the vehicle
- Malformed readings (unparsable, NaN, infinite) and malformed dates or
  sub-records are discarded to None, with the same effect as a missing value
- All datetimes are normalized to UTC (naive values are assumed to be UTC)
- Unknown fields (location, alerts, ...) are ignored
"""

import logging
from datetime import datetime, timezone
from math import isfinite
from typing import Annotated, Any, List, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


def _discard_malformed(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    """Validate normally; an invalid value becomes None instead of an error."""
    try:
        return handler(value)
    except ValidationError as e:
        logger.debug(f"Discarded malformed value {value!r}: {e.error_count()} errors")
        return None


def _discard_non_finite(value: Any, handler: ValidatorFunctionWrapHandler) -> Optional[float]:
    number = _discard_malformed(value, handler)
    if number is not None and not isfinite(number):
        logger.debug(f"Discarded non-finite reading {value!r}")
        return None
    return number


Reading = Annotated[Optional[float], WrapValidator(_discard_non_finite)]
Timestamp = Annotated[Optional[UtcDatetime], WrapValidator(_discard_malformed)]


class FleetRecord(BaseModel):
    """Base model: camelCase aliases, snake_case names, extra fields ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class TirePressure(FleetRecord):
    """Per-wheel tire pressure in psi."""

    fl: Reading = None
    fr: Reading = None
    rl: Reading = None
    rr: Reading = None

    def readings(self) -> Optional[List[float]]:
        """All four readings in FL, FR, RL, RR order, or None if any is missing."""
        values = [self.fl, self.fr, self.rl, self.rr]
        if any(v is None for v in values):
            return None
        return [float(v) for v in values]


class VehicleSensors(FleetRecord):
    """
    Current sensor snapshot of a vehicle.

    Attributes:
        engine_temp: Coolant temperature in degrees Celsius
        oil_pressure: Oil pressure in psi
        battery_voltage: Battery voltage in volts
        fuel_level: Fuel level in percent
        tire_pressure: Four-wheel tire pressures
        brake_wear: Brake pad wear in percent
        coolant_level: Coolant level in percent
    """

    engine_temp: Reading = None
    oil_pressure: Reading = None
    battery_voltage: Reading = None
    fuel_level: Reading = None
    tire_pressure: Annotated[Optional[TirePressure], WrapValidator(_discard_malformed)] = None
    brake_wear: Reading = None
    coolant_level: Reading = None


class MaintenanceInfo(FleetRecord):
    """Service history and document expiry dates."""

    last_oil_change: Timestamp = None
    next_oil_change_due: Reading = Field(default=None, description="Odometer km")
    last_tyre_change: Timestamp = None
    last_brake_service: Timestamp = None
    last_full_service: Timestamp = None
    insurance_expiry: Timestamp = None
    registration_expiry: Timestamp = None
    pollution_cert_expiry: Timestamp = None


class TripData(FleetRecord):
    """
    One historical trip of a vehicle.

    Only engine_temperature, fuel_efficiency, average_speed and idle_time
    feed the baseline; the remaining fields are carried for completeness.
    """

    id: Optional[str] = None
    vehicle_id: Optional[str] = None
    start_time: Timestamp = None
    end_time: Timestamp = None
    mileage: Reading = None
    distance_traveled: Reading = None
    engine_temperature: Reading = None
    fuel_efficiency: Reading = None
    fuel_consumed: Reading = None
    braking_intensity: Reading = None
    speed_variation: Reading = None
    max_speed: Reading = None
    idle_time: Reading = None
    trip_duration: Reading = None
    average_speed: Reading = None
    status: Optional[str] = None


class Vehicle(FleetRecord):
    """
    Vehicle snapshot as supplied by the data-access layer.

    Attributes:
        id: Stable vehicle identifier (required, non-empty)
        name: Display name, denormalized onto detected anomalies
        fuel_efficiency: Current fuel efficiency in km/L
        next_maintenance: Date the next scheduled service is due
        sensors: Current sensor snapshot
        maintenance_info: Document expiry and service dates
        trips: Historical trips used to build the baseline
    """

    id: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = None
    type: Optional[str] = None
    license_plate: Optional[str] = None
    status: Optional[str] = None
    health_score: Reading = None
    mileage: Reading = None
    fuel_efficiency: Reading = None
    engine_temperature: Reading = None
    driver: Optional[str] = None
    last_maintenance: Timestamp = None
    next_maintenance: Timestamp = None
    sensors: Annotated[Optional[VehicleSensors], WrapValidator(_discard_malformed)] = None
    maintenance_info: Annotated[Optional[MaintenanceInfo], WrapValidator(_discard_malformed)] = None
    trips: List[TripData] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.id
