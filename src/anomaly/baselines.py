"""
Per-vehicle baseline estimation.

A baseline is a full recomputation from the vehicle's trip history plus its
current sensor snapshot. There is no running state: the same inputs always
produce the same statistics.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from math import isfinite, sqrt
from typing import Dict, Iterable, List, Optional

from src.core.config import BaselineConfig, NominalRange, config
from src.data.schema import TripData, Vehicle

from .schema import MetricStats, VehicleBaseline

logger = logging.getLogger(__name__)


def compute_metric_stats(values: List[float], std_floor: float, default: float) -> MetricStats:
    """
    Population mean/std/min/max of a sample.

    An empty sample is replaced by the single synthetic ``default`` sample, and
    std_dev never drops below ``std_floor``.
    """
    if not values:
        values = [default]
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    std = max(sqrt(variance), std_floor)
    return MetricStats(mean=mean, std_dev=std, min=min(values), max=max(values))


def _nominal_stats(current: Optional[float], nominal: NominalRange) -> MetricStats:
    mean = current if _usable(current) else nominal.mean
    return MetricStats(mean=mean, std_dev=nominal.std_dev, min=nominal.min, max=nominal.max)


def _usable(value: Optional[float]) -> bool:
    return value is not None and isfinite(value)


@dataclass
class BaselineBuilder:
    """
    Builds VehicleBaseline objects from trips and the current snapshot.

    Oil pressure and battery voltage are not sample-derived: they use the
    configured nominal ranges, centred on the current reading when present.
    """

    settings: BaselineConfig = field(default_factory=lambda: config.anomaly.baselines)

    def build(
        self,
        vehicle: Vehicle,
        trips: Iterable[TripData],
        now: Optional[datetime] = None,
    ) -> VehicleBaseline:
        trips = list(trips)
        engine_temps: List[float] = []
        fuel_efficiencies: List[float] = []
        speeds: List[float] = []
        idle_times: List[float] = []

        for trip in trips:
            if _usable(trip.engine_temperature):
                engine_temps.append(trip.engine_temperature)
            if _usable(trip.fuel_efficiency):
                fuel_efficiencies.append(trip.fuel_efficiency)
            if _usable(trip.average_speed):
                speeds.append(trip.average_speed)
            if _usable(trip.idle_time):
                idle_times.append(trip.idle_time)

        sensors = vehicle.sensors
        if sensors is not None and _usable(sensors.engine_temp):
            engine_temps.append(sensors.engine_temp)
        if _usable(vehicle.fuel_efficiency):
            fuel_efficiencies.append(vehicle.fuel_efficiency)

        s = self.settings
        baseline = VehicleBaseline(
            vehicle_id=vehicle.id,
            engine_temp=compute_metric_stats(engine_temps, s.std_floor, s.default_engine_temp),
            fuel_efficiency=compute_metric_stats(
                fuel_efficiencies, s.std_floor, s.default_fuel_efficiency
            ),
            oil_pressure=_nominal_stats(
                sensors.oil_pressure if sensors else None, s.oil_pressure
            ),
            battery_voltage=_nominal_stats(
                sensors.battery_voltage if sensors else None, s.battery_voltage
            ),
            avg_speed=compute_metric_stats(speeds, s.std_floor, s.default_avg_speed),
            idle_time=compute_metric_stats(idle_times, s.std_floor, s.default_idle_time),
            last_updated=now or datetime.now(timezone.utc),
            data_points=len(trips) + 1,
        )
        logger.debug(
            f"Baseline for {vehicle.id}: {len(trips)} trips, "
            f"engine_temp={baseline.engine_temp.mean:.1f}+/-{baseline.engine_temp.std_dev:.1f}"
        )
        return baseline


class BaselineStore:
    """
    Owns one baseline per vehicle id.

    ``upsert`` replaces the previous baseline wholesale. All access goes
    through a single lock so a UI thread can read while a scan writes.
    """

    def __init__(self) -> None:
        self._baselines: Dict[str, VehicleBaseline] = {}
        self._lock = threading.Lock()

    def get(self, vehicle_id: str) -> Optional[VehicleBaseline]:
        with self._lock:
            return self._baselines.get(vehicle_id)

    def upsert(self, baseline: VehicleBaseline) -> None:
        with self._lock:
            self._baselines[baseline.vehicle_id] = baseline

    def __contains__(self, vehicle_id: object) -> bool:
        with self._lock:
            return vehicle_id in self._baselines

    def __len__(self) -> int:
        with self._lock:
            return len(self._baselines)
