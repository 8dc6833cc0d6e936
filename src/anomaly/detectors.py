"""
Rule detectors for vehicle telemetry.

Each detector inspects one aspect of a vehicle against its baseline and
returns zero or more candidates. Detectors are pure: no state, no side
effects, and a missing reading simply yields no candidate.

Deviation is rule specific. Engine temperature reports a true z-score; the
fixed-range rules report a ratio against their own reference scale.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from math import ceil, isfinite, sqrt
from typing import List, Optional, Tuple

from src.core.config import RuleConfidence, RuleThresholds
from src.data.schema import Vehicle

from .schema import AnomalyCandidate, ExpectedRange, VehicleBaseline
from .scoring import clamp_confidence, zscore_confidence

SECONDS_PER_DAY = 86400


def _reading(value: Optional[float]) -> Optional[float]:
    if value is None or not isfinite(value):
        return None
    return float(value)


def _fmt(value: float) -> str:
    """Compact number formatting for messages: 105.0 -> '105', 12.6 -> '12.6'."""
    return f"{value:g}"


@dataclass
class EngineTemperatureDetector:
    """
    Flags readings above the absolute limit or beyond the z-score limit.

    Direction picks the type: above the baseline mean is a spike, below is a drop.
    """

    thresholds: RuleThresholds
    confidence: RuleConfidence

    def evaluate(
        self, vehicle: Vehicle, baseline: VehicleBaseline, now: datetime
    ) -> List[AnomalyCandidate]:
        temp = _reading(vehicle.sensors.engine_temp if vehicle.sensors else None)
        if temp is None:
            return []

        stats = baseline.engine_temp
        zscore = abs(temp - stats.mean) / stats.std_dev
        if temp <= self.thresholds.engine_temp_max and zscore <= self.thresholds.zscore:
            return []

        overheating = temp > self.thresholds.engine_temp_max
        return [
            AnomalyCandidate(
                type_id="engine_temp_high" if temp > stats.mean else "engine_temp_low",
                value=temp,
                expected_range=ExpectedRange(
                    min=stats.mean - stats.std_dev * 2, max=stats.mean + stats.std_dev * 2
                ),
                deviation=zscore,
                confidence=zscore_confidence(zscore, self.confidence),
                context=(
                    f"Engine temperature at {_fmt(temp)}°C, "
                    f"expected {stats.mean:.0f}°C ± {stats.std_dev:.0f}"
                ),
                recommendation=(
                    "Check cooling system immediately. Reduce load and allow engine to cool."
                    if overheating
                    else "Monitor warm-up procedure. Check thermostat if persists."
                ),
            )
        ]


@dataclass
class OilPressureDetector:
    thresholds: RuleThresholds
    confidence: RuleConfidence

    def evaluate(
        self, vehicle: Vehicle, baseline: VehicleBaseline, now: datetime
    ) -> List[AnomalyCandidate]:
        pressure = _reading(vehicle.sensors.oil_pressure if vehicle.sensors else None)
        if pressure is None or pressure >= self.thresholds.oil_pressure_min:
            return []

        stats = baseline.oil_pressure
        return [
            AnomalyCandidate(
                type_id="oil_pressure_drop",
                value=pressure,
                expected_range=ExpectedRange(min=stats.min, max=stats.max),
                deviation=(self.thresholds.oil_pressure_reference - pressure)
                / self.thresholds.oil_pressure_scale,
                confidence=self.confidence.oil_pressure,
                context=f"Oil pressure at {_fmt(pressure)} PSI, critically low",
                recommendation=(
                    "STOP VEHICLE IMMEDIATELY. Low oil pressure can cause severe engine damage."
                ),
            )
        ]


@dataclass
class BatteryVoltageDetector:
    """Flags both undercharging and overcharging."""

    thresholds: RuleThresholds
    confidence: RuleConfidence

    def evaluate(
        self, vehicle: Vehicle, baseline: VehicleBaseline, now: datetime
    ) -> List[AnomalyCandidate]:
        voltage = _reading(vehicle.sensors.battery_voltage if vehicle.sensors else None)
        if voltage is None:
            return []

        low, high = self.thresholds.battery_voltage_min, self.thresholds.battery_voltage_max
        if low <= voltage <= high:
            return []

        undercharging = voltage < low
        return [
            AnomalyCandidate(
                type_id="battery_voltage_low",
                value=voltage,
                expected_range=ExpectedRange(min=low, max=high),
                deviation=abs(voltage - self.thresholds.battery_voltage_nominal)
                / self.thresholds.battery_voltage_scale,
                confidence=self.confidence.battery_voltage,
                context=(
                    f"Battery voltage at {_fmt(voltage)}V, "
                    f"{'undercharging' if undercharging else 'overcharging'}"
                ),
                recommendation=(
                    "Check alternator and battery connections. Battery may need replacement."
                    if undercharging
                    else "Check voltage regulator. Overcharging can damage battery."
                ),
            )
        ]


@dataclass
class TirePressureDetector:
    """
    Two independent checks on the four tires: imbalance and under-inflation.
    """

    thresholds: RuleThresholds
    confidence: RuleConfidence

    def evaluate(
        self, vehicle: Vehicle, baseline: VehicleBaseline, now: datetime
    ) -> List[AnomalyCandidate]:
        tires = vehicle.sensors.tire_pressure if vehicle.sensors else None
        pressures = tires.readings() if tires is not None else None
        if pressures is None or not all(isfinite(p) for p in pressures):
            return []

        candidates: List[AnomalyCandidate] = []

        mean = sum(pressures) / len(pressures)
        variance = sum((p - mean) ** 2 for p in pressures) / len(pressures)
        if variance > self.thresholds.tire_variance_max:
            spread = sqrt(variance)
            candidates.append(
                AnomalyCandidate(
                    type_id="tire_pressure_anomaly",
                    value=spread,
                    expected_range=ExpectedRange(min=0.0, max=2.0),
                    deviation=spread / 2,
                    confidence=self.confidence.tire_imbalance,
                    context=(
                        f"Uneven tire pressures: FL={_fmt(pressures[0])}, FR={_fmt(pressures[1])}, "
                        f"RL={_fmt(pressures[2])}, RR={_fmt(pressures[3])} PSI"
                    ),
                    recommendation=(
                        "Check tires for leaks or damage. "
                        "Uneven pressure affects handling and fuel efficiency."
                    ),
                )
            )

        lowest = min(pressures)
        if lowest < self.thresholds.tire_pressure_min:
            candidates.append(
                AnomalyCandidate(
                    type_id="tire_pressure_anomaly",
                    value=lowest,
                    expected_range=ExpectedRange(min=30.0, max=35.0),
                    deviation=(self.thresholds.tire_pressure_reference - lowest)
                    / self.thresholds.tire_pressure_scale,
                    confidence=self.confidence.tire_low,
                    context=f"Low tire pressure detected: {_fmt(lowest)} PSI",
                    recommendation=(
                        "Inflate tires to recommended pressure. "
                        "Check for punctures or slow leaks."
                    ),
                )
            )

        return candidates


@dataclass
class FuelEfficiencyDetector:
    thresholds: RuleThresholds
    confidence: RuleConfidence

    def evaluate(
        self, vehicle: Vehicle, baseline: VehicleBaseline, now: datetime
    ) -> List[AnomalyCandidate]:
        efficiency = _reading(vehicle.fuel_efficiency)
        if efficiency is None:
            return []

        stats = baseline.fuel_efficiency
        if efficiency >= stats.mean - stats.std_dev * self.thresholds.fuel_efficiency_sigma:
            return []

        return [
            AnomalyCandidate(
                type_id="fuel_efficiency_drop",
                value=efficiency,
                expected_range=ExpectedRange(
                    min=stats.mean - stats.std_dev, max=stats.mean + stats.std_dev
                ),
                deviation=(stats.mean - efficiency) / stats.std_dev,
                confidence=self.confidence.fuel_efficiency,
                context=(
                    f"Fuel efficiency at {efficiency:.1f} km/L, expected {stats.mean:.1f} km/L"
                ),
                recommendation=(
                    "Check air filter, tire pressure, and driving habits. "
                    "Consider engine diagnostics."
                ),
            )
        ]


@dataclass
class OverdueMaintenanceDetector:
    """
    One candidate per past-due date: document expiries and the next service.

    Days overdue counts any started day, so a date that lapsed three hours ago
    is one day overdue.
    """

    thresholds: RuleThresholds
    confidence: RuleConfidence

    def _due_dates(self, vehicle: Vehicle) -> List[Tuple[Optional[datetime], str, str]]:
        info = vehicle.maintenance_info
        return [
            (
                info.insurance_expiry if info else None,
                "Insurance expired {days} days ago",
                "Renew insurance immediately. Vehicle may not be legally operable.",
            ),
            (
                info.registration_expiry if info else None,
                "Registration expired {days} days ago",
                "Renew vehicle registration before the next dispatch.",
            ),
            (
                info.pollution_cert_expiry if info else None,
                "Pollution certificate expired {days} days ago",
                "Schedule an emissions test and renew the pollution certificate.",
            ),
            (
                vehicle.next_maintenance,
                "Scheduled maintenance overdue by {days} days",
                "Book the vehicle in for its scheduled service as soon as possible.",
            ),
        ]

    def evaluate(
        self, vehicle: Vehicle, baseline: VehicleBaseline, now: datetime
    ) -> List[AnomalyCandidate]:
        candidates: List[AnomalyCandidate] = []
        for due, context, recommendation in self._due_dates(vehicle):
            if due is None or due >= now:
                continue
            days = ceil((now - due).total_seconds() / SECONDS_PER_DAY)
            candidates.append(
                AnomalyCandidate(
                    type_id="overdue_maintenance",
                    value=float(days),
                    expected_range=ExpectedRange(min=0.0, max=0.0),
                    deviation=days / self.thresholds.overdue_days_scale,
                    confidence=clamp_confidence(self.confidence.overdue_maintenance),
                    context=context.format(days=days),
                    recommendation=recommendation,
                )
            )
        return candidates
