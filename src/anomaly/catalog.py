"""
Static catalog of anomaly types.

Every DetectedAnomaly references exactly one entry of this catalog. Entries are
frozen models, so handing out the shared tuple is safe.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from .schema import AnomalyCategory, AnomalySeverity, AnomalyType


def _entry(
    type_id: str,
    category: AnomalyCategory,
    name: str,
    description: str,
    severity: AnomalySeverity,
) -> AnomalyType:
    return AnomalyType(
        id=type_id,
        category=category,
        name=name,
        description=description,
        severity=severity,
    )


ANOMALY_TYPES: Tuple[AnomalyType, ...] = (
    # Sensor
    _entry(
        "engine_temp_high",
        AnomalyCategory.SENSOR,
        "Engine Temperature Spike",
        "Engine temperature significantly above normal operating range",
        AnomalySeverity.HIGH,
    ),
    _entry(
        "engine_temp_low",
        AnomalyCategory.SENSOR,
        "Engine Temperature Drop",
        "Engine temperature unexpectedly low during operation",
        AnomalySeverity.MEDIUM,
    ),
    _entry(
        "oil_pressure_drop",
        AnomalyCategory.SENSOR,
        "Oil Pressure Drop",
        "Oil pressure below safe operating threshold",
        AnomalySeverity.CRITICAL,
    ),
    _entry(
        "battery_voltage_low",
        AnomalyCategory.SENSOR,
        "Low Battery Voltage",
        "Battery voltage below normal charging levels",
        AnomalySeverity.MEDIUM,
    ),
    _entry(
        "tire_pressure_anomaly",
        AnomalyCategory.SENSOR,
        "Tire Pressure Anomaly",
        "Significant tire pressure deviation detected",
        AnomalySeverity.HIGH,
    ),
    # Behavior
    _entry(
        "harsh_braking_pattern",
        AnomalyCategory.BEHAVIOR,
        "Excessive Harsh Braking",
        "Driver showing pattern of aggressive braking",
        AnomalySeverity.MEDIUM,
    ),
    _entry(
        "rapid_acceleration",
        AnomalyCategory.BEHAVIOR,
        "Rapid Acceleration Pattern",
        "Frequent aggressive acceleration detected",
        AnomalySeverity.MEDIUM,
    ),
    _entry(
        "excessive_idling",
        AnomalyCategory.BEHAVIOR,
        "Excessive Idling",
        "Vehicle idle time significantly above average",
        AnomalySeverity.LOW,
    ),
    _entry(
        "speed_violation",
        AnomalyCategory.BEHAVIOR,
        "Persistent Speeding",
        "Consistent operation above speed limits",
        AnomalySeverity.HIGH,
    ),
    # Pattern
    _entry(
        "fuel_efficiency_drop",
        AnomalyCategory.PATTERN,
        "Fuel Efficiency Degradation",
        "Gradual decline in fuel efficiency over time",
        AnomalySeverity.MEDIUM,
    ),
    _entry(
        "unusual_route",
        AnomalyCategory.PATTERN,
        "Unusual Route Pattern",
        "Vehicle deviating from expected route patterns",
        AnomalySeverity.LOW,
    ),
    _entry(
        "off_hours_usage",
        AnomalyCategory.PATTERN,
        "Off-Hours Vehicle Usage",
        "Vehicle operated outside normal business hours",
        AnomalySeverity.MEDIUM,
    ),
    # Maintenance
    _entry(
        "overdue_maintenance",
        AnomalyCategory.MAINTENANCE,
        "Overdue Maintenance",
        "Scheduled maintenance significantly overdue",
        AnomalySeverity.HIGH,
    ),
    _entry(
        "rapid_component_wear",
        AnomalyCategory.MAINTENANCE,
        "Accelerated Component Wear",
        "Component degradation faster than expected",
        AnomalySeverity.HIGH,
    ),
)

_BY_ID: Dict[str, AnomalyType] = {t.id: t for t in ANOMALY_TYPES}


def list_types() -> List[AnomalyType]:
    """Return all catalog entries in declaration order."""
    return list(ANOMALY_TYPES)


def get_type(type_id: str) -> AnomalyType:
    """
    Look up a catalog entry.

    Raises:
        KeyError: If type_id is not in the catalog
    """
    return _BY_ID[type_id]
