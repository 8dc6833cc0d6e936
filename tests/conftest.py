"""
Pytest configuration and shared fixtures.

Provides vehicle/trip factories and isolated engine instances for unit and
integration tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from src.anomaly.engine import AnomalyEngine
from src.core.config import AnomalyConfig
from src.data.schema import TripData, Vehicle


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_trips(count: int, **values: float) -> List[TripData]:
    """Build ``count`` identical trips carrying the given metric values."""
    return [
        TripData(
            id=f"trip-{i}",
            start_time=NOW - timedelta(days=i + 1),
            **values,
        )
        for i in range(count)
    ]


def make_vehicle(vehicle_id: str = "veh-1", **overrides: Any) -> Vehicle:
    """
    Build a healthy vehicle; keyword overrides replace top-level fields.

    ``sensors`` overrides are merged into the healthy sensor snapshot.
    """
    sensors: Dict[str, Any] = {
        "engine_temp": 85.0,
        "oil_pressure": 40.0,
        "battery_voltage": 12.6,
        "fuel_level": 70.0,
        "tire_pressure": {"fl": 32.0, "fr": 32.0, "rl": 32.0, "rr": 32.0},
    }
    sensors.update(overrides.pop("sensors", {}))
    data: Dict[str, Any] = {
        "id": vehicle_id,
        "name": f"Truck {vehicle_id}",
        "fuel_efficiency": 10.0,
        "sensors": sensors,
        "trips": make_trips(9, engine_temperature=85.0, fuel_efficiency=10.0, average_speed=55.0, idle_time=12.0),
    }
    data.update(overrides)
    return Vehicle(**data)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for deterministic date arithmetic."""
    return NOW


@pytest.fixture
def vehicle_factory():
    return make_vehicle


@pytest.fixture
def trip_factory():
    return make_trips


@pytest.fixture
def anomaly_config() -> AnomalyConfig:
    """Fresh default configuration, independent of environment overrides."""
    return AnomalyConfig()


@pytest.fixture
def engine(anomaly_config) -> AnomalyEngine:
    """Isolated engine instance per test."""
    return AnomalyEngine(anomaly_config=anomaly_config)


@pytest.fixture
def healthy_vehicle() -> Vehicle:
    return make_vehicle()


@pytest.fixture
def fleet_export() -> Dict[str, Any]:
    """
    Fleet export in the data layer's camelCase shape.

    veh-1 is healthy, veh-2 has low oil pressure and a flat tire, veh-3 has
    expired insurance, and the last record is missing its id.
    """
    healthy_tires = {"fl": 32, "fr": 32, "rl": 32, "rr": 32}
    return {
        "vehicles": [
            {
                "id": "veh-1",
                "name": "City Bus 1",
                "fuelEfficiency": 6.0,
                "sensors": {"engineTemp": 85, "oilPressure": 42, "batteryVoltage": 12.7, "tirePressure": healthy_tires},
            },
            {
                "id": "veh-2",
                "name": "Delivery Van 2",
                "fuelEfficiency": 11.0,
                "sensors": {
                    "engineTemp": 88,
                    "oilPressure": 20,
                    "batteryVoltage": 12.5,
                    "tirePressure": {"fl": 32, "fr": 32, "rl": 32, "rr": 18},
                },
            },
            {
                "id": "veh-3",
                "name": "Truck 3",
                "fuelEfficiency": 5.0,
                "sensors": {"engineTemp": 90, "oilPressure": 38, "batteryVoltage": 12.6, "tirePressure": healthy_tires},
                "maintenanceInfo": {"insuranceExpiry": (NOW - timedelta(days=10)).isoformat()},
            },
            {"name": "No Id Car", "fuelEfficiency": 9.0},
        ],
        "trips": [
            {"id": f"t1-{i}", "vehicleId": "veh-1", "engineTemperature": 85, "fuelEfficiency": 6.0,
             "averageSpeed": 30, "idleTime": 20}
            for i in range(5)
        ] + [
            {"id": f"t2-{i}", "vehicleId": "veh-2", "engineTemperature": 88, "fuelEfficiency": 11.0,
             "averageSpeed": 45, "idleTime": 8}
            for i in range(5)
        ],
    }


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
