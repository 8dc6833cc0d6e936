"""
Data module: vehicle/trip schema and fleet export ingestion.

    Fleet export (JSON)
        ↓
    Ingestion (src/data/ingestion.py)
        ↓
    Validation (src/data/schema.py) → Vehicle, TripData
        ↓
    Ready for anomaly detection (src/anomaly)
"""

from src.data.ingestion import (
    FleetIngestionError,
    attach_trips,
    load_fleet,
    parse_fleet,
    parse_vehicles,
)
from src.data.schema import (
    MaintenanceInfo,
    TirePressure,
    TripData,
    Vehicle,
    VehicleSensors,
)

__all__ = [
    # Schema
    "Vehicle",
    "VehicleSensors",
    "TirePressure",
    "MaintenanceInfo",
    "TripData",

    # Ingestion
    "load_fleet",
    "parse_fleet",
    "parse_vehicles",
    "attach_trips",
    "FleetIngestionError",
]
