"""
Fleet record ingestion from JSON exports.

The dashboard's data-access layer can export its vehicle collection as JSON.
Two shapes are accepted:

- a list of vehicle objects (trips nested under each vehicle's ``trips``)
- an object ``{"vehicles": [...], "trips": [...]}`` where loose trips are
  attached to their vehicle by ``vehicleId``

Design:
- Invalid vehicle records are skipped with a warning, never fatal
- Unreadable files raise FleetIngestionError
- Returns validated Vehicle models ready for the anomaly engine
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from pydantic import ValidationError

from src.core.exceptions import DataValidationError
from src.data.schema import TripData, Vehicle

logger = logging.getLogger(__name__)


class FleetIngestionError(DataValidationError):
    """Raised when a fleet export cannot be read or has an unknown shape."""
    pass


def parse_vehicles(raw_vehicles: List[Any]) -> Tuple[List[Vehicle], int]:
    """
    Validate raw vehicle records.

    Args:
        raw_vehicles: List of dicts as exported by the data layer

    Returns:
        Tuple of (vehicles, skipped_count)
    """
    vehicles = []
    skipped = 0

    for idx, raw in enumerate(raw_vehicles):
        if not isinstance(raw, dict):
            logger.warning(f"Non-dict vehicle at index {idx}: {type(raw)}")
            skipped += 1
            continue
        try:
            vehicles.append(Vehicle.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipped vehicle at index {idx} ({raw.get('id')!r}): {e.error_count()} errors")
            skipped += 1

    return vehicles, skipped


def attach_trips(vehicles: List[Vehicle], raw_trips: List[Any]) -> int:
    """
    Attach loose trip records to their vehicles by vehicle id.

    Returns:
        Number of trips that were attached
    """
    by_id: Dict[str, Vehicle] = {v.id: v for v in vehicles}
    attached = 0

    for idx, raw in enumerate(raw_trips):
        try:
            trip = TripData.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipped trip at index {idx}: {e.error_count()} errors")
            continue
        vehicle = by_id.get(trip.vehicle_id) if trip.vehicle_id else None
        if vehicle is None:
            logger.debug(f"Trip at index {idx} has no matching vehicle: {trip.vehicle_id}")
            continue
        vehicle.trips.append(trip)
        attached += 1

    return attached


def load_fleet(filepath: Union[str, Path], encoding: str = "utf-8") -> List[Vehicle]:
    """
    Load and validate a fleet export.

    Args:
        filepath: Path to the JSON export
        encoding: File encoding (default utf-8)

    Returns:
        List of validated vehicles

    Raises:
        FleetIngestionError: If the file is missing, not JSON, or has an
            unsupported top-level shape
    """
    path = Path(filepath)
    if not path.exists():
        raise FleetIngestionError(f"Fleet file not found: {path}")

    try:
        with open(path, "r", encoding=encoding) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise FleetIngestionError(f"Error reading fleet file {path}: {e}") from e

    return parse_fleet(data)


def parse_fleet(data: Any) -> List[Vehicle]:
    """
    Validate an already-decoded fleet export (list or vehicles/trips object).
    """
    if isinstance(data, list):
        raw_vehicles, raw_trips = data, []
    elif isinstance(data, dict) and isinstance(data.get("vehicles"), list):
        raw_vehicles = data["vehicles"]
        raw_trips = data.get("trips") or []
    else:
        raise FleetIngestionError("Fleet export must be a list or an object with 'vehicles'")

    vehicles, skipped = parse_vehicles(raw_vehicles)
    attached = attach_trips(vehicles, raw_trips) if raw_trips else 0
    logger.info(f"Loaded {len(vehicles)} vehicles, skipped {skipped}, attached {attached} trips")
    return vehicles
