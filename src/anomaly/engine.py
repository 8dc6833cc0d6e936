"""
Fleet anomaly detection engine.

Owns the baseline store and the anomaly store, wires the baseline builder to
the classifier, and exposes the operations used by the presentation and
alerting layers. Create one engine per owner; there is no shared instance.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from src.core.config import AnomalyConfig, config
from src.core.exceptions import DataValidationError
from src.data.schema import TripData, Vehicle

from .baselines import BaselineBuilder, BaselineStore
from .catalog import list_types
from .classifier import AnomalyClassifier
from .schema import (
    AnomalyCategory,
    AnomalySeverity,
    AnomalyStatistics,
    AnomalyType,
    DetectedAnomaly,
    VehicleBaseline,
)
from .statistics import compute_statistics
from .store import AnomalyStore

logger = logging.getLogger(__name__)

VehicleInput = Union[Vehicle, Mapping[str, Any]]


def coerce_vehicle(record: VehicleInput) -> Vehicle:
    """
    Validate a raw vehicle record.

    Raises:
        DataValidationError: If the record is malformed or has no id
    """
    if isinstance(record, Vehicle):
        return record
    if not isinstance(record, Mapping):
        raise DataValidationError(f"Vehicle record must be a mapping, got {type(record).__name__}")
    try:
        return Vehicle.model_validate(record)
    except ValidationError as e:
        raise DataValidationError(f"Invalid vehicle record {record.get('id')!r}: {e}") from e


class AnomalyEngine:
    """
    Deterministic fleet anomaly engine.

    Notes:
    - Synchronous: a scan completes before control returns to the caller.
    - Each vehicle is evaluated independently; a bad record is skipped.
    - The engine does not persist anything across restarts.
    """

    def __init__(
        self,
        anomaly_config: Optional[AnomalyConfig] = None,
        baselines: Optional[BaselineStore] = None,
        store: Optional[AnomalyStore] = None,
    ) -> None:
        self.config = anomaly_config or config.anomaly
        self.baselines = baselines if baselines is not None else BaselineStore()
        self.store = store if store is not None else AnomalyStore()
        self._builder = BaselineBuilder(settings=self.config.baselines)
        self._classifier = AnomalyClassifier(self.config)

    # Baselines

    def update_baseline(
        self,
        vehicle: VehicleInput,
        trips: Optional[Iterable[TripData]] = None,
        now: Optional[datetime] = None,
    ) -> VehicleBaseline:
        """
        Rebuild and replace a vehicle's baseline.

        Uses the vehicle's own trips when ``trips`` is not given.
        """
        vehicle = coerce_vehicle(vehicle)
        baseline = self._builder.build(vehicle, vehicle.trips if trips is None else trips, now)
        self.baselines.upsert(baseline)
        return baseline

    def get_baseline(self, vehicle_id: str) -> Optional[VehicleBaseline]:
        return self.baselines.get(vehicle_id)

    # Detection

    def detect_anomalies(
        self,
        vehicle: VehicleInput,
        baseline: Optional[VehicleBaseline] = None,
        now: Optional[datetime] = None,
    ) -> List[DetectedAnomaly]:
        """
        Classify one vehicle against its baseline and record the results.

        Without a baseline (passed in or stored), one is built from the
        vehicle's trips and this cycle returns no anomalies.
        """
        vehicle = coerce_vehicle(vehicle)
        baseline = baseline or self.baselines.get(vehicle.id)
        if baseline is None:
            logger.debug(f"No baseline for {vehicle.id}; building one, skipping this cycle")
            self.update_baseline(vehicle, now=now)
            return []

        anomalies = self._classifier.detect(vehicle, baseline, now)
        self.store.add_many(anomalies)
        return anomalies

    def detect_fleet_anomalies(
        self, vehicles: Iterable[VehicleInput], now: Optional[datetime] = None
    ) -> List[DetectedAnomaly]:
        """
        Refresh every vehicle's baseline, then classify it.

        Malformed records are logged and skipped so one bad vehicle never
        aborts the scan. An empty fleet yields an empty result.
        """
        now = now or datetime.now(timezone.utc)
        results: List[DetectedAnomaly] = []
        scanned = 0
        skipped = 0

        for record in vehicles:
            try:
                vehicle = coerce_vehicle(record)
                baseline = self.update_baseline(vehicle, now=now)
                results.extend(self.detect_anomalies(vehicle, baseline, now))
                scanned += 1
            except DataValidationError as e:
                logger.warning(f"Skipped vehicle record: {e}")
                skipped += 1
            except Exception as e:
                logger.warning(f"Unexpected error scanning vehicle: {e}")
                skipped += 1

        logger.info(
            f"Fleet scan: {scanned} vehicles scanned, {skipped} skipped, "
            f"{len(results)} anomalies detected"
        )
        return results

    # Queries and lifecycle

    def get_statistics(self, now: Optional[datetime] = None) -> AnomalyStatistics:
        lifecycle = self.config.lifecycle
        return compute_statistics(
            self.store.all(),
            now=now,
            top_vehicles=lifecycle.top_vehicles,
            trend_days=lifecycle.trend_days,
        )

    def get_recent_anomalies(self, limit: Optional[int] = None) -> List[DetectedAnomaly]:
        if limit is None:
            limit = self.config.lifecycle.recent_limit
        return self.store.get_recent_anomalies(limit)

    def get_vehicle_anomalies(self, vehicle_id: str) -> List[DetectedAnomaly]:
        return self.store.get_vehicle_anomalies(vehicle_id)

    def filter_anomalies(
        self,
        severity: Optional[AnomalySeverity] = None,
        category: Optional[AnomalyCategory] = None,
        query: Optional[str] = None,
    ) -> List[DetectedAnomaly]:
        return self.store.filter_anomalies(severity=severity, category=category, query=query)

    def acknowledge_anomaly(self, anomaly_id: str) -> bool:
        return self.store.acknowledge(anomaly_id)

    def resolve_anomaly(self, anomaly_id: str, auto: bool = False) -> bool:
        return self.store.resolve(anomaly_id, auto=auto)

    def clear_old_anomalies(self, days: Optional[int] = None, now: Optional[datetime] = None) -> int:
        if days is None:
            days = self.config.lifecycle.retention_days
        return self.store.clear_old_anomalies(days, now=now)

    def get_anomaly_types(self) -> List[AnomalyType]:
        return list_types()
