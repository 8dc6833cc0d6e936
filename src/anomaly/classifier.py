"""
Anomaly classifier.

Runs every rule detector against a vehicle and its baseline snapshot, drops
candidates below the confidence threshold, and materializes the rest into
DetectedAnomaly records. The classifier never stores anything itself.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from src.core.config import AnomalyConfig, config
from src.data.schema import Vehicle

from .catalog import get_type
from .detectors import (
    BatteryVoltageDetector,
    EngineTemperatureDetector,
    FuelEfficiencyDetector,
    OilPressureDetector,
    OverdueMaintenanceDetector,
    TirePressureDetector,
)
from .schema import AnomalyCandidate, DetectedAnomaly, VehicleBaseline
from .scoring import is_accepted

logger = logging.getLogger(__name__)


class AnomalyClassifier:
    """
    Deterministic rule classifier.

    Notes:
    - All rules run on every call; a vehicle may raise several anomalies.
    - The baseline is read only; it is never updated from here.
    """

    def __init__(self, anomaly_config: Optional[AnomalyConfig] = None) -> None:
        self.config = anomaly_config or config.anomaly
        thresholds = self.config.thresholds
        confidence = self.config.confidence
        self.detectors = [
            EngineTemperatureDetector(thresholds, confidence),
            OilPressureDetector(thresholds, confidence),
            BatteryVoltageDetector(thresholds, confidence),
            TirePressureDetector(thresholds, confidence),
            FuelEfficiencyDetector(thresholds, confidence),
            OverdueMaintenanceDetector(thresholds, confidence),
        ]

    def detect(
        self,
        vehicle: Vehicle,
        baseline: VehicleBaseline,
        now: Optional[datetime] = None,
    ) -> List[DetectedAnomaly]:
        now = now or datetime.now(timezone.utc)
        threshold = self.config.lifecycle.confidence_threshold
        anomalies: List[DetectedAnomaly] = []

        for detector in self.detectors:
            for candidate in detector.evaluate(vehicle, baseline, now):
                if not is_accepted(candidate, threshold):
                    logger.debug(
                        f"Discarded {candidate.type_id} for {vehicle.id}: "
                        f"confidence {candidate.confidence:.2f} < {threshold:.2f}"
                    )
                    continue
                anomalies.append(self._materialize(vehicle, candidate, now))

        return anomalies

    def _materialize(
        self, vehicle: Vehicle, candidate: AnomalyCandidate, detected_at: datetime
    ) -> DetectedAnomaly:
        return DetectedAnomaly(
            vehicle_id=vehicle.id,
            vehicle_name=vehicle.display_name,
            anomaly_type=get_type(candidate.type_id),
            detected_at=detected_at,
            value=candidate.value,
            expected_range=candidate.expected_range,
            deviation=candidate.deviation,
            confidence=candidate.confidence,
            context=candidate.context,
            recommendation=candidate.recommendation,
        )
