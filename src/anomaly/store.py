"""
In-memory anomaly ledger and lifecycle operations.

Anomalies are indexed by id in insertion order. Detection only ever appends;
records leave the store solely through ``clear_old_anomalies``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from .schema import AnomalyCategory, AnomalySeverity, DetectedAnomaly

logger = logging.getLogger(__name__)


class AnomalyStore:
    """
    Id-indexed anomaly store guarded by a single lock.

    Lookups by id are O(1); acknowledge/resolve on an unknown id is a no-op.
    """

    def __init__(self) -> None:
        self._anomalies: Dict[str, DetectedAnomaly] = {}
        self._lock = threading.Lock()

    def add_many(self, anomalies: Iterable[DetectedAnomaly]) -> None:
        with self._lock:
            for anomaly in anomalies:
                self._anomalies[anomaly.id] = anomaly

    def get(self, anomaly_id: str) -> Optional[DetectedAnomaly]:
        with self._lock:
            return self._anomalies.get(anomaly_id)

    def all(self) -> List[DetectedAnomaly]:
        """Snapshot of all anomalies in detection (insertion) order."""
        with self._lock:
            return list(self._anomalies.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._anomalies)

    def acknowledge(self, anomaly_id: str) -> bool:
        """
        Mark an anomaly as acknowledged.

        Returns:
            True if the anomaly exists, False otherwise (no error)
        """
        with self._lock:
            anomaly = self._anomalies.get(anomaly_id)
            if anomaly is None:
                logger.debug(f"Acknowledge ignored, unknown anomaly {anomaly_id}")
                return False
            anomaly.acknowledged = True
            return True

    def resolve(
        self, anomaly_id: str, auto: bool = False, now: Optional[datetime] = None
    ) -> bool:
        """
        Mark an anomaly as resolved, manually or by the system.

        Returns:
            True if the anomaly exists, False otherwise (no error)
        """
        with self._lock:
            anomaly = self._anomalies.get(anomaly_id)
            if anomaly is None:
                logger.debug(f"Resolve ignored, unknown anomaly {anomaly_id}")
                return False
            anomaly.auto_resolved = auto
            anomaly.resolved_at = now or datetime.now(timezone.utc)
            return True

    def clear_old_anomalies(self, days: int = 30, now: Optional[datetime] = None) -> int:
        """
        Remove closed anomalies detected before the retention cutoff.

        Open anomalies (unacknowledged and not auto-resolved) are kept
        regardless of age.

        Returns:
            Number of anomalies removed
        """
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        with self._lock:
            expired = [
                anomaly_id
                for anomaly_id, anomaly in self._anomalies.items()
                if anomaly.detected_at <= cutoff and not anomaly.is_open
            ]
            for anomaly_id in expired:
                del self._anomalies[anomaly_id]

        if expired:
            logger.info(f"Cleared {len(expired)} anomalies older than {days} days")
        return len(expired)

    def get_recent_anomalies(self, limit: int = 20) -> List[DetectedAnomaly]:
        """Newest first; ties keep detection order."""
        anomalies = self.all()
        anomalies.sort(key=lambda a: a.detected_at, reverse=True)
        return anomalies[:max(limit, 0)]

    def get_vehicle_anomalies(self, vehicle_id: str) -> List[DetectedAnomaly]:
        return [a for a in self.all() if a.vehicle_id == vehicle_id]

    def filter_anomalies(
        self,
        severity: Optional[AnomalySeverity] = None,
        category: Optional[AnomalyCategory] = None,
        query: Optional[str] = None,
    ) -> List[DetectedAnomaly]:
        """
        Dashboard filter by severity, category and free text.

        The query matches vehicle id, vehicle name, type name or category,
        case-insensitively.
        """
        needle = query.strip().lower() if query else ""
        results = []
        for anomaly in self.all():
            anomaly_type = anomaly.anomaly_type
            if severity is not None and anomaly_type.severity != severity:
                continue
            if category is not None and anomaly_type.category != category:
                continue
            if needle and not any(
                needle in field.lower()
                for field in (
                    anomaly.vehicle_id,
                    anomaly.vehicle_name,
                    anomaly_type.name,
                    anomaly_type.category.value,
                )
            ):
                continue
            results.append(anomaly)
        return results
