"""
Schema definitions for fleet anomaly detection.

All anomaly outputs are deterministic and explainable. Each anomaly references
its catalog entry, the offending value, the expected range and the deviation
that triggered it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class AnomalyCategory(str, Enum):
    """Catalog categories."""

    SENSOR = "sensor"
    BEHAVIOR = "behavior"
    PATTERN = "pattern"
    LOCATION = "location"
    MAINTENANCE = "maintenance"


class AnomalySeverity(str, Enum):
    """Severity levels for anomaly types."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AnomalyType(BaseModel):
    """
    Immutable catalog entry.

    Fields:
    - id: stable key, unique across the catalog
    - category: sensor, behavior, pattern, location or maintenance
    - name/description: human readable labels
    - severity: fixed severity of every anomaly of this type
    """

    model_config = ConfigDict(frozen=True)

    id: str
    category: AnomalyCategory
    name: str
    description: str
    severity: AnomalySeverity


class MetricStats(BaseModel):
    """
    Baseline statistics for a single metric.

    Fields:
    - mean: central tendency
    - std_dev: population standard deviation (>= std_floor)
    - min/max: observed extremes (or nominal range for fixed sensors)
    """

    mean: float
    std_dev: float = Field(gt=0.0)
    min: float
    max: float


class VehicleBaseline(BaseModel):
    """
    Per-vehicle statistical profile.

    Rebuilt from scratch on every refresh; never merged with a prior baseline.
    """

    vehicle_id: str
    engine_temp: MetricStats
    fuel_efficiency: MetricStats
    oil_pressure: MetricStats
    battery_voltage: MetricStats
    avg_speed: MetricStats
    idle_time: MetricStats
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data_points: int = Field(ge=1)


class ExpectedRange(BaseModel):
    """Normal band shown next to an anomalous value."""

    min: float
    max: float


class AnomalyCandidate(BaseModel):
    """
    Output of a single rule before the acceptance check.

    Candidates below the confidence threshold are discarded by the classifier
    and never become DetectedAnomaly records.
    """

    type_id: str
    value: float
    expected_range: ExpectedRange
    deviation: float
    confidence: float = Field(ge=0.0, le=1.0)
    context: str
    recommendation: str


class DetectedAnomaly(BaseModel):
    """
    Anomaly accepted by the classifier and owned by the AnomalyStore.

    Fields:
    - id: unique identifier generated at detection time
    - vehicle_id/vehicle_name: affected vehicle (name is denormalized)
    - anomaly_type: catalog entry
    - value: offending measurement
    - expected_range: normal band for comparison
    - deviation: rule-specific departure magnitude
    - confidence: certainty in [0.0, 1.0]
    - context/recommendation: templated explanation and action
    - acknowledged/auto_resolved/resolved_at: lifecycle state
    """

    id: str = Field(default_factory=lambda: f"anomaly_{uuid4().hex}")
    vehicle_id: str
    vehicle_name: str
    anomaly_type: AnomalyType
    detected_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    value: float
    expected_range: ExpectedRange
    deviation: float
    confidence: float = Field(ge=0.0, le=1.0)
    context: str
    recommendation: str
    acknowledged: bool = False
    auto_resolved: bool = False
    resolved_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        """Unacknowledged and not auto-resolved; never pruned by retention."""
        return not self.acknowledged and not self.auto_resolved


class VehicleAnomalyCount(BaseModel):
    vehicle_id: str
    vehicle_name: str
    count: int = Field(ge=0)


class TrendPoint(BaseModel):
    date: str
    count: int = Field(ge=0)


class AnomalyStatistics(BaseModel):
    """
    Fleet-wide rollup derived from the store. Recomputed on every request.
    """

    total_detected: int = Field(ge=0)
    by_category: Dict[str, int]
    by_severity: Dict[str, int]
    avg_confidence: float = Field(ge=0.0, le=1.0)
    auto_resolved_rate: float = Field(ge=0.0, le=100.0)
    top_affected_vehicles: List[VehicleAnomalyCount]
    trends_last_week: List[TrendPoint]


class ConfidenceBucket(BaseModel):
    name: str
    min: float
    max: float
    count: int = Field(ge=0)


class VehicleSeverityBreakdown(BaseModel):
    vehicle_id: str
    vehicle_name: str
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low
