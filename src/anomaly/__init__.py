"""
Anomaly module: per-vehicle baselines, rule classification and the anomaly ledger.

Implements deterministic baselines, rule detectors, confidence scoring,
lifecycle management and fleet statistics.
"""

from .baselines import BaselineBuilder, BaselineStore, compute_metric_stats
from .catalog import ANOMALY_TYPES, get_type, list_types
from .classifier import AnomalyClassifier
from .engine import AnomalyEngine, coerce_vehicle
from .schema import (
    AnomalyCategory,
    AnomalySeverity,
    AnomalyStatistics,
    AnomalyType,
    DetectedAnomaly,
    ExpectedRange,
    MetricStats,
    VehicleBaseline,
)
from .scoring import overall_severity, zscore_confidence
from .statistics import compute_statistics, confidence_distribution, vehicle_severity_breakdown
from .store import AnomalyStore

__all__ = [
	"AnomalyEngine",
	"AnomalyClassifier",
	"AnomalyStore",
	"BaselineBuilder",
	"BaselineStore",
	"ANOMALY_TYPES",
	"AnomalyCategory",
	"AnomalySeverity",
	"AnomalyStatistics",
	"AnomalyType",
	"DetectedAnomaly",
	"ExpectedRange",
	"MetricStats",
	"VehicleBaseline",
	"coerce_vehicle",
	"compute_metric_stats",
	"compute_statistics",
	"confidence_distribution",
	"get_type",
	"list_types",
	"overall_severity",
	"vehicle_severity_breakdown",
	"zscore_confidence",
]
