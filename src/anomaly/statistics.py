"""
Fleet-wide anomaly statistics.

Pure functions over a snapshot of the store. Nothing here is cached: every
call recomputes from the anomalies it is given.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from .schema import (
    AnomalyStatistics,
    ConfidenceBucket,
    DetectedAnomaly,
    TrendPoint,
    VehicleAnomalyCount,
    VehicleSeverityBreakdown,
)

CONFIDENCE_BUCKETS = [
    ("90-100%", 0.9, 1.0),
    ("80-90%", 0.8, 0.9),
    ("70-80%", 0.7, 0.8),
    ("<70%", 0.0, 0.7),
]


def _utc_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date().isoformat()


def top_affected_vehicles(
    anomalies: Sequence[DetectedAnomaly], limit: int = 5
) -> List[VehicleAnomalyCount]:
    """
    Vehicles ordered by anomaly count, descending.

    Ties keep the order in which vehicles were first encountered.
    """
    counts: Dict[str, VehicleAnomalyCount] = {}
    for anomaly in anomalies:
        entry = counts.get(anomaly.vehicle_id)
        if entry is None:
            entry = VehicleAnomalyCount(
                vehicle_id=anomaly.vehicle_id, vehicle_name=anomaly.vehicle_name, count=0
            )
            counts[anomaly.vehicle_id] = entry
        entry.count += 1
    ranked = sorted(counts.values(), key=lambda c: c.count, reverse=True)
    return ranked[:limit]


def daily_trend(
    anomalies: Sequence[DetectedAnomaly], days: int = 7, now: Optional[datetime] = None
) -> List[TrendPoint]:
    """
    One bucket per UTC calendar day, oldest first, ending today.

    Days without anomalies are kept with a zero count.
    """
    now = now or datetime.now(timezone.utc)
    per_day: Dict[str, int] = {}
    for anomaly in anomalies:
        key = _utc_date(anomaly.detected_at)
        per_day[key] = per_day.get(key, 0) + 1

    trend = []
    for offset in range(days - 1, -1, -1):
        date = _utc_date(now - timedelta(days=offset))
        trend.append(TrendPoint(date=date, count=per_day.get(date, 0)))
    return trend


def compute_statistics(
    anomalies: Sequence[DetectedAnomaly],
    now: Optional[datetime] = None,
    top_vehicles: int = 5,
    trend_days: int = 7,
) -> AnomalyStatistics:
    """
    Aggregate counts, confidence and resolution rate.

    Empty input yields zero averages and rates, never a division by zero.
    """
    by_category: Dict[str, int] = {}
    by_severity: Dict[str, int] = {}
    for anomaly in anomalies:
        category = anomaly.anomaly_type.category.value
        severity = anomaly.anomaly_type.severity.value
        by_category[category] = by_category.get(category, 0) + 1
        by_severity[severity] = by_severity.get(severity, 0) + 1

    total = len(anomalies)
    if total:
        avg_confidence = sum(a.confidence for a in anomalies) / total
        auto_resolved = sum(1 for a in anomalies if a.auto_resolved)
        auto_resolved_rate = auto_resolved / total * 100
    else:
        avg_confidence = 0.0
        auto_resolved_rate = 0.0

    return AnomalyStatistics(
        total_detected=total,
        by_category=by_category,
        by_severity=by_severity,
        avg_confidence=avg_confidence,
        auto_resolved_rate=auto_resolved_rate,
        top_affected_vehicles=top_affected_vehicles(anomalies, top_vehicles),
        trends_last_week=daily_trend(anomalies, trend_days, now),
    )


def confidence_distribution(anomalies: Sequence[DetectedAnomaly]) -> List[ConfidenceBucket]:
    buckets = []
    for name, low, high in CONFIDENCE_BUCKETS:
        # The top bucket includes a confidence of exactly 1.0
        count = sum(
            1
            for a in anomalies
            if low <= a.confidence < high or (high == 1.0 and a.confidence == 1.0)
        )
        buckets.append(ConfidenceBucket(name=name, min=low, max=high, count=count))
    return buckets


def vehicle_severity_breakdown(
    anomalies: Sequence[DetectedAnomaly], limit: int = 8
) -> List[VehicleSeverityBreakdown]:
    """Per-vehicle counts by severity, busiest vehicles first."""
    rows: Dict[str, VehicleSeverityBreakdown] = {}
    for anomaly in anomalies:
        row = rows.get(anomaly.vehicle_id)
        if row is None:
            row = VehicleSeverityBreakdown(
                vehicle_id=anomaly.vehicle_id, vehicle_name=anomaly.vehicle_name
            )
            rows[anomaly.vehicle_id] = row
        severity = anomaly.anomaly_type.severity.value
        setattr(row, severity, getattr(row, severity) + 1)
    ranked = sorted(rows.values(), key=lambda r: r.total, reverse=True)
    return ranked[:limit]
