"""
Unit tests for fleet statistics.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.anomaly.catalog import get_type
from src.anomaly.schema import DetectedAnomaly, ExpectedRange
from src.anomaly.statistics import (
    compute_statistics,
    confidence_distribution,
    daily_trend,
    top_affected_vehicles,
    vehicle_severity_breakdown,
)


def _make_anomaly(vehicle_id, detected_at, type_id="oil_pressure_drop", confidence=0.9, **overrides):
    return DetectedAnomaly(
        vehicle_id=vehicle_id,
        vehicle_name=f"Vehicle {vehicle_id}",
        anomaly_type=get_type(type_id),
        detected_at=detected_at,
        value=1.0,
        expected_range=ExpectedRange(min=0.0, max=1.0),
        deviation=1.0,
        confidence=confidence,
        context="test",
        recommendation="test",
        **overrides,
    )


def test_empty_statistics(now):
    stats = compute_statistics([], now=now)

    assert stats.total_detected == 0
    assert stats.by_category == {}
    assert stats.by_severity == {}
    assert stats.avg_confidence == 0.0
    assert stats.auto_resolved_rate == 0.0
    assert stats.top_affected_vehicles == []
    assert len(stats.trends_last_week) == 7
    assert all(point.count == 0 for point in stats.trends_last_week)


def test_counts_confidence_and_resolution_rate(now):
    anomalies = [
        _make_anomaly("veh-1", now, "oil_pressure_drop", 0.9),
        _make_anomaly("veh-1", now, "tire_pressure_anomaly", 0.8, auto_resolved=True),
        _make_anomaly("veh-2", now, "overdue_maintenance", 0.95),
        _make_anomaly("veh-2", now, "fuel_efficiency_drop", 0.75),
    ]

    stats = compute_statistics(anomalies, now=now)

    assert stats.total_detected == 4
    assert stats.by_category == {"sensor": 2, "maintenance": 1, "pattern": 1}
    assert stats.by_severity == {"critical": 1, "high": 2, "medium": 1}
    assert stats.avg_confidence == pytest.approx(0.85)
    assert stats.auto_resolved_rate == pytest.approx(25.0)


def test_top_vehicles_stable_for_ties(now):
    counts = [("A", 2), ("B", 3), ("C", 2), ("D", 1), ("E", 1), ("F", 1), ("G", 1)]
    anomalies = [_make_anomaly(vid, now) for vid, n in counts for _ in range(n)]

    top = top_affected_vehicles(anomalies, limit=5)

    assert [(v.vehicle_id, v.count) for v in top] == [("B", 3), ("A", 2), ("C", 2), ("D", 1), ("E", 1)]
    assert top[0].vehicle_name == "Vehicle B"


def test_daily_trend_has_one_bucket_per_day(now):
    anomalies = [
        _make_anomaly("veh-1", now),
        _make_anomaly("veh-1", now - timedelta(hours=1)),
        _make_anomaly("veh-2", now - timedelta(days=3)),
        _make_anomaly("veh-2", now - timedelta(days=10)),
    ]

    trend = daily_trend(anomalies, days=7, now=now)

    assert [p.date for p in trend] == [
        "2025-06-09", "2025-06-10", "2025-06-11", "2025-06-12", "2025-06-13", "2025-06-14", "2025-06-15",
    ]
    assert [p.count for p in trend] == [0, 0, 0, 1, 0, 0, 2]


def test_confidence_distribution():
    at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    anomalies = [_make_anomaly("veh-1", at, confidence=c) for c in (0.95, 1.0, 0.85, 0.75)]

    buckets = {b.name: b.count for b in confidence_distribution(anomalies)}

    assert buckets == {"90-100%": 2, "80-90%": 1, "70-80%": 1, "<70%": 0}


def test_vehicle_severity_breakdown(now):
    anomalies = [
        _make_anomaly("veh-1", now, "excessive_idling"),
        _make_anomaly("veh-2", now, "oil_pressure_drop"),
        _make_anomaly("veh-2", now, "speed_violation"),
        _make_anomaly("veh-2", now, "speed_violation"),
    ]

    rows = vehicle_severity_breakdown(anomalies)

    assert [r.vehicle_id for r in rows] == ["veh-2", "veh-1"]
    assert (rows[0].critical, rows[0].high, rows[0].total) == (1, 2, 3)
    assert rows[1].low == 1
