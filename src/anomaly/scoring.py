"""
Confidence scoring, acceptance and severity ordering.
"""

from __future__ import annotations

from typing import Iterable, Optional

from src.core.config import RuleConfidence

from .schema import AnomalyCandidate, AnomalySeverity


SEVERITY_ORDER = [
    AnomalySeverity.LOW,
    AnomalySeverity.MEDIUM,
    AnomalySeverity.HIGH,
    AnomalySeverity.CRITICAL,
]


def clamp_confidence(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def zscore_confidence(zscore: float, settings: RuleConfidence) -> float:
    """
    Confidence for a z-score driven rule: base + per_sigma * |z|, capped.
    """
    raw = settings.engine_temp_base + abs(zscore) * settings.engine_temp_per_sigma
    return clamp_confidence(min(settings.engine_temp_cap, raw))


def is_accepted(candidate: AnomalyCandidate, threshold: float) -> bool:
    """Candidates below the acceptance threshold are discarded, never stored."""
    return candidate.confidence >= threshold


def overall_severity(severities: Iterable[AnomalySeverity]) -> Optional[AnomalySeverity]:
    """
    Return the highest severity among inputs, or None for an empty input.
    """
    ranks = [SEVERITY_ORDER.index(s) for s in severities]
    if not ranks:
        return None
    return SEVERITY_ORDER[max(ranks)]
