"""Named constants for the readiness engine.

Every numeric knob the engine uses (rounding, bucket cutpoints, readiness
coefficients, band cutoffs, rule thresholds) lives on :class:`Thresholds`.
Components take an optional ``thresholds=`` argument that defaults to
:data:`DEFAULT_THRESHOLDS`, so callers and tests can vary a single value
without patching module globals.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Filter limits
# ---------------------------------------------------------------------------

MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 5
DEFAULT_LIMIT = 100
MAX_LIMIT = 500

PROCESSING_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Server settings
# ---------------------------------------------------------------------------

HOST = os.environ.get("READINESS_HOST", "127.0.0.1")
PORT = int(os.environ.get("READINESS_PORT", "8001"))


def _frozen(mapping: dict[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Thresholds:
    # Rounding
    decimal_places: int = 2

    # Sentiment buckets: (inclusive upper bound, label); anything above the
    # last bound is ``sentiment_top_label``.
    sentiment_cutpoints: tuple[tuple[float, str], ...] = (
        (-0.6, "very_negative"),
        (-0.2, "negative"),
        (0.2, "neutral"),
        (0.6, "positive"),
    )
    sentiment_top_label: str = "very_positive"

    # Response quality scale
    quality_scores: Mapping[str, int] = field(default_factory=lambda: _frozen({
        "poor": 1, "fair": 2, "good": 3, "excellent": 4,
    }))
    unknown_quality_score: int = 2
    max_quality_score: int = 4

    # Data quality score
    max_confidence: int = MAX_CONFIDENCE
    completeness_min_themes: int = 2
    incomplete_factor: float = 0.7

    # Themes
    top_themes_per_force: int = 5
    trending_min_count: int = 2
    trending_percent: int = 10
    trending_max: int = 8

    # Force insight labels
    strong_strength: float = 4.0
    moderate_strength: float = 3.0

    # Readiness model
    max_strength: float = 5.0
    pain_weight: float = 20.0
    pull_weight: float = 25.0
    anchors_weight: float = 15.0
    anxiety_weight: float = 10.0
    readiness_baseline: float = 30.0
    readiness_bands: tuple[tuple[float, str], ...] = (
        (80, "Ready to Scale"),
        (70, "Ready to Implement"),
        (60, "Ready with Preparation"),
        (40, "Needs Significant Preparation"),
    )
    readiness_floor_label: str = "Not Ready - Build Foundation First"
    min_responses_for_insights: int = 5

    # Recommendations
    min_responses_for_significance: int = 20
    weak_driver_strength: float = 3.0
    strong_inhibitor_strength: float = 3.0
    secondary_offset: float = 10.0
    secondary_divisor: float = 2.0
    secondary_high: float = 7.0
    secondary_moderate: float = 5.0

    # Risks, opportunities, next steps
    risk_strength: float = 3.5
    opportunity_strength: float = 3.5
    next_steps_high: float = 70.0
    next_steps_moderate: float = 50.0


DEFAULT_THRESHOLDS = Thresholds()
