"""Readiness scoring: deterministic arithmetic over per-force averages.

- ``normalize_score`` rescales a 0-5 strength onto 0-100; inhibitors are
  inverted so every normalized score reads "higher is more ready".
- ``compute_readiness_score`` is a fixed linear model over the four
  directional averages plus a baseline, clamped to 0-100.
- ``compute_readiness_level`` maps the reported score onto five bands.
- ``compute_force_balance`` sums drivers and barriers.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from readiness.config import DEFAULT_THRESHOLDS, Thresholds
from readiness.models import ForceAggregate, ForceBalance, ForceType
from readiness.utils import round_int


# ---------------------------------------------------------------------------
# Score normalizer
# ---------------------------------------------------------------------------


def normalize_score(strength: float, force: ForceType, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> float:
    """Map a 0-5 weighted strength to 0-100, inverting inhibitor forces."""
    base = strength / thresholds.max_strength * 100
    if force.is_inhibitor:
        return max(0.0, 100 - base)
    return max(0.0, base)


# ---------------------------------------------------------------------------
# Readiness calculator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ForceAverages:
    """Weighted average strength of the four directional forces (0 when absent)."""
    pain: float = 0.0
    pull: float = 0.0
    anchors: float = 0.0
    anxiety: float = 0.0

    @classmethod
    def from_aggregates(cls, forces: Mapping[ForceType, ForceAggregate]) -> ForceAverages:
        def avg(force: ForceType) -> float:
            agg = forces.get(force)
            return agg.average_strength if agg is not None and agg.count else 0.0
        return cls(
            pain=avg(ForceType.PAIN_OF_OLD),
            pull=avg(ForceType.PULL_OF_NEW),
            anchors=avg(ForceType.ANCHORS_TO_OLD),
            anxiety=avg(ForceType.ANXIETY_OF_NEW),
        )

    @property
    def drivers(self) -> float:
        return self.pain + self.pull

    @property
    def barriers(self) -> float:
        return self.anchors + self.anxiety


def compute_readiness_score(averages: ForceAverages, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> float:
    """Linear readiness model, clamped to [0, 100]."""
    t = thresholds
    raw = (
        averages.pain * t.pain_weight
        + averages.pull * t.pull_weight
        - averages.anchors * t.anchors_weight
        - averages.anxiety * t.anxiety_weight
        + t.readiness_baseline
    )
    return max(0.0, min(100.0, raw))


def compute_readiness_level(score: float, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> str:
    """Map a readiness score to its band; the first band from the top wins."""
    for cutoff, label in thresholds.readiness_bands:
        if score >= cutoff:
            return label
    return thresholds.readiness_floor_label


def compute_force_balance(averages: ForceAverages) -> ForceBalance:
    drivers = round_int(averages.drivers)
    barriers = round_int(averages.barriers)
    return ForceBalance(drivers=drivers, barriers=barriers, net_force=drivers - barriers)


def compute_secondary_readiness(averages: ForceAverages, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> float:
    """Coarse readiness estimate on a 0-10 scale used to pick the closing recommendation.

    Independent of :func:`compute_readiness_score`; the two can place an
    organisation in different tiers.
    """
    return (averages.drivers - averages.barriers + thresholds.secondary_offset) / thresholds.secondary_divisor
