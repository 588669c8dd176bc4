"""Per-force aggregation and theme extraction.

Architecture
------------
The analyzed response set is partitioned by ``primary_force`` into five
disjoint, immutable tuples. Each partition is folded independently into a
:class:`~readiness.models.ForceAggregate`:

- **Weighted averages**: strength, confidence and sentiment, where each
  response weighs 1 under the ``simple`` policy and ``confidence / 5``
  otherwise.
- **Unweighted tallies**: sentiment buckets, business impact, urgency,
  response quality and themes.
- **Insight text**: a strength label (strong / moderate / weak) joined
  with the force's fixed description.

Under the ``normalized`` policy the headline ``normalized_score`` is filled
in by :func:`readiness.scorer.normalize_score`.

Themes are also tallied across the whole set to detect trending themes with
a threshold that grows with the sample size.
"""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from readiness.config import DEFAULT_THRESHOLDS, Thresholds
from readiness.models import (
    AggregationPolicy,
    ForceAggregate,
    ForceType,
    QualityMetrics,
    ResponseClassification,
    SentimentSummary,
    ThemeSummary,
)
from readiness.scorer import normalize_score
from readiness.utils import ceil_percent, round_half_up, round_int, weighted_mean

log = logging.getLogger(__name__)

NO_RESPONSES_INSIGHT = "No responses for this force"

# Insight templates: {strength} is the strong/moderate/weak label, {n} the count.
FORCE_INSIGHT_TEMPLATES: dict[ForceType, str] = {
    ForceType.PAIN_OF_OLD: "{strength} motivation for change driven by current inefficiencies ({n} responses)",
    ForceType.PULL_OF_NEW: "{strength} attraction to AI benefits and opportunities ({n} responses)",
    ForceType.ANCHORS_TO_OLD: "{strength} organizational barriers to change ({n} responses)",
    ForceType.ANXIETY_OF_NEW: "{strength} concerns about AI implementation ({n} responses)",
    ForceType.DEMOGRAPHIC: "Current AI usage and experience patterns ({n} responses)",
}

Partitions = dict[ForceType, tuple[ResponseClassification, ...]]


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------


def partition_by_force(responses: Iterable[ResponseClassification]) -> Partitions:
    """Split responses into one tuple per force, preserving input order."""
    buckets: dict[ForceType, list[ResponseClassification]] = {f: [] for f in ForceType}
    for r in responses:
        buckets[r.primary_force].append(r)
    return {f: tuple(rs) for f, rs in buckets.items()}


# ---------------------------------------------------------------------------
# Small folds
# ---------------------------------------------------------------------------


def response_weight(response: ResponseClassification, policy: AggregationPolicy,
                    thresholds: Thresholds = DEFAULT_THRESHOLDS) -> float:
    if policy == AggregationPolicy.SIMPLE:
        return 1.0
    return response.confidence_score / thresholds.max_confidence


def sentiment_label(score: float, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> str:
    for upper, label in thresholds.sentiment_cutpoints:
        if score <= upper:
            return label
    return thresholds.sentiment_top_label


def sentiment_distribution(responses: Sequence[ResponseClassification],
                           thresholds: Thresholds = DEFAULT_THRESHOLDS) -> dict[str, int]:
    labels = [label for _, label in thresholds.sentiment_cutpoints] + [thresholds.sentiment_top_label]
    dist = dict.fromkeys(labels, 0)
    for r in responses:
        dist[sentiment_label(r.sentiment_score, thresholds)] += 1
    return dist


def quality_score(label: str, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> int:
    score = thresholds.quality_scores.get(label)
    if score is None:
        log.warning("Unknown response quality %r, scoring as %d", label, thresholds.unknown_quality_score)
        return thresholds.unknown_quality_score
    return score


def quality_metrics(responses: Sequence[ResponseClassification],
                    thresholds: Thresholds = DEFAULT_THRESHOLDS) -> QualityMetrics:
    if not responses:
        return QualityMetrics()
    labels = [r.quality_indicators.response_quality for r in responses]
    avg = sum(quality_score(q, thresholds) for q in labels) / len(labels)
    return QualityMetrics(
        average_quality=round_half_up(avg, thresholds.decimal_places),
        distribution=dict(Counter(labels)),
    )


def theme_counts(responses: Iterable[ResponseClassification]) -> Counter[str]:
    """Count responses per theme; Counter keeps first-seen order for ties."""
    counts: Counter[str] = Counter()
    for r in responses:
        counts.update(r.key_themes)
    return counts


def distinct_themes(responses: Iterable[ResponseClassification]) -> list[str]:
    return list(theme_counts(responses))


def top_themes(responses: Sequence[ResponseClassification], limit: int) -> list[str]:
    # sorted() is stable, so equal counts stay in first-seen order
    ranked = sorted(theme_counts(responses).items(), key=lambda kv: -kv[1])
    return [theme for theme, _ in ranked[:limit]]


def strength_label(average_strength: float, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> str:
    if average_strength >= thresholds.strong_strength:
        return "strong"
    if average_strength >= thresholds.moderate_strength:
        return "moderate"
    return "weak"


def force_insight(force: ForceType, count: int, average_strength: float,
                  thresholds: Thresholds = DEFAULT_THRESHOLDS) -> str:
    if count == 0:
        return NO_RESPONSES_INSIGHT
    return FORCE_INSIGHT_TEMPLATES[force].format(
        strength=strength_label(average_strength, thresholds), n=count,
    )


# ---------------------------------------------------------------------------
# Force aggregate
# ---------------------------------------------------------------------------


def empty_aggregate(force: ForceType, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> ForceAggregate:
    """Zeroed aggregate for a force with no responses."""
    return ForceAggregate(
        force=force,
        sentiment=SentimentSummary(average=0.0, distribution=sentiment_distribution((), thresholds)),
        insight_text=NO_RESPONSES_INSIGHT,
    )


def aggregate_force(
    force: ForceType,
    responses: Sequence[ResponseClassification],
    analyzed_count: int,
    policy: AggregationPolicy,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> ForceAggregate:
    """Fold one force's partition into its statistical summary.

    Args:
        force: The force every response in *responses* carries as primary.
        responses: The partition; may be empty.
        analyzed_count: Size of the whole analyzed set, for the percentage.
        policy: Weighting policy applied to the averages.
        thresholds: Rounding, cutpoints and label thresholds.
    """
    if not responses:
        return empty_aggregate(force, thresholds)

    places = thresholds.decimal_places
    weights = [response_weight(r, policy, thresholds) for r in responses]
    avg_strength = round_half_up(
        weighted_mean((r.force_strength_score for r in responses), weights), places)
    avg_confidence = round_half_up(
        weighted_mean((r.confidence_score for r in responses), weights), places)
    avg_sentiment = round_half_up(
        weighted_mean((r.sentiment_score for r in responses), weights), places)

    normalized = None
    if policy == AggregationPolicy.NORMALIZED:
        normalized = round_half_up(normalize_score(avg_strength, force, thresholds), places)

    count = len(responses)
    return ForceAggregate(
        force=force,
        count=count,
        percentage_of_analyzed=round_int(count / analyzed_count * 100) if analyzed_count else 0,
        average_strength=avg_strength,
        average_confidence=avg_confidence,
        normalized_score=normalized,
        sentiment=SentimentSummary(
            average=avg_sentiment,
            distribution=sentiment_distribution(responses, thresholds),
        ),
        themes=distinct_themes(responses),
        top_themes=top_themes(responses, thresholds.top_themes_per_force),
        business_impact_distribution=dict(Counter(r.business_impact for r in responses)),
        urgency_distribution=dict(Counter(r.urgency for r in responses)),
        quality_metrics=quality_metrics(responses, thresholds),
        insight_text=force_insight(force, count, avg_strength, thresholds),
    )


def aggregate_forces(
    partitions: Partitions,
    policy: AggregationPolicy,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> dict[ForceType, ForceAggregate]:
    analyzed_count = sum(len(rs) for rs in partitions.values())
    return {
        force: aggregate_force(force, partitions.get(force, ()), analyzed_count, policy, thresholds)
        for force in ForceType
    }


# ---------------------------------------------------------------------------
# Theme extraction
# ---------------------------------------------------------------------------


def trending_threshold(analyzed_count: int, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> int:
    """Minimum response count for a theme to be trending."""
    return max(thresholds.trending_min_count, ceil_percent(analyzed_count, thresholds.trending_percent))


def trending_themes(responses: Sequence[ResponseClassification],
                    thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[str]:
    cutoff = trending_threshold(len(responses), thresholds)
    qualifying = [(t, c) for t, c in theme_counts(responses).items() if c >= cutoff]
    qualifying.sort(key=lambda kv: -kv[1])
    return [t for t, _ in qualifying[:thresholds.trending_max]]


def extract_themes(responses: Sequence[ResponseClassification], partitions: Partitions,
                   thresholds: Thresholds = DEFAULT_THRESHOLDS) -> ThemeSummary:
    return ThemeSummary(
        all_themes=distinct_themes(responses),
        by_force={force: distinct_themes(partitions.get(force, ())) for force in ForceType},
        trending=trending_themes(responses, thresholds),
    )
