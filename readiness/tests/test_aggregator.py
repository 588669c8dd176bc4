"""Tests for per-force aggregation and theme extraction."""
from __future__ import annotations

import pytest

from readiness.aggregator import (
    NO_RESPONSES_INSIGHT,
    aggregate_force,
    aggregate_forces,
    empty_aggregate,
    extract_themes,
    partition_by_force,
    quality_metrics,
    sentiment_distribution,
    sentiment_label,
    strength_label,
    top_themes,
    trending_themes,
    trending_threshold,
)
from readiness.config import Thresholds
from readiness.models import AggregationPolicy, ForceType, ResponseClassification


@pytest.fixture()
def parse(make_record):
    def _parse(*args, **kwargs) -> ResponseClassification:
        return ResponseClassification.model_validate(make_record(*args, **kwargs))
    return _parse


@pytest.fixture()
def pain_responses(parse):
    return [
        parse(0, "pain_of_old", strength=5, confidence=5, sentiment=-0.8, impact="high", urgency="high"),
        parse(1, "pain_of_old", strength=5, confidence=5, sentiment=-0.4, impact="high", urgency="medium"),
        parse(2, "pain_of_old", strength=4, confidence=5, sentiment=0.0, impact="medium", urgency="medium"),
        parse(3, "pain_of_old", strength=3, confidence=4, sentiment=0.5, impact="critical", urgency="low"),
    ]


# =========================================================================
# Partitioning
# =========================================================================

class TestPartitionByForce:
    def test_every_force_present(self, parse):
        parts = partition_by_force([parse(0, "pull_of_new")])
        assert set(parts) == set(ForceType)
        assert parts[ForceType.PAIN_OF_OLD] == ()

    def test_preserves_order(self, parse):
        a, b, c = parse(0, "pain_of_old"), parse(1, "pull_of_new"), parse(2, "pain_of_old")
        parts = partition_by_force([a, b, c])
        assert parts[ForceType.PAIN_OF_OLD] == (a, c)
        assert parts[ForceType.PULL_OF_NEW] == (b,)


# =========================================================================
# Weighted averages
# =========================================================================

class TestAggregateForce:
    def test_weighted_averages(self, pain_responses):
        agg = aggregate_force(ForceType.PAIN_OF_OLD, pain_responses, 10, AggregationPolicy.WEIGHTED)
        assert agg.count == 4
        assert agg.percentage_of_analyzed == 40
        # (5 + 5 + 4 + 3*0.8) / 3.8
        assert agg.average_strength == 4.32
        # (5 + 5 + 5 + 4*0.8) / 3.8
        assert agg.average_confidence == 4.79
        assert agg.normalized_score is None

    def test_simple_averages(self, pain_responses):
        agg = aggregate_force(ForceType.PAIN_OF_OLD, pain_responses, 4, AggregationPolicy.SIMPLE)
        assert agg.average_strength == 4.25
        assert agg.average_confidence == 4.75
        assert agg.percentage_of_analyzed == 100

    def test_weighted_sentiment(self, pain_responses):
        agg = aggregate_force(ForceType.PAIN_OF_OLD, pain_responses, 4, AggregationPolicy.WEIGHTED)
        # (-0.8 - 0.4 + 0.0 + 0.5*0.8) / 3.8
        assert agg.sentiment.average == pytest.approx(-0.21)

    def test_normalized_driver(self, pain_responses):
        agg = aggregate_force(ForceType.PAIN_OF_OLD, pain_responses, 4, AggregationPolicy.NORMALIZED)
        assert agg.average_strength == 4.32
        assert agg.normalized_score == pytest.approx(86.4)

    def test_normalized_uses_reported_average(self, parse):
        rs = [parse(0, "pull_of_new", strength=3, confidence=5),
              parse(1, "pull_of_new", strength=3, confidence=5),
              parse(2, "pull_of_new", strength=4, confidence=5)]
        agg = aggregate_force(ForceType.PULL_OF_NEW, rs, 3, AggregationPolicy.NORMALIZED)
        # raw mean 10/3 is reported as 3.33, which normalizes to 66.6
        assert agg.average_strength == 3.33
        assert agg.normalized_score == pytest.approx(66.6)
        assert agg.normalized_score == pytest.approx(agg.average_strength / 5 * 100)

    def test_normalized_inhibitor_inverted(self, parse):
        rs = [parse(0, "anchors_to_old", strength=2, confidence=3),
              parse(1, "anchors_to_old", strength=2, confidence=3)]
        agg = aggregate_force(ForceType.ANCHORS_TO_OLD, rs, 2, AggregationPolicy.NORMALIZED)
        assert agg.average_strength == 2.0
        assert agg.normalized_score == pytest.approx(60.0)

    def test_categorical_distributions(self, pain_responses):
        agg = aggregate_force(ForceType.PAIN_OF_OLD, pain_responses, 4, AggregationPolicy.WEIGHTED)
        assert agg.business_impact_distribution == {"high": 2, "medium": 1, "critical": 1}
        assert agg.urgency_distribution == {"high": 1, "medium": 2, "low": 1}

    def test_sentiment_distribution_unweighted(self, pain_responses):
        agg = aggregate_force(ForceType.PAIN_OF_OLD, pain_responses, 4, AggregationPolicy.WEIGHTED)
        assert agg.sentiment.distribution == {
            "very_negative": 1, "negative": 1, "neutral": 1, "positive": 1, "very_positive": 0,
        }

    def test_insight_text(self, pain_responses):
        agg = aggregate_force(ForceType.PAIN_OF_OLD, pain_responses, 4, AggregationPolicy.WEIGHTED)
        assert agg.insight_text == (
            "strong motivation for change driven by current inefficiencies (4 responses)"
        )

    def test_demographic_insight_has_no_strength(self, parse):
        agg = aggregate_force(ForceType.DEMOGRAPHIC, [parse(0, "demographic")], 1, AggregationPolicy.SIMPLE)
        assert agg.insight_text == "Current AI usage and experience patterns (1 responses)"

    def test_empty_partition(self):
        agg = aggregate_force(ForceType.PULL_OF_NEW, (), 10, AggregationPolicy.NORMALIZED)
        assert agg.count == 0
        assert agg.percentage_of_analyzed == 0
        assert agg.average_strength == 0
        assert agg.average_confidence == 0
        assert agg.sentiment.average == 0
        assert sum(agg.sentiment.distribution.values()) == 0
        assert agg.top_themes == []
        assert agg.insight_text == NO_RESPONSES_INSIGHT

    def test_empty_aggregate_matches(self):
        assert empty_aggregate(ForceType.PULL_OF_NEW) == aggregate_force(
            ForceType.PULL_OF_NEW, (), 3, AggregationPolicy.WEIGHTED,
        )

    def test_counts_sum_to_total(self, parse):
        rs = [parse(i, f) for i, f in enumerate(
            ["pain_of_old", "pull_of_new", "pull_of_new", "demographic", "anxiety_of_new"])]
        forces = aggregate_forces(partition_by_force(rs), AggregationPolicy.SIMPLE)
        assert list(forces) == list(ForceType)
        assert sum(a.count for a in forces.values()) == len(rs)


# =========================================================================
# Small folds
# =========================================================================

class TestSentimentLabel:
    @pytest.mark.parametrize("score,label", [
        (-1.0, "very_negative"), (-0.6, "very_negative"), (-0.59, "negative"),
        (-0.2, "negative"), (0.0, "neutral"), (0.2, "neutral"),
        (0.6, "positive"), (0.61, "very_positive"), (1.0, "very_positive"),
    ])
    def test_cutpoints(self, score, label):
        assert sentiment_label(score) == label

    def test_custom_cutpoints(self):
        t = Thresholds(sentiment_cutpoints=((0.0, "down"),), sentiment_top_label="up")
        assert sentiment_label(-0.1, t) == "down"
        assert sentiment_label(0.1, t) == "up"

    def test_distribution_has_all_buckets(self):
        assert sentiment_distribution(()) == {
            "very_negative": 0, "negative": 0, "neutral": 0, "positive": 0, "very_positive": 0,
        }


class TestQualityMetrics:
    def test_average_and_distribution(self, parse):
        rs = [parse(0, "pain_of_old", quality="excellent"),
              parse(1, "pain_of_old", quality="poor"),
              parse(2, "pain_of_old", quality="good")]
        qm = quality_metrics(rs)
        assert qm.average_quality == pytest.approx(2.67)
        assert qm.distribution == {"excellent": 1, "poor": 1, "good": 1}

    def test_unknown_label_scores_two(self, parse):
        qm = quality_metrics([parse(0, "pain_of_old", quality="mystery")])
        assert qm.average_quality == 2.0


class TestStrengthLabel:
    def test_labels(self):
        assert strength_label(4.0) == "strong"
        assert strength_label(3.99) == "moderate"
        assert strength_label(3.0) == "moderate"
        assert strength_label(2.99) == "weak"


# =========================================================================
# Themes
# =========================================================================

class TestTopThemes:
    def test_ties_keep_first_seen_order(self, parse):
        rs = [parse(0, "pain_of_old", themes=["a", "b"]),
              parse(1, "pain_of_old", themes=["b", "c"]),
              parse(2, "pain_of_old", themes=["c"])]
        assert top_themes(rs, 5) == ["b", "c", "a"]

    def test_limit(self, parse):
        rs = [parse(0, "pain_of_old", themes=[f"t{i}" for i in range(8)])]
        assert top_themes(rs, 5) == ["t0", "t1", "t2", "t3", "t4"]

    def test_duplicate_theme_in_one_response_counts_once(self, parse):
        rs = [parse(0, "pain_of_old", themes=["a", "a", "a"]),
              parse(1, "pain_of_old", themes=["b"]),
              parse(2, "pain_of_old", themes=["b"])]
        assert top_themes(rs, 5) == ["b", "a"]


class TestTrendingThemes:
    def test_threshold_scales_with_sample(self):
        assert trending_threshold(5) == 2
        assert trending_threshold(15) == 2
        assert trending_threshold(25) == 3
        assert trending_threshold(30) == 3
        assert trending_threshold(31) == 4

    def test_two_of_fifteen_is_trending(self, parse):
        rs = [parse(i, "pain_of_old", themes=["cost"] if i < 2 else []) for i in range(15)]
        assert trending_themes(rs) == ["cost"]

    def test_two_of_twentyfive_is_not_trending(self, parse):
        rs = [parse(i, "pain_of_old", themes=["cost"] if i < 2 else []) for i in range(25)]
        assert trending_themes(rs) == []

    def test_sorted_and_capped(self, parse):
        rs = [parse(i, "pain_of_old", themes=[f"t{j}" for j in range(10) if j <= i]) for i in range(10)]
        trending = trending_themes(rs)
        assert len(trending) == 8
        assert trending[0] == "t0"

    def test_extract_themes(self, parse):
        rs = [parse(0, "pain_of_old", themes=["cost", "speed"]),
              parse(1, "pull_of_new", themes=["speed", "insight"]),
              parse(2, "pull_of_new", themes=["speed"])]
        summary = extract_themes(rs, partition_by_force(rs))
        assert summary.all_themes == ["cost", "speed", "insight"]
        assert summary.by_force[ForceType.PULL_OF_NEW] == ["speed", "insight"]
        assert summary.by_force[ForceType.ANCHORS_TO_OLD] == []
        assert summary.trending == ["speed"]
