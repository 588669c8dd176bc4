"""Segmentation, organisational insights and recommendations.

All rules are fixed thresholds over the per-force averages and the response
count; nothing here is random or calls out to a model.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from readiness.config import DEFAULT_THRESHOLDS, Thresholds
from readiness.models import (
    ForceAggregate,
    ForceType,
    OrganizationalInsights,
    ResponseClassification,
    SegmentBucket,
    Segmentation,
)
from readiness.scorer import (
    ForceAverages,
    compute_force_balance,
    compute_readiness_level,
    compute_readiness_score,
    compute_secondary_readiness,
)
from readiness.utils import round_half_up, round_int

log = logging.getLogger(__name__)

UNKNOWN_SEGMENT = "Unknown"
SEGMENTATION_UNAVAILABLE = "Segmentation requires respondent details"

# ---------------------------------------------------------------------------
# Fixed texts
# ---------------------------------------------------------------------------

REC_MORE_RESPONSES = "Consider collecting more responses for statistically significant insights"
REC_CLARIFY_PAIN = "Focus on identifying and articulating current pain points more clearly"
REC_VALUE_PROPOSITION = "Develop stronger AI value proposition and success stories"
REC_ADDRESS_RESISTANCE = "Address organizational barriers and resistance to change"
REC_CHANGE_MANAGEMENT = "Implement comprehensive change management and AI education programs"
REC_HIGH_READINESS = "Organization shows high readiness - proceed with AI pilot programs"
REC_MODERATE_READINESS = "Moderate readiness - start with low-risk AI implementations"
REC_LOW_READINESS = "Low readiness - focus on foundational change management first"

RISK_RESISTANCE = "High organizational resistance to change"
RISK_ANXIETY = "Significant anxiety about AI implementation"
OPPORTUNITY_MOTIVATION = "Strong motivation for change driven by current problems"
OPPORTUNITY_ATTRACTION = "High attraction to AI benefits and possibilities"

NEXT_STEPS_HIGH = (
    "Begin AI pilot program selection and planning",
    "Establish AI governance and ethics framework",
)
NEXT_STEPS_MODERATE = (
    "Develop comprehensive change management strategy",
    "Start AI education and awareness programs",
)
NEXT_STEPS_LOW = (
    "Focus on building foundational change readiness",
    "Address organizational barriers before technology implementation",
)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


def _segment_label(value: str | None) -> str:
    return value.strip() if value and value.strip() else UNKNOWN_SEGMENT


def _tally(groups: dict[str, list[ResponseClassification]]) -> dict[str, SegmentBucket]:
    buckets = {}
    for label, members in groups.items():
        forces = dict.fromkeys(ForceType, 0)
        for r in members:
            forces[r.primary_force] += 1
        buckets[label] = SegmentBucket(count=len(members), forces=forces)
    return buckets


def segment_responses(responses: Sequence[ResponseClassification], include_details: bool) -> Segmentation:
    """Tally force distribution per department and per job title."""
    if not include_details:
        return Segmentation(available=False, message=SEGMENTATION_UNAVAILABLE)

    by_department: dict[str, list[ResponseClassification]] = {}
    by_job_title: dict[str, list[ResponseClassification]] = {}
    for r in responses:
        info = r.respondent_info
        dept = _segment_label(info.department if info else None)
        title = _segment_label(info.job_title if info else None)
        by_department.setdefault(dept, []).append(r)
        by_job_title.setdefault(title, []).append(r)

    return Segmentation(
        available=True,
        by_department=_tally(by_department),
        by_job_title=_tally(by_job_title),
    )


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


def generate_recommendations(
    averages: ForceAverages,
    response_count: int,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> list[str]:
    t = thresholds
    recs: list[str] = []
    if response_count < t.min_responses_for_significance:
        recs.append(REC_MORE_RESPONSES)
    if averages.pain < t.weak_driver_strength:
        recs.append(REC_CLARIFY_PAIN)
    if averages.pull < t.weak_driver_strength:
        recs.append(REC_VALUE_PROPOSITION)
    if averages.anchors > t.strong_inhibitor_strength:
        recs.append(REC_ADDRESS_RESISTANCE)
    if averages.anxiety > t.strong_inhibitor_strength:
        recs.append(REC_CHANGE_MANAGEMENT)

    secondary = compute_secondary_readiness(averages, t)
    if secondary >= t.secondary_high:
        recs.append(REC_HIGH_READINESS)
    elif secondary >= t.secondary_moderate:
        recs.append(REC_MODERATE_READINESS)
    else:
        recs.append(REC_LOW_READINESS)
    return recs


def identify_risk_factors(averages: ForceAverages, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[str]:
    risks = []
    if averages.anchors > thresholds.risk_strength:
        risks.append(RISK_RESISTANCE)
    if averages.anxiety > thresholds.risk_strength:
        risks.append(RISK_ANXIETY)
    return risks


def identify_opportunities(averages: ForceAverages, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[str]:
    opportunities = []
    if averages.pain > thresholds.opportunity_strength:
        opportunities.append(OPPORTUNITY_MOTIVATION)
    if averages.pull > thresholds.opportunity_strength:
        opportunities.append(OPPORTUNITY_ATTRACTION)
    return opportunities


def generate_next_steps(readiness_score: float, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> list[str]:
    if readiness_score >= thresholds.next_steps_high:
        return list(NEXT_STEPS_HIGH)
    if readiness_score >= thresholds.next_steps_moderate:
        return list(NEXT_STEPS_MODERATE)
    return list(NEXT_STEPS_LOW)


def generate_key_findings(forces: Mapping[ForceType, ForceAggregate], response_count: int) -> list[str]:
    """Strongest and weakest directional force, plus the sample size."""
    present = [a for f, a in forces.items() if f != ForceType.DEMOGRAPHIC and a.count]
    # stable: ties keep ForceType declaration order
    ranked = sorted(present, key=lambda a: -a.average_strength)
    findings = []
    if ranked:
        strongest = ranked[0]
        findings.append(f"Strongest force: {strongest.force} "
                        f"(avg: {round_half_up(strongest.average_strength, 1):.1f})")
        if len(ranked) > 1:
            weakest = ranked[-1]
            findings.append(f"Weakest force: {weakest.force} "
                            f"(avg: {round_half_up(weakest.average_strength, 1):.1f})")
    findings.append(f"Analysis based on {response_count} responses")
    return findings


# ---------------------------------------------------------------------------
# Organisational insights
# ---------------------------------------------------------------------------


def build_organizational_insights(
    forces: Mapping[ForceType, ForceAggregate],
    response_count: int,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> OrganizationalInsights | None:
    """Readiness score, band, balance, risks, opportunities and next steps.

    Returns ``None`` below ``min_responses_for_insights`` analyzed responses.
    """
    if response_count < thresholds.min_responses_for_insights:
        log.warning("Skipping organizational insights: %d analyzed responses (need %d)",
                    response_count, thresholds.min_responses_for_insights)
        return None

    averages = ForceAverages.from_aggregates(forces)
    score = round_int(compute_readiness_score(averages, thresholds))
    return OrganizationalInsights(
        overall_readiness_score=score,
        readiness_level=compute_readiness_level(score, thresholds),
        key_findings=generate_key_findings(forces, response_count),
        force_balance=compute_force_balance(averages),
        risk_factors=identify_risk_factors(averages, thresholds),
        opportunities=identify_opportunities(averages, thresholds),
        next_steps=generate_next_steps(score, thresholds),
    )
