"""Analysis orchestration shared by the HTTP API and the MCP server."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from readiness.aggregator import (
    Partitions,
    aggregate_force,
    aggregate_forces,
    empty_aggregate,
    extract_themes,
    partition_by_force,
    quality_score,
)
from readiness.config import DEFAULT_THRESHOLDS, PROCESSING_VERSION, Thresholds
from readiness.insights import build_organizational_insights, generate_recommendations, segment_responses
from readiness.models import (
    AnalysisFilters,
    AnalysisReport,
    AnalysisSummary,
    FilterValidationError,
    ForceAggregate,
    ForceType,
    InputShapeError,
    ReportMetadata,
    ResponseClassification,
)
from readiness.scorer import ForceAverages
from readiness.utils import round_half_up, round_int

log = logging.getLogger(__name__)

NO_RESPONSES_MESSAGE = "No responses found for this survey"
NO_MATCHES_MESSAGE = "No analyzed responses match the specified criteria"

FORCE_DESCRIPTIONS: dict[ForceType, str] = {
    ForceType.PAIN_OF_OLD: "Frustration with current processes that pushes people towards change",
    ForceType.PULL_OF_NEW: "Attraction to the benefits the new way of working promises",
    ForceType.ANCHORS_TO_OLD: "Habits, investments and structures that hold the status quo in place",
    ForceType.ANXIETY_OF_NEW: "Worries about risk, competence or job impact of the new way",
    ForceType.DEMOGRAPHIC: "Current usage and experience; no directional weight",
}


def force_polarity(force: ForceType) -> str:
    if force.is_driver:
        return "driver"
    if force.is_inhibitor:
        return "inhibitor"
    return "neutral"


def describe_forces() -> list[dict[str, str]]:
    return [
        {"force": f.value, "polarity": force_polarity(f), "description": FORCE_DESCRIPTIONS[f]}
        for f in ForceType
    ]


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def _error_field(exc: ValidationError) -> str | None:
    errors = exc.errors()
    if not errors:
        return None
    return ".".join(str(part) for part in errors[0]["loc"]) or None


def parse_classifications(
    records: Iterable[ResponseClassification | Mapping[str, Any]],
) -> list[ResponseClassification]:
    """Validate every record up front; the first malformed one rejects the run."""
    parsed: list[ResponseClassification] = []
    for index, record in enumerate(records):
        if isinstance(record, ResponseClassification):
            parsed.append(record)
            continue
        try:
            parsed.append(ResponseClassification.model_validate(record))
        except ValidationError as exc:
            response_id = record.get("response_id") if isinstance(record, Mapping) else None
            field = _error_field(exc)
            raise InputShapeError(
                f"Invalid classification at index {index} "
                f"(response_id={response_id!r}, field={field!r}): {exc.errors()[0]['msg']}",
                field=field,
                response_id=response_id,
            ) from exc
    return parsed


def parse_filters(filters: AnalysisFilters | Mapping[str, Any] | None) -> AnalysisFilters:
    if filters is None:
        return AnalysisFilters()
    if isinstance(filters, AnalysisFilters):
        return filters
    try:
        return AnalysisFilters.model_validate(filters)
    except ValidationError as exc:
        field = _error_field(exc)
        raise FilterValidationError(
            f"Invalid filter {field!r}: {exc.errors()[0]['msg']}", field=field,
        ) from exc


# ---------------------------------------------------------------------------
# Filtering and ordering
# ---------------------------------------------------------------------------


def filter_and_sort(
    responses: Sequence[ResponseClassification], filters: AnalysisFilters,
) -> list[ResponseClassification]:
    """Date range, confidence floor, force filter, newest first, then limit."""
    items = list(responses)
    if filters.date_range:
        items = [r for r in items if filters.date_range.contains(r.submitted_at)]
    items = [r for r in items if r.confidence_score >= filters.min_confidence]
    if filters.force_type:
        items = [r for r in items if r.primary_force == filters.force_type]
    items.sort(key=lambda r: r.submitted_at, reverse=True)
    log.debug("Filters kept %d of %d responses (limit %d)", len(items), len(responses), filters.limit)
    return items[:filters.limit]


# ---------------------------------------------------------------------------
# Report-level metrics
# ---------------------------------------------------------------------------


def average_confidence(responses: Sequence[ResponseClassification],
                       thresholds: Thresholds = DEFAULT_THRESHOLDS) -> float:
    if not responses:
        return 0.0
    return round_half_up(sum(r.confidence_score for r in responses) / len(responses), thresholds.decimal_places)


def data_quality_score(responses: Sequence[ResponseClassification],
                       thresholds: Thresholds = DEFAULT_THRESHOLDS) -> int:
    """0-100 mean of confidence, response quality and theme completeness."""
    if not responses:
        return 0
    t = thresholds
    factors = []
    for r in responses:
        confidence = r.confidence_score / t.max_confidence
        quality = quality_score(r.quality_indicators.response_quality, t) / t.max_quality_score
        completeness = 1.0 if len(r.key_themes) >= t.completeness_min_themes else t.incomplete_factor
        factors.append((confidence + quality + completeness) / 3)
    return round_int(sum(factors) / len(factors) * 100)


def _scrub_respondent(responses: Sequence[ResponseClassification], include_details: bool) -> list[ResponseClassification]:
    if include_details:
        return list(responses)
    return [r.model_copy(update={"respondent_info": None}) for r in responses]


# ---------------------------------------------------------------------------
# Report assembly
# ---------------------------------------------------------------------------


def _empty_report(
    total: int, filters: AnalysisFilters, generated_at: datetime,
    survey_id: str | None, survey_title: str | None, thresholds: Thresholds,
) -> AnalysisReport:
    return AnalysisReport(
        survey_id=survey_id,
        survey_title=survey_title,
        analysis=AnalysisSummary(
            total_responses=total,
            analyzed_responses=0,
            analysis_rate=0,
            message=NO_RESPONSES_MESSAGE if total == 0 else NO_MATCHES_MESSAGE,
        ),
        jtbd_forces={f: empty_aggregate(f, thresholds) for f in ForceType},
        filters=filters,
        metadata=ReportMetadata(generated_at=generated_at, processing_version=PROCESSING_VERSION),
        individual_responses=[] if filters.include_raw else None,
    )


def _assemble_report(
    total: int,
    analyzed: list[ResponseClassification],
    partitions: Partitions,
    forces: dict[ForceType, ForceAggregate],
    filters: AnalysisFilters,
    generated_at: datetime,
    survey_id: str | None,
    survey_title: str | None,
    thresholds: Thresholds,
) -> AnalysisReport:
    count = len(analyzed)
    averages = ForceAverages.from_aggregates(forces)
    return AnalysisReport(
        survey_id=survey_id,
        survey_title=survey_title,
        analysis=AnalysisSummary(
            total_responses=total,
            analyzed_responses=count,
            analysis_rate=round_int(count / total * 100),
            average_confidence=average_confidence(analyzed, thresholds),
            data_quality_score=data_quality_score(analyzed, thresholds),
        ),
        jtbd_forces=forces,
        organizational_insights=build_organizational_insights(forces, count, thresholds),
        themes=extract_themes(analyzed, partitions, thresholds),
        segmentation=segment_responses(analyzed, filters.include_respondent_details),
        recommendations=generate_recommendations(averages, count, thresholds),
        filters=filters,
        metadata=ReportMetadata(
            generated_at=generated_at,
            data_range_start=analyzed[-1].submitted_at,
            data_range_end=analyzed[0].submitted_at,
            processing_version=PROCESSING_VERSION,
        ),
        individual_responses=(
            _scrub_respondent(analyzed, filters.include_respondent_details) if filters.include_raw else None
        ),
    )


def _prepare(classifications, filters):
    parsed = parse_classifications(classifications)
    effective = parse_filters(filters)
    return parsed, effective, filter_and_sort(parsed, effective)


def analyze(
    classifications: Iterable[ResponseClassification | Mapping[str, Any]],
    filters: AnalysisFilters | Mapping[str, Any] | None = None,
    *,
    survey_id: str | None = None,
    survey_title: str | None = None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
) -> AnalysisReport:
    """Run the full readiness analysis over a survey's classifications.

    Args:
        classifications: Classification records, as models or plain dicts.
        filters: Filter specification; defaults apply when omitted.
        survey_id: Optional survey identifier echoed in the report.
        survey_title: Optional survey title echoed in the report.
        thresholds: Engine constants.
        now: Timestamp recorded as ``generated_at``; pass a fixed value for
            reproducible output.

    Raises:
        InputShapeError: A record is malformed.
        FilterValidationError: A filter value is out of bounds.
    """
    parsed, effective, analyzed = _prepare(classifications, filters)
    generated_at = now or datetime.now(UTC)
    log.info("Analyzing survey %s: %d responses, %d after filters, policy=%s",
             survey_id or "-", len(parsed), len(analyzed), effective.aggregation_policy)
    if not analyzed:
        return _empty_report(len(parsed), effective, generated_at, survey_id, survey_title, thresholds)

    partitions = partition_by_force(analyzed)
    forces = aggregate_forces(partitions, effective.aggregation_policy, thresholds)
    return _assemble_report(len(parsed), analyzed, partitions, forces, effective,
                            generated_at, survey_id, survey_title, thresholds)


async def analyze_async(
    classifications: Iterable[ResponseClassification | Mapping[str, Any]],
    filters: AnalysisFilters | Mapping[str, Any] | None = None,
    *,
    survey_id: str | None = None,
    survey_title: str | None = None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    now: datetime | None = None,
) -> AnalysisReport:
    """Same as :func:`analyze`, aggregating the five forces as concurrent tasks."""
    parsed, effective, analyzed = _prepare(classifications, filters)
    generated_at = now or datetime.now(UTC)
    log.info("Analyzing survey %s: %d responses, %d after filters, policy=%s",
             survey_id or "-", len(parsed), len(analyzed), effective.aggregation_policy)
    if not analyzed:
        return _empty_report(len(parsed), effective, generated_at, survey_id, survey_title, thresholds)

    partitions = partition_by_force(analyzed)
    count = len(analyzed)

    async def _one(force: ForceType) -> ForceAggregate:
        return aggregate_force(force, partitions[force], count, effective.aggregation_policy, thresholds)

    results = await asyncio.gather(*(_one(f) for f in ForceType))
    forces = {agg.force: agg for agg in results}
    return _assemble_report(len(parsed), analyzed, partitions, forces, effective,
                            generated_at, survey_id, survey_title, thresholds)
