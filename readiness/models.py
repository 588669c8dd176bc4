from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from readiness.config import DEFAULT_LIMIT, MAX_CONFIDENCE, MAX_LIMIT, MIN_CONFIDENCE


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class InputShapeError(ValueError):
    """A classification record is missing a field or carries an out-of-range value."""
    def __init__(self, message: str, field: str | None = None, response_id: str | None = None):
        super().__init__(message)
        self.field = field
        self.response_id = response_id


class FilterValidationError(ValueError):
    """A filter value lies outside its documented bounds."""
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ForceType(StrEnum):
    PAIN_OF_OLD = "pain_of_old"
    PULL_OF_NEW = "pull_of_new"
    ANCHORS_TO_OLD = "anchors_to_old"
    ANXIETY_OF_NEW = "anxiety_of_new"
    DEMOGRAPHIC = "demographic"

    @property
    def is_driver(self) -> bool:
        return self in DRIVER_FORCES

    @property
    def is_inhibitor(self) -> bool:
        return self in INHIBITOR_FORCES


DRIVER_FORCES = frozenset({ForceType.PAIN_OF_OLD, ForceType.PULL_OF_NEW})
INHIBITOR_FORCES = frozenset({ForceType.ANCHORS_TO_OLD, ForceType.ANXIETY_OF_NEW})


class AggregationPolicy(StrEnum):
    SIMPLE = "simple"
    WEIGHTED = "weighted"
    NORMALIZED = "normalized"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ---------------------------------------------------------------------------
# Input: per-response classification (produced upstream)
# ---------------------------------------------------------------------------


class QualityIndicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_quality: str = Field(min_length=1)


class RespondentInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    department: str | None = None
    job_title: str | None = None


class ResponseClassification(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_id: str = Field(min_length=1)
    submitted_at: datetime
    primary_force: ForceType
    force_strength_score: int = Field(ge=1, le=5, strict=True)
    confidence_score: int = Field(ge=1, le=5, strict=True)
    sentiment_score: float = Field(ge=-1.0, le=1.0, strict=True)
    key_themes: tuple[str, ...] = ()
    business_impact: str = Field(min_length=1)
    urgency: str = Field(min_length=1)
    quality_indicators: QualityIndicators
    respondent_info: RespondentInfo | None = None

    @field_validator("submitted_at")
    @classmethod
    def submitted_at_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_validator("key_themes")
    @classmethod
    def dedupe_themes(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(t for t in v if t))


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class DateRange(BaseModel):
    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def bounds_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v) if v is not None else None

    @model_validator(mode="after")
    def start_before_end(self) -> DateRange:
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    def contains(self, moment: datetime) -> bool:
        if self.start and moment < self.start:
            return False
        if self.end and moment > self.end:
            return False
        return True


class AnalysisFilters(BaseModel):
    min_confidence: float = Field(MIN_CONFIDENCE, ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE, strict=True)
    force_type: ForceType | None = None
    date_range: DateRange | None = None
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, strict=True)
    aggregation_policy: AggregationPolicy = AggregationPolicy.WEIGHTED
    include_respondent_details: bool = False
    include_raw: bool = False


# ---------------------------------------------------------------------------
# Output: per-force aggregate
# ---------------------------------------------------------------------------


class SentimentSummary(BaseModel):
    average: float = 0.0
    distribution: dict[str, int] = {}


class QualityMetrics(BaseModel):
    average_quality: float = 0.0
    distribution: dict[str, int] = {}


class ForceAggregate(BaseModel):
    force: ForceType
    count: int = 0
    percentage_of_analyzed: int = 0
    average_strength: float = 0.0
    average_confidence: float = 0.0
    normalized_score: float | None = None
    sentiment: SentimentSummary = SentimentSummary()
    themes: list[str] = []
    top_themes: list[str] = []
    business_impact_distribution: dict[str, int] = {}
    urgency_distribution: dict[str, int] = {}
    quality_metrics: QualityMetrics = QualityMetrics()
    insight_text: str = ""


# ---------------------------------------------------------------------------
# Output: organisation-level sections
# ---------------------------------------------------------------------------


class ForceBalance(BaseModel):
    drivers: int
    barriers: int
    net_force: int


class OrganizationalInsights(BaseModel):
    overall_readiness_score: int
    readiness_level: str
    key_findings: list[str] = []
    force_balance: ForceBalance
    risk_factors: list[str] = []
    opportunities: list[str] = []
    next_steps: list[str] = []


class ThemeSummary(BaseModel):
    all_themes: list[str] = []
    by_force: dict[ForceType, list[str]] = {}
    trending: list[str] = []


class SegmentBucket(BaseModel):
    count: int = 0
    forces: dict[ForceType, int] = {}


class Segmentation(BaseModel):
    available: bool
    message: str | None = None
    by_department: dict[str, SegmentBucket] = {}
    by_job_title: dict[str, SegmentBucket] = {}


# ---------------------------------------------------------------------------
# Output: report
# ---------------------------------------------------------------------------


class AnalysisSummary(BaseModel):
    total_responses: int
    analyzed_responses: int
    analysis_rate: int
    average_confidence: float = 0.0
    data_quality_score: int = 0
    message: str | None = None


class ReportMetadata(BaseModel):
    generated_at: datetime
    data_range_start: datetime | None = None
    data_range_end: datetime | None = None
    processing_version: str


class AnalysisReport(BaseModel):
    survey_id: str | None = None
    survey_title: str | None = None
    analysis: AnalysisSummary
    jtbd_forces: dict[ForceType, ForceAggregate]
    organizational_insights: OrganizationalInsights | None = None
    themes: ThemeSummary = ThemeSummary()
    segmentation: Segmentation | None = None
    recommendations: list[str] = []
    filters: AnalysisFilters
    metadata: ReportMetadata
    individual_responses: list[ResponseClassification] | None = None

    @property
    def is_empty(self) -> bool:
        return self.analysis.analyzed_responses == 0

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict; absent optional sections are left out entirely."""
        return self.model_dump(mode="json", exclude_none=True)
