from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from readiness import services
from readiness.config import DEFAULT_THRESHOLDS
from readiness.models import FilterValidationError, InputShapeError

log = logging.getLogger(__name__)


mcp = FastMCP(
    "Readiness",
    instructions=(
        "Readiness turns survey responses that were already classified against the "
        "Jobs To Be Done forces into an organizational change-readiness report. "
        "Read readiness://overview first, call describe_forces() to see the force "
        "vocabulary, then analyze_survey(classifications, ...) with the records."
    ),
    json_response=True,
)


# ---------------------------------------------------------------------------
# Resource
# ---------------------------------------------------------------------------


@mcp.resource("readiness://overview")
def readiness_overview() -> str:
    """Overview of the readiness engine: inputs, policies, and readiness bands."""
    t = DEFAULT_THRESHOLDS
    return json.dumps({
        "system": "Readiness - JTBD change-readiness analytics",
        "input": {
            "classification": (
                "One record per survey response: response_id, submitted_at, primary_force, "
                "force_strength_score (1-5), confidence_score (1-5), sentiment_score (-1..1), "
                "key_themes, business_impact, urgency, quality_indicators.response_quality, "
                "optional respondent_info (department, job_title)."
            ),
        },
        "aggregation_policies": {
            "simple": "Every response weighs 1.",
            "weighted": "Each response weighs confidence_score / 5.",
            "normalized": "Weighted, plus a 0-100 normalized score per force with inhibitors inverted.",
        },
        "readiness_bands": [f">= {cutoff}: {label}" for cutoff, label in t.readiness_bands]
                           + [f"else: {t.readiness_floor_label}"],
        "insights_minimum_responses": t.min_responses_for_insights,
    }, indent=2)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
def describe_forces() -> list[dict]:
    """List the JTBD forces with their polarity (driver, inhibitor, neutral) and meaning."""
    return services.describe_forces()


@mcp.tool()
async def analyze_survey(
    classifications: list[dict[str, Any]],
    survey_id: str | None = None, survey_title: str | None = None,
    min_confidence: float = 1, force_type: str | None = None,
    start_date: str | None = None, end_date: str | None = None,
    limit: int = 100, aggregation_policy: str = "weighted",
    include_respondent_details: bool = False, include_raw: bool = False,
) -> dict:
    """Aggregate classified survey responses into a readiness report.

    Args:
        classifications: Classification records (see readiness://overview).
        survey_id: Optional survey identifier echoed in the report.
        survey_title: Optional survey title echoed in the report.
        min_confidence: Drop responses below this confidence (1-5).
        force_type: Keep only one force: pain_of_old, pull_of_new,
                    anchors_to_old, anxiety_of_new, demographic.
        start_date: ISO timestamp; drop responses submitted earlier.
        end_date: ISO timestamp; drop responses submitted later.
        limit: Max responses analyzed, newest first (default 100, max 500).
        aggregation_policy: simple, weighted, or normalized.
        include_respondent_details: Enable department / job title segmentation.
        include_raw: Include the analyzed records in the report.
    """
    filters: dict[str, Any] = {
        "min_confidence": min_confidence, "force_type": force_type,
        "limit": limit, "aggregation_policy": aggregation_policy,
        "include_respondent_details": include_respondent_details,
        "include_raw": include_raw,
    }
    if start_date or end_date:
        filters["date_range"] = {"start": start_date, "end": end_date}
    try:
        report = await services.analyze_async(
            classifications, filters, survey_id=survey_id, survey_title=survey_title,
        )
    except InputShapeError as exc:
        log.info("Rejected classifications for survey %s: %s", survey_id or "-", exc)
        return {"error": str(exc), "field": exc.field, "response_id": exc.response_id}
    except FilterValidationError as exc:
        log.info("Rejected filters for survey %s: %s", survey_id or "-", exc)
        return {"error": str(exc), "field": exc.field}
    return report.to_dict()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the Readiness MCP server over stdio."""
    mcp.run()


if __name__ == "__main__":
    main()
