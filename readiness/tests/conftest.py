from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)
FIXED_NOW = datetime(2025, 4, 1, 12, 0, tzinfo=UTC)


def build_record(
    index: int,
    force: str,
    strength: int = 3,
    confidence: int = 3,
    sentiment: float = 0.0,
    themes: list[str] | None = None,
    impact: str = "medium",
    urgency: str = "medium",
    quality: str = "good",
    department: str | None = None,
    job_title: str | None = None,
    submitted_at: datetime | None = None,
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "response_id": f"resp-{index}",
        "submitted_at": (submitted_at or BASE_TIME + timedelta(hours=index)).isoformat(),
        "primary_force": force,
        "force_strength_score": strength,
        "confidence_score": confidence,
        "sentiment_score": sentiment,
        "key_themes": themes or [],
        "business_impact": impact,
        "urgency": urgency,
        "quality_indicators": {"response_quality": quality},
    }
    if department is not None or job_title is not None:
        record["respondent_info"] = {"department": department, "job_title": job_title}
    return record


@pytest.fixture()
def make_record():
    return build_record


@pytest.fixture()
def scenario_records() -> list[dict[str, Any]]:
    """Ten responses: 4 pain, 3 pull, 2 anchors, 1 anxiety."""
    specs = [
        ("pain_of_old", 5, 5), ("pain_of_old", 5, 5), ("pain_of_old", 4, 5), ("pain_of_old", 3, 4),
        ("pull_of_new", 4, 4), ("pull_of_new", 4, 4), ("pull_of_new", 3, 3),
        ("anchors_to_old", 2, 3), ("anchors_to_old", 2, 3),
        ("anxiety_of_new", 1, 2),
    ]
    return [
        build_record(i, force, strength=s, confidence=c, themes=["automation", f"theme-{i}"])
        for i, (force, s, c) in enumerate(specs)
    ]


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW
