"""Pydantic request/response schemas for the readiness API."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class AnalyzeRequest(BaseModel):
    # Records and filters stay loosely typed here so that shape problems are
    # reported by the engine with the offending field named.
    classifications: list[dict[str, Any]]
    filters: dict[str, Any] = {}
    survey_title: str | None = None


class ReadinessBandOut(BaseModel):
    label: str
    min_score: float


class ForceOut(BaseModel):
    force: str
    polarity: str
    description: str


class ErrorOut(BaseModel):
    error: str
    field: str | None = None
    response_id: str | None = None
