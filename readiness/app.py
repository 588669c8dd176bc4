from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from readiness import services
from readiness.config import DEFAULT_THRESHOLDS, HOST, PORT
from readiness.models import FilterValidationError, InputShapeError
from readiness.schemas import AnalyzeRequest, ErrorOut, ForceOut, ReadinessBandOut

log = logging.getLogger(__name__)


app = FastAPI(
    title="Readiness",
    version="0.1.0",
    description=(
        "Change-readiness analytics for survey responses classified against the "
        "four Jobs To Be Done forces. Aggregates per-response classifications into "
        "force statistics, an organizational readiness score, themes, segments and "
        "recommendations. All endpoints return JSON."
    ),
    openapi_tags=[
        {"name": "Analysis", "description": "Aggregate classified survey responses into a readiness report."},
        {"name": "Reference", "description": "Forces and readiness bands used by the engine."},
    ],
)


# ---------------------------------------------------------------------------
# Routes: Analysis
# ---------------------------------------------------------------------------


@app.post("/api/surveys/{survey_id}/jtbd", tags=["Analysis"],
          summary="Analyze a survey's classified responses",
          responses={400: {"model": ErrorOut, "description": "Malformed record or out-of-range filter"}})
async def analyze_survey(survey_id: str, body: AnalyzeRequest) -> dict:
    try:
        report = await services.analyze_async(
            body.classifications, body.filters,
            survey_id=survey_id, survey_title=body.survey_title,
        )
    except InputShapeError as exc:
        log.info("Rejected classifications for survey %s: %s", survey_id, exc)
        raise HTTPException(400, {"error": str(exc), "field": exc.field, "response_id": exc.response_id}) from exc
    except FilterValidationError as exc:
        log.info("Rejected filters for survey %s: %s", survey_id, exc)
        raise HTTPException(400, {"error": str(exc), "field": exc.field}) from exc
    return report.to_dict()


# ---------------------------------------------------------------------------
# Routes: Reference
# ---------------------------------------------------------------------------


@app.get("/api/forces", response_model=list[ForceOut], tags=["Reference"],
         summary="List the forces with their polarity and description")
async def list_forces():
    return services.describe_forces()


@app.get("/api/readiness-bands", response_model=list[ReadinessBandOut], tags=["Reference"],
         summary="List readiness bands from highest to lowest")
async def list_readiness_bands():
    t = DEFAULT_THRESHOLDS
    bands = [{"label": label, "min_score": cutoff} for cutoff, label in t.readiness_bands]
    bands.append({"label": t.readiness_floor_label, "min_score": 0})
    return bands


@app.get("/api/health", tags=["Reference"], summary="Liveness probe")
async def health():
    return {"status": "ok"}


def run():
    import uvicorn
    uvicorn.run("readiness.app:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
