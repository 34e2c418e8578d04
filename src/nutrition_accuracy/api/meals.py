"""Endpoints used by the ingestion and meal-editing collaborators."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from nutrition_accuracy.api.models import (
    AnalysisRequest,
    CorrectionRequest,
    MealEditRequest,
)
from nutrition_accuracy.api.security import require_admin
from nutrition_accuracy.domain.validation import NutritionEstimate
from nutrition_accuracy.services.corrections import InvalidCorrectionError
from nutrition_accuracy.services.windows import MAX_WINDOW_DAYS

if TYPE_CHECKING:
    from nutrition_accuracy.containers import AppContainer

router = APIRouter(tags=["meals"], dependencies=[Depends(require_admin)])


@router.post("/validation")
async def validate_estimate(
    estimate: NutritionEstimate, request: Request
) -> dict[str, object]:
    """Run the plausibility checks over an estimate."""
    container: AppContainer = request.app.state.container
    return container.validation_service.validate(estimate).to_dict()


@router.post("/meals/{meal_id}/analysis")
async def review_analysis(
    meal_id: UUID, payload: AnalysisRequest, request: Request
) -> dict[str, object]:
    """Validate an analysis and return the status to store on the meal."""
    container: AppContainer = request.app.state.container
    review = container.ingestion_service.review_analysis(
        meal_id,
        payload.estimate,
        description=payload.description,
        raw_response=payload.raw_response,
    )
    return {
        "meal_id": str(review.meal_id),
        "status": review.status,
        "report": review.report.to_dict(),
        "failure_id": str(review.failure.id) if review.failure else None,
    }


@router.post("/meals/{meal_id}/corrections", status_code=status.HTTP_201_CREATED)
async def record_correction(
    meal_id: UUID, payload: CorrectionRequest, request: Request
) -> dict[str, object]:
    """Record one user correction."""
    container: AppContainer = request.app.state.container
    try:
        record = container.correction_service.record(
            meal_id=meal_id,
            user_id=payload.user_id,
            field_name=payload.field_name,
            ai_value=payload.ai_value,
            user_value=payload.user_value,
            context=payload.to_domain(),
        )
    except InvalidCorrectionError as exc:
        raise HTTPException(
            status_code=422, detail=str(exc)
        ) from exc
    return asdict(record)


@router.post("/meals/{meal_id}/edits")
async def record_meal_edit(
    meal_id: UUID, payload: MealEditRequest, request: Request
) -> dict[str, object]:
    """Record corrections for every estimated field the user changed."""
    container: AppContainer = request.app.state.container
    records = container.correction_service.track_meal_edit(
        meal_id=meal_id,
        user_id=payload.user_id,
        ai_values=payload.ai_values,
        user_values=payload.user_values,
        context=payload.to_domain(),
    )
    return {"corrections": [asdict(record) for record in records]}


@router.get("/meals/{meal_id}/corrections")
async def list_meal_corrections(meal_id: UUID, request: Request) -> dict[str, object]:
    """Return corrections recorded for a meal."""
    container: AppContainer = request.app.state.container
    records = container.correction_service.list_for_meal(meal_id)
    return {"corrections": [asdict(record) for record in records]}


@router.get("/validation/failures")
async def recent_failures(
    request: Request, days: int = Query(default=7, ge=1, le=MAX_WINDOW_DAYS)
) -> dict[str, object]:
    """Return recent validation failures."""
    container: AppContainer = request.app.state.container
    failures = container.ingestion_service.recent_failures(days)
    return {"failures": [asdict(failure) for failure in failures]}
