"""AI accuracy analytics endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from nutrition_accuracy.api.security import require_admin
from nutrition_accuracy.services.windows import MAX_WINDOW_DAYS

if TYPE_CHECKING:
    from nutrition_accuracy.containers import AppContainer

router = APIRouter(
    prefix="/analytics/ai",
    tags=["analytics"],
    dependencies=[Depends(require_admin)],
)


@router.get("/{user_id}/accuracy")
async def overall_accuracy(
    user_id: UUID,
    request: Request,
    days: int | None = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
) -> dict[str, object]:
    """Return overall accuracy stats for a user."""
    container: AppContainer = request.app.state.container
    return asdict(container.analytics_service.get_overall_accuracy(user_id, days))


@router.get("/{user_id}/accuracy-by-field")
async def accuracy_by_field(
    user_id: UUID,
    request: Request,
    days: int | None = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
) -> dict[str, object]:
    """Return accuracy broken down by nutrition field."""
    container: AppContainer = request.app.state.container
    stats = container.analytics_service.get_accuracy_by_field(user_id, days)
    return {"fields": [asdict(item) for item in stats]}


@router.get("/{user_id}/accuracy-by-location")
async def accuracy_by_location(
    user_id: UUID,
    request: Request,
    days: int | None = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
) -> dict[str, object]:
    """Return accuracy broken down by location type and field."""
    container: AppContainer = request.app.state.container
    stats = container.analytics_service.get_accuracy_by_location(user_id, days)
    return {"locations": [asdict(item) for item in stats]}


@router.get("/{user_id}/confidence-calibration")
async def confidence_calibration(
    user_id: UUID,
    request: Request,
    days: int | None = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
) -> dict[str, object]:
    """Return average error per confidence bucket."""
    container: AppContainer = request.app.state.container
    stats = container.analytics_service.get_confidence_calibration(user_id, days)
    return {"buckets": [asdict(item) for item in stats]}


@router.get("/{user_id}/significant-errors")
async def significant_errors(
    user_id: UUID,
    request: Request,
    threshold: float | None = Query(default=None, ge=0),
    days: int | None = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
) -> dict[str, object]:
    """Return corrections whose error exceeds the threshold."""
    container: AppContainer = request.app.state.container
    resolved = (
        threshold
        if threshold is not None
        else container.settings.significant_error_threshold
    )
    errors = container.analytics_service.get_significant_errors(
        user_id, threshold=resolved, days=days
    )
    return {"threshold": resolved, "errors": [asdict(item) for item in errors]}


@router.get("/{user_id}/bias")
async def systematic_bias(
    user_id: UUID,
    request: Request,
    days: int | None = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
) -> dict[str, object]:
    """Return per-field signed bias."""
    container: AppContainer = request.app.state.container
    biases = container.analytics_service.get_systematic_bias(user_id, days)
    return {"fields": [asdict(item) for item in biases]}


@router.get("/{user_id}/report", response_class=PlainTextResponse)
async def accuracy_report(
    user_id: UUID,
    request: Request,
    days: int | None = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
) -> PlainTextResponse:
    """Return a plain-text accuracy report."""
    container: AppContainer = request.app.state.container
    return PlainTextResponse(container.analytics_service.build_report(user_id, days))
