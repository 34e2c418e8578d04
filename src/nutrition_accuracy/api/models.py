"""Pydantic request models for the HTTP API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from nutrition_accuracy.domain.corrections import CorrectionContext, LocationContext
from nutrition_accuracy.domain.validation import NutritionEstimate


class LocationPayload(BaseModel):
    """Location context resolved by the geocoding collaborator."""

    place_name: str | None = None
    place_type: str | None = None
    cuisine_type: str | None = None
    price_level: int | None = None
    is_restaurant: bool = False
    is_home: bool = False
    address: str | None = None
    is_known: bool = False

    def to_domain(self) -> LocationContext:
        return LocationContext(**self.model_dump())


class CorrectionContextPayload(BaseModel):
    """Meal context captured with a correction."""

    confidence_score: float | None = None
    location: LocationPayload | None = None
    meal_type: str | None = None
    meal_description: str | None = None
    meal_time: datetime | None = None
    ai_analyzed_at: datetime | None = None

    def to_domain(self) -> CorrectionContext:
        return CorrectionContext(
            confidence_score=self.confidence_score,
            location=self.location.to_domain() if self.location else None,
            meal_type=self.meal_type,
            meal_description=self.meal_description,
            meal_time=self.meal_time,
            ai_analyzed_at=self.ai_analyzed_at,
        )


class AnalysisRequest(BaseModel):
    """AI analysis result submitted for a meal."""

    estimate: NutritionEstimate
    description: str | None = None
    raw_response: str | None = None


class CorrectionRequest(CorrectionContextPayload):
    """A single field correction."""

    user_id: UUID
    field_name: str | None = None
    ai_value: float | None = None
    user_value: float | None = None


class MealEditRequest(CorrectionContextPayload):
    """A meal edit comparing the values shown to the user with the new ones."""

    user_id: UUID
    ai_values: dict[str, float | None]
    user_values: dict[str, float | None]
