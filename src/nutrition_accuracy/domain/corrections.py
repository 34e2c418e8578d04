"""Domain models for user corrections of AI nutrition estimates."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

NUTRITION_FIELDS = (
    "calories",
    "protein_g",
    "fat_g",
    "saturated_fat_g",
    "carbohydrates_g",
    "fiber_g",
    "sugar_g",
    "sodium_mg",
    "cholesterol_mg",
)


@dataclass(frozen=True)
class LocationContext:
    """Where a meal was eaten, as resolved by the geocoding collaborator."""

    place_name: str | None = None
    place_type: str | None = None
    cuisine_type: str | None = None
    price_level: int | None = None
    is_restaurant: bool = False
    is_home: bool = False
    address: str | None = None
    is_known: bool = False

    @classmethod
    def unknown(cls) -> "LocationContext":
        return cls()

    @classmethod
    def home(cls, address: str | None = None) -> "LocationContext":
        return cls(
            place_name="Home",
            place_type="home",
            is_home=True,
            address=address,
            is_known=True,
        )

    @classmethod
    def restaurant(
        cls,
        name: str,
        cuisine_type: str | None = None,
        price_level: int | None = None,
        address: str | None = None,
    ) -> "LocationContext":
        return cls(
            place_name=name,
            place_type="restaurant",
            cuisine_type=cuisine_type,
            price_level=price_level,
            is_restaurant=True,
            address=address,
            is_known=True,
        )


@dataclass(frozen=True)
class CorrectionContext:
    """Meal context captured alongside a correction."""

    confidence_score: float | None = None
    location: LocationContext | None = None
    meal_type: str | None = None
    meal_description: str | None = None
    meal_time: datetime | None = None
    ai_analyzed_at: datetime | None = None


@dataclass(frozen=True)
class CorrectionRecord:
    """One human correction of one AI-estimated field.

    ``percent_error`` is ``(user_value - ai_value) / user_value * 100``.
    Positive means the model underestimated, negative means it overestimated.
    It is ``None`` when either value is missing or ``user_value`` is zero.
    """

    id: UUID
    meal_id: UUID
    user_id: UUID
    field_name: str
    ai_value: float | None
    user_value: float | None
    percent_error: float | None
    confidence_score: float | None
    location_type: str | None
    location_place_name: str | None
    location_is_restaurant: bool | None
    location_is_home: bool | None
    meal_type: str | None
    meal_description: str | None
    meal_time: datetime | None
    ai_analyzed_at: datetime | None
    corrected_at: datetime

    @property
    def absolute_error(self) -> float | None:
        if self.ai_value is None or self.user_value is None:
            return None
        return abs(self.user_value - self.ai_value)

    @property
    def absolute_percent_error(self) -> float | None:
        if self.percent_error is None:
            return None
        return abs(self.percent_error)
