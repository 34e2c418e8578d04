"""Tracking of user corrections to AI nutrition estimates."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from nutrition_accuracy.domain.corrections import (
    NUTRITION_FIELDS,
    CorrectionContext,
    CorrectionRecord,
)

_logger = logging.getLogger(__name__)


class InvalidCorrectionError(ValueError):
    """Raised when a correction is submitted without a target or new value."""


class CorrectionRepository(Protocol):
    """Persistence interface for the append-only correction log."""

    def append(self, record: CorrectionRecord) -> CorrectionRecord:
        """Persist a correction record and return it."""

    def list_for_user(
        self, user_id: UUID, since: datetime | None = None
    ) -> list[CorrectionRecord]:
        """Return a user's corrections, optionally only those after ``since``."""

    def list_for_meal(self, meal_id: UUID) -> list[CorrectionRecord]:
        """Return all corrections for a meal."""


def calculate_percent_error(
    ai_value: float | None, user_value: float | None
) -> float | None:
    """Return the signed percent error, normalized by the user's value.

    Positive means the model underestimated. ``None`` when either value is
    missing or the user's value is zero.
    """
    if ai_value is None or user_value is None or user_value == 0:
        return None
    return (user_value - ai_value) / user_value * 100.0


@dataclass
class CorrectionService:
    """Records corrections and keeps the log append-only."""

    repository: CorrectionRepository
    noise_floor: float = 0.01

    def record(  # noqa: PLR0913
        self,
        meal_id: UUID,
        user_id: UUID,
        field_name: str | None,
        ai_value: float | None,
        user_value: float | None,
        context: CorrectionContext | None = None,
    ) -> CorrectionRecord:
        """Append a correction for one field of one meal.

        Raises ``InvalidCorrectionError`` when ``field_name`` or ``user_value``
        is missing, or when ``field_name`` is not one of ``NUTRITION_FIELDS``.
        A missing ``ai_value`` is accepted and leaves the percent error unset.
        """
        if not field_name:
            raise InvalidCorrectionError("field_name is required")
        if field_name not in NUTRITION_FIELDS:
            raise InvalidCorrectionError(f"Unknown nutrition field: {field_name}")
        if user_value is None:
            raise InvalidCorrectionError(
                f"user_value is required to correct {field_name}"
            )

        context = context or CorrectionContext()
        location = context.location
        record = CorrectionRecord(
            id=uuid4(),
            meal_id=meal_id,
            user_id=user_id,
            field_name=field_name,
            ai_value=float(ai_value) if ai_value is not None else None,
            user_value=float(user_value),
            percent_error=calculate_percent_error(ai_value, user_value),
            confidence_score=context.confidence_score,
            location_type=location.place_type if location else None,
            location_place_name=location.place_name if location else None,
            location_is_restaurant=location.is_restaurant if location else None,
            location_is_home=location.is_home if location else None,
            meal_type=context.meal_type,
            meal_description=context.meal_description,
            meal_time=context.meal_time,
            ai_analyzed_at=context.ai_analyzed_at,
            corrected_at=datetime.now(tz=UTC),
        )
        stored = self.repository.append(record)
        _logger.info(
            "Tracked correction for meal %s - %s: AI=%s, User=%s, Error=%s%%",
            meal_id,
            field_name,
            record.ai_value,
            record.user_value,
            f"{record.percent_error:.2f}"
            if record.percent_error is not None
            else "N/A",
        )
        return stored

    def track_meal_edit(  # noqa: PLR0913
        self,
        meal_id: UUID,
        user_id: UUID,
        ai_values: Mapping[str, float | None],
        user_values: Mapping[str, float | None],
        context: CorrectionContext | None = None,
    ) -> list[CorrectionRecord]:
        """Record a correction for each edited field the model had estimated.

        Fields without an AI value, fields without a new value and edits
        within the noise floor are skipped.
        """
        records = []
        for field_name in NUTRITION_FIELDS:
            user_value = user_values.get(field_name)
            ai_value = ai_values.get(field_name)
            if user_value is None or ai_value is None:
                continue
            if abs(float(ai_value) - float(user_value)) <= self.noise_floor:
                continue
            records.append(
                self.record(
                    meal_id=meal_id,
                    user_id=user_id,
                    field_name=field_name,
                    ai_value=ai_value,
                    user_value=user_value,
                    context=context,
                )
            )
        return records

    def list_for_meal(self, meal_id: UUID) -> list[CorrectionRecord]:
        """Return corrections recorded for a meal."""
        return self.repository.list_for_meal(meal_id)
