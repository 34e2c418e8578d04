"""Supabase repository for the AI correction log."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from supabase import Client

from nutrition_accuracy.adapters.supabase_pagination import (
    DEFAULT_PAGE_SIZE,
    select_all,
)
from nutrition_accuracy.domain.corrections import CorrectionRecord
from nutrition_accuracy.services.corrections import CorrectionRepository

_COLUMNS = (
    "id, meal_id, user_id, field_name, ai_value, user_value, percent_error, "
    "confidence_score, location_type, location_place_name, location_is_restaurant, "
    "location_is_home, meal_type, meal_description, meal_time, ai_analyzed_at, "
    "corrected_at"
)


@dataclass
class SupabaseCorrectionRepository(CorrectionRepository):
    """Supabase implementation of the append-only correction log."""

    client: Client
    page_size: int = DEFAULT_PAGE_SIZE

    def append(self, record: CorrectionRecord) -> CorrectionRecord:
        """Insert a correction row."""
        response = (
            self.client.table("ai_correction_logs")
            .insert(_serialize(record))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store correction log")
        return _parse_row(response.data[0])

    def list_for_user(
        self, user_id: UUID, since: datetime | None = None
    ) -> list[CorrectionRecord]:
        """Return a user's corrections in correction order."""

        def build_query() -> Any:
            query = (
                self.client.table("ai_correction_logs")
                .select(_COLUMNS)
                .eq("user_id", str(user_id))
            )
            if since is not None:
                query = query.gte("corrected_at", since.isoformat())
            return query.order("corrected_at", desc=False).order("id", desc=False)

        return [_parse_row(row) for row in select_all(build_query, self.page_size)]

    def list_for_meal(self, meal_id: UUID) -> list[CorrectionRecord]:
        """Return all corrections for a meal."""

        def build_query() -> Any:
            return (
                self.client.table("ai_correction_logs")
                .select(_COLUMNS)
                .eq("meal_id", str(meal_id))
                .order("corrected_at", desc=False)
                .order("id", desc=False)
            )

        return [_parse_row(row) for row in select_all(build_query, self.page_size)]


def _serialize(record: CorrectionRecord) -> dict[str, object]:
    return {
        "id": str(record.id),
        "meal_id": str(record.meal_id),
        "user_id": str(record.user_id),
        "field_name": record.field_name,
        "ai_value": record.ai_value,
        "user_value": record.user_value,
        "percent_error": record.percent_error,
        "confidence_score": record.confidence_score,
        "location_type": record.location_type,
        "location_place_name": record.location_place_name,
        "location_is_restaurant": record.location_is_restaurant,
        "location_is_home": record.location_is_home,
        "meal_type": record.meal_type,
        "meal_description": record.meal_description,
        "meal_time": _isoformat(record.meal_time),
        "ai_analyzed_at": _isoformat(record.ai_analyzed_at),
        "corrected_at": record.corrected_at.isoformat(),
    }


def _parse_row(row: dict[str, object]) -> CorrectionRecord:
    return CorrectionRecord(
        id=UUID(str(row["id"])),
        meal_id=UUID(str(row["meal_id"])),
        user_id=UUID(str(row["user_id"])),
        field_name=str(row["field_name"]),
        ai_value=_optional_float(row.get("ai_value")),
        user_value=_optional_float(row.get("user_value")),
        percent_error=_optional_float(row.get("percent_error")),
        confidence_score=_optional_float(row.get("confidence_score")),
        location_type=row.get("location_type"),
        location_place_name=row.get("location_place_name"),
        location_is_restaurant=row.get("location_is_restaurant"),
        location_is_home=row.get("location_is_home"),
        meal_type=row.get("meal_type"),
        meal_description=row.get("meal_description"),
        meal_time=_optional_datetime(row.get("meal_time")),
        ai_analyzed_at=_optional_datetime(row.get("ai_analyzed_at")),
        corrected_at=_optional_datetime(row.get("corrected_at"))
        or datetime.min.replace(tzinfo=UTC),
    )


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None


def _optional_datetime(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
