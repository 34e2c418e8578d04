"""Supabase repository for validation failures."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from supabase import Client

from nutrition_accuracy.adapters.supabase_pagination import (
    DEFAULT_PAGE_SIZE,
    select_all,
)
from nutrition_accuracy.domain.validation import ValidationFailureRecord
from nutrition_accuracy.services.ingestion import ValidationFailureRepository


@dataclass
class SupabaseValidationFailureRepository(ValidationFailureRepository):
    """Supabase-backed validation failure log."""

    client: Client
    page_size: int = DEFAULT_PAGE_SIZE

    def create_failure(
        self, failure: ValidationFailureRecord
    ) -> ValidationFailureRecord:
        """Insert a validation failure row."""
        response = (
            self.client.table("validation_failures")
            .insert(
                {
                    "id": str(failure.id),
                    "meal_id": str(failure.meal_id),
                    "issue_count": failure.issue_count,
                    "error_count": failure.error_count,
                    "warning_count": failure.warning_count,
                    "issues": failure.issues,
                    "confidence_score": failure.confidence_score,
                    "raw_ai_response": failure.raw_ai_response,
                    "meal_description": failure.meal_description,
                    "failed_at": failure.failed_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store validation failure")
        return _parse_row(response.data[0])

    def list_recent(self, since: datetime) -> list[ValidationFailureRecord]:
        """Return failures after ``since``, newest first."""

        def build_query() -> Any:
            return (
                self.client.table("validation_failures")
                .select(
                    "id, meal_id, issue_count, error_count, warning_count, issues, "
                    "confidence_score, raw_ai_response, meal_description, failed_at"
                )
                .gte("failed_at", since.isoformat())
                .order("failed_at", desc=True)
                .order("id", desc=False)
            )

        return [_parse_row(row) for row in select_all(build_query, self.page_size)]

    def count_meals_with_failures(self, since: datetime) -> int:
        """Return the number of distinct meals that failed after ``since``."""

        def build_query() -> Any:
            return (
                self.client.table("validation_failures")
                .select("meal_id")
                .gte("failed_at", since.isoformat())
                .order("id", desc=False)
            )

        rows = select_all(build_query, self.page_size)
        return len({row["meal_id"] for row in rows})


def _parse_row(row: dict[str, object]) -> ValidationFailureRecord:
    failed_at_raw = row.get("failed_at")
    failed_at = (
        datetime.fromisoformat(failed_at_raw)
        if isinstance(failed_at_raw, str) and failed_at_raw
        else datetime.min.replace(tzinfo=UTC)
    )
    confidence = row.get("confidence_score")
    return ValidationFailureRecord(
        id=UUID(str(row["id"])),
        meal_id=UUID(str(row["meal_id"])),
        issue_count=int(row.get("issue_count", 0)),
        error_count=int(row.get("error_count", 0)),
        warning_count=int(row.get("warning_count", 0)),
        issues=list(row.get("issues") or []),
        confidence_score=float(confidence) if confidence is not None else None,
        raw_ai_response=row.get("raw_ai_response"),
        meal_description=row.get("meal_description"),
        failed_at=failed_at,
    )
