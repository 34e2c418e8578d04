"""Gate applied to AI analysis results before they are stored on a meal."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from nutrition_accuracy.domain.validation import (
    NutritionEstimate,
    ValidationFailureRecord,
    ValidationReport,
)
from nutrition_accuracy.services.validation import ValidationService
from nutrition_accuracy.services.windows import window_start

STATUS_COMPLETED = "COMPLETED"
STATUS_FLAGGED = "FLAGGED"

_logger = logging.getLogger(__name__)


class ValidationFailureRepository(Protocol):
    """Persistence interface for validation failures."""

    def create_failure(
        self, failure: ValidationFailureRecord
    ) -> ValidationFailureRecord:
        """Persist a validation failure and return it."""

    def list_recent(self, since: datetime) -> list[ValidationFailureRecord]:
        """Return failures recorded after ``since``, newest first."""

    def count_meals_with_failures(self, since: datetime) -> int:
        """Return the number of distinct meals that failed after ``since``."""


@dataclass(frozen=True)
class AnalysisReview:
    """What the meal collaborator should store for an analysis."""

    meal_id: UUID
    status: str
    report: ValidationReport
    failure: ValidationFailureRecord | None = None


@dataclass
class IngestionService:
    """Validates AI output and records failures for later analysis."""

    validation_service: ValidationService
    failure_repository: ValidationFailureRepository

    def review_analysis(
        self,
        meal_id: UUID,
        estimate: NutritionEstimate,
        description: str | None = None,
        raw_response: str | None = None,
    ) -> AnalysisReview:
        """Validate an estimate and decide how the meal should be stored.

        Invalid estimates are kept but flagged, never dropped.
        """
        report = self.validation_service.validate(estimate)
        if report.valid:
            for warning in report.warnings:
                _logger.warning(
                    "AI validation warning for meal %s: %s - %s",
                    meal_id,
                    warning.field,
                    warning.message,
                )
            return AnalysisReview(
                meal_id=meal_id, status=STATUS_COMPLETED, report=report
            )

        _logger.error(
            "AI returned invalid data for meal %s: %s errors, %s warnings",
            meal_id,
            len(report.errors),
            len(report.warnings),
        )
        for error in report.errors:
            _logger.error("  ERROR - %s: %s", error.field, error.message)

        failure = self.failure_repository.create_failure(
            ValidationFailureRecord(
                id=uuid4(),
                meal_id=meal_id,
                issue_count=len(report.issues),
                error_count=len(report.errors),
                warning_count=len(report.warnings),
                issues=[issue.to_dict() for issue in report.issues],
                confidence_score=estimate.confidence,
                raw_ai_response=raw_response,
                meal_description=description,
                failed_at=datetime.now(tz=UTC),
            )
        )
        _logger.warning("Meal %s flagged due to validation errors", meal_id)
        return AnalysisReview(
            meal_id=meal_id, status=STATUS_FLAGGED, report=report, failure=failure
        )

    def recent_failures(self, days: int = 7) -> list[ValidationFailureRecord]:
        """Return failures from the last ``days`` days."""
        return self.failure_repository.list_recent(window_start(days))

    def failure_rate(self, total_meals: int, days: int = 7) -> float:
        """Return the percent of meals that failed validation recently."""
        if total_meals <= 0:
            return 0.0
        failed = self.failure_repository.count_meals_with_failures(
            window_start(days)
        )
        return failed * 100.0 / total_meals
