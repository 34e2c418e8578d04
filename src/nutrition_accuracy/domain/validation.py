"""Domain models for plausibility validation of AI nutrition estimates."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class NutritionEstimate(BaseModel):
    """Nutrition values reported by the vision model for one meal.

    Every field is optional. ``None`` means the model did not report the
    value, which is not the same as zero.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    calories: int | None = None
    protein_g: float | None = None
    fat_g: float | None = None
    saturated_fat_g: float | None = None
    carbohydrates_g: float | None = None
    fiber_g: float | None = None
    sugar_g: float | None = None
    sodium_mg: float | None = None
    cholesterol_mg: float | None = None
    confidence: float | None = None

    @field_validator("calories", mode="before")
    @classmethod
    def truncate_calories(cls, value: object) -> object:
        """Accept fractional calories by dropping the fraction."""
        if isinstance(value, float) and math.isfinite(value):
            return int(value)
        return value


class Severity(Enum):
    """Severity of a validation issue."""

    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in an estimate."""

    severity: Severity
    field: str
    message: str
    actual_value: float | None = None
    suggested_fix: float | None = None

    @classmethod
    def error(cls, field_name: str, message: str) -> "ValidationIssue":
        return cls(severity=Severity.ERROR, field=field_name, message=message)

    @classmethod
    def warning(cls, field_name: str, message: str) -> "ValidationIssue":
        return cls(severity=Severity.WARNING, field=field_name, message=message)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation."""
        return {
            "severity": self.severity.value,
            "field": self.field,
            "message": self.message,
            "actual_value": self.actual_value,
            "suggested_fix": self.suggested_fix,
        }


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of validating one estimate.

    ``valid`` is derived from the issues: a report is valid exactly when it
    holds no ERROR issue. Warnings never affect validity.
    """

    issues: tuple[ValidationIssue, ...] = ()
    valid: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "valid",
            not any(issue.severity is Severity.ERROR for issue in self.issues),
        )

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return not self.valid

    @property
    def has_warnings(self) -> bool:
        return any(i.severity is Severity.WARNING for i in self.issues)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation."""
        return {
            "valid": self.valid,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class ValidationFailureRecord:
    """Stored trace of an estimate that failed validation."""

    id: UUID
    meal_id: UUID
    issue_count: int
    error_count: int
    warning_count: int
    issues: list[dict[str, object]]
    confidence_score: float | None
    raw_ai_response: str | None
    meal_description: str | None
    failed_at: datetime
