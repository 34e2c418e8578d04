"""Aggregate views over the correction log."""

from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple
from uuid import UUID


@dataclass(frozen=True)
class OverallAccuracyStats:
    """Headline accuracy numbers for a scope."""

    total_corrections: int
    average_percent_error: float
    error_std_dev: float
    unique_meals_edited: int
    edit_rate: float


@dataclass(frozen=True)
class FieldAccuracy:
    """Accuracy for one nutrition field."""

    field_name: str
    average_percent_error: float
    correction_count: int
    min_error: float
    max_error: float


class LocationFieldKey(NamedTuple):
    """Grouping key for location-based accuracy."""

    location_type: str
    field_name: str


@dataclass(frozen=True)
class LocationFieldAccuracy:
    """Accuracy for one (location type, field) pair."""

    location_type: str
    field_name: str
    average_percent_error: float
    correction_count: int


@dataclass(frozen=True)
class ConfidenceCalibration:
    """Error observed within one confidence bucket (e.g. 0.7 covers 0.70-0.79)."""

    confidence_bucket: float
    average_percent_error: float
    correction_count: int


@dataclass(frozen=True)
class SignificantError:
    """A correction whose error magnitude crossed the triage threshold."""

    id: UUID
    meal_id: UUID
    field_name: str
    ai_value: float | None
    user_value: float | None
    percent_error: float
    confidence: float | None
    location_type: str | None
    meal_description: str | None
    corrected_at: datetime


@dataclass(frozen=True)
class FieldBias:
    """Mean signed error for a field."""

    field_name: str
    bias: float
    correction_count: int
    direction: str
