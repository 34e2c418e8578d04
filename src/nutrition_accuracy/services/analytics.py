"""Accuracy analytics over the correction log.

Every view is a pure fold over a snapshot of correction records. Records
without a percent error (or without a confidence score, for calibration) are
excluded from the statistic rather than counted as zero error.
"""

import math
import statistics
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from nutrition_accuracy.domain.analytics import (
    ConfidenceCalibration,
    FieldAccuracy,
    FieldBias,
    LocationFieldAccuracy,
    LocationFieldKey,
    OverallAccuracyStats,
    SignificantError,
)
from nutrition_accuracy.domain.corrections import CorrectionRecord
from nutrition_accuracy.services.corrections import CorrectionRepository
from nutrition_accuracy.services.windows import window_start

DEFAULT_SIGNIFICANT_ERROR_THRESHOLD = 50.0
CONFIDENCE_BUCKETS = 10


class MealCountRepository(Protocol):
    """Read access to the number of meals a user has logged."""

    def count_meals(self, user_id: UUID) -> int:
        """Return the number of meals owned by the user."""


def overall_accuracy_stats(
    records: Iterable[CorrectionRecord], total_meals: int
) -> OverallAccuracyStats:
    """Summarize error magnitude, spread and edit rate."""
    records = list(records)
    if not records:
        return OverallAccuracyStats(
            total_corrections=0,
            average_percent_error=0.0,
            error_std_dev=0.0,
            unique_meals_edited=0,
            edit_rate=0.0,
        )

    signed = [r.percent_error for r in _with_error(records)]
    average = statistics.fmean(abs(e) for e in signed) if signed else 0.0
    # Spread of the signed error: a large mean with a small spread is a
    # consistent one-directional bias.
    std_dev = statistics.pstdev(signed) if signed else 0.0
    unique_meals = len({r.meal_id for r in records})
    edit_rate = unique_meals * 100.0 / total_meals if total_meals > 0 else 0.0

    return OverallAccuracyStats(
        total_corrections=len(records),
        average_percent_error=average,
        error_std_dev=std_dev,
        unique_meals_edited=unique_meals,
        edit_rate=edit_rate,
    )


def accuracy_by_field(records: Iterable[CorrectionRecord]) -> list[FieldAccuracy]:
    """Return per-field accuracy, worst-estimated fields first."""
    groups: dict[str, list[float]] = {}
    for record in _with_error(records):
        groups.setdefault(record.field_name, []).append(record.percent_error)

    results = [
        FieldAccuracy(
            field_name=field_name,
            average_percent_error=statistics.fmean(abs(e) for e in errors),
            correction_count=len(errors),
            min_error=min(errors),
            max_error=max(errors),
        )
        for field_name, errors in groups.items()
    ]
    results.sort(key=lambda item: item.average_percent_error, reverse=True)
    return results


def accuracy_by_location(
    records: Iterable[CorrectionRecord],
) -> list[LocationFieldAccuracy]:
    """Return accuracy per (location type, field), worst first."""
    groups: dict[LocationFieldKey, list[float]] = {}
    for record in _with_error(records):
        if record.location_type is None:
            continue
        key = LocationFieldKey(record.location_type, record.field_name)
        groups.setdefault(key, []).append(abs(record.percent_error))

    results = [
        LocationFieldAccuracy(
            location_type=key.location_type,
            field_name=key.field_name,
            average_percent_error=statistics.fmean(errors),
            correction_count=len(errors),
        )
        for key, errors in groups.items()
    ]
    results.sort(key=lambda item: item.average_percent_error, reverse=True)
    return results


def confidence_bucket(confidence: float) -> float:
    """Return the lower bound of the tenth the confidence falls in."""
    return math.floor(confidence * CONFIDENCE_BUCKETS) / CONFIDENCE_BUCKETS


def confidence_calibration(
    records: Iterable[CorrectionRecord],
) -> list[ConfidenceCalibration]:
    """Return mean error per confidence bucket, lowest bucket first.

    A calibrated model shows error falling as the bucket rises.
    """
    groups: dict[float, list[float]] = {}
    for record in _with_error(records):
        confidence = record.confidence_score
        if confidence is None or not math.isfinite(confidence):
            continue
        groups.setdefault(confidence_bucket(confidence), []).append(
            abs(record.percent_error)
        )

    return [
        ConfidenceCalibration(
            confidence_bucket=bucket,
            average_percent_error=statistics.fmean(errors),
            correction_count=len(errors),
        )
        for bucket, errors in sorted(groups.items())
    ]


def significant_errors(
    records: Iterable[CorrectionRecord],
    threshold: float = DEFAULT_SIGNIFICANT_ERROR_THRESHOLD,
) -> list[SignificantError]:
    """Return corrections with ``|percent_error| >= threshold``, largest first."""
    results = [
        SignificantError(
            id=record.id,
            meal_id=record.meal_id,
            field_name=record.field_name,
            ai_value=record.ai_value,
            user_value=record.user_value,
            percent_error=record.percent_error,
            confidence=record.confidence_score,
            location_type=record.location_type,
            meal_description=record.meal_description,
            corrected_at=record.corrected_at,
        )
        for record in _with_error(records)
        if abs(record.percent_error) >= threshold
    ]
    results.sort(key=lambda item: abs(item.percent_error), reverse=True)
    return results


def systematic_bias(records: Iterable[CorrectionRecord]) -> list[FieldBias]:
    """Return the mean signed error per field, most biased first."""
    groups: dict[str, list[float]] = {}
    for record in _with_error(records):
        groups.setdefault(record.field_name, []).append(record.percent_error)

    results = []
    for field_name, errors in groups.items():
        bias = statistics.fmean(errors)
        if bias > 0:
            direction = "underestimates"
        elif bias < 0:
            direction = "overestimates"
        else:
            direction = "unbiased"
        results.append(
            FieldBias(
                field_name=field_name,
                bias=bias,
                correction_count=len(errors),
                direction=direction,
            )
        )
    results.sort(key=lambda item: abs(item.bias), reverse=True)
    return results


def corrections_in_range(
    records: Iterable[CorrectionRecord], start: datetime, end: datetime
) -> list[CorrectionRecord]:
    """Return corrections made strictly between ``start`` and ``end``."""
    return [r for r in records if start < r.corrected_at < end]


def format_accuracy_report(
    fields: list[FieldAccuracy],
    locations: list[LocationFieldAccuracy],
    biases: list[FieldBias],
) -> str:
    """Render a plain-text accuracy report."""
    lines = ["=== AI Accuracy Report ===", "", "Overall Accuracy by Field:"]
    lines.extend(
        f"  {item.field_name}: {item.average_percent_error:.1f}% error "
        f"(n={item.correction_count})"
        for item in fields
    )
    lines.extend(["", "Accuracy by Location:"])
    lines.extend(
        f"  {item.location_type} - {item.field_name}: "
        f"{item.average_percent_error:.1f}% error (n={item.correction_count})"
        for item in locations
    )
    lines.extend(["", "Systematic Bias Detection:"])
    lines.extend(
        f"  {item.field_name}: AI {item.direction} by {abs(item.bias):.1f}%"
        for item in biases
    )
    return "\n".join(lines) + "\n"


@dataclass
class AnalyticsService:
    """Computes accuracy views for a user from the correction log."""

    corrections: CorrectionRepository
    meals: MealCountRepository

    def get_overall_accuracy(
        self, user_id: UUID, days: int | None = None
    ) -> OverallAccuracyStats:
        """Return headline accuracy stats for the user."""
        records = self._snapshot(user_id, days)
        total_meals = self.meals.count_meals(user_id)
        return overall_accuracy_stats(records, total_meals)

    def get_accuracy_by_field(
        self, user_id: UUID, days: int | None = None
    ) -> list[FieldAccuracy]:
        """Return per-field accuracy for the user."""
        return accuracy_by_field(self._snapshot(user_id, days))

    def get_accuracy_by_location(
        self, user_id: UUID, days: int | None = None
    ) -> list[LocationFieldAccuracy]:
        """Return per-location accuracy for the user."""
        return accuracy_by_location(self._snapshot(user_id, days))

    def get_confidence_calibration(
        self, user_id: UUID, days: int | None = None
    ) -> list[ConfidenceCalibration]:
        """Return the confidence calibration curve for the user."""
        return confidence_calibration(self._snapshot(user_id, days))

    def get_significant_errors(
        self,
        user_id: UUID,
        threshold: float = DEFAULT_SIGNIFICANT_ERROR_THRESHOLD,
        days: int | None = None,
    ) -> list[SignificantError]:
        """Return the user's corrections above the error threshold."""
        return significant_errors(self._snapshot(user_id, days), threshold)

    def get_systematic_bias(
        self, user_id: UUID, days: int | None = None
    ) -> list[FieldBias]:
        """Return per-field signed bias for the user."""
        return systematic_bias(self._snapshot(user_id, days))

    def get_corrections_between(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[CorrectionRecord]:
        """Return the user's corrections inside a time window."""
        return corrections_in_range(
            self.corrections.list_for_user(user_id), start, end
        )

    def build_report(self, user_id: UUID, days: int | None = None) -> str:
        """Return a plain-text accuracy report for the user."""
        records = self._snapshot(user_id, days)
        return format_accuracy_report(
            accuracy_by_field(records),
            accuracy_by_location(records),
            systematic_bias(records),
        )

    def _snapshot(self, user_id: UUID, days: int | None) -> list[CorrectionRecord]:
        since = window_start(days) if days is not None else None
        return list(self.corrections.list_for_user(user_id, since=since))


def _with_error(records: Iterable[CorrectionRecord]) -> list[CorrectionRecord]:
    return [
        r
        for r in records
        if r.percent_error is not None and math.isfinite(r.percent_error)
    ]
