"""Plausibility checks for AI nutrition estimates.

Each check encodes one nutritional invariant and returns the issues it found.
A check silently contributes nothing when an input it needs is missing.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

from nutrition_accuracy.domain.validation import (
    NutritionEstimate,
    Severity,
    ValidationIssue,
    ValidationReport,
)

# Atwater factors, kcal per gram
PROTEIN_KCAL_PER_G = 4.0
FAT_KCAL_PER_G = 9.0
CARB_KCAL_PER_G = 4.0

ENERGY_MISMATCH_THRESHOLD_PERCENT = 20.0
MACRO_RATIO_TOLERANCE = 1.10

HIGH_CALORIE_THRESHOLD = 2500
HIGH_SODIUM_THRESHOLD_MG = 3000.0
HIGH_FIBER_THRESHOLD_G = 30.0
HIGH_PROTEIN_THRESHOLD_G = 150.0

_logger = logging.getLogger(__name__)

Check = Callable[[NutritionEstimate], list[ValidationIssue]]


def check_energy_balance(estimate: NutritionEstimate) -> list[ValidationIssue]:
    """Compare stated calories with calories derived from the macros."""
    calories = estimate.calories
    protein = estimate.protein_g
    fat = estimate.fat_g
    carbs = estimate.carbohydrates_g
    if calories is None or protein is None or fat is None or carbs is None:
        return []

    calculated = (
        protein * PROTEIN_KCAL_PER_G + fat * FAT_KCAL_PER_G + carbs * CARB_KCAL_PER_G
    )
    if calories == 0:
        percent_diff = math.inf if calculated != 0 else 0.0
    else:
        percent_diff = abs(calories - calculated) / calories * 100.0

    if not percent_diff > ENERGY_MISMATCH_THRESHOLD_PERCENT:
        return []
    return [
        ValidationIssue(
            severity=Severity.WARNING,
            field="calories",
            message=(
                f"Energy mismatch: claimed {calories} cal but macros calculate to "
                f"{calculated:.0f} cal ({percent_diff:.1f}% difference)"
            ),
            actual_value=float(calories),
            suggested_fix=calculated,
        )
    ]


def check_impossible_ratios(estimate: NutritionEstimate) -> list[ValidationIssue]:
    """Flag any single macro that supplies more energy than the whole meal."""
    calories = estimate.calories
    if calories is None:
        return []

    limit = calories * MACRO_RATIO_TOLERANCE
    macros = (
        ("protein_g", "Protein", estimate.protein_g, PROTEIN_KCAL_PER_G),
        ("fat_g", "Fat", estimate.fat_g, FAT_KCAL_PER_G),
        ("carbohydrates_g", "Carbs", estimate.carbohydrates_g, CARB_KCAL_PER_G),
    )
    issues = []
    for field_name, label, grams, factor in macros:
        if grams is None:
            continue
        macro_calories = grams * factor
        if macro_calories > limit:
            issues.append(
                ValidationIssue.error(
                    field_name,
                    f"{label} alone provides {macro_calories:.0f} cal, "
                    f"which exceeds total calories ({calories} cal)",
                )
            )
    return issues


def check_fiber_vs_carbs(estimate: NutritionEstimate) -> list[ValidationIssue]:
    """Fiber is a carbohydrate, so it cannot exceed total carbohydrates."""
    return _check_subset(
        estimate.fiber_g,
        estimate.carbohydrates_g,
        field_name="fiber_g",
        part_label="Fiber",
        whole_label="total carbohydrates",
    )


def check_sugar_vs_carbs(estimate: NutritionEstimate) -> list[ValidationIssue]:
    """Sugar is a carbohydrate, so it cannot exceed total carbohydrates."""
    return _check_subset(
        estimate.sugar_g,
        estimate.carbohydrates_g,
        field_name="sugar_g",
        part_label="Sugar",
        whole_label="total carbohydrates",
    )


def check_saturated_fat_vs_fat(estimate: NutritionEstimate) -> list[ValidationIssue]:
    """Saturated fat cannot exceed total fat."""
    return _check_subset(
        estimate.saturated_fat_g,
        estimate.fat_g,
        field_name="saturated_fat_g",
        part_label="Saturated fat",
        whole_label="total fat",
    )


def check_outliers(estimate: NutritionEstimate) -> list[ValidationIssue]:
    """Warn about values that are possible but unusual for a single meal."""
    issues = []
    if estimate.calories is not None and estimate.calories > HIGH_CALORIE_THRESHOLD:
        issues.append(
            ValidationIssue.warning(
                "calories",
                f"Very high calorie count ({estimate.calories} cal) - verify this "
                "is a large meal or multiple servings",
            )
        )
    if estimate.sodium_mg is not None and estimate.sodium_mg > HIGH_SODIUM_THRESHOLD_MG:
        issues.append(
            ValidationIssue.warning(
                "sodium_mg",
                f"Very high sodium ({estimate.sodium_mg:.0f} mg) - typical of "
                "restaurant or heavily processed food",
            )
        )
    if estimate.fiber_g is not None and estimate.fiber_g > HIGH_FIBER_THRESHOLD_G:
        issues.append(
            ValidationIssue.warning(
                "fiber_g",
                f"Very high fiber ({estimate.fiber_g:.1f}g) - verify this is a "
                "large vegetable-heavy meal",
            )
        )
    if estimate.protein_g is not None and estimate.protein_g > HIGH_PROTEIN_THRESHOLD_G:
        issues.append(
            ValidationIssue.warning(
                "protein_g",
                f"Very high protein ({estimate.protein_g:.1f}g) - verify this is "
                "accurate",
            )
        )
    return issues


DEFAULT_CHECKS: tuple[Check, ...] = (
    check_energy_balance,
    check_impossible_ratios,
    check_fiber_vs_carbs,
    check_sugar_vs_carbs,
    check_saturated_fat_vs_fat,
    check_outliers,
)


@dataclass
class ValidationService:
    """Runs every plausibility check over an estimate."""

    checks: tuple[Check, ...] = DEFAULT_CHECKS

    def validate(self, estimate: NutritionEstimate) -> ValidationReport:
        """Return a report with the issues of all checks, in check order."""
        issues: list[ValidationIssue] = []
        for check in self.checks:
            issues.extend(check(estimate))
        report = ValidationReport(issues=tuple(issues))

        if not report.valid:
            _logger.warning(
                "AI validation failed with %s errors and %s warnings",
                len(report.errors),
                len(report.warnings),
            )
        elif report.has_warnings:
            _logger.info(
                "AI validation passed with %s warnings", len(report.warnings)
            )
        return report


def _check_subset(
    part: float | None,
    whole: float | None,
    *,
    field_name: str,
    part_label: str,
    whole_label: str,
) -> list[ValidationIssue]:
    if part is None or whole is None or not part > whole:
        return []
    return [
        ValidationIssue.error(
            field_name,
            f"{part_label} ({part:.1f}g) cannot exceed {whole_label} ({whole:.1f}g)",
        )
    ]
