"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from nutrition_accuracy.adapters.supabase_correction_repository import (
    SupabaseCorrectionRepository,
)
from nutrition_accuracy.adapters.supabase_meal_count_repository import (
    SupabaseMealCountRepository,
)
from nutrition_accuracy.adapters.supabase_validation_failure_repository import (
    SupabaseValidationFailureRepository,
)
from nutrition_accuracy.config import Settings
from nutrition_accuracy.services.analytics import AnalyticsService
from nutrition_accuracy.services.corrections import CorrectionService
from nutrition_accuracy.services.ingestion import IngestionService
from nutrition_accuracy.services.validation import ValidationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    validation_service: ValidationService
    ingestion_service: IngestionService
    correction_service: CorrectionService
    analytics_service: AnalyticsService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    correction_repository = SupabaseCorrectionRepository(supabase_client)
    failure_repository = SupabaseValidationFailureRepository(supabase_client)
    meal_count_repository = SupabaseMealCountRepository(supabase_client)

    validation_service = ValidationService()
    ingestion_service = IngestionService(
        validation_service=validation_service,
        failure_repository=failure_repository,
    )
    correction_service = CorrectionService(
        repository=correction_repository,
        noise_floor=resolved_settings.correction_noise_floor,
    )
    analytics_service = AnalyticsService(
        corrections=correction_repository,
        meals=meal_count_repository,
    )

    return AppContainer(
        settings=resolved_settings,
        validation_service=validation_service,
        ingestion_service=ingestion_service,
        correction_service=correction_service,
        analytics_service=analytics_service,
    )
