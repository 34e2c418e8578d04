"""Supabase repository for meal counts."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_accuracy.services.analytics import MealCountRepository


@dataclass
class SupabaseMealCountRepository(MealCountRepository):
    """Counts meals stored by the meal collaborator."""

    client: Client

    def count_meals(self, user_id: UUID) -> int:
        """Return the number of meals owned by the user."""
        response = (
            self.client.table("meals")
            .select("id", count="exact")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        return int(response.count or 0)
