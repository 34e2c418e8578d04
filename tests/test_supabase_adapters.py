"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from nutrition_accuracy.adapters.supabase_correction_repository import (
    SupabaseCorrectionRepository,
)
from nutrition_accuracy.adapters.supabase_meal_count_repository import (
    SupabaseMealCountRepository,
)
from nutrition_accuracy.adapters.supabase_validation_failure_repository import (
    SupabaseValidationFailureRepository,
)
from nutrition_accuracy.domain.validation import ValidationFailureRecord
from nutrition_accuracy.services.analytics import corrections_in_range
from tests.conftest import make_correction


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None
    count: int | None = None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": []}
    )
    count: int | None = None
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    orders: list[tuple[str, bool]] = field(default_factory=list)
    ranges: list[tuple[int, int]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args, count: str | None = None) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.orders.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.ranges.append((start, end))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data, count=self.count)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _correction_row(user_id, meal_id, **overrides) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(uuid4()),
        "meal_id": str(meal_id),
        "user_id": str(user_id),
        "field_name": "calories",
        "ai_value": 500,
        "user_value": 650,
        "percent_error": 23.08,
        "confidence_score": 0.8,
        "location_type": "restaurant",
        "location_place_name": "Chipotle",
        "location_is_restaurant": True,
        "location_is_home": False,
        "meal_type": "lunch",
        "meal_description": "burrito bowl",
        "meal_time": None,
        "ai_analyzed_at": "2024-05-01T12:00:00+00:00",
        "corrected_at": "2024-05-01T12:30:00+00:00",
    }
    row.update(overrides)
    return row


def test_correction_repository_append_serializes_record() -> None:
    client = FakeSupabaseClient()
    table = client.table("ai_correction_logs")
    user_id = uuid4()
    meal_id = uuid4()
    record = make_correction(
        user_id=user_id,
        meal_id=meal_id,
        ai_value=500.0,
        user_value=650.0,
        percent_error=23.08,
        corrected_at=datetime(2024, 5, 1, 12, 30, tzinfo=UTC),
    )
    table.queue("insert", [_correction_row(user_id, meal_id, id=str(record.id))])

    stored = SupabaseCorrectionRepository(client).append(record)

    assert stored.id == record.id
    assert stored.ai_value == 500.0
    assert stored.ai_analyzed_at == datetime(2024, 5, 1, 12, tzinfo=UTC)
    assert stored.meal_time is None
    payload = table.last_payload
    assert isinstance(payload, dict)
    assert payload["user_id"] == str(user_id)
    assert payload["corrected_at"] == "2024-05-01T12:30:00+00:00"
    assert payload["ai_analyzed_at"] is None


def test_correction_repository_append_raises_without_data() -> None:
    client = FakeSupabaseClient()
    record = make_correction(user_id=uuid4())

    with pytest.raises(RuntimeError):
        SupabaseCorrectionRepository(client).append(record)


def test_correction_repository_lists_for_user_since() -> None:
    client = FakeSupabaseClient()
    table = client.table("ai_correction_logs")
    user_id = uuid4()
    table.queue(
        "select",
        [
            _correction_row(user_id, uuid4()),
            _correction_row(user_id, uuid4(), ai_value=None, percent_error=None),
        ],
    )
    since = datetime(2024, 4, 1, tzinfo=UTC)

    records = SupabaseCorrectionRepository(client).list_for_user(user_id, since=since)

    assert len(records) == 2
    assert records[0].location_place_name == "Chipotle"
    assert records[1].ai_value is None
    assert records[1].percent_error is None
    assert ("user_id", str(user_id)) in table.last_filters
    assert ("corrected_at", since.isoformat()) in table.last_filters
    assert ("corrected_at", False) in table.orders


def test_correction_repository_lists_for_meal() -> None:
    client = FakeSupabaseClient()
    table = client.table("ai_correction_logs")
    meal_id = uuid4()
    table.queue("select", [_correction_row(uuid4(), meal_id)])

    records = SupabaseCorrectionRepository(client).list_for_meal(meal_id)

    assert [r.meal_id for r in records] == [meal_id]
    assert table.last_filters == [("meal_id", str(meal_id))]


def test_validation_failure_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("validation_failures")
    meal_id = uuid4()
    failure = ValidationFailureRecord(
        id=uuid4(),
        meal_id=meal_id,
        issue_count=1,
        error_count=1,
        warning_count=0,
        issues=[{"severity": "ERROR", "field": "fiber_g"}],
        confidence_score=0.6,
        raw_ai_response="{}",
        meal_description="salad",
        failed_at=datetime(2024, 5, 2, tzinfo=UTC),
    )
    row = {
        "id": str(failure.id),
        "meal_id": str(meal_id),
        "issue_count": 1,
        "error_count": 1,
        "warning_count": 0,
        "issues": failure.issues,
        "confidence_score": 0.6,
        "raw_ai_response": "{}",
        "meal_description": "salad",
        "failed_at": "2024-05-02T00:00:00+00:00",
    }
    table.queue("insert", [row])
    table.queue("select", [row])
    table.queue("select", [{"meal_id": str(meal_id)}, {"meal_id": str(meal_id)}])
    repository = SupabaseValidationFailureRepository(client)
    since = datetime(2024, 5, 1, tzinfo=UTC)

    stored = repository.create_failure(failure)
    recent = repository.list_recent(since)
    count = repository.count_meals_with_failures(since)

    assert stored == failure
    assert recent == [failure]
    assert count == 1
    assert ("failed_at", True) in table.orders


def test_validation_failure_repository_raises_without_data() -> None:
    repository = SupabaseValidationFailureRepository(FakeSupabaseClient())
    failure = ValidationFailureRecord(
        id=uuid4(),
        meal_id=uuid4(),
        issue_count=0,
        error_count=0,
        warning_count=0,
        issues=[],
        confidence_score=None,
        raw_ai_response=None,
        meal_description=None,
        failed_at=datetime.now(tz=UTC),
    )

    with pytest.raises(RuntimeError):
        repository.create_failure(failure)


def test_meal_count_repository_uses_exact_count() -> None:
    client = FakeSupabaseClient()
    table = client.table("meals")
    table.count = 12
    user_id = uuid4()

    assert SupabaseMealCountRepository(client).count_meals(user_id) == 12
    assert table.last_filters == [("user_id", str(user_id))]


def test_meal_count_repository_defaults_to_zero() -> None:
    assert SupabaseMealCountRepository(FakeSupabaseClient()).count_meals(uuid4()) == 0


def test_correction_repository_reads_every_page() -> None:
    client = FakeSupabaseClient()
    table = client.table("ai_correction_logs")
    user_id = uuid4()
    table.queue("select", [_correction_row(user_id, uuid4()) for _ in range(2)])
    table.queue("select", [_correction_row(user_id, uuid4())])

    records = SupabaseCorrectionRepository(client, page_size=2).list_for_user(user_id)

    assert len(records) == 3
    assert table.ranges == [(0, 1), (2, 3)]


def test_correction_repository_stops_after_empty_page() -> None:
    client = FakeSupabaseClient()
    table = client.table("ai_correction_logs")
    meal_id = uuid4()
    table.queue("select", [_correction_row(uuid4(), meal_id) for _ in range(2)])
    table.queue("select", [])

    records = SupabaseCorrectionRepository(client, page_size=2).list_for_meal(meal_id)

    assert len(records) == 2
    assert table.ranges == [(0, 1), (2, 3)]


def test_failed_meal_count_spans_pages() -> None:
    client = FakeSupabaseClient()
    table = client.table("validation_failures")
    meal_a = str(uuid4())
    meal_b = str(uuid4())
    table.queue("select", [{"meal_id": meal_a}, {"meal_id": meal_a}])
    table.queue("select", [{"meal_id": meal_b}])
    repository = SupabaseValidationFailureRepository(client, page_size=2)

    count = repository.count_meals_with_failures(datetime(2024, 5, 1, tzinfo=UTC))

    assert count == 2
    assert table.ranges == [(0, 1), (2, 3)]


def test_rows_without_timestamp_get_aware_fallback() -> None:
    client = FakeSupabaseClient()
    table = client.table("ai_correction_logs")
    user_id = uuid4()
    table.queue("select", [_correction_row(user_id, uuid4(), corrected_at=None)])

    records = SupabaseCorrectionRepository(client).list_for_user(user_id)

    assert records[0].corrected_at.tzinfo is not None
    start = datetime(2024, 1, 1, tzinfo=UTC)
    assert corrections_in_range(records, start, datetime.now(tz=UTC)) == []
