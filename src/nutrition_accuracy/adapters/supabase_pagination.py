"""Paged reads for PostgREST selects capped by the server's max rows."""

from collections.abc import Callable
from typing import Any

DEFAULT_PAGE_SIZE = 1000


def select_all(
    build_query: Callable[[], Any], page_size: int = DEFAULT_PAGE_SIZE
) -> list[dict[str, Any]]:
    """Run ``build_query`` page by page until a short page comes back.

    ``build_query`` must return a fresh, ordered query on every call.
    """
    rows: list[dict[str, Any]] = []
    start = 0
    while True:
        response = build_query().range(start, start + page_size - 1).execute()
        page = response.data or []
        rows.extend(page)
        if len(page) < page_size:
            return rows
        start += page_size
