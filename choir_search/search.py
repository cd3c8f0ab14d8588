"""
Search execution.

Runs the count and data statements from the query builder and assembles one
page of results. Read-only; either both statements succeed or the search
fails as a whole.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .config import MAX_PAGE_LIMIT
from .errors import DatabaseError, SearchFailed
from .mapper import rows_to_api
from .query_builder import SearchQuery, build_search

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """One page of search output (songs already in API shape)."""

    results: list[dict[str, Any]]
    total: int
    page: int
    limit: int
    has_more: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": self.results,
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "hasMore": self.has_more,
        }


def clamp_limit(limit: int, maximum: int = MAX_PAGE_LIMIT) -> int:
    """Cap the page size; values below 1 are left for validation to reject."""
    return min(limit, maximum)


def compute_has_more(page: int, limit: int, returned: int, total: int) -> bool:
    """
    Whether another page exists after this one.

    A short page is always the last page, which keeps requests far past the
    end from reporting more rows.
    """
    return returned == limit and page * limit < total


def search_songs(db, query: SearchQuery) -> SearchResult:
    """
    Execute a search and return one page.

    Args:
        db: Database or Transaction
        query: Search text, filters and pagination

    Returns:
        SearchResult with mapped rows and total match count

    Raises:
        ValidationError: If pagination or filter keys are invalid
        SearchFailed: If either statement fails
    """
    built = build_search(query)

    try:
        count_row = db.fetch_one(built.count_sql, built.count_params)
        rows = db.fetch_all(built.data_sql, built.data_params)
    except DatabaseError as e:
        raise SearchFailed(str(e)) from e

    total = int(count_row["total"]) if count_row else 0

    logger.debug(
        f"Search q={query.term!r} filters={query.filters} page={query.page} "
        f"-> {len(rows)}/{total}"
    )

    return SearchResult(
        results=rows_to_api(rows),
        total=total,
        page=query.page,
        limit=query.limit,
        has_more=compute_has_more(query.page, query.limit, len(rows), total),
    )
