"""
Catalog browsing endpoints: suggestions, filter options, examples.
"""

from typing import Optional

from fastapi import APIRouter, Query

from choir_search.catalog import (
    get_distinct_values,
    get_examples,
    get_filter_counts,
    get_suggestions,
)
from choir_search.config import DEFAULT_SUGGESTION_LIMIT, MAX_PAGE_LIMIT

from ..deps import DatabaseDep
from ..errors import database_errors
from ..schemas.catalog import ExamplesResponse, FilterCounts, Suggestion

router = APIRouter()


@router.get("/suggestions", response_model=list[Suggestion])
def suggestions(
    db: DatabaseDep,
    q: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_SUGGESTION_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
):
    """Autocomplete over title, composer and description."""
    with database_errors("Failed to get suggestions"):
        return get_suggestions(db, q, limit)


@router.get("/filters", response_model=FilterCounts)
def filter_options(db: DatabaseDep):
    """Distinct value counts per filterable column."""
    with database_errors("Failed to get filter options"):
        return get_filter_counts(db)


@router.get("/filters/{field}", response_model=list[str])
def filter_values(field: str, db: DatabaseDep):
    """Distinct values for one filterable column."""
    with database_errors("Failed to get filter values"):
        return get_distinct_values(db, field)


@router.get("/examples", response_model=ExamplesResponse)
def examples(db: DatabaseDep):
    """Random selection of recent songs for the front page."""
    with database_errors("Failed to get examples"):
        return ExamplesResponse(examples=get_examples(db))
