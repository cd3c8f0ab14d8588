"""
Full-text search endpoint.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query

from choir_search.config import DEFAULT_PAGE_LIMIT
from choir_search.errors import SearchFailed
from choir_search.query_builder import SearchQuery, validate_filters
from choir_search.search import clamp_limit, search_songs

from ..deps import DatabaseDep
from ..errors import ApiError
from ..schemas.search import SearchResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/search", response_model=SearchResponse)
def search(
    db: DatabaseDep,
    q: str = Query("", description="Free-text query"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, description="Page size (capped at 100)"),
    language: Optional[str] = Query(None),
    voicing: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    season: Optional[str] = Query(None),
    theme: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
):
    """
    Search active songs.

    Empty `q` browses the catalog, most recently updated first. Filters
    combine with AND and must be values from the known option sets.
    """
    filters = validate_filters({
        "language": language,
        "voicing": voicing,
        "difficulty": difficulty,
        "season": season,
        "theme": theme,
        "source": source,
    })

    query = SearchQuery(text=q, filters=filters, page=page, limit=clamp_limit(limit))

    try:
        result = search_songs(db, query)
    except SearchFailed as e:
        logger.exception(f"Search error: {e.message}")
        raise ApiError(500, "Search failed")

    return result.to_dict()
