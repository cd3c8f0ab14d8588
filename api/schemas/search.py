"""
Search-related schemas.
"""

from .base import CamelModel
from .song import Song


class SearchResponse(CamelModel):
    """One page of search results."""
    results: list[Song]
    total: int
    page: int
    limit: int
    has_more: bool
