"""
Catalog browsing schemas: suggestions, filter options, examples, health.
"""

from typing import Optional

from .base import CamelModel
from .song import Song


class Suggestion(CamelModel):
    """Autocomplete entry, one per title/composer pair."""
    id: str
    title: str
    composer: str
    language: Optional[str] = None
    voicing: Optional[str] = None
    difficulty: Optional[str] = None
    season: Optional[str] = None
    theme: Optional[str] = None


class FilterCounts(CamelModel):
    """Distinct value counts per filterable column."""
    languages: int
    voicings: int
    difficulties: int
    seasons: int
    themes: int
    sources: int


class ExamplesResponse(CamelModel):
    """Random showcase songs for the front page."""
    examples: list[Song]


class HealthResponse(CamelModel):
    """Liveness and database connectivity."""
    status: str
    database: str
