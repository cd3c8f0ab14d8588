"""
Catalog browsing helpers: filter options, autocomplete, front page examples.
"""

import random
from typing import Any, Optional

from .config import (
    DEFAULT_SUGGESTION_LIMIT,
    EXAMPLE_COUNT,
    EXAMPLE_POOL,
    MIN_SUGGESTION_QUERY,
)
from .errors import InvalidFilterError
from .mapper import row_to_suggestion, rows_to_api
from .query_builder import FILTER_COLUMNS

# Columns exposed by get_distinct_values. Column names are interpolated, so
# this whitelist is the only thing standing between the caller and the SQL.
DISTINCT_VALUE_COLUMNS = (*FILTER_COLUMNS.values(), "period")


def get_filter_counts(db) -> dict[str, int]:
    """Count distinct non-null values per filter column over active songs."""
    row = db.fetch_one(
        """
        SELECT
            COUNT(DISTINCT language) AS languages,
            COUNT(DISTINCT voicing) AS voicings,
            COUNT(DISTINCT difficulty) AS difficulties,
            COUNT(DISTINCT season) AS seasons,
            COUNT(DISTINCT theme) AS themes,
            COUNT(DISTINCT source) AS sources
        FROM songs
        WHERE is_active = TRUE
        """
    )
    return {key: int(value or 0) for key, value in (row or {}).items()}


def get_distinct_values(db, field: str) -> list[str]:
    """
    Sorted distinct values of one filter column over active songs.

    Raises:
        InvalidFilterError: If field is not a filterable column
    """
    if field not in DISTINCT_VALUE_COLUMNS:
        raise InvalidFilterError(field)

    rows = db.fetch_all(
        f"""
        SELECT DISTINCT {field} AS value FROM songs
        WHERE is_active = TRUE AND {field} IS NOT NULL
        ORDER BY {field}
        """
    )
    return [row["value"] for row in rows]


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_suggestions(
    db,
    query: Optional[str],
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> list[dict[str, Any]]:
    """
    Lightweight autocomplete over title, composer and description.

    One suggestion per title/composer pair. Title prefix matches rank first,
    then composer prefix matches, then the rest, most recently updated first
    within each group.

    Returns:
        Suggestion dicts with a stable `id`; [] for queries under 2 chars
    """
    term = (query or "").strip()
    if len(term) < MIN_SUGGESTION_QUERY:
        return []

    contains = f"%{escape_like(term)}%"
    prefix = f"{escape_like(term)}%"

    rows = db.fetch_all(
        """
        SELECT title, composer, language, voicing, difficulty, season, theme
        FROM (
            SELECT DISTINCT ON (title, composer)
                title, composer, language, voicing, difficulty, season, theme,
                CASE
                    WHEN title ILIKE %s THEN 1
                    WHEN composer ILIKE %s THEN 2
                    ELSE 3
                END AS match_rank,
                updated_at
            FROM songs
            WHERE is_active = TRUE
              AND (title ILIKE %s OR composer ILIKE %s OR description ILIKE %s)
            ORDER BY title, composer, updated_at DESC
        ) matches
        ORDER BY match_rank, updated_at DESC
        LIMIT %s
        """,
        (prefix, prefix, contains, contains, contains, limit),
    )
    return [row_to_suggestion(row) for row in rows]


def get_examples(
    db,
    count: int = EXAMPLE_COUNT,
    pool: int = EXAMPLE_POOL,
) -> list[dict[str, Any]]:
    """
    Random showcase songs for the front page.

    Samples up to `count` songs from the `pool` most recently created active
    songs, so each call returns a different selection.
    """
    rows = db.fetch_all(
        """
        SELECT * FROM songs
        WHERE is_active = TRUE
        ORDER BY created_at DESC
        LIMIT %s
        """,
        (pool,),
    )
    chosen = random.sample(rows, min(count, len(rows)))
    return rows_to_api(chosen)
