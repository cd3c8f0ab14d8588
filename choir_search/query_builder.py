"""
Full-text search query construction.

Turns a free-text query plus optional equality filters into a pair of
parameterized Postgres statements: a ranked, paginated data query and a
count query sharing the same WHERE clause.

Important:
- Only static SQL fragments are concatenated. Column names come from the
  FILTER_COLUMNS whitelist; every user-supplied value is bound as a %s
  parameter, never interpolated.
- Filter values are not checked against the option sets here. Validation
  belongs to the caller (see validate_filters); an unknown value simply
  matches nothing.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .config import DEFAULT_PAGE_LIMIT, FILTER_OPTIONS, TEXT_SEARCH_CONFIG
from .errors import InvalidFilterError, ValidationError

# Filter key -> songs column. Order here fixes bind order.
FILTER_COLUMNS = {
    "language": "language",
    "voicing": "voicing",
    "difficulty": "difficulty",
    "season": "season",
    "theme": "theme",
    "source": "source",
}

FILTER_KEYS = tuple(FILTER_COLUMNS)

# The single logical document searched and ranked.
SEARCH_DOCUMENT = (
    "COALESCE(search_text, '') || ' ' || "
    "COALESCE(title, '') || ' ' || "
    "COALESCE(composer, '') || ' ' || "
    "COALESCE(description, '')"
)
SEARCH_VECTOR = f"to_tsvector('{TEXT_SEARCH_CONFIG}', {SEARCH_DOCUMENT})"
SEARCH_TSQUERY = f"plainto_tsquery('{TEXT_SEARCH_CONFIG}', %s)"


@dataclass
class SearchQuery:
    """Filter and pagination state for one search request."""

    text: str = ""
    filters: dict[str, str] = field(default_factory=dict)
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def term(self) -> str:
        """Trimmed free-text term ('' means browse, no ranking)."""
        return (self.text or "").strip()

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class BuiltSearch:
    """Executable statements for one SearchQuery."""

    where_clause: str
    where_params: list[Any]
    select_list: str
    select_params: list[Any]
    order_clause: str
    limit: int
    offset: int

    @property
    def data_sql(self) -> str:
        return (
            f"SELECT {self.select_list} FROM songs "
            f"{self.where_clause} "
            f"{self.order_clause} "
            "LIMIT %s OFFSET %s"
        )

    @property
    def data_params(self) -> list[Any]:
        return [*self.select_params, *self.where_params, self.limit, self.offset]

    @property
    def count_sql(self) -> str:
        return f"SELECT COUNT(*) AS total FROM songs {self.where_clause}"

    @property
    def count_params(self) -> list[Any]:
        return list(self.where_params)


def build_search(query: SearchQuery) -> BuiltSearch:
    """
    Build the data and count statements for a search.

    Args:
        query: SearchQuery with page >= 1 and limit >= 1

    Returns:
        BuiltSearch holding SQL text and parameters in bind order

    Raises:
        ValidationError: If page or limit is below 1
        InvalidFilterError: If a filter key is not a known column
    """
    if query.page < 1:
        raise ValidationError("page must be >= 1")
    if query.limit < 1:
        raise ValidationError("limit must be >= 1")

    conditions = ["is_active = TRUE"]
    params: list[Any] = []

    term = query.term
    if term:
        conditions.append(f"{SEARCH_VECTOR} @@ {SEARCH_TSQUERY}")
        params.append(term)

    for key, value in _present_filters(query.filters):
        conditions.append(f"{FILTER_COLUMNS[key]} = %s")
        params.append(value)

    if term:
        select_list = f"*, ts_rank({SEARCH_VECTOR}, {SEARCH_TSQUERY}) AS relevance_score"
        select_params = [term]
        order_clause = "ORDER BY relevance_score DESC, updated_at DESC, id ASC"
    else:
        select_list = "*"
        select_params = []
        order_clause = "ORDER BY updated_at DESC, id ASC"

    return BuiltSearch(
        where_clause="WHERE " + " AND ".join(conditions),
        where_params=params,
        select_list=select_list,
        select_params=select_params,
        order_clause=order_clause,
        limit=query.limit,
        offset=query.offset,
    )


def _present_filters(filters: Mapping[str, Optional[str]]) -> list[tuple[str, str]]:
    """Return (key, value) pairs for supplied filters in FILTER_COLUMNS order."""
    unknown = [key for key in filters if key not in FILTER_COLUMNS]
    if unknown:
        raise InvalidFilterError(unknown[0])

    return [
        (key, filters[key])
        for key in FILTER_COLUMNS
        if filters.get(key) not in (None, "")
    ]


def validate_filters(filters: Mapping[str, Optional[str]]) -> dict[str, str]:
    """
    Check filter values against the fixed option sets.

    Drops empty values so absent and blank filters behave the same.

    Raises:
        InvalidFilterError: On an unknown key or value
    """
    validated = {}
    for key, value in filters.items():
        if value in (None, ""):
            continue
        options = FILTER_OPTIONS.get(key)
        if options is None:
            raise InvalidFilterError(key)
        if value not in options:
            raise InvalidFilterError(key, value)
        validated[key] = value
    return validated
