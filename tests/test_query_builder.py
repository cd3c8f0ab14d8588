"""
Tests for choir_search.query_builder.

These tests verify:
- WHERE clause composition (active-only, text match, filters in fixed order)
- Ranked vs. browse ordering
- Parameter bind order for the data and count statements
- Rejection of unknown filter keys and invalid pagination
"""

from __future__ import annotations

import pytest

from choir_search.errors import InvalidFilterError, ValidationError
from choir_search.query_builder import (
    FILTER_KEYS,
    SEARCH_TSQUERY,
    SEARCH_VECTOR,
    SearchQuery,
    build_search,
    validate_filters,
)


# =============================================================================
# WHERE clause
# =============================================================================


class TestWhereClause:
    def test_browse_without_filters_only_restricts_to_active(self):
        built = build_search(SearchQuery())

        assert built.where_clause == "WHERE is_active = TRUE"
        assert built.where_params == []
        assert built.count_sql == "SELECT COUNT(*) AS total FROM songs WHERE is_active = TRUE"

    def test_text_adds_full_text_match(self):
        built = build_search(SearchQuery(text="ave maria"))

        assert built.where_clause == (
            f"WHERE is_active = TRUE AND {SEARCH_VECTOR} @@ {SEARCH_TSQUERY}"
        )
        assert built.where_params == ["ave maria"]

    def test_text_is_trimmed(self):
        built = build_search(SearchQuery(text="  gloria  "))

        assert built.where_params == ["gloria"]

    def test_whitespace_only_text_is_browse(self):
        built = build_search(SearchQuery(text="   "))

        assert "@@" not in built.where_clause
        assert built.select_list == "*"

    def test_filters_follow_fixed_column_order(self):
        # Supplied in reverse order on purpose
        filters = {"season": "Christmas", "voicing": "SSAA", "language": "Latin"}
        built = build_search(SearchQuery(filters=filters))

        assert built.where_clause == (
            "WHERE is_active = TRUE AND language = %s AND voicing = %s AND season = %s"
        )
        assert built.where_params == ["Latin", "SSAA", "Christmas"]

    def test_empty_and_none_filters_are_ignored(self):
        built = build_search(SearchQuery(filters={"language": "", "voicing": None}))

        assert built.where_clause == "WHERE is_active = TRUE"

    def test_filter_values_are_never_interpolated(self):
        hostile = "Latin'; DROP TABLE songs; --"
        built = build_search(SearchQuery(text=hostile, filters={"language": hostile}))

        assert hostile not in built.data_sql
        assert hostile not in built.count_sql
        assert built.where_params == [hostile, hostile]

    def test_all_six_filters(self):
        filters = {key: f"value-{key}" for key in FILTER_KEYS}
        built = build_search(SearchQuery(filters=filters))

        assert built.where_params == [f"value-{key}" for key in FILTER_KEYS]
        assert built.where_clause.count("= %s") == 6

    def test_unknown_filter_key_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            build_search(SearchQuery(filters={"composer": "Bach"}))


# =============================================================================
# Ordering and selection
# =============================================================================


class TestOrdering:
    def test_text_query_ranks_by_relevance(self):
        built = build_search(SearchQuery(text="gloria"))

        assert "ts_rank(" in built.select_list
        assert built.select_list.endswith("AS relevance_score")
        assert built.order_clause == "ORDER BY relevance_score DESC, updated_at DESC, id ASC"

    def test_browse_orders_by_recency(self):
        built = build_search(SearchQuery())

        assert built.select_list == "*"
        assert "relevance_score" not in built.data_sql
        assert built.order_clause == "ORDER BY updated_at DESC, id ASC"

    def test_same_document_for_match_and_rank(self):
        built = build_search(SearchQuery(text="gloria"))

        assert built.data_sql.count(SEARCH_VECTOR) == 2


# =============================================================================
# Pagination and parameter order
# =============================================================================


class TestParameters:
    def test_data_params_bind_order_with_text_and_filters(self):
        query = SearchQuery(
            text="ave maria",
            filters={"voicing": "SSAA", "language": "Latin"},
            page=3,
            limit=10,
        )
        built = build_search(query)

        # rank term, match term, filters, limit, offset
        assert built.data_params == ["ave maria", "ave maria", "Latin", "SSAA", 10, 20]
        assert built.count_params == ["ave maria", "Latin", "SSAA"]

    def test_placeholder_count_matches_params(self):
        built = build_search(
            SearchQuery(text="x", filters={"theme": "Sacred", "source": "IMSLP"})
        )

        assert built.data_sql.count("%s") == len(built.data_params)
        assert built.count_sql.count("%s") == len(built.count_params)

    def test_first_page_has_zero_offset(self):
        built = build_search(SearchQuery(page=1, limit=20))

        assert built.data_sql.endswith("LIMIT %s OFFSET %s")
        assert built.data_params[-2:] == [20, 0]

    @pytest.mark.parametrize("page,limit", [(0, 20), (-1, 20), (1, 0)])
    def test_invalid_pagination_is_rejected(self, page, limit):
        with pytest.raises(ValidationError):
            build_search(SearchQuery(page=page, limit=limit))


# =============================================================================
# Filter validation
# =============================================================================


class TestValidateFilters:
    def test_known_values_pass_through(self):
        assert validate_filters({"voicing": "SATB", "season": "Easter"}) == {
            "voicing": "SATB",
            "season": "Easter",
        }

    def test_blank_values_are_dropped(self):
        assert validate_filters({"voicing": "", "language": None}) == {}

    def test_unknown_value_is_rejected(self):
        with pytest.raises(InvalidFilterError) as exc:
            validate_filters({"voicing": "SSSSSSSS"})

        assert exc.value.message == "Invalid voicing filter: SSSSSSSS"

    def test_unknown_key_is_rejected(self):
        with pytest.raises(InvalidFilterError) as exc:
            validate_filters({"tempo": "fast"})

        assert exc.value.field == "tempo"
