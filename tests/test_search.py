"""
Tests for choir_search.search (the search executor).
"""

from __future__ import annotations

import pytest

from choir_search.errors import DatabaseError, SearchFailed
from choir_search.query_builder import SearchQuery
from choir_search.search import clamp_limit, compute_has_more, search_songs

from conftest import make_song_row


class TestSearchSongs:
    def test_runs_count_then_data_with_shared_filters(self, db):
        db.queue({"total": 1}, [make_song_row(relevance_score=0.42)])

        result = search_songs(db, SearchQuery(text="ave maria", filters={"voicing": "SSAA"}))

        count_sql, data_sql = db.statements
        assert count_sql.startswith("SELECT COUNT(*) AS total FROM songs")
        assert data_sql.startswith("SELECT *, ts_rank(")
        assert db.calls[0][1] == ("ave maria", "SSAA")
        assert db.calls[1][1] == ("ave maria", "ave maria", "SSAA", 20, 0)

        assert result.total == 1
        assert result.page == 1
        assert result.limit == 20
        assert result.has_more is False
        assert result.results[0]["relevanceScore"] == 0.42
        assert result.results[0]["sourceLink"] == "https://example.org/biebl-ave-maria"

    def test_empty_result(self, db):
        db.queue({"total": 0}, [])

        result = search_songs(db, SearchQuery(text="zzzz"))

        assert result.results == []
        assert result.total == 0
        assert result.has_more is False

    def test_total_counts_all_matches_not_just_page(self, db):
        rows = [make_song_row(id=f"id-{i}") for i in range(2)]
        db.queue({"total": 5}, rows)

        result = search_songs(db, SearchQuery(page=1, limit=2))

        assert result.total == 5
        assert len(result.results) == 2
        assert result.has_more is True

    def test_results_keep_database_order(self, db):
        rows = [make_song_row(id="b"), make_song_row(id="a"), make_song_row(id="c")]
        db.queue({"total": 3}, rows)

        result = search_songs(db, SearchQuery(limit=3))

        assert [r["id"] for r in result.results] == ["b", "a", "c"]

    def test_database_failure_is_search_failed(self, db):
        db.queue({"total": 3}, DatabaseError("connection reset"))

        with pytest.raises(SearchFailed):
            search_songs(db, SearchQuery(text="gloria"))

    def test_to_dict_uses_api_keys(self, db):
        db.queue({"total": 0}, [])

        payload = search_songs(db, SearchQuery()).to_dict()

        assert set(payload) == {"results", "total", "page", "limit", "hasMore"}


class TestPagination:
    @pytest.mark.parametrize(
        "page,limit,returned,total,expected",
        [
            (1, 20, 20, 45, True),
            (2, 20, 20, 45, True),
            (3, 20, 5, 45, False),
            (2, 20, 20, 40, False),
            (1, 20, 0, 0, False),
            (10, 20, 0, 45, False),
        ],
    )
    def test_has_more(self, page, limit, returned, total, expected):
        assert compute_has_more(page, limit, returned, total) is expected

    def test_limit_is_capped(self):
        assert clamp_limit(500) == 100
        assert clamp_limit(100) == 100
        assert clamp_limit(7) == 7
