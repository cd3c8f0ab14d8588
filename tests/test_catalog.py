"""
Tests for choir_search.catalog.
"""

from __future__ import annotations

import pytest

from choir_search.catalog import (
    escape_like,
    get_distinct_values,
    get_examples,
    get_filter_counts,
    get_suggestions,
)
from choir_search.errors import InvalidFilterError
from choir_search.mapper import suggestion_id

from conftest import make_song_row


class TestFilterCounts:
    def test_counts_are_ints(self, db):
        db.queue({
            "languages": 3, "voicings": 5, "difficulties": 2,
            "seasons": 4, "themes": 1, "sources": 2,
        })

        counts = get_filter_counts(db)

        assert counts["voicings"] == 5
        assert "WHERE is_active = TRUE" in db.statements[0]


class TestDistinctValues:
    def test_values_for_whitelisted_column(self, db):
        db.queue([{"value": "SATB"}, {"value": "SSAA"}])

        assert get_distinct_values(db, "voicing") == ["SATB", "SSAA"]
        assert "SELECT DISTINCT voicing AS value FROM songs" in db.statements[0]

    def test_arbitrary_column_is_rejected(self, db):
        with pytest.raises(InvalidFilterError):
            get_distinct_values(db, "title; DROP TABLE songs")

        assert db.calls == []


class TestSuggestions:
    @pytest.mark.parametrize("query", [None, "", "a", " a "])
    def test_short_queries_skip_the_database(self, db, query):
        assert get_suggestions(db, query) == []
        assert db.calls == []

    def test_prefix_and_contains_patterns(self, db):
        db.queue([{"title": "Ave Maria", "composer": "Biebl", "voicing": "SSAA"}])

        suggestions = get_suggestions(db, "ave", limit=5)

        _, params = db.calls[0]
        assert params == ("ave%", "ave%", "%ave%", "%ave%", "%ave%", 5)
        assert suggestions == [{
            "title": "Ave Maria",
            "composer": "Biebl",
            "voicing": "SSAA",
            "id": suggestion_id("Ave Maria", "Biebl"),
        }]

    def test_wildcards_are_escaped(self, db):
        get_suggestions(db, "100%_")

        _, params = db.calls[0]
        assert params[0] == "100\\%\\_%"

    def test_escape_like(self):
        assert escape_like("a\\b") == "a\\\\b"


class TestExamples:
    def test_samples_from_recent_pool(self, db):
        rows = [make_song_row(id=str(i)) for i in range(10)]
        db.queue(rows)

        examples = get_examples(db, count=6, pool=50)

        assert len(examples) == 6
        assert len({e["id"] for e in examples}) == 6
        assert all("sourceLink" in e for e in examples)
        assert db.calls[0][1] == (50,)

    def test_small_catalog(self, db):
        db.queue([make_song_row()])

        assert len(get_examples(db)) == 1
