"""
Tests for choir_search.songs (the song write path).
"""

from __future__ import annotations

import uuid

import pytest

from choir_search.errors import SongNotFound, ValidationError
from choir_search.songs import (
    SONG_COLUMNS,
    build_search_text,
    create_song,
    get_song,
    parse_song_id,
    soft_delete_song,
    update_song,
)

from conftest import SONG_ID, make_song_row


def new_song(**overrides) -> dict:
    song = {
        "title": "Ubi Caritas",
        "composer": "Ola Gjeilo",
        "source_link": "https://example.org/ubi-caritas",
        "source": "MuseScore",
        "language": "Latin",
        "voicing": "SATB",
    }
    song.update(overrides)
    return song


class TestSearchText:
    def test_joins_non_empty_fields_in_order(self):
        text = build_search_text({
            "title": "Ubi Caritas",
            "composer": "Ola Gjeilo",
            "text_writer": "",
            "description": None,
            "language": "Latin",
            "voicing": "SATB",
        })

        assert text == "Ubi Caritas Ola Gjeilo Latin SATB"

    def test_links_are_not_searchable(self):
        text = build_search_text(new_song())

        assert "example.org" not in text
        assert "MuseScore" not in text


class TestCreateSong:
    def test_inserts_active_row_with_new_id(self, db):
        db.queue(make_song_row())

        create_song(db, new_song())

        sql, params = db.calls[0]
        assert sql.startswith("INSERT INTO songs (id, title, composer,")
        assert sql.endswith("RETURNING *")
        assert uuid.UUID(params[0])
        assert params[1:1 + len(SONG_COLUMNS)] == tuple(
            new_song().get(column) for column in SONG_COLUMNS
        )
        assert params[-2] == "Ubi Caritas Ola Gjeilo Latin SATB"
        assert params[-1] is True

    def test_ids_are_unique(self, db):
        create_song(db, new_song())
        create_song(db, new_song())

        assert db.calls[0][1][0] != db.calls[1][1][0]

    def test_unknown_columns_are_ignored(self, db):
        create_song(db, new_song(is_active=False, id="chosen-by-client"))

        sql, params = db.calls[0]
        assert "chosen-by-client" not in params
        assert params[-1] is True

    @pytest.mark.parametrize("missing", ["title", "composer", "source_link", "source"])
    def test_required_fields(self, db, missing):
        with pytest.raises(ValidationError):
            create_song(db, new_song(**{missing: None}))

        assert db.calls == []

    def test_unknown_source_is_rejected(self, db):
        with pytest.raises(ValidationError):
            create_song(db, new_song(source="Spotify"))

    @pytest.mark.parametrize(
        "column,value",
        [("language", "Klingon"), ("voicing", "SSSSSSSS"), ("difficulty", "Medium"),
         ("season", "Monsoon"), ("theme", "Jazz")],
    )
    def test_filter_values_outside_option_sets_are_rejected(self, db, column, value):
        with pytest.raises(ValidationError) as exc:
            create_song(db, new_song(**{column: value}))

        assert exc.value.message == f"Unknown {column}: {value}"
        assert db.calls == []

    @pytest.mark.parametrize("theme", ["Popular", "Musical"])
    def test_catalog_themes_are_accepted(self, db, theme):
        create_song(db, new_song(theme=theme))

        assert theme in db.calls[0][1]


class TestGetSong:
    def test_only_active_songs(self, db):
        db.queue(make_song_row())

        row = get_song(db, SONG_ID)

        assert row["id"] == SONG_ID
        sql, params = db.calls[0]
        assert sql == "SELECT * FROM songs WHERE id = %s AND is_active = TRUE"
        assert params == (SONG_ID,)

    def test_missing_song(self, db):
        assert get_song(db, SONG_ID) is None

    def test_malformed_id_skips_query(self, db):
        assert get_song(db, "not-a-uuid") is None
        assert db.calls == []

    def test_id_is_canonicalized(self):
        assert parse_song_id(SONG_ID.upper()) == SONG_ID


class TestUpdateSong:
    def test_merges_changes_and_recomputes_search_text(self, db):
        db.queue(make_song_row(), make_song_row(voicing="SATB"))

        update_song(db, SONG_ID, {"voicing": "SATB"})

        assert db.events == ["BEGIN", "COMMIT"]
        select_sql, _ = db.calls[0]
        assert select_sql.endswith("FOR UPDATE")

        update_sql, params = db.calls[1]
        assert update_sql.startswith("UPDATE songs SET title = %s")
        assert "updated_at = CURRENT_TIMESTAMP" in update_sql
        values = dict(zip(SONG_COLUMNS, params))
        assert values["voicing"] == "SATB"
        assert values["title"] == "Ave Maria"
        assert "SATB" in params[len(SONG_COLUMNS)]
        assert params[-1] == SONG_ID

    def test_missing_song_rolls_back(self, db):
        with pytest.raises(SongNotFound):
            update_song(db, SONG_ID, {"title": "New"})

        assert db.events == ["BEGIN", "ROLLBACK"]

    def test_update_checks_option_sets(self, db):
        db.queue(make_song_row())

        with pytest.raises(ValidationError):
            update_song(db, SONG_ID, {"voicing": "SSSSSSSS"})

        assert db.events == ["BEGIN", "ROLLBACK"]

    def test_cannot_blank_required_field(self, db):
        db.queue(make_song_row())

        with pytest.raises(ValidationError):
            update_song(db, SONG_ID, {"title": ""})

    def test_malformed_id(self, db):
        with pytest.raises(SongNotFound):
            update_song(db, "42", {"title": "New"})


class TestSoftDelete:
    def test_deactivates_row(self, db):
        db.queue(1)

        soft_delete_song(db, SONG_ID)

        sql, params = db.calls[0]
        assert sql.startswith("UPDATE songs SET is_active = FALSE")
        assert params == (SONG_ID,)

    def test_already_deleted(self, db):
        db.queue(0)

        with pytest.raises(SongNotFound):
            soft_delete_song(db, SONG_ID)
