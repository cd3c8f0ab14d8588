"""
Song write path and lookup.

Handles:
- Creating songs (new id, search_text derived from descriptive fields)
- Updating songs (merge over stored row, search_text recomputed)
- Soft deletion (is_active = FALSE, row retained)
- Fetching one active song

All functions take a Database or an open Transaction as `db`.
"""

import logging
import uuid
from typing import Any, Optional

from .config import FILTER_OPTIONS
from .errors import SongNotFound, ValidationError

logger = logging.getLogger(__name__)

# Writable song columns, in insert order
SONG_COLUMNS = (
    "title",
    "composer",
    "text_writer",
    "description",
    "source_link",
    "audio_link",
    "source",
    "language",
    "voicing",
    "difficulty",
    "season",
    "theme",
    "period",
)

REQUIRED_COLUMNS = ("title", "composer", "source_link", "source")

# Fields concatenated into search_text, in this order
SEARCH_TEXT_COLUMNS = (
    "title",
    "composer",
    "text_writer",
    "description",
    "language",
    "voicing",
    "difficulty",
    "season",
    "theme",
    "period",
)


def build_search_text(song: dict[str, Any]) -> str:
    """Join non-empty descriptive fields with single spaces."""
    parts = [song.get(column) for column in SEARCH_TEXT_COLUMNS]
    return " ".join(str(part).strip() for part in parts if part and str(part).strip())


def parse_song_id(song_id: str) -> Optional[str]:
    """Return the canonical UUID string, or None if song_id is not a UUID."""
    try:
        return str(uuid.UUID(str(song_id)))
    except ValueError:
        return None


def _clean(song: dict[str, Any]) -> dict[str, Any]:
    """Keep only writable columns, defaulting missing ones to None."""
    return {column: song.get(column) for column in SONG_COLUMNS}


def check_option_values(values: dict[str, Any]) -> None:
    """
    Reject filter-column values outside the closed option sets.

    Empty values are allowed; columns absent from `values` are not checked.

    Raises:
        ValidationError: On the first unknown value
    """
    for column, options in FILTER_OPTIONS.items():
        value = values.get(column)
        if value and value not in options:
            raise ValidationError(f"Unknown {column}: {value}")


def _validate(song: dict[str, Any]) -> None:
    missing = [c for c in REQUIRED_COLUMNS if not song.get(c)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    check_option_values(song)


def create_song(db, song: dict[str, Any]) -> dict[str, Any]:
    """
    Insert a new active song.

    Args:
        db: Database or Transaction
        song: Column-keyed song fields (see SONG_COLUMNS)

    Returns:
        The inserted row

    Raises:
        ValidationError: If required fields are missing or a filter column
                         holds a value outside its option set
    """
    values = _clean(song)
    _validate(values)

    song_id = str(uuid.uuid4())
    search_text = build_search_text(values)

    columns = ("id", *SONG_COLUMNS, "search_text", "is_active")
    params = [song_id, *values.values(), search_text, True]
    placeholders = ", ".join(["%s"] * len(columns))

    row = db.fetch_one(
        f"INSERT INTO songs ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
        params,
    )
    logger.info(f"Created song {song_id}: {values['title']} ({values['composer']})")
    return row


def get_song(db, song_id: str) -> Optional[dict[str, Any]]:
    """
    Get an active song by ID.

    Returns:
        Row dict or None if not found, inactive, or not a valid id
    """
    canonical = parse_song_id(song_id)
    if canonical is None:
        return None

    return db.fetch_one(
        "SELECT * FROM songs WHERE id = %s AND is_active = TRUE",
        (canonical,),
    )


def update_song(db, song_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """
    Merge changes over an active song and recompute search_text.

    Args:
        db: Database (a transaction is opened here)
        song_id: Song UUID
        changes: Column-keyed fields to overwrite; absent keys keep stored values

    Returns:
        The updated row

    Raises:
        SongNotFound: If no active song has this id
        ValidationError: If the merged row is missing required fields
    """
    canonical = parse_song_id(song_id)
    if canonical is None:
        raise SongNotFound()

    with db.transaction() as tx:
        existing = tx.fetch_one(
            "SELECT * FROM songs WHERE id = %s AND is_active = TRUE FOR UPDATE",
            (canonical,),
        )
        if existing is None:
            raise SongNotFound()

        merged = _clean(existing)
        merged.update({k: v for k, v in changes.items() if k in SONG_COLUMNS})
        _validate(merged)

        assignments = ", ".join(f"{column} = %s" for column in SONG_COLUMNS)
        row = tx.fetch_one(
            f"""
            UPDATE songs SET {assignments},
                search_text = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s
            RETURNING *
            """,
            [*merged.values(), build_search_text(merged), canonical],
        )

    logger.info(f"Updated song {canonical}")
    return row


def soft_delete_song(db, song_id: str) -> None:
    """
    Deactivate a song. The row is retained.

    Raises:
        SongNotFound: If no active song has this id
    """
    canonical = parse_song_id(song_id)
    if canonical is None:
        raise SongNotFound()

    updated = db.execute(
        """
        UPDATE songs SET is_active = FALSE, updated_at = CURRENT_TIMESTAMP
        WHERE id = %s AND is_active = TRUE
        """,
        (canonical,),
    )
    if updated == 0:
        raise SongNotFound()

    logger.info(f"Soft-deleted song {canonical}")
