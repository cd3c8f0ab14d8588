"""
Database row -> API shape projection.

Rows come back keyed by snake_case column names; the API speaks camelCase.
Mapping is a pure rename: nothing is filtered, reordered or coerced, and
NULL stays None.
"""

import hashlib
from typing import Any, Optional

# Columns whose API name differs from the column name. Everything else
# (title, composer, voicing, ...) passes through unchanged.
COLUMN_TO_FIELD = {
    "text_writer": "textWriter",
    "source_link": "sourceLink",
    "audio_link": "audioLink",
    "search_text": "searchText",
    "is_active": "isActive",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "last_verified": "lastVerified",
    "relevance_score": "relevanceScore",
    "user_id": "userId",
    "submitted_at": "submittedAt",
    "reviewed_at": "reviewedAt",
    "reviewed_by": "reviewedBy",
    "last_run": "lastRun",
    "next_run": "nextRun",
    "songs_added": "songsAdded",
    "songs_skipped": "songsSkipped",
    "error_message": "errorMessage",
}

FIELD_TO_COLUMN = {v: k for k, v in COLUMN_TO_FIELD.items()}


def row_to_api(row: dict[str, Any]) -> dict[str, Any]:
    """Rename one database row to the API shape."""
    return {COLUMN_TO_FIELD.get(key, key): value for key, value in row.items()}


def rows_to_api(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Rename a sequence of rows, preserving order."""
    return [row_to_api(row) for row in rows]


def api_to_columns(data: dict[str, Any]) -> dict[str, Any]:
    """
    Rename API-shaped (camelCase) keys back to column names.

    Keys already in snake_case are kept, so ingestion files may use either
    convention.
    """
    return {FIELD_TO_COLUMN.get(key, key): value for key, value in data.items()}


def normalize_song_key(title: Optional[str], composer: Optional[str]) -> str:
    """
    Create normalized key for title/composer deduplication.

    The same work listed with different casing, punctuation or spacing
    produces the same key.

    Returns:
        Normalized key in format "title|composer"
    """
    def normalize(s: Optional[str]) -> str:
        s = (s or "").lower().strip()
        # Remove non-alphanumeric (keep spaces)
        s = "".join(c for c in s if c.isalnum() or c.isspace())
        return " ".join(s.split())

    return f"{normalize(title)}|{normalize(composer)}"


def suggestion_id(title: Optional[str], composer: Optional[str]) -> str:
    """Stable identifier for a title/composer-deduplicated suggestion."""
    key = normalize_song_key(title, composer)
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]


def row_to_suggestion(row: dict[str, Any]) -> dict[str, Any]:
    """Map a suggestion row and attach its stable id."""
    suggestion = row_to_api(row)
    suggestion["id"] = suggestion_id(row.get("title"), row.get("composer"))
    return suggestion
