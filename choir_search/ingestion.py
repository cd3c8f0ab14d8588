"""
Bulk song insertion and ingestion job tracking.

Handles:
- Loading prepared song files (JSON) produced by catalog scrapers
- Inserting batches through the normal create path
- Skipping works already in the catalog (same title and composer)
- Recording each run in the ingestion_jobs table
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .errors import ChoirSearchError, ValidationError
from .mapper import api_to_columns
from .songs import create_song

logger = logging.getLogger(__name__)

JOB_STATUSES = ("pending", "running", "completed", "failed", "stopped")


@dataclass
class IngestionResult:
    """Result of an ingestion run."""

    job_id: Optional[int]
    source: str
    total: int
    added: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def load_song_file(path: Path) -> list[dict[str, Any]]:
    """
    Read songs from a JSON file.

    Accepts a bare array or an object with a "songs" array. Keys may be
    camelCase (API shape) or snake_case (column names).

    Returns:
        Column-keyed song dicts

    Raises:
        ValidationError: If the file does not contain a list of objects
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    songs = data.get("songs") if isinstance(data, dict) else data
    if not isinstance(songs, list) or not all(isinstance(s, dict) for s in songs):
        raise ValidationError(f"{path}: expected a list of song objects")

    return [api_to_columns(song) for song in songs]


def find_duplicate(db, title: str, composer: str) -> Optional[str]:
    """Return the id of an active song with the same title and composer."""
    row = db.fetch_one(
        """
        SELECT id FROM songs
        WHERE is_active = TRUE
          AND lower(title) = lower(%s)
          AND lower(composer) = lower(%s)
        LIMIT 1
        """,
        (title, composer),
    )
    return row["id"] if row else None


def add_songs(db, songs: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Insert a batch of songs in one transaction.

    Args:
        db: Database
        songs: Column-keyed song dicts

    Returns:
        Inserted rows, in input order

    Raises:
        ValidationError: If the batch is empty or any song is invalid
                         (nothing is inserted in that case)
    """
    if not songs:
        raise ValidationError("Expected a non-empty list of songs")

    with db.transaction() as tx:
        rows = [create_song(tx, song) for song in songs]

    logger.info(f"Bulk inserted {len(rows)} songs")
    return rows


def ingest_song(db, song: dict[str, Any], source: Optional[str] = None) -> Optional[dict]:
    """
    Insert one song unless the catalog already holds the same work.

    Args:
        db: Database or Transaction
        song: Column-keyed song dict
        source: Source tag applied when the song has none

    Returns:
        Inserted row, or None if skipped as a duplicate
    """
    if source and not song.get("source"):
        song = {**song, "source": source}

    if song.get("title") and song.get("composer"):
        existing = find_duplicate(db, song["title"], song["composer"])
        if existing:
            return None

    return create_song(db, song)


def start_job(db, source: str, schedule: Optional[str] = None) -> int:
    """Record the start of an ingestion run. Returns the job id."""
    row = db.fetch_one(
        """
        INSERT INTO ingestion_jobs (source, schedule, status, last_run)
        VALUES (%s, %s, 'running', CURRENT_TIMESTAMP)
        RETURNING id
        """,
        (source, schedule),
    )
    return int(row["id"])


def finish_job(
    db,
    job_id: int,
    status: str,
    added: int = 0,
    skipped: int = 0,
    error_message: Optional[str] = None,
) -> None:
    """Record the outcome of an ingestion run."""
    if status not in JOB_STATUSES:
        raise ValueError(f"Unknown job status: {status}")

    db.execute(
        """
        UPDATE ingestion_jobs
        SET status = %s, songs_added = %s, songs_skipped = %s,
            error_message = %s, last_run = CURRENT_TIMESTAMP
        WHERE id = %s
        """,
        (status, added, skipped, error_message, job_id),
    )


def list_jobs(db, source: Optional[str] = None, limit: int = 50) -> list[dict[str, Any]]:
    """List ingestion jobs newest first."""
    query = "SELECT * FROM ingestion_jobs"
    params: list[Any] = []
    if source:
        query += " WHERE source = %s"
        params.append(source)
    query += " ORDER BY created_at DESC, id DESC LIMIT %s"
    params.append(limit)

    return db.fetch_all(query, params)


def run_ingestion(
    db,
    songs: list[dict[str, Any]],
    source: str,
    schedule: Optional[str] = None,
    dry_run: bool = False,
) -> IngestionResult:
    """
    Ingest songs one by one, recording the run as a job.

    A song that fails validation is counted as an error and the run
    continues; a database failure ends the run as failed.

    Args:
        db: Database
        songs: Column-keyed song dicts
        source: Source tag for the job (and for songs without one)
        schedule: Cron expression the run was triggered by, if any
        dry_run: If True, validate duplicates only and write nothing

    Returns:
        IngestionResult with counts
    """
    job_id = None if dry_run else start_job(db, source, schedule)
    result = IngestionResult(job_id=job_id, source=source, total=len(songs))

    try:
        for song in songs:
            title = song.get("title") or "<untitled>"
            if dry_run:
                if find_duplicate(db, song.get("title") or "", song.get("composer") or ""):
                    result.skipped += 1
                else:
                    result.added += 1
                continue

            try:
                row = ingest_song(db, song, source)
            except ValidationError as e:
                result.errors.append(f"{title}: {e.message}")
                continue

            if row is None:
                result.skipped += 1
                logger.debug(f"Skipped duplicate: {title}")
            else:
                result.added += 1
    except ChoirSearchError as e:
        result.errors.append(e.message)
        if job_id is not None:
            finish_job(db, job_id, "failed", result.added, result.skipped, e.message)
        raise

    if job_id is not None:
        error_message = "; ".join(result.errors[:5]) or None
        finish_job(db, job_id, "completed", result.added, result.skipped, error_message)

    logger.info(
        f"Ingestion from {source}: {result.added} added, {result.skipped} skipped, "
        f"{len(result.errors)} errors"
    )
    return result
