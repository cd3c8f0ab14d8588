"""
User-contributed songs awaiting moderation.

A submission is promoted to a song on approval. Approval inserts the song
and marks the submission in one transaction, so either both happen or
neither does.
"""

import logging
import uuid
from typing import Any, Optional

from .config import DEFAULT_SUBMISSION_SOURCE, SUBMISSION_STATUSES
from .errors import SubmissionAlreadyReviewed, SubmissionNotFound, ValidationError
from .songs import check_option_values, create_song, parse_song_id

logger = logging.getLogger(__name__)

SUBMISSION_COLUMNS = (
    "user_id",
    "title",
    "composer",
    "source_link",
    "description",
    "language",
    "voicing",
    "difficulty",
    "season",
    "theme",
)


def create_submission(db, submission: dict[str, Any]) -> dict[str, Any]:
    """
    Store a pending submission.

    Args:
        db: Database or Transaction
        submission: Column-keyed fields (see SUBMISSION_COLUMNS)

    Returns:
        The inserted row

    Raises:
        ValidationError: If a required field is missing or a filter value is
                         outside its option set
    """
    values = {column: submission.get(column) for column in SUBMISSION_COLUMNS}
    missing = [c for c in ("title", "composer", "source_link") if not values.get(c)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    check_option_values(values)

    submission_id = str(uuid.uuid4())
    columns = ("id", *SUBMISSION_COLUMNS)
    placeholders = ", ".join(["%s"] * len(columns))

    row = db.fetch_one(
        f"INSERT INTO user_submissions ({', '.join(columns)}) "
        f"VALUES ({placeholders}) RETURNING *",
        [submission_id, *values.values()],
    )
    logger.info(f"Received submission {submission_id}: {values['title']}")
    return row


def list_submissions(db, status: Optional[str] = None) -> list[dict[str, Any]]:
    """List submissions newest first, optionally filtered by status."""
    if status is not None and status not in SUBMISSION_STATUSES:
        raise ValidationError(f"Unknown status: {status}")

    query = "SELECT * FROM user_submissions"
    params = []
    if status:
        query += " WHERE status = %s"
        params.append(status)
    query += " ORDER BY submitted_at DESC"

    return db.fetch_all(query, params)


def submission_to_song(submission: dict[str, Any]) -> dict[str, Any]:
    """Song fields for an approved submission; missing fields default to None."""
    return {
        "title": submission.get("title"),
        "composer": submission.get("composer"),
        "text_writer": None,
        "description": submission.get("description"),
        "source_link": submission.get("source_link"),
        "audio_link": None,
        "source": DEFAULT_SUBMISSION_SOURCE,
        "language": submission.get("language"),
        "voicing": submission.get("voicing"),
        "difficulty": submission.get("difficulty"),
        "season": submission.get("season"),
        "theme": submission.get("theme"),
        "period": None,
    }


def _lock_pending(tx, submission_id: str) -> dict[str, Any]:
    canonical = parse_song_id(submission_id)
    if canonical is None:
        raise SubmissionNotFound()

    submission = tx.fetch_one(
        "SELECT * FROM user_submissions WHERE id = %s FOR UPDATE",
        (canonical,),
    )
    if submission is None:
        raise SubmissionNotFound()
    if submission["status"] != "pending":
        raise SubmissionAlreadyReviewed(canonical, submission["status"])
    return submission


def _mark_reviewed(tx, submission_id: str, status: str, reviewer_id: str) -> None:
    tx.execute(
        """
        UPDATE user_submissions
        SET status = %s, reviewed_at = CURRENT_TIMESTAMP, reviewed_by = %s
        WHERE id = %s
        """,
        (status, reviewer_id, submission_id),
    )


def approve_submission(db, submission_id: str, reviewer_id: str) -> dict[str, Any]:
    """
    Promote a pending submission to a song.

    Args:
        db: Database (a transaction is opened here)
        submission_id: Submission UUID
        reviewer_id: Who approved it

    Returns:
        The new song row

    Raises:
        SubmissionNotFound: If the submission does not exist
        SubmissionAlreadyReviewed: If it is not pending
    """
    with db.transaction() as tx:
        submission = _lock_pending(tx, submission_id)
        song = create_song(tx, submission_to_song(submission))
        _mark_reviewed(tx, submission["id"], "approved", reviewer_id)

    logger.info(
        f"Approved submission {submission['id']} as song {song['id']} (by {reviewer_id})"
    )
    return song


def reject_submission(db, submission_id: str, reviewer_id: str) -> None:
    """
    Mark a pending submission rejected.

    Raises:
        SubmissionNotFound: If the submission does not exist
        SubmissionAlreadyReviewed: If it is not pending
    """
    with db.transaction() as tx:
        submission = _lock_pending(tx, submission_id)
        _mark_reviewed(tx, submission["id"], "rejected", reviewer_id)

    logger.info(f"Rejected submission {submission['id']} (by {reviewer_id})")
