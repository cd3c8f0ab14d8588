"""
Tests for choir_search.submissions (moderation and promotion to songs).
"""

from __future__ import annotations

import pytest

from choir_search.errors import (
    DatabaseError,
    SubmissionAlreadyReviewed,
    SubmissionNotFound,
    ValidationError,
)
from choir_search.submissions import (
    approve_submission,
    create_submission,
    list_submissions,
    reject_submission,
    submission_to_song,
)

from conftest import SONG_ID, SUBMISSION_ID, make_song_row, make_submission_row


class TestCreateSubmission:
    def test_inserts_pending_row(self, db):
        db.queue(make_submission_row())

        create_submission(db, {
            "title": "Stille Nacht",
            "composer": "Franz Xaver Gruber",
            "source_link": "https://example.org/stille-nacht",
            "voicing": "SATB",
        })

        sql, params = db.calls[0]
        assert sql.startswith("INSERT INTO user_submissions (id, user_id, title,")
        assert params[2:5] == (
            "Stille Nacht",
            "Franz Xaver Gruber",
            "https://example.org/stille-nacht",
        )

    def test_rejects_value_outside_option_set(self, db):
        with pytest.raises(ValidationError):
            create_submission(db, {
                "title": "Stille Nacht",
                "composer": "Gruber",
                "source_link": "https://x",
                "season": "Monsoon",
            })

        assert db.calls == []

    def test_requires_link(self, db):
        with pytest.raises(ValidationError):
            create_submission(db, {"title": "Stille Nacht", "composer": "Gruber"})


class TestListSubmissions:
    def test_all_newest_first(self, db):
        list_submissions(db)

        assert db.calls == [("SELECT * FROM user_submissions ORDER BY submitted_at DESC", ())]

    def test_by_status(self, db):
        list_submissions(db, "pending")

        sql, params = db.calls[0]
        assert "WHERE status = %s" in sql
        assert params == ("pending",)

    def test_unknown_status(self, db):
        with pytest.raises(ValidationError):
            list_submissions(db, "archived")


class TestApprove:
    def test_creates_song_and_marks_approved_in_one_transaction(self, db):
        db.queue(make_submission_row(), make_song_row(id=SONG_ID))

        song = approve_submission(db, SUBMISSION_ID, "alice")

        assert song["id"] == SONG_ID
        assert db.events == ["BEGIN", "COMMIT"]

        lock_sql, insert_sql, mark_sql = db.statements
        assert lock_sql.endswith("FOR UPDATE")
        assert insert_sql.startswith("INSERT INTO songs")
        assert mark_sql.startswith("UPDATE user_submissions SET status = %s")
        assert db.calls[2][1] == ("approved", "alice", SUBMISSION_ID)

    def test_song_takes_default_source(self):
        song = submission_to_song(make_submission_row())

        assert song["source"] == "Other"
        assert song["text_writer"] is None
        assert song["audio_link"] is None
        assert song["period"] is None
        assert song["voicing"] == "SATB"

    def test_failed_insert_leaves_submission_pending(self, db):
        db.queue(make_submission_row(), DatabaseError("insert failed"))

        with pytest.raises(DatabaseError):
            approve_submission(db, SUBMISSION_ID, "alice")

        assert db.events == ["BEGIN", "ROLLBACK"]
        assert not any(sql.startswith("UPDATE user_submissions") for sql in db.statements)

    def test_missing_submission(self, db):
        with pytest.raises(SubmissionNotFound):
            approve_submission(db, SUBMISSION_ID, "alice")

    def test_malformed_id(self, db):
        with pytest.raises(SubmissionNotFound):
            approve_submission(db, "17", "alice")

    def test_already_approved(self, db):
        db.queue(make_submission_row(status="approved"))

        with pytest.raises(SubmissionAlreadyReviewed) as exc:
            approve_submission(db, SUBMISSION_ID, "alice")

        assert exc.value.status == "approved"
        assert len(db.calls) == 1


class TestReject:
    def test_marks_rejected_without_creating_song(self, db):
        db.queue(make_submission_row())

        reject_submission(db, SUBMISSION_ID, "bob")

        assert not any(sql.startswith("INSERT") for sql in db.statements)
        assert db.calls[-1][1] == ("rejected", "bob", SUBMISSION_ID)

    def test_already_rejected(self, db):
        db.queue(make_submission_row(status="rejected"))

        with pytest.raises(SubmissionAlreadyReviewed):
            reject_submission(db, SUBMISSION_ID, "bob")
