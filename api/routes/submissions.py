"""
User submission and moderation endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Query

from choir_search.mapper import rows_to_api
from choir_search.submissions import (
    approve_submission,
    create_submission,
    list_submissions,
    reject_submission,
)

from ..deps import DatabaseDep
from ..errors import database_errors
from ..schemas.submission import (
    ApproveResponse,
    RejectResponse,
    ReviewRequest,
    Submission,
    SubmissionCreatedResponse,
    SubmissionIn,
)

router = APIRouter()


@router.post("/submissions", response_model=SubmissionCreatedResponse)
def submit(request: SubmissionIn, db: DatabaseDep):
    """Receive a user contribution for moderation."""
    with database_errors("Failed to submit contribution"):
        row = create_submission(db, request.to_columns())

    return SubmissionCreatedResponse(id=row["id"], message="Submission received")


@router.get("/submissions", response_model=list[Submission])
def get_submissions(
    db: DatabaseDep,
    status: Optional[str] = Query(None, description="pending, approved or rejected"),
):
    """List submissions, newest first."""
    with database_errors("Failed to get submissions"):
        rows = list_submissions(db, status)

    return rows_to_api(rows)


@router.post("/submissions/{submission_id}/approve", response_model=ApproveResponse)
def approve(submission_id: str, db: DatabaseDep, request: Optional[ReviewRequest] = None):
    """Approve a pending submission and add it to the catalog."""
    reviewer_id = request.reviewer_id if request else "admin"

    with database_errors("Failed to approve submission"):
        song = approve_submission(db, submission_id, reviewer_id)

    return ApproveResponse(
        song_id=song["id"],
        message="Submission approved and added to database",
    )


@router.post("/submissions/{submission_id}/reject", response_model=RejectResponse)
def reject(submission_id: str, db: DatabaseDep, request: Optional[ReviewRequest] = None):
    """Reject a pending submission."""
    reviewer_id = request.reviewer_id if request else "admin"

    with database_errors("Failed to reject submission"):
        reject_submission(db, submission_id, reviewer_id)

    return RejectResponse(id=submission_id, message="Submission rejected")
