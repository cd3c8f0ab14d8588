"""
User submission schemas.
"""

from datetime import datetime
from typing import Optional

from .base import CamelModel


class SubmissionIn(CamelModel):
    """A user-contributed song awaiting moderation."""
    user_id: Optional[str] = None
    title: str
    composer: str
    source_link: str
    description: Optional[str] = None
    language: Optional[str] = None
    voicing: Optional[str] = None
    difficulty: Optional[str] = None
    season: Optional[str] = None
    theme: Optional[str] = None


class Submission(SubmissionIn):
    """A stored submission."""
    id: str
    status: str
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None


class SubmissionCreatedResponse(CamelModel):
    """Response after receiving a submission."""
    id: str
    message: str


class ReviewRequest(CamelModel):
    """Reviewer identity for approve/reject."""
    reviewer_id: str = "admin"


class ApproveResponse(CamelModel):
    """Response after approving a submission."""
    song_id: str
    message: str


class RejectResponse(CamelModel):
    """Response after rejecting a submission."""
    id: str
    message: str
