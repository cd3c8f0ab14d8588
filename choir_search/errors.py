"""
Exception types shared by the library, the CLI and the HTTP layer.

Only the HTTP layer maps these to status codes.
"""


class ChoirSearchError(Exception):
    """Base class for all service errors."""

    message = "Internal error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(ChoirSearchError):
    """Malformed or out-of-range input."""

    message = "Invalid request"


class InvalidFilterError(ValidationError):
    """Raised when a filter field or value is not in the known option set."""

    def __init__(self, field: str, value: str = ""):
        if value:
            super().__init__(f"Invalid {field} filter: {value}")
        else:
            super().__init__(f"Unknown filter field: {field}")
        self.field = field
        self.value = value


class NotFoundError(ChoirSearchError):
    """Lookup by ID found no matching row."""

    message = "Not found"


class SongNotFound(NotFoundError):
    message = "Song not found"


class SubmissionNotFound(NotFoundError):
    message = "Submission not found"


class ConflictError(ChoirSearchError):
    """Request conflicts with the current state of a resource."""

    message = "Conflict"


class SubmissionAlreadyReviewed(ConflictError):
    """Raised when approving or rejecting a submission that is not pending."""

    def __init__(self, submission_id: str, status: str):
        super().__init__(f"Submission {submission_id} is already {status}")
        self.submission_id = submission_id
        self.status = status


class DatabaseError(ChoirSearchError):
    """Any failure talking to Postgres (connection, timeout, bad SQL)."""

    message = "Database error"


class SearchFailed(DatabaseError):
    """Raised when either search statement fails."""

    message = "Search failed"
