"""
Ingestion control schemas.
"""

from datetime import datetime
from typing import Optional

from .base import CamelModel


class IngestionSong(CamelModel):
    """A song record produced by a catalog scraper."""
    title: str
    composer: str
    text_writer: Optional[str] = None
    description: Optional[str] = None
    source_link: str
    audio_link: Optional[str] = None
    source: Optional[str] = None  # Defaults to the job source
    language: Optional[str] = None
    voicing: Optional[str] = None
    difficulty: Optional[str] = None
    season: Optional[str] = None
    theme: Optional[str] = None
    period: Optional[str] = None


class IngestionStartRequest(CamelModel):
    """Request to start ingesting a batch of songs."""
    source: str
    schedule: Optional[str] = None
    dry_run: bool = False
    songs: list[IngestionSong]


class IngestionStartResponse(CamelModel):
    """Response after starting ingestion."""
    task_id: str
    total_songs: int
    message: str


class IngestionStatus(CamelModel):
    """Current ingestion status."""
    running: bool
    task_id: Optional[str] = None
    source: Optional[str] = None
    job_id: Optional[int] = None
    current_song: Optional[dict] = None
    progress: dict
    errors: list[str]
    recent_events: list[dict] = []  # Latest SSE events, oldest first


class IngestionStopResponse(CamelModel):
    """Response after requesting a stop."""
    stopped: bool
    message: str


class IngestionJob(CamelModel):
    """A recorded ingestion run."""
    id: int
    source: str
    schedule: Optional[str] = None
    last_run: Optional[datetime] = None
    next_run: Optional[datetime] = None
    status: str
    songs_added: int = 0
    songs_skipped: int = 0
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


class IngestionJobsResponse(CamelModel):
    """Recorded ingestion runs, newest first."""
    jobs: list[IngestionJob]
    total: int
