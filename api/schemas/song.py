"""
Song-related schemas.
"""

from datetime import datetime
from typing import Optional

from .base import CamelModel


class SongIn(CamelModel):
    """Fields accepted when creating a song."""
    title: str
    composer: str
    text_writer: Optional[str] = None
    description: Optional[str] = None
    source_link: str
    audio_link: Optional[str] = None
    source: str
    language: Optional[str] = None
    voicing: Optional[str] = None
    difficulty: Optional[str] = None
    season: Optional[str] = None
    theme: Optional[str] = None
    period: Optional[str] = None


class SongUpdate(CamelModel):
    """Partial update; omitted fields keep their stored values."""
    title: Optional[str] = None
    composer: Optional[str] = None
    text_writer: Optional[str] = None
    description: Optional[str] = None
    source_link: Optional[str] = None
    audio_link: Optional[str] = None
    source: Optional[str] = None
    language: Optional[str] = None
    voicing: Optional[str] = None
    difficulty: Optional[str] = None
    season: Optional[str] = None
    theme: Optional[str] = None
    period: Optional[str] = None


class Song(CamelModel):
    """A catalog entry as returned by the API."""
    id: str
    title: str
    composer: str
    text_writer: Optional[str] = None
    description: Optional[str] = None
    source_link: Optional[str] = None
    audio_link: Optional[str] = None
    source: Optional[str] = None
    language: Optional[str] = None
    voicing: Optional[str] = None
    difficulty: Optional[str] = None
    season: Optional[str] = None
    theme: Optional[str] = None
    period: Optional[str] = None
    search_text: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_verified: Optional[datetime] = None
    relevance_score: Optional[float] = None


class SongCreatedResponse(CamelModel):
    """Response after creating a song."""
    id: str
    message: str


class SongMessageResponse(CamelModel):
    """Response after updating or deleting a song."""
    id: str
    message: str


class BulkSongsRequest(CamelModel):
    """Request to insert several songs at once."""
    songs: list[SongIn]


class BulkSongsResponse(CamelModel):
    """Response after a bulk insert."""
    message: str
    songs: list[Song]
