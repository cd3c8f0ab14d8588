"""
Song management endpoints.
"""

from fastapi import APIRouter

from choir_search.errors import SongNotFound
from choir_search.ingestion import add_songs
from choir_search.mapper import row_to_api, rows_to_api
from choir_search.songs import create_song, get_song, soft_delete_song, update_song

from ..deps import DatabaseDep
from ..errors import database_errors
from ..schemas.song import (
    BulkSongsRequest,
    BulkSongsResponse,
    Song,
    SongCreatedResponse,
    SongIn,
    SongMessageResponse,
    SongUpdate,
)

router = APIRouter()


@router.post("/songs/bulk", response_model=BulkSongsResponse)
def add_songs_bulk(request: BulkSongsRequest, db: DatabaseDep):
    """Insert several songs in one transaction; nothing is inserted on error."""
    with database_errors("Failed to add songs"):
        rows = add_songs(db, [song.to_columns() for song in request.songs])

    return BulkSongsResponse(
        message=f"Successfully added {len(rows)} songs",
        songs=rows_to_api(rows),
    )


@router.get("/songs/{song_id}", response_model=Song)
def get_song_by_id(song_id: str, db: DatabaseDep):
    """Fetch one active song."""
    with database_errors("Failed to get song"):
        row = get_song(db, song_id)

    if row is None:
        raise SongNotFound()
    return row_to_api(row)


@router.post("/songs", response_model=SongCreatedResponse)
def add_song(request: SongIn, db: DatabaseDep):
    """Create a song."""
    with database_errors("Failed to add song"):
        row = create_song(db, request.to_columns())

    return SongCreatedResponse(id=row["id"], message="Song added successfully")


@router.put("/songs/{song_id}", response_model=SongMessageResponse)
def put_song(song_id: str, request: SongUpdate, db: DatabaseDep):
    """Update a song. Fields left out of the body keep their stored values."""
    with database_errors("Failed to update song"):
        row = update_song(db, song_id, request.to_columns(exclude_unset=True))

    return SongMessageResponse(id=row["id"], message="Song updated successfully")


@router.delete("/songs/{song_id}", response_model=SongMessageResponse)
def delete_song(song_id: str, db: DatabaseDep):
    """Soft-delete a song. It disappears from search and lookup."""
    with database_errors("Failed to delete song"):
        soft_delete_song(db, song_id)

    return SongMessageResponse(id=song_id, message="Song deleted successfully")
