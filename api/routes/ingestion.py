"""
Ingestion control endpoints with SSE support.
"""

import asyncio
import json
from typing import Optional

from fastapi import APIRouter, Header, Query, Request
from sse_starlette.sse import EventSourceResponse

from choir_search.ingestion import list_jobs
from choir_search.mapper import rows_to_api

from ..deps import DatabaseDep, IngestionRunnerDep
from ..errors import ApiError, database_errors
from ..schemas.ingestion import (
    IngestionJobsResponse,
    IngestionStartRequest,
    IngestionStartResponse,
    IngestionStatus,
    IngestionStopResponse,
)

router = APIRouter()

KEEPALIVE_SECONDS = 30.0


@router.post("/ingestion/start", response_model=IngestionStartResponse)
async def start_ingestion(
    request: IngestionStartRequest,
    db: DatabaseDep,
    runner: IngestionRunnerDep,
):
    """
    Start ingesting a batch of songs.

    Returns immediately with a task ID. Connect to /ingestion/events for
    real-time updates.
    """
    if not request.songs:
        raise ApiError(400, "Expected a non-empty list of songs")

    try:
        task_id, total = await runner.start(
            db,
            [song.to_columns() for song in request.songs],
            source=request.source,
            schedule=request.schedule,
            dry_run=request.dry_run,
        )
    except RuntimeError as e:
        raise ApiError(409, str(e))

    return IngestionStartResponse(
        task_id=task_id,
        total_songs=total,
        message=f"Ingestion started. Processing {total} songs.",
    )


@router.post("/ingestion/stop", response_model=IngestionStopResponse)
async def stop_ingestion(runner: IngestionRunnerDep):
    """Stop the currently running ingestion."""
    stopped = await runner.stop()

    if stopped:
        return IngestionStopResponse(
            stopped=True,
            message="Stop requested. Ingestion will stop after current song.",
        )
    return IngestionStopResponse(
        stopped=False,
        message="No ingestion is currently running.",
    )


@router.get("/ingestion/status", response_model=IngestionStatus)
async def get_ingestion_status(runner: IngestionRunnerDep):
    """Get current ingestion status."""
    return IngestionStatus(**runner.get_status())


@router.get("/ingestion/jobs", response_model=IngestionJobsResponse)
def get_ingestion_jobs(
    db: DatabaseDep,
    source: Optional[str] = Query(None, description="Filter by source"),
):
    """List recorded ingestion runs, newest first."""
    with database_errors("Failed to get ingestion jobs"):
        jobs = list_jobs(db, source=source)

    return IngestionJobsResponse(jobs=rows_to_api(jobs), total=len(jobs))


@router.get("/ingestion/events")
async def ingestion_events(
    request: Request,
    runner: IngestionRunnerDep,
    last_event_id: Optional[str] = Header(None),
):
    """
    SSE endpoint for real-time ingestion events.

    Events:
    - ingestion_started: Run started, total song count known
    - ingestion_song_added: Song inserted
    - ingestion_song_skipped: Song skipped (duplicate or invalid)
    - ingestion_complete: Run finished
    - ingestion_stopped: Run was stopped by user
    - ingestion_error: Fatal error during the run

    Reconnecting clients send Last-Event-ID and receive the events they
    missed, as long as those are still in recent history.
    """
    resume_from = int(last_event_id) if last_event_id and last_event_id.isdigit() else None
    events = runner.event_manager

    async def event_generator():
        queue = await events.subscribe(last_event_id=resume_from)

        try:
            while True:
                if await request.is_disconnected():
                    break

                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)

                    yield {
                        "id": str(event["id"]),
                        "event": event["type"],
                        "data": json.dumps(event["data"]),
                    }
                except asyncio.TimeoutError:
                    yield {
                        "event": "keepalive",
                        "data": json.dumps({"status": "connected"}),
                    }

        finally:
            await events.unsubscribe(queue)

    return EventSourceResponse(event_generator())
