"""
Song ingestion runner service with event emission.

Wraps the catalog ingestion path to emit SSE events during processing and
records each run in the ingestion_jobs table.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from choir_search.errors import ChoirSearchError, ValidationError
from choir_search.ingestion import find_duplicate, finish_job, ingest_song, start_job

from .event_manager import EventManager, event_manager

logger = logging.getLogger(__name__)


@dataclass
class IngestionProgress:
    """Current ingestion progress."""
    total_songs: int = 0
    processed: int = 0
    added: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


class IngestionRunner:
    """
    Runs song ingestion in the background with events for real-time updates.

    Only one run at a time.
    """

    def __init__(self, event_mgr: EventManager = event_manager):
        self.event_manager = event_mgr
        self.running = False
        self.task_id: Optional[str] = None
        self.source: Optional[str] = None
        self.job_id: Optional[int] = None
        self.current_song: Optional[dict] = None
        self.progress = IngestionProgress()
        self._stop_requested = False
        self._task: Optional[asyncio.Task] = None

    async def start(
        self,
        db,
        songs: list[dict[str, Any]],
        source: str,
        schedule: Optional[str] = None,
        dry_run: bool = False,
    ) -> tuple[str, int]:
        """
        Start ingesting songs.

        Args:
            db: Database
            songs: Column-keyed song dicts
            source: Source tag for the job (and songs without one)
            schedule: Cron expression the run belongs to, if any
            dry_run: If True, check duplicates only and write nothing

        Returns:
            Tuple of (task_id, total_songs)

        Raises:
            RuntimeError: If a run is already in progress
        """
        if self.running:
            raise RuntimeError("Ingestion is already running")

        self.task_id = str(uuid.uuid4())
        self.running = True
        self.source = source
        self.job_id = None
        self._stop_requested = False
        self.progress = IngestionProgress(total_songs=len(songs))
        self.current_song = None

        # Start ingestion in background
        self._task = asyncio.create_task(
            self._run(db, songs, source, schedule, dry_run)
        )

        return self.task_id, len(songs)

    async def stop(self) -> bool:
        """Request ingestion to stop after the current song."""
        if not self.running:
            return False
        self._stop_requested = True
        return True

    async def wait(self) -> None:
        """Wait for the current run to finish."""
        if self._task is not None:
            await self._task

    async def cancel(self) -> None:
        """Cancel a run in progress. The job is recorded as stopped."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info(f"Ingestion task {self.task_id} cancelled")

    def get_status(self) -> dict:
        """Get current ingestion status."""
        return {
            "running": self.running,
            "task_id": self.task_id,
            "source": self.source,
            "job_id": self.job_id,
            "current_song": self.current_song,
            "progress": {
                "total_songs": self.progress.total_songs,
                "processed": self.progress.processed,
                "added": self.progress.added,
                "skipped": self.progress.skipped,
            },
            "errors": self.progress.errors[-10:],
            "recent_events": self.event_manager.recent(),
        }

    async def _run(
        self,
        db,
        songs: list[dict[str, Any]],
        source: str,
        schedule: Optional[str],
        dry_run: bool,
    ) -> None:
        """Internal method to run the ingestion."""
        status = "completed"
        error_message = None

        try:
            if not dry_run:
                self.job_id = await asyncio.to_thread(start_job, db, source, schedule)

            await self.event_manager.emit("ingestion_started", {
                "task_id": self.task_id,
                "job_id": self.job_id,
                "source": source,
                "total_songs": len(songs),
                "dry_run": dry_run,
            })

            for i, song in enumerate(songs, 1):
                if self._stop_requested:
                    status = "stopped"
                    await self.event_manager.emit("ingestion_stopped", {
                        "task_id": self.task_id,
                        "reason": "user_requested",
                    })
                    break

                title = song.get("title") or ""
                self.current_song = {
                    "index": i,
                    "total": len(songs),
                    "title": title[:80],
                    "composer": song.get("composer"),
                }

                if dry_run:
                    existing = await asyncio.to_thread(
                        find_duplicate, db, title, song.get("composer") or ""
                    )
                    row = None if existing else {"id": None, "title": title}
                else:
                    try:
                        row = await asyncio.to_thread(ingest_song, db, song, source)
                    except ValidationError as e:
                        self.progress.errors.append(f"{title}: {e.message}")
                        self.progress.processed += 1
                        await self.event_manager.emit("ingestion_song_skipped", {
                            "task_id": self.task_id,
                            "index": i,
                            "title": title[:80],
                            "reason": e.message,
                        })
                        continue

                self.progress.processed += 1

                if row is None:
                    self.progress.skipped += 1
                    await self.event_manager.emit("ingestion_song_skipped", {
                        "task_id": self.task_id,
                        "index": i,
                        "title": title[:80],
                        "reason": "Already in catalog",
                    })
                    continue

                self.progress.added += 1
                await self.event_manager.emit("ingestion_song_added", {
                    "task_id": self.task_id,
                    "index": i,
                    "song_id": row.get("id"),
                    "title": title[:80],
                    "composer": song.get("composer"),
                    "dry_run": dry_run,
                })

            if status == "completed":
                await self.event_manager.emit("ingestion_complete", {
                    "task_id": self.task_id,
                    "job_id": self.job_id,
                    "source": source,
                    "total_songs": self.progress.total_songs,
                    "added": self.progress.added,
                    "skipped": self.progress.skipped,
                })

        except asyncio.CancelledError:
            # Server shutdown; the job is recorded before the task ends
            status = "stopped"
            error_message = "Cancelled"
            logger.warning(f"Ingestion from {source} cancelled")
            raise

        except Exception as e:
            status = "failed"
            if isinstance(e, ChoirSearchError):
                error_message = e.message
            else:
                error_message = str(e) or e.__class__.__name__
            self.progress.errors.append(error_message)
            logger.exception(f"Ingestion from {source} failed")
            await self.event_manager.emit("ingestion_error", {
                "task_id": self.task_id,
                "error": error_message,
            })

        finally:
            if self.job_id is not None:
                if error_message is None and self.progress.errors:
                    error_message = "; ".join(self.progress.errors[:5])
                try:
                    await asyncio.to_thread(
                        finish_job,
                        db,
                        self.job_id,
                        status,
                        self.progress.added,
                        self.progress.skipped,
                        error_message,
                    )
                except ChoirSearchError:
                    logger.exception(f"Could not record outcome of ingestion job {self.job_id}")
            self.running = False
            self.current_song = None


# Global ingestion runner instance
ingestion_runner = IngestionRunner()
