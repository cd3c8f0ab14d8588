"""
CLI entry point for the choir music search service.

This is where .env is loaded for command-line use. All other modules access
environment variables via os.environ.

Usage:
    uv run python -m choir_search.cli init-db
    uv run python -m choir_search.cli search "ave maria" --voicing SSAA
    uv run python -m choir_search.cli import-songs --file songs.json --source MuseScore
    uv run python -m choir_search.cli submissions --status pending
    uv run python -m choir_search.cli approve <submission-id> --reviewer alice
    uv run python -m choir_search.cli jobs
    uv run python -m choir_search.cli keepalive
    uv run python -m choir_search.cli serve --port 3001
"""

import argparse
import sys
from contextlib import contextmanager
from pathlib import Path

# Load .env BEFORE importing other modules
from dotenv import load_dotenv
load_dotenv()

from . import logger
from .config import (
    DEFAULT_PAGE_LIMIT,
    FILTER_OPTIONS,
    HOST,
    LOG_LEVEL,
    PORT,
    SUBMISSION_STATUSES,
    get_database_settings,
)
from .db import Database
from .errors import ChoirSearchError
from .ingestion import list_jobs, load_song_file, run_ingestion
from .query_builder import FILTER_KEYS, SearchQuery, validate_filters
from .schema import init_schema
from .search import clamp_limit, search_songs
from .submissions import approve_submission, list_submissions


@contextmanager
def open_database():
    """Open a pool for the duration of one command."""
    db = Database(get_database_settings(), minconn=1, maxconn=2)
    db.open()
    try:
        yield db
    finally:
        db.close()


def cmd_init_db(args):
    """Create tables and indexes."""
    logger.print_header("Database Setup")
    with open_database() as db:
        with logger.status("Creating schema..."):
            tables = init_schema(db)

    logger.print_success(f"Found {len(tables)} tables")
    for table in tables:
        logger.print_step(table)


def cmd_search(args):
    """Run a search and print the first page."""
    filters = validate_filters({key: getattr(args, key) for key in FILTER_KEYS})
    query = SearchQuery(
        text=args.query or "",
        filters=filters,
        page=args.page,
        limit=clamp_limit(args.limit),
    )

    with open_database() as db:
        result = search_songs(db, query)

    caption = f"Page {result.page} · {len(result.results)} of {result.total}"
    if result.has_more:
        caption += " · more available"
    logger.print_songs_table(result.results, title=f"Results for '{query.term}'", caption=caption)


def cmd_import_songs(args):
    """Import songs from a JSON file."""
    logger.console.print(f"\n[bold]Importing songs[/bold]")
    logger.console.print(f"File: {args.file}")
    logger.console.print(f"Source: {args.source}")

    if args.dry_run:
        logger.print_warning("Dry run mode - no database writes")

    songs = load_song_file(args.file)
    logger.print_step("Loaded", f"{len(songs)} songs")

    with open_database() as db:
        result = run_ingestion(
            db,
            songs,
            source=args.source,
            schedule=args.schedule,
            dry_run=args.dry_run,
        )

    logger.print_ingestion_summary(result.source, result.added, result.skipped, result.errors)


def cmd_submissions(args):
    """List user submissions."""
    with open_database() as db:
        submissions = list_submissions(db, args.status)

    if not submissions:
        logger.console.print("[yellow]No submissions[/yellow]")
        return

    logger.console.print(f"\n[bold]Submissions ({len(submissions)})[/bold]\n")

    for s in submissions[:50]:
        logger.console.print(f"[bold]{s['title']}[/bold] - {s['composer']}")
        logger.console.print(f"  ID: {s['id']}")
        logger.console.print(f"  Status: {s['status']}")
        logger.console.print(f"  Submitted: {s['submitted_at']}")
        logger.console.print()

    if len(submissions) > 50:
        logger.console.print(f"... and {len(submissions) - 50} more")


def cmd_approve(args):
    """Approve a submission and add it to the catalog."""
    with open_database() as db:
        song = approve_submission(db, args.submission_id, args.reviewer)

    logger.print_success(f"Approved as song {song['id']}: {song['title']}")


def cmd_jobs(args):
    """List ingestion jobs."""
    with open_database() as db:
        jobs = list_jobs(db, source=args.source)

    if not jobs:
        logger.console.print("[yellow]No ingestion jobs recorded[/yellow]")
        return

    for job in jobs:
        color = {"completed": "green", "failed": "red", "running": "cyan"}.get(job["status"], "yellow")
        logger.console.print(
            f"[bold]#{job['id']}[/bold] {job['source']} "
            f"[{color}]{job['status']}[/{color}] "
            f"+{job['songs_added']} ↷{job['songs_skipped']} "
            f"[dim]{job['last_run']}[/dim]"
        )
        if job.get("error_message"):
            logger.console.print(f"  [dim]{job['error_message']}[/dim]")


def cmd_keepalive(args):
    """Ping the database so the hosted project doesn't go idle."""
    db = Database(get_database_settings(), minconn=1, maxconn=1)
    try:
        db.open()
        healthy = db.ping()
    except ChoirSearchError as e:
        logger.print_error(e.message)
        healthy = False
    finally:
        db.close()

    if not healthy:
        logger.print_error("Database disconnected")
        sys.exit(1)
    logger.print_success("Database connected")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Choir sheet-music search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create database tables and indexes")

    search_parser = subparsers.add_parser("search", help="Search the catalog")
    search_parser.add_argument("query", nargs="?", default="", help="Free-text query")
    for key in FILTER_KEYS:
        search_parser.add_argument(
            f"--{key}",
            choices=FILTER_OPTIONS[key],
            help=f"Filter by {key}",
        )
    search_parser.add_argument("--page", type=int, default=1)
    search_parser.add_argument("--limit", type=int, default=DEFAULT_PAGE_LIMIT)

    import_parser = subparsers.add_parser("import-songs", help="Import songs from a JSON file")
    import_parser.add_argument("--file", type=Path, required=True, help="JSON file of songs")
    import_parser.add_argument(
        "--source",
        choices=FILTER_OPTIONS["source"],
        default="Other",
        help="Source tag for the job and for songs without one",
    )
    import_parser.add_argument("--schedule", help="Cron expression this run belongs to")
    import_parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    submissions_parser = subparsers.add_parser("submissions", help="List user submissions")
    submissions_parser.add_argument("--status", choices=SUBMISSION_STATUSES)

    approve_parser = subparsers.add_parser("approve", help="Approve a submission")
    approve_parser.add_argument("submission_id")
    approve_parser.add_argument("--reviewer", default="admin")

    jobs_parser = subparsers.add_parser("jobs", help="List ingestion jobs")
    jobs_parser.add_argument("--source")

    subparsers.add_parser("keepalive", help="Ping the database")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=HOST)
    serve_parser.add_argument("--port", type=int, default=PORT)
    serve_parser.add_argument("--reload", action="store_true")

    return parser


COMMANDS = {
    "init-db": cmd_init_db,
    "search": cmd_search,
    "import-songs": cmd_import_songs,
    "submissions": cmd_submissions,
    "approve": cmd_approve,
    "jobs": cmd_jobs,
    "keepalive": cmd_keepalive,
    "serve": cmd_serve,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.setup_logging(LOG_LEVEL)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except ChoirSearchError as e:
        logger.print_error(e.message)
        sys.exit(1)


if __name__ == "__main__":
    main()
