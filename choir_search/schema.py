"""
Database schema for the choir music catalog.

init_schema() is idempotent; run it once against a fresh database (the
`init-db` CLI command does this).
"""

import logging

from .config import FILTER_OPTIONS, SUBMISSION_STATUSES
from .query_builder import SEARCH_VECTOR

logger = logging.getLogger(__name__)


def _sql_list(values) -> str:
    # Static option sets from config only
    return ", ".join(f"'{v}'" for v in values)


def _option_check(column: str) -> str:
    return f"CHECK ({column} IN ({_sql_list(FILTER_OPTIONS[column])}))"


SCHEMA = f"""
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS songs (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title TEXT NOT NULL,
    composer TEXT NOT NULL,
    text_writer TEXT,
    description TEXT,
    source_link TEXT NOT NULL,
    audio_link TEXT,
    source TEXT NOT NULL {_option_check('source')},
    language TEXT {_option_check('language')},
    voicing TEXT {_option_check('voicing')},
    difficulty TEXT {_option_check('difficulty')},
    season TEXT {_option_check('season')},
    theme TEXT {_option_check('theme')},
    period TEXT,
    search_text TEXT,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    last_verified TIMESTAMPTZ
);

CREATE INDEX IF NOT EXISTS idx_songs_search ON songs USING GIN (({SEARCH_VECTOR}));
CREATE INDEX IF NOT EXISTS idx_songs_language ON songs(language);
CREATE INDEX IF NOT EXISTS idx_songs_voicing ON songs(voicing);
CREATE INDEX IF NOT EXISTS idx_songs_difficulty ON songs(difficulty);
CREATE INDEX IF NOT EXISTS idx_songs_season ON songs(season);
CREATE INDEX IF NOT EXISTS idx_songs_theme ON songs(theme);
CREATE INDEX IF NOT EXISTS idx_songs_source ON songs(source);
CREATE INDEX IF NOT EXISTS idx_songs_active_updated ON songs(is_active, updated_at DESC);

CREATE TABLE IF NOT EXISTS user_submissions (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id TEXT,
    title TEXT NOT NULL,
    composer TEXT NOT NULL,
    source_link TEXT NOT NULL,
    description TEXT,
    language TEXT {_option_check('language')},
    voicing TEXT {_option_check('voicing')},
    difficulty TEXT {_option_check('difficulty')},
    season TEXT {_option_check('season')},
    theme TEXT {_option_check('theme')},
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ({_sql_list(SUBMISSION_STATUSES)})),
    submitted_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    reviewed_at TIMESTAMPTZ,
    reviewed_by TEXT
);

CREATE INDEX IF NOT EXISTS idx_submissions_status ON user_submissions(status, submitted_at DESC);

CREATE TABLE IF NOT EXISTS ingestion_jobs (
    id SERIAL PRIMARY KEY,
    source TEXT NOT NULL,
    schedule TEXT,
    last_run TIMESTAMPTZ,
    next_run TIMESTAMPTZ,
    status TEXT NOT NULL DEFAULT 'pending',
    songs_added INTEGER NOT NULL DEFAULT 0,
    songs_skipped INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_ingestion_jobs_source ON ingestion_jobs(source, created_at DESC);
"""

TABLES = ("songs", "user_submissions", "ingestion_jobs")


def split_statements(script: str) -> list[str]:
    """Split a schema script into individual statements."""
    return [stmt.strip() for stmt in script.split(";") if stmt.strip()]


def init_schema(db) -> list[str]:
    """
    Create tables and indexes if they don't exist.

    Args:
        db: Database (all statements run in one transaction)

    Returns:
        Names of the public tables present afterwards
    """
    with db.transaction() as tx:
        for statement in split_statements(SCHEMA):
            logger.debug(f"Executing: {statement[:60]}...")
            tx.execute(statement)

        rows = tx.fetch_all(
            """
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = 'public'
            ORDER BY table_name
            """
        )

    tables = [row["table_name"] for row in rows]
    logger.info(f"Schema ready: {', '.join(tables)}")
    return tables
