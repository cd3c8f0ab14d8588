"""
Configuration for the choir music search service.

NOTE: This module reads from environment variables.
      The .env file must be loaded by the entry point (api/main.py or cli.py)
      using python-dotenv BEFORE importing this module.
"""

import os
from dataclasses import dataclass
from typing import Optional


# ===================
# Environment
# ===================
APP_ENV = os.environ.get("APP_ENV") or os.environ.get("NODE_ENV", "development")
IS_PRODUCTION = APP_ENV == "production"

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


# ===================
# HTTP Server
# ===================
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", 3001))

# Permissive by default
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]


# ===================
# Database
# ===================
DB_POOL_MIN = int(os.environ.get("DB_POOL_MIN", 1))
DB_POOL_MAX = int(os.environ.get("DB_POOL_MAX", 10))

# Postgres text search configuration used for to_tsvector/plainto_tsquery
TEXT_SEARCH_CONFIG = "english"


# ===================
# Search Settings
# ===================
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100

DEFAULT_SUGGESTION_LIMIT = 10
MIN_SUGGESTION_QUERY = 2  # Shorter queries return no suggestions

# Front page examples
EXAMPLE_COUNT = 6
EXAMPLE_POOL = 50  # Most recent songs to sample from


# ===================
# Catalog Options
# ===================
DEFAULT_SUBMISSION_SOURCE = "Other"

SOURCE_OPTIONS = (
    "IMSLP",
    "Hymnary",
    "ChoralNet",
    "MuseScore",
    "SundMusik",
    "ChorusOnline",
    "HalLeonard",
    "FluegelMusic",
    "CarusVerlag",
    "SchottMusic",
    "StrettaMusic",
    "CPDL",
    "Musopen",
    "Other",
)

# Closed value sets for the filterable columns, shared by writes, schema
# CHECK constraints and search filters.
FILTER_OPTIONS: dict[str, tuple[str, ...]] = {
    "language": (
        "English", "Latin", "German", "French", "Italian", "Spanish",
        "Swedish", "Norwegian", "Danish", "Macedonian", "Serbian", "Various",
    ),
    "voicing": (
        "SA", "SSA", "SSAA", "SAB", "SATB", "SSATB", "SSAATTBB",
        "TTBB", "TB", "Unison",
    ),
    "difficulty": ("Easy", "Beginner", "Intermediate", "Advanced"),
    "season": (
        "Advent", "Christmas", "Epiphany", "Lent", "Easter", "Pentecost",
        "Summer", "Autumn", "Winter", "Spring", "General",
    ),
    "theme": (
        "Sacred", "Secular", "Folk", "Spiritual", "Hymn", "Celebration",
        "Popular", "Musical", "Love", "Nature", "Peace", "Patriotic",
    ),
    "source": SOURCE_OPTIONS,
}

SUBMISSION_STATUSES = ("pending", "approved", "rejected")


# ===================
# Helper Functions
# ===================
@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings for the Postgres database."""

    dsn: Optional[str]
    host: str
    port: int
    user: str
    password: str
    dbname: str
    sslmode: str

    def connect_kwargs(self) -> dict:
        """Keyword arguments for psycopg2.connect / connection pools."""
        if self.dsn:
            return {"dsn": self.dsn, "sslmode": self.sslmode}
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "dbname": self.dbname,
            "sslmode": self.sslmode,
        }

    def describe(self) -> str:
        """Human-readable target without credentials."""
        if self.dsn:
            host = self.dsn.rsplit("@", 1)[-1]
            return f"DATABASE_URL ({host})"
        return f"{self.host}:{self.port}/{self.dbname}"


def get_database_settings(environ: Optional[dict] = None) -> DatabaseSettings:
    """
    Build database settings from environment variables.

    DATABASE_URL is preferred; discrete DB_* variables are the fallback for
    local development. Production forces SSL without certificate
    verification (sslmode=require).

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        DatabaseSettings
    """
    env = os.environ if environ is None else environ

    app_env = env.get("APP_ENV") or env.get("NODE_ENV", "development")
    default_sslmode = "require" if app_env == "production" else "disable"

    return DatabaseSettings(
        dsn=env.get("DATABASE_URL") or None,
        host=env.get("DB_HOST", "localhost"),
        port=int(env.get("DB_PORT", 5432)),
        user=env.get("DB_USER", "postgres"),
        password=env.get("DB_PASSWORD", ""),
        dbname=env.get("DB_NAME", "choir_music_search"),
        sslmode=env.get("DB_SSLMODE", default_sslmode),
    )
