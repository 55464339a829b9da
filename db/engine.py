"""
SQLAlchemy engine configuration for the page cache database.

The cache lives in a local SQLite file by default; any SQLAlchemy URL can be
supplied through CACHE_DATABASE_URL.
"""

import os
from pathlib import Path

from sqlalchemy import Engine, create_engine

from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_DATABASE_URL = "sqlite:///.cache/page_cache.db"


def get_database_url() -> str:
    """
    Resolve the cache database URL.

    Returns:
        str: CACHE_DATABASE_URL or the default SQLite file URL
    """
    return os.getenv("CACHE_DATABASE_URL", DEFAULT_CACHE_DATABASE_URL)


def _ensure_sqlite_parent(database_url: str) -> None:
    """Create the directory holding a file-backed SQLite database."""
    prefix = "sqlite:///"
    if not database_url.startswith(prefix):
        return
    db_path = database_url[len(prefix):]
    if not db_path or db_path == ":memory:":
        return
    Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Create a SQLAlchemy engine for the page cache.

    Args:
        database_url: Explicit URL; defaults to get_database_url()

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    url = database_url or get_database_url()
    _ensure_sqlite_parent(url)

    logger.info(
        "Creating cache database engine",
        extra={"extra_fields": {"dialect": url.split(":", 1)[0]}},
    )

    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, echo=False)


# Lazy engine singleton for the default URL
_ENGINE: Engine | None = None


def get_engine() -> Engine:
    """
    Get or create the default cache engine.

    Note:
        Created on first call, not at import time.
    """
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = create_db_engine()
    return _ENGINE
