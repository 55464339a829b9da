"""Persistent page content cache keyed by the literal URL string."""

import threading

from sqlalchemy import Engine

from db.repository import load_all_pages, upsert_page
from db.tables import create_tables
from utils.logger import get_logger

logger = get_logger(__name__)


class ContentCache:
    """
    Thread-safe URL -> page text cache backed by a database table.

    All rows are read once at construction; every ``put`` is written through
    and committed immediately, so a crashed run keeps what it fetched.
    Keys are not normalized: ``https://a/x`` and ``https://a/x/`` are
    different entries.
    """

    def __init__(self, engine: Engine):
        """
        Load the cache.

        Args:
            engine: SQLAlchemy engine for the cache database
        """
        self._engine = engine
        self._lock = threading.Lock()  # seed pages are fetched concurrently
        create_tables(engine)
        with engine.connect() as conn:
            self._pages: dict[str, str] = load_all_pages(conn)
        logger.info(f"Page cache loaded with {len(self._pages)} entries")

    def get(self, url: str) -> str | None:
        """
        Look up cached content.

        Returns:
            The cached text, or None on a miss
        """
        with self._lock:
            return self._pages.get(url)

    def put(self, url: str, text: str) -> None:
        """Store page text and persist it."""
        with self._lock:
            with self._engine.begin() as conn:
                upsert_page(conn, url, text)
            self._pages[url] = text
        logger.debug(f"Cached {len(text)} chars for {url}")

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._pages

    def __len__(self) -> int:
        with self._lock:
            return len(self._pages)

    def close(self) -> None:
        """Release the engine's pooled connections."""
        self._engine.dispose()
