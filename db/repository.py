"""
Repository functions for the page cache.

Design principles (same as the rest of the data layer):
- SQLAlchemy Core, not ORM
- Functions take a Connection; the caller controls the transaction
"""

from datetime import datetime, timezone

from sqlalchemy import Connection, delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from db.tables import page_cache
from utils.logger import get_logger

logger = get_logger(__name__)


def load_all_pages(conn: Connection) -> dict[str, str]:
    """
    Read every cached page.

    Returns:
        dict: url -> content
    """
    rows = conn.execute(select(page_cache.c.url, page_cache.c.content)).all()
    return {row.url: row.content for row in rows}


def get_page(conn: Connection, url: str) -> str | None:
    row = conn.execute(
        select(page_cache.c.content).where(page_cache.c.url == url)
    ).first()
    return row.content if row else None


def upsert_page(conn: Connection, url: str, content: str) -> None:
    """
    Insert or replace a cached page.

    Args:
        conn: Open connection (caller commits)
        url: Literal URL key
        content: Raw page text
    """
    fetched_at = datetime.now(timezone.utc).isoformat()
    if conn.dialect.name == "sqlite":
        stmt = sqlite_insert(page_cache).values(url=url, content=content, fetched_at=fetched_at)
        stmt = stmt.on_conflict_do_update(
            index_elements=[page_cache.c.url],
            set_={"content": stmt.excluded.content, "fetched_at": stmt.excluded.fetched_at},
        )
        conn.execute(stmt)
        return

    # Portable path for other dialects
    conn.execute(delete(page_cache).where(page_cache.c.url == url))
    conn.execute(page_cache.insert().values(url=url, content=content, fetched_at=fetched_at))


def count_pages(conn: Connection) -> int:
    return len(conn.execute(select(page_cache.c.url)).all())
