"""
Table definitions for the page cache.

Unlike a reflected schema, the cache owns its table and creates it on
demand with ``create_tables``.
"""

from sqlalchemy import Column, Engine, MetaData, String, Table, Text

from utils.logger import get_logger

logger = get_logger(__name__)

metadata = MetaData()

# Keyed by the literal URL string: no normalization, trailing slashes matter.
page_cache = Table(
    "page_cache",
    metadata,
    Column("url", String, primary_key=True),
    Column("content", Text, nullable=False),
    Column("fetched_at", String, nullable=False),
)


def create_tables(engine: Engine) -> None:
    """Create the cache tables if they do not exist yet."""
    metadata.create_all(engine)
    logger.debug("Cache tables ensured")
