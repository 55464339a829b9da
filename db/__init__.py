"""
Database package for the page cache.
Provides the SQLAlchemy engine, the cache table and repository functions.
"""

from db.engine import create_db_engine, get_engine
from db.repository import count_pages, get_page, load_all_pages, upsert_page
from db.tables import create_tables, metadata, page_cache

__all__ = [
    "count_pages",
    "create_db_engine",
    "create_tables",
    "get_engine",
    "get_page",
    "load_all_pages",
    "metadata",
    "page_cache",
    "upsert_page",
]
