"""Factories for the web collaborators, configured from the environment."""

from db.engine import create_db_engine
from models.errors import ConfigError
from utils.logger import get_logger

from .cache import ContentCache
from .fetcher import HttpFetcher
from .tavily_client import TavilySearchService

logger = get_logger(__name__)


def create_page_cache(database_url: str | None = None) -> ContentCache:
    """
    Open the persistent page cache.

    Args:
        database_url: SQLAlchemy URL; CACHE_DATABASE_URL or the default
            SQLite file when omitted
    """
    return ContentCache(create_db_engine(database_url))


def create_fetcher(timeout_s: float = 15.0) -> HttpFetcher:
    return HttpFetcher(timeout_s=timeout_s)


def create_search_service_from_env(api_key: str | None = None) -> TavilySearchService | None:
    """
    Create the Tavily search service.

    Returns:
        The service, or None when no TAVILY_API_KEY is configured; the web
        search stage is then skipped
    """
    try:
        service = TavilySearchService(api_key=api_key)
    except ConfigError as e:
        logger.warning(f"Web search disabled: {e}")
        return None
    logger.info("🚀 Using Tavily for the web search fallback")
    return service
