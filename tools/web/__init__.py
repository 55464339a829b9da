"""Web collaborators: fetching, caching, link extraction and search."""

from .cache import ContentCache
from .contracts import LabeledLink, SearchResult
from .factory import create_fetcher, create_page_cache, create_search_service_from_env
from .fetcher import HttpFetcher
from .link_extractor import LinkExtractor, labeled_links

__all__ = [
    "ContentCache",
    "HttpFetcher",
    "LabeledLink",
    "LinkExtractor",
    "SearchResult",
    "create_fetcher",
    "create_page_cache",
    "create_search_service_from_env",
    "labeled_links",
]
