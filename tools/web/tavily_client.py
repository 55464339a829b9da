"""Tavily-backed search service for the web search fallback."""

import os

from models.errors import ConfigError, SearchError
from utils.logger import get_logger

from .contracts import SearchResult

logger = get_logger(__name__)


class TavilySearchService:
    """
    Scoped or unscoped web search through the Tavily API.

    Domain scoping maps to Tavily's ``include_domains`` filter.
    """

    def __init__(self, api_key: str | None = None, max_results: int = 6, client=None):
        """
        Initialize the search service.

        Args:
            api_key: Tavily API key (defaults to TAVILY_API_KEY env var)
            max_results: Results requested per query
            client: Pre-built client object exposing ``search(**kwargs)``
        """
        self.max_results = max_results

        if client is not None:
            self.client = client
            return

        self.api_key = api_key or os.getenv("TAVILY_API_KEY")
        if not self.api_key:
            raise ConfigError("TAVILY_API_KEY not found in environment")

        from tavily import TavilyClient

        self.client = TavilyClient(api_key=self.api_key)
        logger.info("Tavily search client initialized")

    def search(self, query: str, domain_scope: str | None = None) -> list[SearchResult]:
        """
        Run one search.

        Args:
            query: Search query
            domain_scope: Restrict results to this domain when given

        Returns:
            Results in provider ranking order (may be empty)

        Raises:
            SearchError: If the provider call fails
        """
        scope_note = f" [site:{domain_scope}]" if domain_scope else ""
        logger.info(f"🌐 Searching: '{query}'{scope_note}")

        kwargs = {
            "query": query,
            "max_results": self.max_results,
            "search_depth": "basic",
            "include_answer": False,
            "include_raw_content": False,
        }
        if domain_scope:
            kwargs["include_domains"] = [domain_scope]

        try:
            response = self.client.search(**kwargs)
        except Exception as e:
            raise SearchError(f"Tavily search failed for '{query}': {e}") from e

        results = []
        for item in response.get("results", []) or []:
            url = str(item.get("url") or "").strip()
            if not url:
                continue
            results.append(
                SearchResult(
                    title=str(item.get("title") or "Untitled").strip(),
                    url=url,
                    snippet=str(item.get("content") or "").strip(),
                )
            )

        logger.info(f"Search returned {len(results)} results for '{query}'")
        return results
