"""Helpers for turning search results into oracle-readable documents."""

from typing import Any, List, Sequence

from tools.web.contracts import SearchResult

MAX_SNIPPET_CHARS = 320


def trim_text(text: Any, limit: int = MAX_SNIPPET_CHARS) -> str:
    raw = str(text or "").strip()
    if len(raw) <= limit:
        return raw
    return raw[: limit - 3].rstrip() + "..."


def build_search_document(results: Sequence[SearchResult], *, query: str = "") -> str:
    """
    Synthesize one document from search results.

    Each result becomes a ``Title/URL/Description`` block so the page answer
    protocol can run over search output the same way it runs over a page.
    """
    blocks: List[str] = []
    if query:
        blocks.append(f"Search results for: {query}")

    for result in results:
        title = trim_text(result.title, limit=180)
        url = trim_text(result.url, limit=300)
        snippet = trim_text(result.snippet)
        blocks.append(f"Title: {title}\nURL: {url}\nDescription: {snippet}")

    return "\n\n".join(blocks)
