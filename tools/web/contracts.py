"""Data contracts for the web collaborators."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SearchResult:
    """Result from a search provider."""

    title: str
    url: str
    snippet: str = ""


@dataclass(frozen=True)
class LabeledLink:
    """A ``[label](url)`` link found in page text, resolved to an absolute URL."""

    label: str
    url: str
