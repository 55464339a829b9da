"""
Corpus of fetched page text.

Append-only. Holds at most ``max_chars`` characters of page text: the page
that crosses the cap is truncated to the remaining room, later pages are
recorded with empty text so their URLs still show up in the rendering.
Oracle prompts get head excerpts; pattern extraction scans the whole
(capped) corpus.
"""

from dataclasses import dataclass

from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CORPUS_MAX_CHARS = 200_000


@dataclass(frozen=True)
class CorpusEntry:
    url: str
    text: str
    truncated: bool = False


class Corpus:
    def __init__(self, max_chars: int = DEFAULT_CORPUS_MAX_CHARS):
        if max_chars <= 0:
            raise ValueError("max_chars must be positive")
        self.max_chars = max_chars
        self._entries: list[CorpusEntry] = []
        self._urls: set[str] = set()
        self._size = 0

    def append(self, url: str, text: str) -> bool:
        """
        Add a page's text. A URL is only added once.

        Returns:
            True if the entry was added
        """
        if url in self._urls:
            return False
        room = self.max_chars - self._size
        truncated = len(text) > room
        kept = text[: max(room, 0)]
        if truncated:
            logger.warning(
                f"Corpus cap reached: kept {len(kept)} of {len(text)} chars from {url}",
                extra={"extra_fields": {"url": url, "corpus_max_chars": self.max_chars}},
            )
        self._entries.append(CorpusEntry(url=url, text=kept, truncated=truncated))
        self._urls.add(url)
        self._size += len(kept)
        return True

    def __contains__(self, url: str) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def size(self) -> int:
        """Characters of page text held."""
        return self._size

    @property
    def entries(self) -> tuple[CorpusEntry, ...]:
        return tuple(self._entries)

    def render(self) -> str:
        return "".join(f"\n\n--- {e.url} ---\n{e.text}" for e in self._entries)

    def excerpt(self, limit: int) -> str:
        """Head of the rendered corpus, at most ``limit`` characters."""
        return self.render()[:limit]

    def full_text(self) -> str:
        """Page texts only, without the URL headers."""
        return "\n\n".join(e.text for e in self._entries if e.text)
