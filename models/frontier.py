"""Crawl frontier bookkeeping."""

from dataclasses import dataclass, field


@dataclass
class FrontierState:
    """
    URLs known to the crawl and where each one stands.

    Invariants:
    - queue and fetched_urls are disjoint
    - a URL enters the queue at most once per run

    Attributes:
        seen_urls: Every URL ever discovered (links, seeds, generated guesses)
        fetched_urls: URLs whose content was retrieved (network or cache)
        exhausted_urls: URLs whose fetch failed; never retried in this run
        queue: Pending URLs in priority order
    """

    seen_urls: set[str] = field(default_factory=set)
    fetched_urls: set[str] = field(default_factory=set)
    exhausted_urls: set[str] = field(default_factory=set)
    queue: list[str] = field(default_factory=list)
    _ever_queued: set[str] = field(default_factory=set, repr=False)

    def mark_seen(self, url: str) -> bool:
        """Record a URL as discovered. Returns True if it was new."""
        if url in self.seen_urls:
            return False
        self.seen_urls.add(url)
        return True

    def is_settled(self, url: str) -> bool:
        """True if the URL was fetched or failed already."""
        return url in self.fetched_urls or url in self.exhausted_urls

    def enqueue(self, url: str) -> bool:
        """Append a URL to the queue unless it was queued before or is settled."""
        if url in self._ever_queued or self.is_settled(url):
            return False
        self.seen_urls.add(url)
        self._ever_queued.add(url)
        self.queue.append(url)
        return True

    def take_queue(self) -> list[str]:
        """Remove and return everything queued, in order."""
        batch, self.queue = self.queue, []
        return batch

    def mark_fetched(self, url: str) -> None:
        self.seen_urls.add(url)
        self.fetched_urls.add(url)
        if url in self.queue:
            self.queue.remove(url)

    def mark_exhausted(self, url: str) -> None:
        self.seen_urls.add(url)
        self.exhausted_urls.add(url)
        if url in self.queue:
            self.queue.remove(url)

    def unfetched_seen(self) -> list[str]:
        """Discovered URLs that were neither fetched nor exhausted, sorted for determinism."""
        return sorted(u for u in self.seen_urls if not self.is_settled(u) and u not in self.queue)
