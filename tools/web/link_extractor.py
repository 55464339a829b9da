"""
Link extraction for a closed-world crawl.

Two link syntaxes are recognised independently: labeled links
``[label](target)`` as produced by markdown renderings, and ``href="target"``
attributes in raw HTML. Only URLs on the allow-listed host survive.
"""

import re
from collections.abc import Collection
from urllib.parse import urljoin, urlparse

from tools.web.contracts import LabeledLink

LABELED_LINK_RE = re.compile(r"\[([^\]]*)\]\(\s*([^)\s]+)(?:\s+\"[^\"]*\")?\s*\)")
HREF_RE = re.compile(r"""href\s*=\s*["']([^"']+)["']""", re.IGNORECASE)

_SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")


def resolve_link(target: str, base_url: str) -> str | None:
    """
    Resolve a link target to an absolute http(s) URL without its fragment.

    Returns:
        The absolute URL, or None for targets that are not page links
    """
    target = target.strip()
    if not target or target.startswith("#") or target.lower().startswith(_SKIPPED_SCHEMES):
        return None
    try:
        absolute = urljoin(base_url, target)
    except ValueError:
        # e.g. an unterminated IPv6 host such as "http://[broken"
        return None
    if not absolute.startswith(("http://", "https://")):
        return None
    return absolute.split("#", 1)[0]


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def labeled_links(text: str, base_url: str) -> list[LabeledLink]:
    """All ``[label](target)`` links in order, resolved, any host."""
    links = []
    for match in LABELED_LINK_RE.finditer(text):
        url = resolve_link(match.group(2), base_url)
        if url:
            links.append(LabeledLink(label=match.group(1).strip(), url=url))
    return links


class LinkExtractor:
    """Pulls in-domain candidate links out of page text."""

    def __init__(self, domain: str):
        self.domain = domain.lower()

    def is_in_domain(self, url: str) -> bool:
        return host_of(url) == self.domain

    def extract(self, text: str, base_url: str, seen: Collection[str] = ()) -> list[str]:
        """
        Find new candidate URLs in a page.

        Args:
            text: Page content (markdown or HTML)
            base_url: URL the content was fetched from, for relative links
            seen: URLs already discovered; never returned again

        Returns:
            New in-domain URLs in discovery order, without duplicates
        """
        targets = [m.group(2) for m in LABELED_LINK_RE.finditer(text)]
        targets += [m.group(1) for m in HREF_RE.finditer(text)]

        candidates: list[str] = []
        emitted: set[str] = set()
        for target in targets:
            url = resolve_link(target, base_url)
            if url is None or not self.is_in_domain(url):
                continue
            if url in seen or url in emitted:
                continue
            emitted.add(url)
            candidates.append(url)
        return candidates
