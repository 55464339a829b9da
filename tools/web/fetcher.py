"""HTTP page fetcher for the crawl."""

import re

import httpx
from bs4 import BeautifulSoup
from markdownify import markdownify as md

from models.errors import FetchError
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 15.0
MIN_CONTENT_CHARS = 10
DEFAULT_USER_AGENT = "site-evidence-agent/1.0 (+https://github.com/)"

_NOISE_TAGS = ["script", "style", "noscript", "iframe", "svg", "template"]
_BLANK_LINES_RE = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


def html_to_markdown(html: str) -> str:
    """
    Render an HTML page as markdown.

    Scripts and styles are dropped; anchors become ``[label](href)`` with the
    href left as written so the link extractor resolves it against the page URL.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_NOISE_TAGS):
        tag.decompose()
    markdown = md(
        str(soup),
        heading_style="ATX",
        autolinks=False,
        escape_underscores=False,
        escape_asterisks=False,
    )
    return _BLANK_LINES_RE.sub("\n\n", markdown).strip()


def _is_html(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "").lower()
    return "html" in content_type


class HttpFetcher:
    """
    Retrieves page text over HTTP(S).

    HTML responses are rendered to markdown; other text bodies are returned
    as-is. Raises FetchError on network failure, timeout, non-2xx status or a
    body too short to be meaningful. Redirects are followed.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.Client | None = None,
    ):
        self._client = client or httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    def fetch(self, url: str) -> str:
        """
        Fetch a page.

        Args:
            url: Absolute URL

        Returns:
            Page content as markdown (HTML) or stripped text

        Raises:
            FetchError: On any failure
        """
        logger.info(f"🔍 Fetching {url}")
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"HTTP {e.response.status_code}", e.response.status_code) from e
        except httpx.TimeoutException as e:
            raise FetchError(url, "timeout") from e
        except httpx.HTTPError as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e

        if _is_html(response):
            content = html_to_markdown(response.text)
        else:
            content = response.text.strip()
        if len(content) < MIN_CONTENT_CHARS:
            raise FetchError(url, "no meaningful content", response.status_code)
        return content

    def close(self) -> None:
        self._client.close()
