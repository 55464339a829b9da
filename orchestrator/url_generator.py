from collections.abc import Sequence

from models.errors import OracleError
from models.question import Question
from orchestrator.oracle import JudgmentOracle
from orchestrator.oracle_schemas import parse_suggested_paths
from orchestrator.stage_types import ParseError
from tools.web.link_extractor import LinkExtractor, resolve_link
from utils.logger import get_logger

logger = get_logger(__name__)

SUGGEST_PROMPT = """The crawl of {site} ({base_url}) has run out of links, but these questions are still unanswered:

{questions}

Already visited:
{visited}

Suggest up to {limit} additional paths that probably exist on this site and may hold the answers. Think of common site structure: about, company, history, contact, team, clients, portfolio, certificates, quality, awards, press, news. Polish sites often use paths such as o-firmie, kontakt, klienci, certyfikaty.

Respond with JSON only:
{{"suggested_paths": ["/about", "/certificates"]}}"""


class TargetedUrlGenerator:
    """Proposes unvisited in-domain URLs for questions the crawl did not answer."""

    def __init__(
        self,
        oracle: JudgmentOracle,
        link_extractor: LinkExtractor,
        *,
        base_url: str,
        fallback_paths: Sequence[str] = (),
        site_name: str = "the website",
    ):
        self.oracle = oracle
        self.link_extractor = link_extractor
        self.base_url = base_url
        self.fallback_paths = list(fallback_paths)
        self.site_name = site_name

    def generate(self, questions: Sequence[Question], visited: Sequence[str] = (), limit: int = 15) -> list[str]:
        """
        Returns:
            Absolute in-domain URLs, deduplicated, in suggestion order. Falls
            back to the static path list when the oracle fails or replies
            malformed JSON.
        """
        if not questions:
            return []

        prompt = SUGGEST_PROMPT.format(
            site=self.site_name,
            base_url=self.base_url,
            questions="\n".join(f"{q.id}: {q.text}" for q in questions),
            visited="\n".join(visited[:50]) or "(none)",
            limit=limit,
        )

        try:
            reply = self.oracle.ask(prompt)
        except OracleError as e:
            logger.warning(f"URL suggestion failed, using fallback paths: {e}")
            return self._resolve(self.fallback_paths)

        parsed = parse_suggested_paths(reply)
        if isinstance(parsed, ParseError):
            logger.warning(f"Unparseable URL suggestions, using fallback paths: {parsed.reason}")
            return self._resolve(self.fallback_paths)

        urls = self._resolve(parsed.value)
        logger.info(f"🧭 Oracle suggested {len(parsed.value)} paths, {len(urls)} usable")
        return urls

    def _resolve(self, paths: Sequence[str]) -> list[str]:
        urls: list[str] = []
        for path in paths:
            url = resolve_link(path, self.base_url)
            if url and self.link_extractor.is_in_domain(url) and url not in urls:
                urls.append(url)
        return urls
