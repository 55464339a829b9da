from collections.abc import Sequence

from models.errors import OracleError
from models.question import Question
from orchestrator.oracle import JudgmentOracle
from orchestrator.oracle_schemas import parse_prioritized_links
from orchestrator.stage_types import ParseError, RankedLink
from utils.logger import get_logger

logger = get_logger(__name__)

CONTEXT_CHARS = 1000
MIN_SCORE = 6
FALLBACK_COUNT = 3
FALLBACK_REASON = "fallback selection"

PRIORITIZE_PROMPT = """You need to prioritize which links from the {site} website are most likely to contain answers to these questions.

Questions we need to answer:
{questions}

Available links to check:
{links}

Context from the current page:
{context}

Rate each link from 1-10 based on how likely it is to contain answers to our questions. Consider:
- Link URL structure and keywords (about, contact, clients, portfolio, certificates)
- Which sections typically hold company and client information
- Skip duplicate or decoy-looking pages

Respond with JSON only:
{{"prioritized_links": [{{"url": "full_url_here", "score": 8, "reason": "likely contains contact information"}}]}}

Only include links with score {min_score} or higher, at most {max_links} links, and only URLs from the list above."""


class RelevancePrioritizer:
    """Ranks candidate links against the questions still open."""

    def __init__(self, oracle: JudgmentOracle, *, site_name: str = "target", max_links: int = 5):
        self.oracle = oracle
        self.site_name = site_name
        self.max_links = max_links

    def rank(self, questions: Sequence[Question], candidates: Sequence[str], context: str) -> list[RankedLink]:
        """
        Pick the candidates worth fetching next.

        Returns:
            At most ``max_links`` links scored 6 or higher, best first. When the
            oracle fails or replies malformed JSON, the first three candidates
            in discovery order with scores 8, 7, 6.
        """
        if not candidates or not questions:
            return []

        prompt = PRIORITIZE_PROMPT.format(
            site=self.site_name,
            questions="\n".join(f"{q.id}: {q.text}" for q in questions),
            links="\n".join(f"{i}. {url}" for i, url in enumerate(candidates, start=1)),
            context=context[:CONTEXT_CHARS],
            min_score=MIN_SCORE,
            max_links=self.max_links,
        )

        try:
            reply = self.oracle.ask(prompt)
        except OracleError as e:
            logger.warning(f"Link prioritization failed, using fallback selection: {e}")
            return self._fallback(candidates)

        parsed = parse_prioritized_links(reply)
        if isinstance(parsed, ParseError):
            logger.warning(
                f"Unparseable link ranking, using fallback selection: {parsed.reason}",
                extra={"extra_fields": {"reply_preview": parsed.raw[:200]}},
            )
            return self._fallback(candidates)

        allowed = set(candidates)
        picked: dict[str, RankedLink] = {}
        for item in parsed.value:
            url = item.url.strip()
            if url not in allowed or item.score < MIN_SCORE or url in picked:
                continue
            picked[url] = RankedLink(url=url, score=item.score, reason=item.reason)

        ranked = sorted(picked.values(), key=lambda link: link.score, reverse=True)[: self.max_links]
        logger.info(f"🔗 Ranked {len(ranked)} of {len(candidates)} candidate links")
        return ranked

    def _fallback(self, candidates: Sequence[str]) -> list[RankedLink]:
        return [
            RankedLink(url=url, score=8 - index, reason=FALLBACK_REASON)
            for index, url in enumerate(candidates[:FALLBACK_COUNT])
        ]
