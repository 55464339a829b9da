from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class Stage(str, Enum):
    INIT = "INIT"
    SEED_SPECIFIC_PAGES = "SEED_SPECIFIC_PAGES"
    BFS_CRAWL = "BFS_CRAWL"
    ADDITIONAL_URL_DISCOVERY = "ADDITIONAL_URL_DISCOVERY"
    PATTERN_EXTRACTION = "PATTERN_EXTRACTION"
    CORPUS_INFERENCE = "CORPUS_INFERENCE"
    WEB_SEARCH = "WEB_SEARCH"
    DONE = "DONE"


# Waterfall order; DONE is terminal.
STAGE_ORDER: tuple[Stage, ...] = (
    Stage.INIT,
    Stage.SEED_SPECIFIC_PAGES,
    Stage.BFS_CRAWL,
    Stage.ADDITIONAL_URL_DISCOVERY,
    Stage.PATTERN_EXTRACTION,
    Stage.CORPUS_INFERENCE,
    Stage.WEB_SEARCH,
    Stage.DONE,
)


class QuestionType(str, Enum):
    CONTACT_ADDRESS = "contact-address"
    EXTERNAL_RESOURCE_LINK = "external-resource-link"
    CERTIFICATION_CODE = "certification-code"
    GENERAL = "general"


class NextAction(str, Enum):
    ESCALATE = "escalate"
    STOP = "stop"


@dataclass(frozen=True)
class StageDecision:
    action: NextAction
    next_stage: Stage
    reason: str


@dataclass(frozen=True)
class CrawlBudget:
    """Every loop ceiling of a run, in one place."""

    max_depth: int = 2
    max_urls_per_tier: int = 15
    max_search_queries_per_question: int = 5
    max_seed_pages: int = 10
    max_ranked_links: int = 5
    request_delay_s: float = 1.0
    corpus_max_chars: int = 200_000

    def check(self) -> None:
        for name in (
            "max_depth",
            "max_urls_per_tier",
            "max_search_queries_per_question",
            "max_seed_pages",
            "max_ranked_links",
            "corpus_max_chars",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"Budget value {name} must be positive")
        if self.request_delay_s < 0:
            raise ValueError("Budget value request_delay_s must not be negative")


@dataclass(frozen=True)
class RankedLink:
    url: str
    score: int
    reason: str = ""


# Tagged result of parsing an oracle reply.
@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class ParseError:
    reason: str
    raw: str = ""


ParseResult = Union[Ok[T], ParseError]


@dataclass(frozen=True)
class Finding:
    """An answer proposed by a tier, before the orchestrator records it."""

    question_id: str
    text: str
    source: str
