import re

import pytest

from api.base_client import BaseAIClient
from config.site_profile import SiteProfile
from db.engine import create_db_engine
from models.errors import FetchError, SearchError
from models.question import Question
from orchestrator.oracle import JudgmentOracle
from orchestrator.stage_types import CrawlBudget
from tools.web.cache import ContentCache
from tools.web.contracts import SearchResult


class ScriptedClient(BaseAIClient):
    """LLM client stand-in: a responder callable maps the prompt to a reply."""

    provider_name = "scripted"

    def __init__(self, responder):
        self.api_key = "test"
        self.model_name = "scripted"
        self.responder = responder
        self.prompts: list[str] = []

    def get_completion(self, prompt: str, **kwargs):
        self.prompts.append(prompt)
        reply = self.responder(prompt)
        if reply is None:
            return None, None
        return reply, {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}


class SiteOracle:
    """
    Deterministic oracle for scenario tests.

    Page extraction answers a question only when its known fact appears
    literally in the document. Other prompt kinds are answered from the
    configured replies; ``None`` simulates a failed call.
    """

    def __init__(
        self,
        facts: dict[str, str] | None = None,
        ranking: str | None = None,
        suggestions: str | None = '{"suggested_paths": []}',
        adjudication: str | None = "NOT_FOUND",
        inference: str | None = "CANNOT_INFER",
    ):
        self.facts = facts or {}
        self.ranking = ranking
        self.suggestions = suggestions
        self.adjudication = adjudication
        self.inference = inference
        self.calls: list[str] = []

    def __call__(self, prompt: str) -> str | None:
        if "RESPONSE FORMAT" in prompt:
            self.calls.append("extract")
            return self._extract(prompt)
        if "prioritized_links" in prompt:
            self.calls.append("rank")
            if self.ranking is None:
                return None
            return self.ranking
        if "suggested_paths" in prompt:
            self.calls.append("suggest")
            return self.suggestions
        if "candidate values were found verbatim" in prompt:
            self.calls.append("adjudicate")
            return self.adjudication
        if "general knowledge" in prompt:
            self.calls.append("infer")
            return self.inference
        raise AssertionError(f"Unexpected prompt: {prompt[:80]}")

    def _extract(self, prompt: str) -> str:
        listing = prompt.split("answer these questions:", 1)[1].split("RESPONSE FORMAT", 1)[0]
        document = prompt.split("Do not invent answers.", 1)[1]
        ids = re.findall(r"^(\S+): ", listing.strip(), re.MULTILINE)
        lines = []
        for qid in ids:
            fact = self.facts.get(qid)
            lines.append(f"{qid}: {fact if fact and fact in document else 'NOT_FOUND'}")
        return "\n".join(lines)


class FakeFetcher:
    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.calls: list[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, "HTTP 404", 404)
        return self.pages[url]

    def close(self) -> None:
        pass


class FakeSearch:
    def __init__(self, results: dict[str, list[SearchResult]] | None = None, fail: bool = False):
        self.results = results or {}
        self.fail = fail
        self.calls: list[tuple[str, str | None]] = []

    def search(self, query: str, domain_scope: str | None = None) -> list[SearchResult]:
        self.calls.append((query, domain_scope))
        if self.fail:
            raise SearchError("search backend down")
        return self.results.get(query, [])


@pytest.fixture
def cache(tmp_path):
    return ContentCache(create_db_engine(f"sqlite:///{tmp_path / 'cache.db'}"))


@pytest.fixture
def profile():
    return SiteProfile.from_dict(
        {
            "site_name": "Example",
            "base_url": "https://example.org",
            "domain": "example.org",
        }
    )


@pytest.fixture
def budget():
    return CrawlBudget(request_delay_s=0.0)


@pytest.fixture
def make_oracle():
    def _make(responder):
        return JudgmentOracle(ScriptedClient(responder))

    return _make


@pytest.fixture
def questions():
    def _make(mapping: dict[str, str]) -> list[Question]:
        return [Question(qid, text) for qid, text in mapping.items()]

    return _make


@pytest.fixture
def site_oracle():
    return SiteOracle


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def fake_search():
    return FakeSearch
