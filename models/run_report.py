"""Outcome of one agent run, handed to the reporting sinks."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from models.answer import Answer, Refinement
from models.question import Question


@dataclass
class StageRecord:
    stage: str
    outstanding_at_entry: int
    reason: str
    answered: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "outstanding_at_entry": self.outstanding_at_entry,
            "reason": self.reason,
            "answered": self.answered,
        }


@dataclass
class RunStats:
    discovered_urls: int = 0
    fetched_urls: int = 0
    exhausted_urls: int = 0
    network_fetches: int = 0
    cache_hits: int = 0
    search_queries: int = 0
    corpus_pages: int = 0
    corpus_chars: int = 0
    oracle: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "discovered_urls": self.discovered_urls,
            "fetched_urls": self.fetched_urls,
            "exhausted_urls": self.exhausted_urls,
            "network_fetches": self.network_fetches,
            "cache_hits": self.cache_hits,
            "search_queries": self.search_queries,
            "corpus_pages": self.corpus_pages,
            "corpus_chars": self.corpus_chars,
            "oracle": self.oracle,
        }


@dataclass
class RunReport:
    questions: list[Question]
    answers: list[Answer]
    unanswered_ids: list[str]
    refinements: list[Refinement] = field(default_factory=list)
    stage_history: list[StageRecord] = field(default_factory=list)
    search_attempts: list[Any] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)
    site: str = ""
    finished_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def answer_map(self) -> dict[str, str]:
        return {a.question_id: a.text for a in self.answers}

    @property
    def success_rate(self) -> float:
        if not self.questions:
            return 0.0
        return len(self.answers) / len(self.questions)

    @property
    def stages_visited(self) -> list[str]:
        return [record.stage for record in self.stage_history]

    def to_dict(self) -> dict[str, Any]:
        return {
            "site": self.site,
            "finished_at": self.finished_at,
            "questions": {q.id: q.text for q in self.questions},
            "answers": [a.to_dict() for a in self.answers],
            "unanswered_ids": list(self.unanswered_ids),
            "refinements": [r.to_dict() for r in self.refinements],
            "stage_history": [s.to_dict() for s in self.stage_history],
            "web_search_attempts": [a.to_dict() for a in self.search_attempts],
            "summary": {
                "total_questions": len(self.questions),
                "answered": len(self.answers),
                "success_rate": round(self.success_rate, 3),
                **self.stats.to_dict(),
            },
        }
