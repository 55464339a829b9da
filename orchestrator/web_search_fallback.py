"""
Last-resort answers from external web search.

Per open question a bounded query plan is built from the question type:
domain-scoped queries first, the final slot unscoped. The first query whose
results yield a valid page-answer line wins.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from models.errors import SearchError
from models.question import Question
from orchestrator.page_extractor import PageAnswerExtractor
from orchestrator.question_classifier import QuestionClassifier
from orchestrator.stage_types import Finding, QuestionType
from utils.logger import get_logger
from utils.web_research import build_search_document

logger = get_logger(__name__)

MIN_ANSWER_CHARS = 10
SOURCE_PREFIX = "web-search:"

QUERY_TEMPLATES: dict[QuestionType, tuple[str, ...]] = {
    QuestionType.CONTACT_ADDRESS: (
        "{site} contact email",
        "{site} kontakt email",
        "{site} official contact address",
    ),
    QuestionType.EXTERNAL_RESOURCE_LINK: (
        "{site} web interface address",
        "{site} client portal url",
        "{site} interfejs webowy",
    ),
    QuestionType.CERTIFICATION_CODE: (
        "{site} ISO certification",
        "{site} certyfikaty ISO",
        "{site} quality management certificate",
    ),
    QuestionType.GENERAL: (),
}


@dataclass(frozen=True)
class PlannedQuery:
    query: str
    domain_scope: str | None


@dataclass(frozen=True)
class SearchAttempt:
    question_id: str
    query: str
    domain_scope: str | None
    result_count: int
    outcome: str
    answer: str | None = None

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "query": self.query,
            "domain_scope": self.domain_scope,
            "result_count": self.result_count,
            "outcome": self.outcome,
            "answer": self.answer,
        }


@dataclass
class SearchOutcome:
    findings: list[Finding] = field(default_factory=list)
    attempts: list[SearchAttempt] = field(default_factory=list)


class WebSearchFallback:
    def __init__(
        self,
        search_service,
        extractor: PageAnswerExtractor,
        classifier: QuestionClassifier,
        *,
        site_name: str,
        domain: str,
        max_queries: int = 5,
        request_delay_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.search_service = search_service
        self.extractor = extractor
        self.classifier = classifier
        self.site_name = site_name
        self.domain = domain
        self.max_queries = max_queries
        self.request_delay_s = request_delay_s
        self.sleep = sleep

    def plan(self, question: Question) -> list[PlannedQuery]:
        """At most ``max_queries`` queries; all but the last scoped to the domain."""
        if self.max_queries <= 0:
            return []

        qtype = self.classifier.classify(question.text)
        scoped_texts = [f"{self.site_name} {question.text}", f'"{self.site_name}" {question.text}']
        scoped_texts += [t.format(site=self.site_name) for t in QUERY_TEMPLATES.get(qtype, ())]

        unique: list[str] = []
        for text in scoped_texts:
            if text not in unique:
                unique.append(text)

        planned = [PlannedQuery(text, self.domain) for text in unique[: self.max_queries - 1]]
        planned.append(PlannedQuery(f"{self.site_name} {question.text}", None))
        return planned

    def run(self, questions: Sequence[Question]) -> SearchOutcome:
        outcome = SearchOutcome()
        for question in questions:
            for planned in self.plan(question):
                attempt = self._try(question, planned)
                outcome.attempts.append(attempt)
                if attempt.answer is not None:
                    outcome.findings.append(
                        Finding(question.id, attempt.answer, f"{SOURCE_PREFIX}{planned.query}")
                    )
                    logger.info(f"🔎 Web search answered {question.id}: {attempt.answer}")
                    break
            else:
                logger.info(f"Web search found nothing for {question.id}")
        return outcome

    def _try(self, question: Question, planned: PlannedQuery) -> SearchAttempt:
        try:
            results = self.search_service.search(planned.query, domain_scope=planned.domain_scope)
        except SearchError as e:
            logger.warning(f"Search query failed: {e}")
            return SearchAttempt(question.id, planned.query, planned.domain_scope, 0, "error")
        finally:
            self.sleep(self.request_delay_s)

        if not results:
            return SearchAttempt(question.id, planned.query, planned.domain_scope, 0, "no_results")

        document = build_search_document(results, query=planned.query)
        answers = self.extractor.extract(
            document, [question], min_length=MIN_ANSWER_CHARS, label=f"search: {planned.query}"
        )
        answer = answers.get(question.id)
        return SearchAttempt(
            question.id,
            planned.query,
            planned.domain_scope,
            len(results),
            "answered" if answer else "no_answer",
            answer,
        )
