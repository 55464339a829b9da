import pytest

from models.question import Question
from orchestrator.page_extractor import PageAnswerExtractor
from orchestrator.question_classifier import QuestionClassifier
from orchestrator.web_search_fallback import WebSearchFallback
from tools.web.contracts import SearchResult
from utils.web_research import build_search_document, trim_text

EMAIL_Q = Question("01", "What is the contact email?")
ISO_Q = Question("03", "Which ISO certificates does the company hold?")


def _fallback(search, oracle, max_queries=5, sleep=None):
    delays = []
    fallback = WebSearchFallback(
        search,
        PageAnswerExtractor(oracle),
        QuestionClassifier(),
        site_name="Example",
        domain="example.org",
        max_queries=max_queries,
        request_delay_s=0.5,
        sleep=sleep or delays.append,
    )
    return fallback, delays


class TestPlan:
    def test_last_query_is_unscoped(self, fake_search, make_oracle):
        fallback, _ = _fallback(fake_search(), make_oracle(lambda p: "01: NOT_FOUND"))

        plan = fallback.plan(EMAIL_Q)

        assert len(plan) == 5
        assert all(q.domain_scope == "example.org" for q in plan[:-1])
        assert plan[-1].domain_scope is None
        assert plan[-1].query == "Example What is the contact email?"

    @pytest.mark.parametrize("max_queries", [1, 2, 3])
    def test_plan_respects_cap(self, fake_search, make_oracle, max_queries):
        fallback, _ = _fallback(fake_search(), make_oracle(lambda p: ""), max_queries=max_queries)

        plan = fallback.plan(ISO_Q)

        assert len(plan) == max_queries
        assert plan[-1].domain_scope is None

    def test_zero_cap_plans_nothing(self, fake_search, make_oracle):
        fallback, _ = _fallback(fake_search(), make_oracle(lambda p: ""), max_queries=0)

        assert fallback.plan(EMAIL_Q) == []

    def test_type_templates_are_used(self, fake_search, make_oracle):
        fallback, _ = _fallback(fake_search(), make_oracle(lambda p: ""))

        queries = [q.query for q in fallback.plan(ISO_Q)]

        assert "Example ISO certification" in queries


class TestRun:
    def test_first_answering_query_wins(self, fake_search, make_oracle):
        first_query = 'Example What is the contact email?'
        search = fake_search(
            {first_query: [SearchResult("Kontakt", "https://example.org/kontakt", "Pisz na kontakt@example.org")]}
        )
        fallback, delays = _fallback(search, make_oracle(lambda p: "01: kontakt@example.org"))

        outcome = fallback.run([EMAIL_Q])

        assert [(f.question_id, f.text, f.source) for f in outcome.findings] == [
            ("01", "kontakt@example.org", f"web-search:{first_query}")
        ]
        assert len(search.calls) == 1
        assert search.calls[0] == (first_query, "example.org")
        assert delays == [0.5]
        assert outcome.attempts[0].outcome == "answered"

    def test_short_answers_are_rejected(self, fake_search, make_oracle):
        results = [SearchResult("Home", "https://example.org/", "a@b.pl")]
        search = fake_search({q: results for q in ["Example What is the contact email?"]})
        fallback, _ = _fallback(search, make_oracle(lambda p: "01: a@b.pl"))

        outcome = fallback.run([EMAIL_Q])

        assert outcome.findings == []
        assert outcome.attempts[0].outcome == "no_answer"

    def test_search_errors_move_to_next_query(self, fake_search, make_oracle):
        search = fake_search(fail=True)
        fallback, delays = _fallback(search, make_oracle(lambda p: "01: kontakt@example.org"), max_queries=3)

        outcome = fallback.run([EMAIL_Q])

        assert outcome.findings == []
        assert [a.outcome for a in outcome.attempts] == ["error", "error", "error"]
        assert len(delays) == 3

    def test_query_count_is_bounded_per_question(self, fake_search, make_oracle):
        search = fake_search()
        fallback, _ = _fallback(search, make_oracle(lambda p: ""), max_queries=2)

        outcome = fallback.run([EMAIL_Q, ISO_Q])

        assert len(search.calls) == 4
        assert all(a.outcome == "no_results" for a in outcome.attempts)
        assert outcome.attempts[0].to_dict()["result_count"] == 0


def test_search_document_blocks():
    document = build_search_document(
        [SearchResult("Kontakt", "https://example.org/kontakt", "x" * 500)], query="Example kontakt"
    )

    assert document.startswith("Search results for: Example kontakt")
    assert "Title: Kontakt\nURL: https://example.org/kontakt\nDescription: " in document
    assert len(document.split("Description: ")[1]) == 320


def test_trim_text_keeps_short_values():
    assert trim_text("  short  ") == "short"
    assert trim_text(None) == ""
