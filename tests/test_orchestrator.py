import json

import pytest

from config.site_profile import SiteProfile
from orchestrator.core import REFINE_REASON, EvidenceOrchestrator
from orchestrator.stage_types import STAGE_ORDER, CrawlBudget, Stage

BASE = "https://example.org"


def _profile(**overrides):
    data = {"site_name": "Example", "base_url": BASE, "domain": "example.org"}
    data.update(overrides)
    return SiteProfile.from_dict(data)


def _ranking(*urls):
    return json.dumps(
        {"prioritized_links": [{"url": u, "score": 9 - i, "reason": "relevant"} for i, u in enumerate(urls)]}
    )


def _stage_index(name):
    return STAGE_ORDER.index(Stage(name))


@pytest.mark.integration
def test_scenario_a_answer_from_seed_page(cache, budget, make_oracle, site_oracle, fake_fetcher, questions):
    fetcher = fake_fetcher({f"{BASE}/kontakt": "Napisz do nas: kontakt@example.org lub zadzwoń."})
    oracle = site_oracle(facts={"01": "kontakt@example.org"})
    orchestrator = EvidenceOrchestrator(
        _profile(seed_paths=["kontakt"]),
        questions({"01": "What is the contact email?"}),
        fetcher=fetcher,
        cache=cache,
        oracle=make_oracle(oracle),
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()

    assert report.answer_map() == {"01": "kontakt@example.org"}
    assert report.answers[0].source == f"{BASE}/kontakt"
    assert report.answers[0].stage == "SEED_SPECIFIC_PAGES"
    assert report.stages_visited == ["INIT", "SEED_SPECIFIC_PAGES", "DONE"]
    assert fetcher.calls == [f"{BASE}/kontakt"]
    assert oracle.calls == ["extract"]


@pytest.mark.integration
def test_scenario_b_crawl_then_pattern_extraction(
    cache, budget, make_oracle, site_oracle, fake_fetcher, questions
):
    fetcher = fake_fetcher(
        {
            BASE: "# Example\n[About us](/about)\n[Quality](/quality)\n",
            f"{BASE}/about": "About Example. Contact us at kontakt@example.org today.",
            f"{BASE}/quality": "We care about quality. Our processes have followed ISO-9001:2015 for years, audited annually.",
        }
    )
    oracle = site_oracle(
        facts={"01": "kontakt@example.org"},
        ranking=_ranking(f"{BASE}/about", f"{BASE}/quality"),
        adjudication="1",
    )
    orchestrator = EvidenceOrchestrator(
        _profile(),
        questions(
            {
                "01": "What is the contact email?",
                "02": "Which ISO certificate does the company hold?",
            }
        ),
        fetcher=fetcher,
        cache=cache,
        oracle=make_oracle(oracle),
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()
    answers = {a.question_id: a for a in report.answers}

    assert answers["01"].text == "kontakt@example.org"
    assert answers["01"].source == f"{BASE}/about"
    assert answers["01"].stage == "BFS_CRAWL"
    assert answers["02"].text == "ISO-9001:2015"
    assert answers["02"].source == "pattern"
    assert answers["02"].stage == "PATTERN_EXTRACTION"
    assert report.unanswered_ids == []
    assert report.stages_visited[-2:] == ["PATTERN_EXTRACTION", "DONE"]
    assert "infer" not in oracle.calls


@pytest.mark.integration
def test_scenario_c_prioritizer_failure_uses_first_three_links(
    cache, budget, make_oracle, site_oracle, fake_fetcher, questions
):
    links = [f"{BASE}/{name}" for name in ("a", "b", "c", "d")]
    pages = {BASE: "\n".join(f"[{url[-1]}]({url})" for url in links)}
    pages.update({url: f"Page {url[-1]} has nothing useful." for url in links})
    pages[links[2]] = "Write to kontakt@example.org for details."
    fetcher = fake_fetcher(pages)
    oracle = site_oracle(facts={"01": "kontakt@example.org"}, ranking=None)

    orchestrator = EvidenceOrchestrator(
        _profile(),
        questions({"01": "What is the contact email?", "02": "Who founded the company?"}),
        fetcher=fetcher,
        cache=cache,
        oracle=make_oracle(oracle),
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()

    assert fetcher.calls[:4] == [BASE, links[0], links[1], links[2]]
    answer = report.answers[0]
    assert answer.question_id == "01"
    assert answer.source == links[2]
    assert answer.stage == "BFS_CRAWL"
    # The fourth link was not ranked, so it waits for the discovery stage
    assert fetcher.calls.index(links[3]) > fetcher.calls.index(links[2])
    assert report.stage_history[3].stage == "ADDITIONAL_URL_DISCOVERY"
    assert report.stages_visited[-1] == "DONE"


@pytest.mark.integration
def test_scenario_d_unanswerable_question_reaches_done(
    cache, make_oracle, site_oracle, fake_fetcher, fake_search, questions
):
    fetcher = fake_fetcher({f"{BASE}/kontakt": "Mail: kontakt@example.org"})
    oracle = site_oracle(facts={"01": "kontakt@example.org"}, ranking=None)
    search = fake_search()
    budget = CrawlBudget(request_delay_s=0.0, max_search_queries_per_question=3)

    orchestrator = EvidenceOrchestrator(
        _profile(seed_paths=["kontakt"]),
        questions({"01": "What is the contact email?", "02": "What is the name of the office dog?"}),
        fetcher=fetcher,
        cache=cache,
        oracle=make_oracle(oracle),
        search_service=search,
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()

    assert report.answer_map() == {"01": "kontakt@example.org"}
    assert report.unanswered_ids == ["02"]
    assert report.stages_visited == [stage.value for stage in STAGE_ORDER]
    assert len(search.calls) == 3
    assert search.calls[-1][1] is None
    assert all(scope == "example.org" for _, scope in search.calls[:-1])
    assert [a.outcome for a in report.search_attempts] == ["no_results"] * 3
    assert report.to_dict()["unanswered_ids"] == ["02"]


def test_stages_never_run_out_of_order(cache, budget, make_oracle, site_oracle, fake_fetcher, questions):
    orchestrator = EvidenceOrchestrator(
        _profile(seed_paths=["about"], fallback_paths=["team"]),
        questions({"01": "Who founded the company?"}),
        fetcher=fake_fetcher({}),
        cache=cache,
        oracle=make_oracle(site_oracle()),
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()
    indexes = [_stage_index(name) for name in report.stages_visited]

    assert indexes == sorted(indexes)
    assert len(indexes) == len(set(indexes))
    # No search service configured, so the search stage is passed over
    assert "WEB_SEARCH" not in report.stages_visited


def test_unreachable_site_terminates_with_zero_answers(cache, make_oracle, site_oracle, fake_fetcher, questions):
    fetcher = fake_fetcher({})
    oracle = site_oracle(ranking=None, suggestions=None, adjudication=None, inference=None)
    budget = CrawlBudget(request_delay_s=0.0, max_urls_per_tier=5)
    profile = _profile(
        seed_paths=["about", "contact"],
        fallback_paths=[f"guess-{i}" for i in range(20)],
    )

    orchestrator = EvidenceOrchestrator(
        profile,
        questions({"01": "What is the contact email?", "02": "Which ISO certificate do they hold?"}),
        fetcher=fetcher,
        cache=cache,
        oracle=make_oracle(oracle),
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()

    assert report.answers == []
    assert report.unanswered_ids == ["01", "02"]
    assert report.stages_visited[-1] == "DONE"
    assert len(fetcher.calls) == len(set(fetcher.calls))
    # two seeds, the base URL, then one capped discovery batch
    assert len(fetcher.calls) <= 2 + 1 + budget.max_urls_per_tier
    assert report.stats.network_fetches == len(fetcher.calls)
    assert report.stats.exhausted_urls == len(fetcher.calls)


@pytest.mark.integration
def test_second_run_reuses_cached_pages(cache, budget, make_oracle, site_oracle, fake_fetcher, questions):
    pages = {f"{BASE}/kontakt": "Napisz do nas: kontakt@example.org"}
    qs = questions({"01": "What is the contact email?"})

    first = fake_fetcher(pages)
    EvidenceOrchestrator(
        _profile(seed_paths=["kontakt"]),
        qs,
        fetcher=first,
        cache=cache,
        oracle=make_oracle(site_oracle(facts={"01": "kontakt@example.org"})),
        budget=budget,
        sleep=lambda _: None,
    ).run()

    second = fake_fetcher(pages)
    report = EvidenceOrchestrator(
        _profile(seed_paths=["kontakt"]),
        qs,
        fetcher=second,
        cache=cache,
        oracle=make_oracle(site_oracle(facts={"01": "kontakt@example.org"})),
        budget=budget,
        sleep=lambda _: None,
    ).run()

    assert first.calls == [f"{BASE}/kontakt"]
    assert second.calls == []
    assert report.stats.cache_hits == 1
    assert report.stats.network_fetches == 0
    assert report.answer_map() == {"01": "kontakt@example.org"}


def test_sub_page_link_refines_provisional_answer(
    cache, budget, make_oracle, site_oracle, fake_fetcher, questions
):
    fetcher = fake_fetcher(
        {
            f"{BASE}/portfolio": (
                "Our clients include BanAN. See https://banan.example.net for the product.\n"
                "[BanAN robots case study](/portfolio/banan)"
            ),
            f"{BASE}/portfolio/banan": (
                "We built a robot fleet manager.\n"
                "[Interfejs sterowania robotami](https://banan.example.net/control)"
            ),
        }
    )
    oracle = site_oracle(facts={"02": "https://banan.example.net"})
    profile = _profile(
        seed_paths=["portfolio"],
        follow_link_keywords=["banan"],
        resource_hosts=["banan.example.net"],
    )

    orchestrator = EvidenceOrchestrator(
        profile,
        questions({"02": "What is the address of the web interface built for BanAN?"}),
        fetcher=fetcher,
        cache=cache,
        oracle=make_oracle(oracle),
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()

    assert report.answer_map() == {"02": "https://banan.example.net/control"}
    assert report.answers[0].source == f"{BASE}/portfolio/banan"
    assert len(report.refinements) == 1
    refinement = report.refinements[0]
    assert refinement.previous.text == "https://banan.example.net"
    assert refinement.reason == REFINE_REASON
    assert report.stages_visited == ["INIT", "SEED_SPECIFIC_PAGES", "DONE"]


def test_invalid_budget_is_rejected(cache, make_oracle, site_oracle, fake_fetcher, questions):
    with pytest.raises(ValueError):
        EvidenceOrchestrator(
            _profile(),
            questions({"01": "What is the contact email?"}),
            fetcher=fake_fetcher({}),
            cache=cache,
            oracle=make_oracle(site_oracle()),
            budget=CrawlBudget(max_depth=0),
        )


def test_malformed_link_on_page_does_not_stop_the_run(cache, budget, make_oracle, site_oracle, fake_fetcher, questions):
    fetcher = fake_fetcher(
        {
            BASE: '<a href="http://[broken">broken</a>\n[About us](/about)\n',
            f"{BASE}/about": "About Example. Contact us at kontakt@example.org today.",
        }
    )
    oracle = site_oracle(facts={"01": "kontakt@example.org"}, ranking=_ranking(f"{BASE}/about"))
    orchestrator = EvidenceOrchestrator(
        _profile(),
        questions({"01": "What is the contact email?"}),
        fetcher=fetcher,
        cache=cache,
        oracle=make_oracle(oracle),
        budget=budget,
        sleep=lambda _: None,
    )

    report = orchestrator.run()

    assert report.answer_map() == {"01": "kontakt@example.org"}
    assert report.stages_visited[-1] == "DONE"
