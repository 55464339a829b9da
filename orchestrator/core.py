"""
EvidenceOrchestrator - the waterfall state machine of the site evidence agent.

Key guarantees:
- Stages run strictly in order and each is entered at most once
- A stage is only entered while unanswered questions remain
- Every loop is bounded by the CrawlBudget, so a run always reaches DONE
- FrontierState, Corpus and AnswerLedger are mutated here only; tier
  components return values that are folded in
"""

import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from config.site_profile import SiteProfile
from models.answer import Answer, AnswerLedger
from models.corpus import Corpus
from models.errors import FetchError
from models.frontier import FrontierState
from models.question import Question
from models.run_report import RunReport, RunStats, StageRecord
from orchestrator.corpus_inference import CorpusInference
from orchestrator.fallback_manager import FallbackManager, FallbackPolicy
from orchestrator.link_prioritizer import RelevancePrioritizer
from orchestrator.oracle import JudgmentOracle
from orchestrator.page_extractor import PageAnswerExtractor
from orchestrator.pattern_extractor import PatternExtractor, find_candidates
from orchestrator.question_classifier import QuestionClassifier
from orchestrator.stage_types import CrawlBudget, Finding, NextAction, QuestionType, Stage
from orchestrator.url_generator import TargetedUrlGenerator
from orchestrator.web_search_fallback import SearchAttempt, WebSearchFallback
from tools.web.cache import ContentCache
from tools.web.link_extractor import LinkExtractor, host_of, labeled_links
from utils.logger import get_logger

logger = get_logger(__name__)

SEED_WORKERS = 4
REFINE_REASON = "exact resource link on sub-page"


@dataclass(frozen=True)
class _Retrieval:
    url: str
    text: str | None
    from_cache: bool
    error: str = ""


class EvidenceOrchestrator:
    def __init__(
        self,
        profile: SiteProfile,
        questions: Sequence[Question],
        *,
        fetcher,
        cache: ContentCache,
        oracle: JudgmentOracle,
        search_service=None,
        budget: CrawlBudget | None = None,
        sleep: Callable[[float], None] = time.sleep,
        fallback_manager: FallbackManager | None = None,
    ):
        self.profile = profile
        self.questions = list(questions)
        self.fetcher = fetcher
        self.cache = cache
        self.oracle = oracle
        self.budget = budget or CrawlBudget()
        self.budget.check()
        self.sleep = sleep
        self._fallback_manager = fallback_manager or FallbackManager()

        self.classifier = QuestionClassifier(profile.type_keywords)
        self.link_extractor = LinkExtractor(profile.domain)
        self.prioritizer = RelevancePrioritizer(
            oracle, site_name=profile.site_name, max_links=self.budget.max_ranked_links
        )
        self.page_extractor = PageAnswerExtractor(oracle)
        self.pattern_extractor = PatternExtractor(oracle, self.classifier, domain=profile.domain)
        self.inference = CorpusInference(
            oracle,
            self.classifier,
            static_knowledge=profile.static_knowledge,
            site_name=profile.site_name,
        )
        self.url_generator = TargetedUrlGenerator(
            oracle,
            self.link_extractor,
            base_url=profile.base_url,
            fallback_paths=profile.fallback_paths,
            site_name=profile.site_name,
        )
        self.web_search = None
        if search_service is not None:
            self.web_search = WebSearchFallback(
                search_service,
                self.page_extractor,
                self.classifier,
                site_name=profile.site_name,
                domain=profile.domain,
                max_queries=self.budget.max_search_queries_per_question,
                request_delay_s=self.budget.request_delay_s,
                sleep=sleep,
            )

        self._handlers: dict[Stage, Callable[[], None]] = {
            Stage.SEED_SPECIFIC_PAGES: self._run_seed_pages,
            Stage.BFS_CRAWL: self._run_bfs_crawl,
            Stage.ADDITIONAL_URL_DISCOVERY: self._run_url_discovery,
            Stage.PATTERN_EXTRACTION: self._run_pattern_extraction,
            Stage.CORPUS_INFERENCE: self._run_corpus_inference,
            Stage.WEB_SEARCH: self._run_web_search,
        }
        self._reset()

    def _reset(self) -> None:
        refinable = set(self.classifier.ids_of_type(self.questions, QuestionType.EXTERNAL_RESOURCE_LINK))
        self.ledger = AnswerLedger(self.questions, refinable_ids=refinable)
        self.frontier = FrontierState()
        self.corpus = Corpus(max_chars=self.budget.corpus_max_chars)
        self.stats = RunStats()
        self.stage = Stage.INIT
        self.stage_history: list[StageRecord] = []
        self.search_attempts: list[SearchAttempt] = []
        self._analyzed: set[str] = set()
        self._followed: set[str] = set()

    # ---------- state machine ----------

    def run(self) -> RunReport:
        """Run the full waterfall once and return the report. Never raises on tier failures."""
        self._reset()
        logger.info(
            f"🚀 Starting evidence run for {self.profile.site_name} with {len(self.questions)} questions",
            extra={"extra_fields": {"base_url": self.profile.base_url, "questions": len(self.questions)}},
        )
        policy = FallbackPolicy(
            skipped_stages=frozenset() if self.web_search else frozenset({Stage.WEB_SEARCH})
        )
        self.stage_history.append(StageRecord(Stage.INIT.value, len(self.ledger.outstanding()), "start"))

        while self.stage != Stage.DONE:
            decision = self._fallback_manager.decide(
                current_stage=self.stage,
                outstanding=len(self.ledger.outstanding()),
                policy=policy,
            )
            if decision.action == NextAction.STOP:
                self._enter(Stage.DONE, decision.reason)
                break

            record = self._enter(decision.next_stage, decision.reason)
            answered_before = len(self.ledger)
            self._handlers[decision.next_stage]()
            record.answered = len(self.ledger) - answered_before

        return self._build_report()

    def _enter(self, stage: Stage, reason: str) -> StageRecord:
        outstanding = len(self.ledger.outstanding())
        logger.info(
            f"➡️  Stage {stage.value} ({outstanding} unanswered, {reason})",
            extra={"extra_fields": {"stage": stage.value, "outstanding": outstanding, "reason": reason}},
        )
        self.stage = stage
        record = StageRecord(stage.value, outstanding, reason)
        self.stage_history.append(record)
        return record

    def _build_report(self) -> RunReport:
        self.stats.discovered_urls = len(self.frontier.seen_urls)
        self.stats.fetched_urls = len(self.frontier.fetched_urls)
        self.stats.exhausted_urls = len(self.frontier.exhausted_urls)
        self.stats.search_queries = len(self.search_attempts)
        self.stats.corpus_pages = len(self.corpus)
        self.stats.corpus_chars = self.corpus.size
        self.stats.oracle = self.oracle.tracker.get_summary()

        unanswered = self.ledger.unanswered_ids()
        if unanswered:
            logger.warning(f"Run finished with unanswered questions: {', '.join(unanswered)}")
        else:
            logger.info("🎉 All questions answered")

        return RunReport(
            questions=list(self.questions),
            answers=self.ledger.answers(),
            unanswered_ids=unanswered,
            refinements=list(self.ledger.refinements),
            stage_history=list(self.stage_history),
            search_attempts=list(self.search_attempts),
            stats=self.stats,
            site=self.profile.base_url,
        )

    # ---------- fetching ----------

    def _retrieve(self, url: str) -> _Retrieval:
        """Cache first, then network; a network hit is written to the cache at once."""
        cached = self.cache.get(url)
        if cached is not None:
            return _Retrieval(url, cached, from_cache=True)
        try:
            text = self.fetcher.fetch(url)
        except FetchError as e:
            return _Retrieval(url, None, from_cache=False, error=str(e))
        self.cache.put(url, text)
        return _Retrieval(url, text, from_cache=False)

    def _record(self, retrieval: _Retrieval) -> str | None:
        if retrieval.from_cache:
            self.stats.cache_hits += 1
        else:
            self.stats.network_fetches += 1

        if retrieval.text is None:
            logger.warning(f"Fetch failed, marking exhausted: {retrieval.error}")
            self.frontier.mark_exhausted(retrieval.url)
            return None

        self.frontier.mark_fetched(retrieval.url)
        self.corpus.append(retrieval.url, retrieval.text)
        return retrieval.text

    def _fetch_page(self, url: str) -> str | None:
        if url in self.frontier.exhausted_urls:
            return None
        retrieval = self._retrieve(url)
        text = self._record(retrieval)
        if not retrieval.from_cache:
            self.sleep(self.budget.request_delay_s)
        return text

    # ---------- folding tier output ----------

    def _analyze(self, url: str, text: str) -> None:
        if url in self._analyzed:
            return
        self._analyzed.add(url)
        outstanding = self.ledger.outstanding()
        if not outstanding:
            return
        answers = self.page_extractor.extract(text, outstanding, label=url)
        for question_id, answer_text in answers.items():
            self.ledger.set(Answer(question_id, answer_text, source=url, stage=self.stage.value))

    def _discover(self, url: str, text: str) -> list[str]:
        candidates = self.link_extractor.extract(text, url, seen=self.frontier.seen_urls)
        for candidate in candidates:
            self.frontier.mark_seen(candidate)
        return candidates

    def _apply(self, findings: Sequence[Finding]) -> None:
        for finding in findings:
            self.ledger.set(
                Answer(finding.question_id, finding.text, source=finding.source, stage=self.stage.value)
            )

    # ---------- stages ----------

    def _run_seed_pages(self) -> None:
        urls = [u for u in self.profile.seed_urls(self.budget.max_seed_pages) if not self.frontier.is_settled(u)]
        if not urls:
            return
        for url in urls:
            self.frontier.mark_seen(url)

        with ThreadPoolExecutor(max_workers=min(SEED_WORKERS, len(urls))) as pool:
            retrievals = list(pool.map(self._retrieve, urls))

        for retrieval in retrievals:
            text = self._record(retrieval)
            if text is None:
                continue
            self._analyze(retrieval.url, text)
            self._follow_sub_pages(retrieval.url, text)
            if self.ledger.is_complete():
                logger.info("🎉 All questions answered from seed pages")
                break

    def _follow_sub_pages(self, page_url: str, text: str) -> None:
        keywords = self.profile.follow_link_keywords
        if not keywords:
            return

        for link in labeled_links(text, page_url):
            if len(self._followed) >= self.budget.max_seed_pages:
                return
            label = link.label.lower()
            keyword = next((k for k in keywords if k in label), None)
            if keyword is None or link.url == page_url or link.url in self._followed:
                continue
            if not self.link_extractor.is_in_domain(link.url):
                continue

            self._followed.add(link.url)
            self.frontier.mark_seen(link.url)
            logger.info(f"🎯 Following '{link.label}' to sub-page {link.url}")
            sub_text = self._fetch_page(link.url)
            if sub_text is None:
                continue

            resource = self._resource_link(sub_text, link.url)
            if resource:
                for question in self.questions:
                    if keyword in question.text.lower() and self.ledger.can_refine(question.id):
                        self._record_resource(question.id, resource, link.url)
            self._analyze(link.url, sub_text)

    def _resource_link(self, text: str, base_url: str) -> str | None:
        for link in labeled_links(text, base_url):
            if self.classifier.mentions(QuestionType.EXTERNAL_RESOURCE_LINK, link.label) and self._is_resource(link.url):
                return link.url
        if self.profile.resource_hosts:
            for url in find_candidates(text, QuestionType.EXTERNAL_RESOURCE_LINK):
                if host_of(url) in self.profile.resource_hosts:
                    return url
        return None

    def _is_resource(self, url: str) -> bool:
        if self.profile.resource_hosts:
            return host_of(url) in self.profile.resource_hosts
        return not self.link_extractor.is_in_domain(url)

    def _record_resource(self, question_id: str, url: str, page_url: str) -> None:
        answer = Answer(question_id, url, source=page_url, stage=self.stage.value)
        existing = self.ledger.get(question_id)
        if existing is None:
            self.ledger.set(answer)
        elif existing.text != url:
            self.ledger.refine(question_id, answer, REFINE_REASON)

    def _run_bfs_crawl(self) -> None:
        base_url = self.profile.base_url
        self.frontier.mark_seen(base_url)
        level = [base_url]
        processed = 0

        for depth in range(self.budget.max_depth):
            if not level:
                break
            logger.info(f"🔍 Crawl depth {depth}: {len(level)} URLs")
            is_last_level = depth == self.budget.max_depth - 1

            for url in level:
                if self.ledger.is_complete():
                    return
                if processed >= self.budget.max_urls_per_tier:
                    logger.info(f"Crawl URL cap of {self.budget.max_urls_per_tier} reached")
                    return
                processed += 1

                text = self._fetch_page(url)
                if text is None:
                    continue
                self._analyze(url, text)

                outstanding = self.ledger.outstanding()
                if not outstanding:
                    return
                candidates = self._discover(url, text)
                if is_last_level or not candidates:
                    continue
                for ranked in self.prioritizer.rank(outstanding, candidates, text):
                    self.frontier.enqueue(ranked.url)

            level = self.frontier.take_queue()

    def _run_url_discovery(self) -> None:
        outstanding = self.ledger.outstanding()
        generated = self.url_generator.generate(
            outstanding,
            visited=sorted(self.frontier.fetched_urls),
            limit=self.budget.max_urls_per_tier,
        )
        leftovers = self.frontier.take_queue() + self.frontier.unfetched_seen()

        batch: list[str] = []
        for url in generated + leftovers:
            if url not in batch and not self.frontier.is_settled(url):
                batch.append(url)
        batch = batch[: self.budget.max_urls_per_tier]
        logger.info(f"🧭 Trying {len(batch)} additional URLs ({len(generated)} generated)")

        for url in batch:
            self.frontier.mark_seen(url)
            text = self._fetch_page(url)
            if text is None:
                continue
            self._analyze(url, text)
            self._discover(url, text)
            if self.ledger.is_complete():
                return

    def _run_pattern_extraction(self) -> None:
        outcome = self.pattern_extractor.run(self.ledger.outstanding(), self.corpus)
        self._apply(outcome.findings)
        if outcome.aborted:
            logger.warning("Pattern extraction aborted by oracle failure")

    def _run_corpus_inference(self) -> None:
        outcome = self.inference.run(self.ledger.outstanding(), self.corpus)
        self._apply(outcome.findings)
        if outcome.aborted:
            logger.warning("Corpus inference aborted by oracle failure")

    def _run_web_search(self) -> None:
        if self.web_search is None:
            return
        outcome = self.web_search.run(self.ledger.outstanding())
        self.search_attempts.extend(outcome.attempts)
        self._apply(outcome.findings)
