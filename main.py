import argparse
import sys

from api.factory import initialize_client
from config.config import Config
from config.site_profile import SiteProfile
from models.errors import ConfigError, QuestionSetError
from models.question import load_questions
from models.run_report import RunReport
from orchestrator.core import EvidenceOrchestrator
from orchestrator.oracle import JudgmentOracle
from tools.reporting import HttpReportSink, JsonFileReportSink
from tools.web.factory import create_fetcher, create_page_cache, create_search_service_from_env
from utils.logger import get_logger
from utils.token_tracker import TokenTracker

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Answer a fixed question set about one website by crawling it, "
        "falling back to pattern matching, inference and web search."
    )
    parser.add_argument("--questions", help="Path to the questions JSON file (default: QUESTIONS_PATH)")
    parser.add_argument("--profile", help="Path to the site profile YAML (default: SITE_PROFILE_PATH)")
    parser.add_argument("--output", help="Where to write the results JSON (default: RESULTS_PATH)")
    parser.add_argument("--report-url", help="Report endpoint to POST answers to (default: REPORT_URL)")
    parser.add_argument("--no-report", action="store_true", help="Do not send answers to the report endpoint")
    return parser.parse_args(argv)


def print_summary(report: RunReport) -> None:
    print("\n=== Answers ===")
    questions = {q.id: q.text for q in report.questions}
    for answer in report.answers:
        print(f"{answer.question_id}: {answer.text}")
        print(f"    source: {answer.source} [{answer.stage}]")
    for question_id in report.unanswered_ids:
        print(f"{question_id}: (unanswered) {questions[question_id]}")

    print("\n=== Run Summary ===")
    print(f"Answered: {len(report.answers)}/{len(report.questions)} ({report.success_rate:.0%})")
    print(f"Stages: {' -> '.join(report.stages_visited)}")
    print(
        f"URLs discovered: {report.stats.discovered_urls}, fetched: {report.stats.fetched_urls}, "
        f"network fetches: {report.stats.network_fetches}, cache hits: {report.stats.cache_hits}"
    )
    print(f"Search queries: {report.stats.search_queries}")
    if report.refinements:
        print(f"Refinements: {len(report.refinements)}")


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = Config()
        # The question set is validated before any network activity
        questions = load_questions(args.questions or config.QUESTIONS_PATH)
        profile = SiteProfile.from_yaml(args.profile or config.SITE_PROFILE_PATH)
        budget = config.budget()
        problems = config.validate()
        if problems:
            raise ConfigError("; ".join(problems))
        client = initialize_client(config)
    except (QuestionSetError, ConfigError) as e:
        logger.error(f"Cannot start run: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    tracker = TokenTracker()
    fetcher = create_fetcher(timeout_s=config.FETCH_TIMEOUT_S)
    cache = create_page_cache(config.CACHE_DATABASE_URL)
    try:
        orchestrator = EvidenceOrchestrator(
            profile,
            questions,
            fetcher=fetcher,
            cache=cache,
            oracle=JudgmentOracle(client, tracker=tracker),
            search_service=create_search_service_from_env(config.TAVILY_API_KEY),
            budget=budget,
        )
        report = orchestrator.run()
    except KeyboardInterrupt:
        print("\nExiting...")
        return 130
    finally:
        fetcher.close()
        cache.close()

    print_summary(report)
    print("\n=== Oracle Usage ===")
    print(tracker.format_summary())

    JsonFileReportSink(args.output or config.RESULTS_PATH).emit(report)

    report_url = args.report_url or config.REPORT_URL
    if not args.no_report and report_url:
        if not config.REPORT_API_KEY:
            logger.warning("REPORT_API_KEY is not set; skipping report delivery")
        else:
            sink = HttpReportSink(report_url, config.REPORT_API_KEY, profile.report_task)
            try:
                sink.emit(report)
            finally:
                sink.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
