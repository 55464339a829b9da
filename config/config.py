import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from models.errors import ConfigError
from orchestrator.stage_types import CrawlBudget


class ModelType(Enum):
    """Supported oracle backends."""
    OPENAI = "openai"
    GEMINI = "gemini"


DEFAULT_PROFILE_PATH = Path(__file__).parent / "site_profile.yaml"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


class Config:
    """Configuration for one agent run, read from the environment."""

    def __init__(self, load_env_file: bool = True):
        """
        Initialize configuration with environment variables.

        Args:
            load_env_file: Load a .env file from the project root first
        """
        if load_env_file:
            env_path = Path(__file__).parent.parent / ".env"
            if env_path.exists():
                load_dotenv(dotenv_path=env_path)

        # Oracle backend
        self.OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
        self.GOOGLE_GEMINI_API_KEY = os.getenv("GOOGLE_GEMINI_API_KEY")
        self.MODEL_TYPE = os.getenv("MODEL_TYPE", ModelType.OPENAI.value).lower()
        if self.MODEL_TYPE == ModelType.GEMINI.value:
            self.DEFAULT_MODEL = os.getenv("DEFAULT_GEMINI_MODEL", "gemini-2.5-flash-lite")
        else:
            self.DEFAULT_MODEL = os.getenv("DEFAULT_OPENAI_MODEL", "gpt-4o-mini")
        self.ORACLE_TIMEOUT_S = _env_float("ORACLE_TIMEOUT_S", 60.0)

        # Collaborators
        self.TAVILY_API_KEY = os.getenv("TAVILY_API_KEY")
        self.FETCH_TIMEOUT_S = _env_float("FETCH_TIMEOUT_S", 15.0)
        self.CACHE_DATABASE_URL = os.getenv("CACHE_DATABASE_URL", "sqlite:///.cache/page_cache.db")
        self.REPORT_URL = os.getenv("REPORT_URL")
        self.REPORT_API_KEY = os.getenv("REPORT_API_KEY")

        # Inputs and outputs
        self.QUESTIONS_PATH = os.getenv("QUESTIONS_PATH", "questions.json")
        self.SITE_PROFILE_PATH = os.getenv("SITE_PROFILE_PATH", str(DEFAULT_PROFILE_PATH))
        self.RESULTS_PATH = os.getenv("RESULTS_PATH", "search_results.json")

        # Budget
        self.MAX_DEPTH = _env_int("MAX_DEPTH", 2)
        self.MAX_URLS_PER_TIER = _env_int("MAX_URLS_PER_TIER", 15)
        self.MAX_SEARCH_QUERIES_PER_QUESTION = _env_int("MAX_SEARCH_QUERIES_PER_QUESTION", 5)
        self.MAX_SEED_PAGES = _env_int("MAX_SEED_PAGES", 10)
        self.REQUEST_DELAY_S = _env_float("REQUEST_DELAY_S", 1.0)
        self.CORPUS_MAX_CHARS = _env_int("CORPUS_MAX_CHARS", 200_000)

    def budget(self) -> CrawlBudget:
        """Build the run budget; raises ConfigError on non-positive caps."""
        budget = CrawlBudget(
            max_depth=self.MAX_DEPTH,
            max_urls_per_tier=self.MAX_URLS_PER_TIER,
            max_search_queries_per_question=self.MAX_SEARCH_QUERIES_PER_QUESTION,
            max_seed_pages=self.MAX_SEED_PAGES,
            request_delay_s=self.REQUEST_DELAY_S,
            corpus_max_chars=self.CORPUS_MAX_CHARS,
        )
        try:
            budget.check()
        except ValueError as e:
            raise ConfigError(str(e)) from e
        return budget

    def validate(self) -> list[str]:
        """
        Check that required configuration for the selected backend is present.

        Returns:
            list[str]: Problems found; empty when the configuration is usable
        """
        problems = []
        if self.MODEL_TYPE == ModelType.OPENAI.value:
            if not self.OPENAI_API_KEY:
                problems.append("OPENAI_API_KEY is not set")
        elif self.MODEL_TYPE == ModelType.GEMINI.value:
            if not self.GOOGLE_GEMINI_API_KEY:
                problems.append("GOOGLE_GEMINI_API_KEY is not set")
        else:
            problems.append(
                f"Unknown MODEL_TYPE '{self.MODEL_TYPE}'. Must be one of: "
                f"{', '.join(e.value for e in ModelType)}"
            )
        return problems

    def get_model_info(self) -> str:
        if self.MODEL_TYPE == ModelType.OPENAI.value:
            return f"OpenAI ({self.DEFAULT_MODEL})"
        if self.MODEL_TYPE == ModelType.GEMINI.value:
            return f"Google Gemini ({self.DEFAULT_MODEL})"
        return "Unknown"
