"""Exception hierarchy for the site evidence agent."""


class AgentError(Exception):
    """Base class for all agent errors."""


class ConfigError(AgentError):
    """Raised when required configuration is missing or invalid."""


class QuestionSetError(AgentError):
    """Raised when the question set cannot be loaded. Fatal for a run."""


class FetchError(AgentError):
    """Raised by a fetcher on network failure, timeout or non-2xx status."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


class OracleError(AgentError):
    """Raised when the judgment oracle fails to produce any response."""


class SearchError(AgentError):
    """Raised when the search service call fails."""


class UnknownQuestionError(AgentError):
    """Raised when a ledger operation names a question id outside the run's set."""
