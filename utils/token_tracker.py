import threading
from datetime import datetime
from typing import Any, Dict, Optional


class TokenTracker:
    """
    Tracks oracle calls and token usage over one agent run.
    Backend-agnostic: any client that reports prompt/completion/total counts works.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        """Reset all counters to zero."""
        self.total_prompt_tokens = 0
        self.total_completion_tokens = 0
        self.total_tokens = 0
        self.requests = 0
        self.failures = 0

    def update(self, usage: Optional[Dict[str, int]]) -> None:
        """
        Count one successful oracle call.

        Args:
            usage: Token usage from the client, or None when the backend
                   did not report any (the call is still counted)
        """
        with self._lock:
            self.requests += 1
            if not usage:
                return
            self.total_prompt_tokens += usage.get("prompt_tokens", 0)
            self.total_completion_tokens += usage.get("completion_tokens", 0)
            self.total_tokens += usage.get("total_tokens", 0)

    def record_failure(self) -> None:
        with self._lock:
            self.failures += 1

    def get_summary(self) -> Dict[str, Any]:
        return {
            "requests": self.requests,
            "failures": self.failures,
            "prompt_tokens": self.total_prompt_tokens,
            "completion_tokens": self.total_completion_tokens,
            "total_tokens": self.total_tokens,
            "timestamp": datetime.now().isoformat(),
        }

    def format_summary(self) -> str:
        stats = self.get_summary()
        return (
            f"Oracle calls: {stats['requests']} ({stats['failures']} failed)\n"
            f"Prompt tokens: {stats['prompt_tokens']}\n"
            f"Completion tokens: {stats['completion_tokens']}\n"
            f"Total tokens: {stats['total_tokens']}"
        )
