"""
Judgment oracle over an LLM client.

Every ranking, extraction and inference decision goes through ``ask``. The
oracle only transports text; callers own prompt wording and reply parsing.
"""

from collections.abc import Sequence

from api.base_client import BaseAIClient
from models.errors import OracleError
from utils.logger import get_logger
from utils.token_tracker import TokenTracker

logger = get_logger(__name__)


class JudgmentOracle:
    def __init__(
        self,
        client: BaseAIClient,
        *,
        tracker: TokenTracker | None = None,
        max_tokens: int = 1024,
    ):
        self.client = client
        self.tracker = tracker or TokenTracker()
        self.max_tokens = max_tokens

    def ask(self, prompt: str, documents: Sequence[str] = (), system: str | None = None) -> str:
        """
        Send one judgment request.

        Args:
            prompt: Instruction and question text
            documents: Evidence blocks appended after the prompt
            system: Optional system instruction

        Returns:
            The stripped reply text

        Raises:
            OracleError: The client failed or returned an empty reply
        """
        full_prompt = prompt
        if documents:
            full_prompt = prompt + "\n\n" + "\n\n".join(documents)

        try:
            text, usage = self.client.get_completion(
                full_prompt, system=system, temperature=0.0, max_tokens=self.max_tokens
            )
        except Exception as e:
            self.tracker.record_failure()
            raise OracleError(f"{self.client.provider_name} call failed: {e}") from e

        if text is None or not text.strip():
            self.tracker.record_failure()
            raise OracleError(f"{self.client.provider_name} returned no text")

        self.tracker.update(usage)
        logger.debug(
            "Oracle reply received",
            extra={
                "extra_fields": {
                    "provider": self.client.provider_name,
                    "prompt_chars": len(full_prompt),
                    "reply_chars": len(text),
                }
            },
        )
        return text.strip()
