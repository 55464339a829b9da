from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple


class BaseAIClient(ABC):
    """
    Abstract base class for the LLM backends behind the judgment oracle.
    Concrete clients never raise from ``get_completion``; failures come back
    as ``(None, None)``.
    """

    provider_name: str = "unknown"

    @abstractmethod
    def __init__(self, api_key: str, **kwargs):
        """
        Initialize the AI client.

        Args:
            api_key: API key for the AI service
            **kwargs: Additional model-specific parameters
        """
        self.api_key = api_key
        self.model_name = kwargs.get("model_name")

    @abstractmethod
    def get_completion(self, prompt: str, **kwargs) -> Tuple[Optional[str], Optional[Dict[str, int]]]:
        """
        Get a completion from the AI model.

        Args:
            prompt: The user prompt
            **kwargs: Additional parameters:
                - system: Optional system instruction
                - temperature: Sampling temperature
                - max_tokens: Maximum number of tokens to generate

        Returns:
            A tuple of (response_text, usage_dict); (None, None) on failure
        """

    def get_token_usage(self, response: Any) -> Optional[Dict[str, int]]:
        """
        Extract token usage from a raw provider response.
        Subclasses override this when the provider reports usage.
        """
        return None
