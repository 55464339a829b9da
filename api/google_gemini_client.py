from typing import Any, Dict, Optional, Tuple

from google import genai
from google.genai import types

from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class GeminiClient(BaseAIClient):
    """
    Oracle backend using the Google Gemini API (google.genai package).
    """

    provider_name = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash-lite", timeout_s: float = 60.0, **kwargs):
        """
        Initialize the Gemini client.

        Args:
            api_key: The Google Gemini API key
            model_name: Model used for judgment calls
            timeout_s: Per-request timeout in seconds
        """
        super().__init__(api_key, model_name=model_name, **kwargs)

        if not api_key:
            raise ValueError("API key is required for Gemini")

        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )
        self.model_name = model_name

    def get_completion(self, prompt: str, **kwargs) -> Tuple[Optional[str], Optional[Dict[str, int]]]:
        """
        Get a completion from Gemini.

        Args:
            prompt: User prompt
            **kwargs:
                - system: Optional system instruction
                - model: Override the default model for this call
                - temperature: Defaults to 0.0
                - max_tokens: Maximum output tokens, defaults to 1024

        Returns:
            (response_text, usage_dict), or (None, None) on error
        """
        config = types.GenerateContentConfig(
            temperature=kwargs.get("temperature", 0.0),
            max_output_tokens=kwargs.get("max_tokens", 1024),
            system_instruction=kwargs.get("system") or None,
        )

        try:
            response = self.client.models.generate_content(
                model=kwargs.get("model", self.model_name),
                contents=prompt,
                config=config,
            )
        except Exception as e:
            logger.error(f"Gemini completion failed: {e}", extra={"extra_fields": {"model": self.model_name}})
            return None, None

        text = response.text if hasattr(response, "text") else None
        return text, self.get_token_usage(response)

    def get_token_usage(self, response: Any) -> Optional[Dict[str, int]]:
        usage_metadata = getattr(response, "usage_metadata", None)
        if usage_metadata is None:
            return None
        return {
            "prompt_tokens": getattr(usage_metadata, "prompt_token_count", 0) or 0,
            "completion_tokens": getattr(usage_metadata, "candidates_token_count", 0) or 0,
            "total_tokens": getattr(usage_metadata, "total_token_count", 0) or 0,
        }
