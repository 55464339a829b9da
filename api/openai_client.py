from typing import Any, Dict, Optional, Tuple

import openai

from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class OpenAIClient(BaseAIClient):
    """
    Oracle backend using the OpenAI chat completions API.
    """

    provider_name = "openai"

    def __init__(self, api_key: str, model_name: str = "gpt-4o-mini", timeout_s: float = 60.0, **kwargs):
        """
        Initialize the OpenAI client.

        Args:
            api_key: The OpenAI API key
            model_name: Model used for judgment calls
            timeout_s: Per-request timeout in seconds
        """
        super().__init__(api_key, model_name=model_name, **kwargs)
        self.client = openai.OpenAI(api_key=api_key, timeout=timeout_s, max_retries=1)
        self.model_name = model_name

    def get_completion(self, prompt: str, **kwargs) -> Tuple[Optional[str], Optional[Dict[str, int]]]:
        """
        Get a completion with token usage.

        Args:
            prompt: User prompt
            **kwargs:
                - system: Optional system message
                - model: Override the default model for this call
                - temperature: Defaults to 0.0, judgment calls should be stable
                - max_tokens: Defaults to 1024

        Returns:
            (response_text, usage_dict), or (None, None) on error
        """
        messages = []
        if kwargs.get("system"):
            messages.append({"role": "system", "content": kwargs["system"]})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=kwargs.get("model", self.model_name),
                messages=messages,
                temperature=kwargs.get("temperature", 0.0),
                max_tokens=kwargs.get("max_tokens", 1024),
            )
        except Exception as e:
            logger.error(f"OpenAI completion failed: {e}", extra={"extra_fields": {"model": self.model_name}})
            return None, None

        return response.choices[0].message.content, self.get_token_usage(response)

    def get_token_usage(self, response: Any) -> Optional[Dict[str, int]]:
        usage = getattr(response, "usage", None)
        if usage is None:
            return None
        return {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        }
