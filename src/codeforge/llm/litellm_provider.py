"""LiteLLM provider for OpenAI-compatible endpoints."""

import logging
from typing import Optional, Sequence
import litellm
from ..errors import UpstreamCallError
from .provider import LLMProvider, LLMResponse, Message

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "dummy-key"


class LiteLLMProvider(LLMProvider):
    """Talks to any OpenAI-compatible endpoint through LiteLLM.

    Retries are disabled: a failed call surfaces immediately and the caller
    decides whether to run the whole request again.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = 600,
        max_retries: int = 0,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries

    def complete(self, model: str, messages: Sequence[Message]) -> LLMResponse:
        """Run a chat completion against the configured endpoint.

        Raises:
            UpstreamCallError: On any endpoint failure or malformed response
        """
        kwargs = {
            "model": model,
            "messages": list(messages),
            "custom_llm_provider": "openai",
            "api_base": self.base_url,
            "api_key": self.api_key or PLACEHOLDER_API_KEY,
            "max_retries": self.max_retries,
            "timeout": self.timeout,
        }

        logger.debug("Requesting completion from %s with model %s", self.base_url, model)

        try:
            response = litellm.completion(**kwargs)
        except litellm.AuthenticationError as e:
            raise UpstreamCallError(
                f"Authentication failed for {self.base_url}: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e
        except litellm.RateLimitError as e:
            raise UpstreamCallError(
                f"Rate limit exceeded for {model}: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e
        except Exception as e:
            raise UpstreamCallError(
                f"LLM generation failed: {str(e)}",
                status_code=getattr(e, "status_code", None),
            ) from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamCallError(f"Malformed response from {self.base_url}: no choices")

        content = choices[0].message.content
        if content is None:
            raise UpstreamCallError(f"Malformed response from {self.base_url}: empty message")

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=content,
            model=model,
            tokens_used=getattr(usage, "total_tokens", None) if usage else None,
        )
