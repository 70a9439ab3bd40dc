"""Abstract LLM provider interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from pydantic import BaseModel


Message = dict[str, str]


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    content: str
    model: str
    tokens_used: Optional[int] = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def complete(self, model: str, messages: Sequence[Message]) -> LLMResponse:
        """Run a chat completion.

        Args:
            model: Model identifier understood by the endpoint
            messages: Role-tagged messages, e.g. ``{"role": "user", "content": "..."}``

        Returns:
            LLMResponse containing the generated text

        Raises:
            UpstreamCallError: If the endpoint fails or the payload is malformed
        """
        pass

    def generate(self, prompt: str, model: str, system: Optional[str] = None) -> LLMResponse:
        """Send a single user prompt, with an optional system prompt."""
        messages: list[Message] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return self.complete(model, messages)
