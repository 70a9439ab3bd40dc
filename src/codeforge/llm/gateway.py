"""Versioned access to the completion endpoint client."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from ..errors import ConfigurationMissingError
from .litellm_provider import LiteLLMProvider
from .provider import LLMProvider, LLMResponse, Message

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "API not configured. Please set API URL in settings."

ProviderFactory = Callable[..., LLMProvider]


@dataclass(frozen=True)
class ClientHandle:
    """A provider pinned to the gateway version it was acquired at."""

    provider: LLMProvider
    version: int
    gateway: "ModelGateway"

    @property
    def is_stale(self) -> bool:
        """True once the gateway has been reloaded since this handle was taken."""
        return self.gateway.version != self.version

    def complete(self, model: str, messages: Sequence[Message]) -> LLMResponse:
        return self.provider.complete(model, messages)


class ModelGateway:
    """Owns the endpoint client and rebuilds it on explicit reloads.

    Requests take a ``ClientHandle`` once and use it for every stage, so a
    reload in the middle of a request never mixes clients within it.
    """

    def __init__(self, provider_factory: ProviderFactory = LiteLLMProvider):
        self._provider_factory = provider_factory
        self._lock = threading.Lock()
        self._provider: Optional[LLMProvider] = None
        self._version = 0
        self.api_url: Optional[str] = None

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_configured(self) -> bool:
        return self._provider is not None

    def reload(self, api_url: Optional[str], api_key: Optional[str] = None, timeout: int = 600) -> int:
        """Replace the client for a new endpoint configuration.

        An empty URL leaves the gateway unconfigured.

        Returns:
            The new configuration version
        """
        provider = None
        if api_url:
            provider = self._provider_factory(
                base_url=api_url, api_key=api_key, timeout=timeout, max_retries=0
            )

        with self._lock:
            self._provider = provider
            self.api_url = api_url or None
            self._version += 1
            version = self._version

        if provider is not None:
            logger.info("Completion client initialized with API URL: %s", api_url)
        else:
            logger.info("Completion client cleared, no API URL configured")
        return version

    def acquire(self) -> ClientHandle:
        """Snapshot the current client.

        Raises:
            ConfigurationMissingError: If no endpoint URL is configured
        """
        with self._lock:
            if self._provider is None:
                raise ConfigurationMissingError(NOT_CONFIGURED_MESSAGE)
            return ClientHandle(provider=self._provider, version=self._version, gateway=self)

    def complete(self, model: str, messages: Sequence[Message]) -> LLMResponse:
        """Run one completion with the current client."""
        return self.acquire().complete(model, messages)
