"""LLM provider abstraction layer."""

from .provider import LLMProvider, LLMResponse
from .litellm_provider import LiteLLMProvider
from .gateway import ClientHandle, ModelGateway
from .catalog import ModelCatalog

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LiteLLMProvider",
    "ClientHandle",
    "ModelGateway",
    "ModelCatalog",
]
