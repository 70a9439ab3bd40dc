"""Tests for the LLM provider and gateway."""

import pytest
from unittest.mock import MagicMock, patch
from codeforge.errors import ConfigurationMissingError, UpstreamCallError
from codeforge.llm.gateway import NOT_CONFIGURED_MESSAGE, ModelGateway
from codeforge.llm.litellm_provider import LiteLLMProvider
from codeforge.llm.provider import LLMResponse
from conftest import FakeProvider


def _completion(content, total_tokens=100):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=total_tokens)
    return response


class UpstreamFailure(Exception):
    """Stand-in for a LiteLLM HTTP error."""

    status_code = 502


@patch("codeforge.llm.litellm_provider.litellm.completion")
def test_litellm_provider_complete(mock_completion):
    """complete() forwards endpoint settings and disables retries."""
    mock_completion.return_value = _completion("Test response")

    provider = LiteLLMProvider(base_url="http://localhost:1234/v1", api_key="test-key", timeout=120)
    response = provider.complete("local-model", [{"role": "user", "content": "Hi"}])

    assert isinstance(response, LLMResponse)
    assert response.content == "Test response"
    assert response.model == "local-model"
    assert response.tokens_used == 100

    call_kwargs = mock_completion.call_args[1]
    assert call_kwargs["model"] == "local-model"
    assert call_kwargs["api_base"] == "http://localhost:1234/v1"
    assert call_kwargs["api_key"] == "test-key"
    assert call_kwargs["custom_llm_provider"] == "openai"
    assert call_kwargs["max_retries"] == 0
    assert call_kwargs["timeout"] == 120
    assert call_kwargs["messages"] == [{"role": "user", "content": "Hi"}]


@patch("codeforge.llm.litellm_provider.litellm.completion")
def test_litellm_provider_uses_placeholder_key(mock_completion):
    """Local endpoints without a key still get a non-empty key."""
    mock_completion.return_value = _completion("ok")

    LiteLLMProvider(base_url="http://localhost:1234/v1").complete("m", [])

    assert mock_completion.call_args[1]["api_key"] == "dummy-key"


@patch("codeforge.llm.litellm_provider.litellm.completion")
def test_litellm_provider_generate_with_system(mock_completion):
    mock_completion.return_value = _completion("ok")

    LiteLLMProvider(base_url="http://x").generate("Prompt", model="m", system="System")

    messages = mock_completion.call_args[1]["messages"]
    assert messages == [
        {"role": "system", "content": "System"},
        {"role": "user", "content": "Prompt"},
    ]


@patch("codeforge.llm.litellm_provider.litellm.completion")
def test_litellm_provider_wraps_failures(mock_completion):
    """Endpoint failures surface as UpstreamCallError with the status code."""
    mock_completion.side_effect = UpstreamFailure("Bad gateway")

    provider = LiteLLMProvider(base_url="http://x")

    with pytest.raises(UpstreamCallError, match="LLM generation failed: Bad gateway") as exc_info:
        provider.complete("m", [{"role": "user", "content": "Hi"}])

    assert exc_info.value.status_code == 502
    assert isinstance(exc_info.value.__cause__, UpstreamFailure)
    assert mock_completion.call_count == 1


@patch("codeforge.llm.litellm_provider.litellm.completion")
def test_litellm_provider_rejects_empty_choices(mock_completion):
    response = MagicMock()
    response.choices = []
    mock_completion.return_value = response

    with pytest.raises(UpstreamCallError, match="no choices"):
        LiteLLMProvider(base_url="http://x").complete("m", [])


@patch("codeforge.llm.litellm_provider.litellm.completion")
def test_litellm_provider_rejects_missing_content(mock_completion):
    mock_completion.return_value = _completion(None)

    with pytest.raises(UpstreamCallError, match="empty message"):
        LiteLLMProvider(base_url="http://x").complete("m", [])


def test_gateway_unconfigured_fails_fast():
    gateway = ModelGateway(provider_factory=FakeProvider)

    assert not gateway.is_configured
    with pytest.raises(ConfigurationMissingError, match=NOT_CONFIGURED_MESSAGE):
        gateway.acquire()
    with pytest.raises(ConfigurationMissingError):
        gateway.complete("m", [])


def test_gateway_reload_builds_provider_with_zero_retries():
    created = []

    def factory(**kwargs):
        provider = FakeProvider(["hello"], **kwargs)
        created.append(provider)
        return provider

    gateway = ModelGateway(provider_factory=factory)
    version = gateway.reload("http://localhost:1234/v1", "key", timeout=42)

    assert version == 1
    assert gateway.is_configured
    assert gateway.api_url == "http://localhost:1234/v1"
    assert created[0].client_kwargs == {
        "base_url": "http://localhost:1234/v1",
        "api_key": "key",
        "timeout": 42,
        "max_retries": 0,
    }
    assert gateway.complete("m", [{"role": "user", "content": "x"}]).content == "hello"


def test_gateway_reload_without_url_clears_client():
    gateway = ModelGateway(provider_factory=FakeProvider)
    gateway.reload("http://x")

    version = gateway.reload(None)

    assert version == 2
    assert not gateway.is_configured
    with pytest.raises(ConfigurationMissingError):
        gateway.acquire()


def test_client_handle_detects_reload():
    """A handle keeps its provider but reports that a newer one exists."""
    first = FakeProvider(["from first"])
    second = FakeProvider(["from second"])
    providers = iter([first, second])
    gateway = ModelGateway(provider_factory=lambda **kwargs: next(providers))
    gateway.reload("http://one")

    handle = gateway.acquire()
    assert not handle.is_stale

    gateway.reload("http://two")

    assert handle.is_stale
    assert handle.complete("m", []).content == "from first"
    assert gateway.acquire().provider is second
