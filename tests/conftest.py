"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from typing import Sequence
from codeforge.config import Config
from codeforge.llm.gateway import ModelGateway
from codeforge.llm.provider import LLMProvider, LLMResponse
from codeforge.models import Project, Scope
from codeforge.notifications.base import Notifier
from codeforge.storage.repository import ProjectRepository, ScopeRepository
from codeforge.storage.resolver import TargetResolver


class FakeProvider(LLMProvider):
    """Returns queued replies and records every call."""

    def __init__(self, replies: Sequence[object] = (), **client_kwargs):
        self.replies = list(replies)
        self.calls: list[tuple[str, list[dict]]] = []
        self.client_kwargs = client_kwargs

    def complete(self, model, messages) -> LLMResponse:
        self.calls.append((model, list(messages)))
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=model)


class RecordingNotifier(Notifier):
    """Keeps sent messages in memory."""

    def __init__(self, error: Exception | None = None):
        self.messages: list[str] = []
        self.error = error

    def send(self, message: str) -> None:
        if self.error:
            raise self.error
        self.messages.append(message)


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary project tree for testing."""
    repo = tmp_path / "test_repo"
    repo.mkdir()

    (repo / "README.md").write_text("# Test Project")
    (repo / "main.py").write_text("print('hello')")

    return repo


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Provide a test configuration with an isolated data directory."""
    return Config(
        data_dir=tmp_path / "data",
        api_url="http://localhost:1234/v1",
        api_key="test-key",
        default_model="test-model",
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def gateway(fake_provider: FakeProvider) -> ModelGateway:
    """Gateway configured with the fake provider."""
    gw = ModelGateway(provider_factory=lambda **kwargs: fake_provider)
    gw.reload("http://localhost:1234/v1", "test-key")
    return gw


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def repositories(tmp_path: Path, temp_repo: Path):
    """Project and scope repositories holding one project with one scope."""
    projects = ProjectRepository(tmp_path / "data" / "projects.json")
    scopes = ScopeRepository(tmp_path / "data" / "scopes.json")
    project = projects.create(
        Project(id="p1", name="Demo", root_folder=str(temp_repo), folders=[str(temp_repo)])
    )
    scopes.create(Scope(id="s1", name="Backend", project_id=project.id, folders=[str(temp_repo)]))
    return projects, scopes


@pytest.fixture
def resolver(repositories) -> TargetResolver:
    projects, scopes = repositories
    return TargetResolver(projects, scopes)
