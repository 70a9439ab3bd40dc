"""Application facade wiring storage, gateway and pipeline together."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional
from .config import Config
from .errors import TargetResolutionError
from .llm.catalog import ModelCatalog
from .llm.gateway import ModelGateway, ProviderFactory
from .llm.litellm_provider import LiteLLMProvider
from .models import (
    ModelInfo,
    PathExclusionPolicy,
    PipelineRequest,
    PipelineResult,
    PromptResponse,
    Settings,
    StageMode,
    StageResult,
)
from .notifications.base import Notifier
from .notifications.telegram import TelegramNotifier
from .pipeline.artifact import ArtifactWriter
from .pipeline.prompt_pipeline import PromptPipeline
from .pipeline.timing import format_ns
from .scanner.context import ContextSerializer
from .storage.repository import ProjectRepository, ScopeRepository
from .storage.resolver import TargetResolver
from .storage.settings_store import SettingsStore

logger = logging.getLogger(__name__)


class CodeForge:
    """Everything the CLI (or any other front end) needs, behind one object."""

    def __init__(
        self,
        config: Config,
        provider_factory: ProviderFactory = LiteLLMProvider,
        notifier: Optional[Notifier] = None,
        background_notifications: bool = True,
    ):
        """Initialize the application.

        Args:
            config: Application configuration
            provider_factory: Builds the completion client on every reload
            notifier: Notification sink, Telegram by default
            background_notifications: Deliver notifications off the calling thread
        """
        self.config = config
        data_dir = Path(config.data_dir)

        self.settings_store = SettingsStore(data_dir / "settings.json")
        self.projects = ProjectRepository(data_dir / "projects.json")
        self.scopes = ScopeRepository(data_dir / "scopes.json")
        self.resolver = TargetResolver(self.projects, self.scopes)

        self.serializer = ContextSerializer(
            PathExclusionPolicy.from_config(config), warn_chars=config.context_warn_chars
        )

        self.gateway = ModelGateway(provider_factory)
        self.catalog = ModelCatalog(
            data_dir / "models.json", self.effective_settings, fallback_model=config.default_model
        )
        self.notifier = notifier or TelegramNotifier(self.settings_store.get)
        self.writer = ArtifactWriter(self.notifier, background=background_notifications)
        self.pipeline = PromptPipeline(self.gateway, self.resolver, self.writer)

        self.reload()

    def effective_settings(self) -> Settings:
        """Stored settings with environment fallbacks for the endpoint."""
        settings = self.settings_store.get()
        return settings.model_copy(
            update={
                "api_url": settings.api_url or self.config.api_url,
                "api_key": settings.api_key or self.config.api_key,
                "reasoning_model": settings.reasoning_model or self.config.default_model,
            }
        )

    def reload(self) -> int:
        """Rebuild the endpoint client from the current settings.

        Returns:
            The gateway's new configuration version
        """
        settings = self.effective_settings()
        return self.gateway.reload(settings.api_url, settings.api_key, timeout=self.config.request_timeout)

    def update_settings(self, **changes) -> Settings:
        """Persist setting changes and reload the client if the endpoint changed."""
        before = self.effective_settings()
        self.settings_store.update(**changes)
        after = self.effective_settings()

        if (before.api_url, before.api_key) != (after.api_url, after.api_key):
            self.reload()
            if not after.api_url:
                self.catalog.clear()
        return self.settings_store.get()

    def generate_context(self, roots: Iterable[str | Path]) -> str:
        """Markdown context for the given files and folders."""
        return self.serializer.serialize(roots)

    def scope_context(self, project_id: str, scope_id: Optional[str] = None) -> str:
        """Markdown context for a scope's folders, or the project's when no scope is given."""
        project = self.projects.get(project_id)
        if project is None:
            raise TargetResolutionError(f"Project {project_id} not found")

        if scope_id:
            scope = next((s for s in self.scopes.list(project_id) if s.id == scope_id), None)
            if scope is None:
                raise TargetResolutionError(f"Scope {scope_id} not found in project {project.name}")
            return self.generate_context(scope.folders)

        folders = project.folders or ([project.root_folder] if project.root_folder else [])
        return self.generate_context(folders)

    def send_prompt(
        self,
        prompt: str,
        context: str,
        project_id: str,
        scope_id: Optional[str] = None,
        reasoning_model: Optional[str] = None,
        regular_model: Optional[str] = None,
        stage_mode: StageMode = StageMode.TWO_STEP,
    ) -> PromptResponse:
        """Run the whole pipeline and return the human-facing response."""
        first_model = self._reasoning_model(reasoning_model)
        request = PipelineRequest(
            prompt=prompt,
            context=context,
            project_id=project_id,
            scope_id=scope_id,
            reasoning_model=first_model or "",
            regular_model=self._regular_model(regular_model, first_model) or "",
            stage_mode=stage_mode,
        )
        result = self.pipeline.run(request)
        return self._response(result)

    def generate_solution(self, prompt: str, context: str, model: Optional[str] = None) -> StageResult:
        return self.pipeline.generate_solution(prompt, context, self._reasoning_model(model) or "")

    def generate_update_script(
        self,
        solution: str,
        context: str,
        project_id: str,
        scope_id: Optional[str] = None,
        model: Optional[str] = None,
    ) -> PipelineResult:
        model = self._regular_model(model, self._reasoning_model(None))
        return self.pipeline.generate_update_script(solution, context, project_id, scope_id, model or "")

    def generate_update_script_directly(
        self,
        prompt: str,
        context: str,
        project_id: str,
        scope_id: Optional[str] = None,
        model: Optional[str] = None,
    ) -> PipelineResult:
        return self.pipeline.generate_update_script_directly(
            prompt, context, project_id, scope_id, self._reasoning_model(model) or ""
        )

    def list_models(self) -> List[ModelInfo]:
        if not self.gateway.is_configured:
            return []
        return self.catalog.get_models()

    def refresh_models(self, url: Optional[str] = None, key: Optional[str] = None) -> List[ModelInfo]:
        return self.catalog.fetch_and_save(url, key)

    def wait_for_notifications(self, timeout: Optional[float] = None) -> None:
        self.writer.wait(timeout)

    def _reasoning_model(self, requested: Optional[str]) -> Optional[str]:
        return requested or self.effective_settings().reasoning_model

    def _regular_model(self, requested: Optional[str], reasoning_model: Optional[str]) -> Optional[str]:
        return requested or self.settings_store.get().regular_model or reasoning_model

    @staticmethod
    def _response(result: PipelineResult) -> PromptResponse:
        return PromptResponse(
            response=result.display_text,
            script=result.artifact.script,
            processing_time=format_ns(result.total_ns),
        )
