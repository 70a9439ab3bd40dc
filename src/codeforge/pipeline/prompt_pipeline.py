"""One-step and two-step prompt pipelines producing update.sh."""

import logging
from typing import Optional, Protocol
from ..errors import ConfigurationMissingError
from ..llm.gateway import ClientHandle, ModelGateway
from ..llm.prompts import build_update_input, direct_update_input, solution_input
from ..models import (
    Artifact,
    PipelineRequest,
    PipelineResult,
    ResolvedTarget,
    StageMode,
    StageResult,
)
from .artifact import ArtifactWriter
from .extractor import extract_code_block
from .timing import Stopwatch, format_ns

logger = logging.getLogger(__name__)


class TargetLookup(Protocol):
    def resolve(self, project_id: Optional[str], scope_id: Optional[str] = None) -> ResolvedTarget:
        ...


def _headline(target: ResolvedTarget) -> str:
    scope = f" (Scope: {target.scope_name})" if target.scope_name else ""
    return (
        f'✅ Script update.sh generated successfully for project "{target.project_name}"{scope}.'
    )


def two_step_message(target: ResolvedTarget, solution_ns: int, build_ns: int, total_ns: int) -> str:
    """Notification text with per-stage and total times."""
    return (
        f"{_headline(target)}\n\n"
        f"⏱️ Processing times:\n"
        f"- First prompt: {format_ns(solution_ns)}\n"
        f"- Second prompt: {format_ns(build_ns)}\n"
        f"- Total: {format_ns(total_ns)}"
    )


def single_stage_message(target: ResolvedTarget, total_ns: int) -> str:
    """Notification text with a single processing time."""
    return f"{_headline(target)}\n\n⏱️ Processing time: {format_ns(total_ns)}"


class PromptPipeline:
    """Turns a prompt and its context into update.sh.

    Every entry point checks the gateway and resolves the target before the
    first model call, so a request that could not be saved never costs a
    completion. Model failures propagate unchanged: nothing is written and
    nothing is announced.
    """

    def __init__(self, gateway: ModelGateway, resolver: TargetLookup, writer: ArtifactWriter):
        self.gateway = gateway
        self.resolver = resolver
        self.writer = writer

    def run(self, request: PipelineRequest) -> PipelineResult:
        """Run a full prompt submission in the requested stage mode."""
        client = self.gateway.acquire()
        self._require_model(request.reasoning_model)
        if request.stage_mode == StageMode.TWO_STEP:
            self._require_model(request.regular_model)
        target = self.resolver.resolve(request.project_id, request.scope_id)

        if request.stage_mode == StageMode.ONE_STEP:
            result = self._one_step(client, target, request.prompt, request.context, request.reasoning_model)
        else:
            result = self._two_step(client, target, request)

        self._check_stale(client)
        return result

    def generate_solution(self, prompt: str, context: str, model: str) -> StageResult:
        """Run the reasoning pass alone; nothing is written."""
        client = self.gateway.acquire()
        self._require_model(model)
        logger.info("Generating solution using model: %s", model)
        result = self._invoke(client, "solution", model, solution_input(prompt, context))
        logger.info("Solution generated in %s", format_ns(result.elapsed_ns))
        return result

    def generate_update_script(
        self,
        solution: str,
        context: str,
        project_id: str,
        scope_id: Optional[str],
        model: str,
    ) -> PipelineResult:
        """Run the build pass on an existing, possibly edited, solution."""
        client = self.gateway.acquire()
        self._require_model(model)
        target = self.resolver.resolve(project_id, scope_id)

        logger.info("Generating update script using model: %s", model)
        total = Stopwatch()
        build = self._invoke(client, "build", model, build_update_input(solution, context))
        script = extract_code_block(build.text)
        total_ns = total.stop()

        message = single_stage_message(target, total_ns)
        artifact = Artifact(script=script, path=target.script_path)
        self.writer.commit(artifact, message, display_text=solution)

        self._check_stale(client)
        return PipelineResult(
            display_text=solution,
            artifact=artifact,
            notification_message=message,
            stages=[build],
            total_ns=total_ns,
        )

    def generate_update_script_directly(
        self,
        prompt: str,
        context: str,
        project_id: str,
        scope_id: Optional[str],
        model: str,
    ) -> PipelineResult:
        """One-step generation: a single call yields both answer and script."""
        client = self.gateway.acquire()
        self._require_model(model)
        target = self.resolver.resolve(project_id, scope_id)

        result = self._one_step(client, target, prompt, context, model)
        self._check_stale(client)
        return result

    def _two_step(self, client: ClientHandle, target: ResolvedTarget, request: PipelineRequest) -> PipelineResult:
        logger.info("Using reasoning model: %s", request.reasoning_model)
        logger.info("Using regular model: %s", request.regular_model)

        total = Stopwatch()
        solution = self._invoke(
            client, "solution", request.reasoning_model, solution_input(request.prompt, request.context)
        )
        build = self._invoke(
            client, "build", request.regular_model, build_update_input(solution.text, request.context)
        )
        script = extract_code_block(build.text)
        total_ns = total.stop()

        message = two_step_message(target, solution.elapsed_ns, build.elapsed_ns, total_ns)
        artifact = Artifact(script=script, path=target.script_path)
        self.writer.commit(artifact, message, display_text=solution.text)

        return PipelineResult(
            display_text=solution.text,
            artifact=artifact,
            notification_message=message,
            stages=[solution, build],
            total_ns=total_ns,
        )

    def _one_step(
        self, client: ClientHandle, target: ResolvedTarget, prompt: str, context: str, model: str
    ) -> PipelineResult:
        logger.info("Generating update script directly using model: %s", model)

        total = Stopwatch()
        direct = self._invoke(client, "direct", model, direct_update_input(prompt, context))
        script = extract_code_block(direct.text)
        total_ns = total.stop()

        message = single_stage_message(target, total_ns)
        artifact = Artifact(script=script, path=target.script_path)
        self.writer.commit(artifact, message, display_text=direct.text)

        return PipelineResult(
            display_text=direct.text,
            artifact=artifact,
            notification_message=message,
            stages=[direct],
            total_ns=total_ns,
        )

    def _invoke(self, client: ClientHandle, stage: str, model: str, content: str) -> StageResult:
        with Stopwatch() as watch:
            response = client.complete(model, [{"role": "user", "content": content}])
        logger.info("Stage %s with %s finished in %s", stage, model, format_ns(watch.elapsed_ns))
        return StageResult(stage=stage, model=model, text=response.content, elapsed_ns=watch.elapsed_ns)

    @staticmethod
    def _require_model(model: Optional[str]) -> None:
        if not model:
            raise ConfigurationMissingError(
                "No model selected. Choose a model or set one in settings."
            )

    @staticmethod
    def _check_stale(client: ClientHandle) -> None:
        if client.is_stale:
            logger.debug(
                "Endpoint configuration changed during the request; finished with client version %d",
                client.version,
            )
