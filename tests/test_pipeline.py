"""Tests for the prompt pipeline."""

import pytest
from codeforge.errors import (
    ArtifactWriteError,
    ConfigurationMissingError,
    TargetResolutionError,
    UpstreamCallError,
)
from codeforge.llm.gateway import ModelGateway
from codeforge.llm.prompts import BUILD_UPDATE_PROMPT
from codeforge.models import PipelineRequest, ResolvedTarget, StageMode
from codeforge.pipeline.artifact import ArtifactWriter
from codeforge.pipeline.prompt_pipeline import (
    PromptPipeline,
    single_stage_message,
    two_step_message,
)
from conftest import FakeProvider


@pytest.fixture
def writer(notifier) -> ArtifactWriter:
    return ArtifactWriter(notifier, background=False)


@pytest.fixture
def pipeline(gateway, resolver, writer) -> PromptPipeline:
    return PromptPipeline(gateway, resolver, writer)


def _request(**overrides) -> PipelineRequest:
    values = dict(
        prompt="Add a greeting",
        context="# Folder: /repo\n\n",
        project_id="p1",
        scope_id="s1",
        reasoning_model="reasoner",
        regular_model="builder",
        stage_mode=StageMode.TWO_STEP,
    )
    values.update(overrides)
    return PipelineRequest(**values)


def test_two_step_returns_plan_and_writes_script(pipeline, fake_provider, temp_repo, notifier):
    fake_provider.replies = ["plan text", "```bash\necho hi\n```"]

    result = pipeline.run(_request())

    assert result.display_text == "plan text"
    assert result.artifact.script == "echo hi"
    assert result.artifact.path == temp_repo / "update.sh"
    assert (temp_repo / "update.sh").read_text() == "echo hi"
    assert notifier.messages == [result.notification_message]


def test_two_step_calls_models_in_order(pipeline, fake_provider):
    fake_provider.replies = ["plan text", "```bash\necho hi\n```"]

    pipeline.run(_request())

    (first_model, first_messages), (second_model, second_messages) = fake_provider.calls
    assert first_model == "reasoner"
    assert first_messages == [{"role": "user", "content": "Add a greeting\n\n# Folder: /repo\n\n"}]
    assert second_model == "builder"
    assert second_messages == [
        {"role": "user", "content": f"{BUILD_UPDATE_PROMPT}\n\nplan text\n\n# Folder: /repo\n\n"}
    ]


def test_two_step_total_time_covers_both_stages(pipeline, fake_provider):
    fake_provider.replies = ["plan", "```\nls\n```"]

    result = pipeline.run(_request())

    solution, build = result.stages
    assert [s.stage for s in result.stages] == ["solution", "build"]
    assert result.total_ns >= solution.elapsed_ns + build.elapsed_ns


def test_two_step_notification_lists_stage_times(pipeline, fake_provider):
    fake_provider.replies = ["plan", "```\nls\n```"]

    message = pipeline.run(_request()).notification_message

    assert message.startswith(
        '✅ Script update.sh generated successfully for project "Demo" (Scope: Backend).'
    )
    assert "- First prompt: " in message
    assert "- Second prompt: " in message
    assert "- Total: " in message


def test_one_step_without_fence_keeps_raw_text(pipeline, fake_provider, temp_repo, notifier):
    raw = "cd /repo\necho 'no fences'"
    fake_provider.replies = [raw]

    result = pipeline.run(_request(stage_mode=StageMode.ONE_STEP))

    assert result.display_text == raw
    assert result.artifact.script == raw
    assert (temp_repo / "update.sh").read_text() == raw
    assert len(fake_provider.calls) == 1
    assert "⏱️ Processing time: " in notifier.messages[0]
    assert "First prompt" not in notifier.messages[0]


def test_one_step_uses_reasoning_model_and_direct_prompt(pipeline, fake_provider):
    fake_provider.replies = ["```bash\necho hi\n```"]

    pipeline.run(_request(stage_mode=StageMode.ONE_STEP))

    model, messages = fake_provider.calls[0]
    assert model == "reasoner"
    content = messages[0]["content"]
    assert content.startswith(f"{BUILD_UPDATE_PROMPT}.\n\nHere is my request:\nAdd a greeting")
    assert content.endswith("Here is the context:\n# Folder: /repo\n\n")


def test_unknown_project_never_calls_the_model(pipeline, fake_provider, notifier):
    with pytest.raises(TargetResolutionError):
        pipeline.run(_request(project_id="missing"))

    assert fake_provider.calls == []
    assert notifier.messages == []


def test_unknown_scope_never_calls_the_model(pipeline, fake_provider):
    with pytest.raises(TargetResolutionError):
        pipeline.run(_request(scope_id="missing", stage_mode=StageMode.ONE_STEP))

    assert fake_provider.calls == []


def test_unconfigured_gateway_fails_before_resolution(resolver, writer):
    pipeline = PromptPipeline(ModelGateway(provider_factory=FakeProvider), resolver, writer)

    with pytest.raises(ConfigurationMissingError):
        pipeline.run(_request(project_id="missing"))


def test_missing_model_fails_before_any_call(pipeline, fake_provider):
    with pytest.raises(ConfigurationMissingError, match="No model selected"):
        pipeline.run(_request(regular_model=""))

    assert fake_provider.calls == []


def test_stage_b_failure_writes_nothing(pipeline, fake_provider, temp_repo, notifier):
    error = UpstreamCallError("LLM generation failed: 500", status_code=500)
    fake_provider.replies = ["plan", error]

    with pytest.raises(UpstreamCallError) as exc_info:
        pipeline.run(_request())

    assert exc_info.value is error
    assert len(fake_provider.calls) == 2
    assert not (temp_repo / "update.sh").exists()
    assert notifier.messages == []


def test_stage_a_failure_stops_pipeline(pipeline, fake_provider):
    fake_provider.replies = [UpstreamCallError("down")]

    with pytest.raises(UpstreamCallError, match="down"):
        pipeline.run(_request())

    assert len(fake_provider.calls) == 1


def test_write_failure_keeps_display_text(pipeline, fake_provider, temp_repo, notifier):
    (temp_repo / "update.sh").mkdir()
    fake_provider.replies = ["plan text", "```bash\necho hi\n```"]

    with pytest.raises(ArtifactWriteError) as exc_info:
        pipeline.run(_request())

    assert exc_info.value.display_text == "plan text"
    assert notifier.messages == []


def test_generate_solution_needs_no_target(pipeline, fake_provider, temp_repo):
    fake_provider.replies = ["the plan"]

    result = pipeline.generate_solution("Question", "ctx", "reasoner")

    assert result.text == "the plan"
    assert result.model == "reasoner"
    assert result.elapsed_ns >= 0
    assert fake_provider.calls[0][1][0]["content"] == "Question\n\nctx"
    assert not (temp_repo / "update.sh").exists()


def test_generate_update_script_from_edited_solution(pipeline, fake_provider, temp_repo, notifier):
    fake_provider.replies = ["```sh\necho edited\n```"]

    result = pipeline.generate_update_script("my edited plan", "ctx", "p1", "s1", "builder")

    assert result.display_text == "my edited plan"
    assert (temp_repo / "update.sh").read_text() == "echo edited"
    assert fake_provider.calls[0][0] == "builder"
    assert fake_provider.calls[0][1][0]["content"] == f"{BUILD_UPDATE_PROMPT}\n\nmy edited plan\n\nctx"
    assert "⏱️ Processing time: " in notifier.messages[0]


def test_generate_update_script_checks_target_first(pipeline, fake_provider):
    with pytest.raises(TargetResolutionError):
        pipeline.generate_update_script("plan", "ctx", "missing", None, "builder")

    assert fake_provider.calls == []


def test_generate_update_script_directly(pipeline, fake_provider, temp_repo):
    fake_provider.replies = ["Sure:\n```bash\necho direct\n```\nDone."]

    result = pipeline.generate_update_script_directly("Do it", "ctx", "p1", None, "reasoner")

    assert result.display_text == "Sure:\n```bash\necho direct\n```\nDone."
    assert result.artifact.script == "echo direct"
    assert (temp_repo / "update.sh").read_text() == "echo direct"


def test_project_without_scope_omits_scope_from_message(pipeline, fake_provider, notifier):
    fake_provider.replies = ["plan", "```\nls\n```"]

    pipeline.run(_request(scope_id=None))

    assert '"Demo".' in notifier.messages[0]
    assert "Scope:" not in notifier.messages[0]


def test_run_pins_client_across_reload(resolver, writer, temp_repo):
    """A reload between stages does not switch clients mid-request."""

    class ReloadingProvider(FakeProvider):
        def complete(self, model, messages):
            response = super().complete(model, messages)
            if len(self.calls) == 1:
                gateway.reload("http://two")
            return response

    pinned = ReloadingProvider(["plan", "```\npinned\n```"])
    second = FakeProvider(["```\nwrong client\n```"])
    providers = iter([pinned, second])
    gateway = ModelGateway(provider_factory=lambda **kwargs: next(providers))
    gateway.reload("http://one")
    pipeline = PromptPipeline(gateway, resolver, writer)

    result = pipeline.run(_request())

    assert result.artifact.script == "pinned"
    assert len(pinned.calls) == 2
    assert second.calls == []
    assert gateway.version == 2


def test_message_helpers_format_times():
    target = ResolvedTarget(project_name="Demo", root_folder="/tmp", scope_name="Core")

    assert single_stage_message(target, 1_500_000_000) == (
        '✅ Script update.sh generated successfully for project "Demo" (Scope: Core).'
        "\n\n⏱️ Processing time: 1.50s"
    )
    assert two_step_message(target, 1_000_000_000, 61_000_000_000, 62_000_000_000).endswith(
        "- First prompt: 1.00s\n- Second prompt: 1m 1s\n- Total: 1m 2s"
    )
