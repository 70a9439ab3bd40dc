"""Main CLI entry point for Code Forge."""

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional
import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from .config import Config
from .errors import ArtifactWriteError, CodeForgeError
from .models import Project, Scope, Settings, StageMode
from .notifications.telegram import check_telegram_config
from .service import CodeForge

SECRET_FIELDS = {"api_key", "telegram_api_key"}


def _create_app() -> CodeForge:
    return CodeForge(Config.from_env())


def _fail(message: str) -> NoReturn:
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def _read_prompt(prompt: Optional[str], prompt_file: Optional[str]) -> str:
    if prompt_file:
        return Path(prompt_file).read_text(encoding="utf-8")
    if prompt:
        return prompt
    _fail("Provide a prompt with --prompt or --prompt-file")


def _build_context(app: CodeForge, roots: tuple[str, ...], project_id: Optional[str], scope_id: Optional[str]) -> str:
    if roots:
        return app.generate_context(roots)
    if project_id:
        return app.scope_context(project_id, scope_id)
    _fail("Provide --roots or a --project to build the context from")


def _show_response(text: str, title: str) -> None:
    console = Console()
    console.print(Panel(Markdown(text), title=title, border_style="green"))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Code Forge - turn a prompt and local files into an update.sh script."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Request URLs carry the Telegram bot token
    logging.getLogger("httpx").setLevel(logging.WARNING)


@cli.command()
@click.argument("roots", nargs=-1, required=True, type=click.Path())
@click.option("--output", "-o", type=click.Path(), help="Write the context to a file")
def context(roots: tuple[str, ...], output: Optional[str]):
    """Serialize files and folders into a markdown context.

    Examples:
        codeforge context ./src ./README.md -o context.md
    """
    app = _create_app()
    content = app.generate_context(roots)

    if output:
        Path(output).write_text(content, encoding="utf-8")
        click.echo(f"✅ Context written to {output} ({len(content)} characters)")
    else:
        click.echo(content)


@cli.command()
@click.option("--project", "project_id", required=True, help="Project receiving update.sh")
@click.option("--scope", "scope_id", help="Scope whose folders form the context")
@click.option("--roots", multiple=True, type=click.Path(), help="Context roots (overrides the scope)")
@click.option("--prompt", "-p", help="Prompt text")
@click.option("--prompt-file", "-f", type=click.Path(exists=True), help="Read the prompt from a file")
@click.option(
    "--mode",
    "-m",
    type=click.Choice([m.value for m in StageMode]),
    default=StageMode.TWO_STEP.value,
    help="two-step (reasoning pass, then build pass) or one-step",
)
@click.option("--reasoning-model", help="Model for the reasoning pass")
@click.option("--regular-model", help="Model for the build pass")
def prompt(
    project_id: str,
    scope_id: Optional[str],
    roots: tuple[str, ...],
    prompt: Optional[str],
    prompt_file: Optional[str],
    mode: str,
    reasoning_model: Optional[str],
    regular_model: Optional[str],
):
    """Send a prompt and write the generated update.sh.

    Examples:
        # Two-step (default): plan with the reasoning model, then build the script
        codeforge prompt --project <id> --scope <id> -p "Add a health endpoint"

        # One-step with explicit roots
        codeforge prompt --project <id> --roots ./src -p "Rename Foo to Bar" --mode one-step
    """
    app = _create_app()
    text = _read_prompt(prompt, prompt_file)

    try:
        content = _build_context(app, roots, project_id, scope_id)
        click.echo(f"🤖 Sending prompt ({mode}, {len(content)} characters of context)...")
        result = app.send_prompt(
            prompt=text,
            context=content,
            project_id=project_id,
            scope_id=scope_id,
            reasoning_model=reasoning_model,
            regular_model=regular_model,
            stage_mode=StageMode(mode),
        )
    except ArtifactWriteError as e:
        if e.display_text:
            _show_response(e.display_text, "Response")
        _fail(str(e))
    except CodeForgeError as e:
        _fail(str(e))
    finally:
        app.wait_for_notifications()

    _show_response(result.response, "Response")
    click.echo(f"\n✅ update.sh generated in {result.processing_time}")


@cli.command()
@click.option("--prompt", "-p", help="Prompt text")
@click.option("--prompt-file", "-f", type=click.Path(exists=True), help="Read the prompt from a file")
@click.option("--project", "project_id", help="Project whose folders form the context")
@click.option("--scope", "scope_id", help="Scope whose folders form the context")
@click.option("--roots", multiple=True, type=click.Path(), help="Context roots")
@click.option("--model", help="Reasoning model")
@click.option("--output", "-o", type=click.Path(), help="Save the solution to a file")
def solve(
    prompt: Optional[str],
    prompt_file: Optional[str],
    project_id: Optional[str],
    scope_id: Optional[str],
    roots: tuple[str, ...],
    model: Optional[str],
    output: Optional[str],
):
    """Run only the reasoning pass, so the answer can be reviewed first.

    Examples:
        codeforge solve --project <id> -p "Add caching" -o solution.md
        codeforge build-script --project <id> --solution-file solution.md
    """
    app = _create_app()
    text = _read_prompt(prompt, prompt_file)

    try:
        content = _build_context(app, roots, project_id, scope_id)
        result = app.generate_solution(text, content, model)
    except CodeForgeError as e:
        _fail(str(e))

    if output:
        Path(output).write_text(result.text, encoding="utf-8")
        click.echo(f"✅ Solution written to {output}")
    _show_response(result.text, f"Solution ({result.model})")


@cli.command("build-script")
@click.option("--project", "project_id", required=True, help="Project receiving update.sh")
@click.option("--scope", "scope_id", help="Scope whose folders form the context")
@click.option("--solution-file", required=True, type=click.Path(exists=True), help="Reviewed solution")
@click.option("--roots", multiple=True, type=click.Path(), help="Context roots (overrides the scope)")
@click.option("--model", help="Model for the build pass")
def build_script(
    project_id: str,
    scope_id: Optional[str],
    solution_file: str,
    roots: tuple[str, ...],
    model: Optional[str],
):
    """Turn a saved solution into update.sh."""
    app = _create_app()
    solution = Path(solution_file).read_text(encoding="utf-8")

    try:
        content = _build_context(app, roots, project_id, scope_id)
        result = app.generate_update_script(solution, content, project_id, scope_id, model)
    except CodeForgeError as e:
        _fail(str(e))
    finally:
        app.wait_for_notifications()

    click.echo(f"✅ Script saved to {result.artifact.path}")


@cli.group()
def models():
    """Inspect the endpoint's models."""
    pass


@models.command("list")
def models_list():
    """Show cached models."""
    app = _create_app()
    entries = app.list_models()
    if not entries:
        click.echo("No models cached. Configure an API URL and run 'codeforge models refresh'.")
        return
    for entry in entries:
        click.echo(entry.id)


@models.command("refresh")
@click.option("--url", help="Query this endpoint instead of the configured one")
@click.option("--key", help="API key for --url")
def models_refresh(url: Optional[str], key: Optional[str]):
    """Fetch the model list from the endpoint."""
    app = _create_app()
    try:
        entries = app.refresh_models(url, key)
    except CodeForgeError as e:
        _fail(str(e))
    click.echo(f"✅ {len(entries)} models available")
    for entry in entries:
        click.echo(f"   {entry.id}")


@cli.group()
def project():
    """Manage projects."""
    pass


@project.command("add")
@click.argument("name")
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option("--folder", "folders", multiple=True, type=click.Path(), help="Default context folder")
def project_add(name: str, root: str, folders: tuple[str, ...]):
    """Register a project rooted at ROOT."""
    app = _create_app()
    root_path = str(Path(root).resolve())
    created = app.projects.create(
        Project(name=name, root_folder=root_path, folders=list(folders) or [root_path])
    )
    click.echo(f"✅ Project created: {created.id}")


@project.command("list")
def project_list():
    """List projects."""
    app = _create_app()
    table = Table("ID", "Name", "Root folder")
    for entry in app.projects.list():
        table.add_row(entry.id, entry.name, entry.root_folder or "-")
    Console().print(table)


@project.command("remove")
@click.argument("project_id")
def project_remove(project_id: str):
    """Delete a project."""
    app = _create_app()
    if not app.projects.delete(project_id):
        _fail(f"Project {project_id} not found")
    click.echo("✅ Project removed")


@cli.group()
def scope():
    """Manage scopes."""
    pass


@scope.command("add")
@click.argument("project_id")
@click.argument("name")
@click.option("--folder", "folders", multiple=True, required=True, type=click.Path(), help="Context folder")
def scope_add(project_id: str, name: str, folders: tuple[str, ...]):
    """Create a scope NAME under PROJECT_ID."""
    app = _create_app()
    if app.projects.get(project_id) is None:
        _fail(f"Project {project_id} not found")
    created = app.scopes.create(
        Scope(name=name, project_id=project_id, folders=[str(Path(f).resolve()) for f in folders])
    )
    click.echo(f"✅ Scope created: {created.id}")


@scope.command("list")
@click.option("--project", "project_id", help="Only scopes of this project")
def scope_list(project_id: Optional[str]):
    """List scopes."""
    app = _create_app()
    table = Table("ID", "Name", "Project", "Folders")
    for entry in app.scopes.list(project_id):
        table.add_row(entry.id, entry.name, entry.project_id, "\n".join(entry.folders))
    Console().print(table)


@scope.command("remove")
@click.argument("scope_id")
def scope_remove(scope_id: str):
    """Delete a scope."""
    app = _create_app()
    if not app.scopes.delete(scope_id):
        _fail(f"Scope {scope_id} not found")
    click.echo("✅ Scope removed")


@cli.group()
def settings():
    """Show or change settings."""
    pass


@settings.command("show")
def settings_show():
    """Print the stored settings (secrets masked)."""
    app = _create_app()
    current = app.settings_store.get()
    for name in Settings.model_fields:
        if name == "extra":
            continue
        value = getattr(current, name)
        if value and name in SECRET_FIELDS:
            value = "********"
        click.echo(f"{name}: {value if value is not None else ''}")
    for key, value in current.extra.items():
        click.echo(f"{key}: {value}")


@settings.command("set")
@click.argument("key")
@click.argument("value")
def settings_set(key: str, value: str):
    """Set KEY (e.g. api_url, reasoning_model) to VALUE; an empty VALUE clears it."""
    app = _create_app()
    try:
        app.update_settings(**{key: value or None})
    except ValueError as e:
        _fail(str(e))
    click.echo(f"✅ {key} updated")


@cli.command("notify-test")
@click.option("--api-key", help="Bot token (defaults to the stored one)")
@click.option("--chat-id", help="Chat id (defaults to the stored one)")
def notify_test(api_key: Optional[str], chat_id: Optional[str]):
    """Send a Telegram test message."""
    app = _create_app()
    current = app.settings_store.get()
    ok, error = check_telegram_config(
        api_key or current.telegram_api_key, chat_id or current.telegram_chat_id
    )
    if not ok:
        _fail(error or "Telegram test failed")
    click.echo("✅ Telegram test message sent")


if __name__ == "__main__":
    cli()
