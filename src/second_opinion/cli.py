"""Command-line entry point: MCP server plus a few maintenance commands."""

from __future__ import annotations

import asyncio
import difflib
import json
import logging
from pathlib import Path

import click

from second_opinion import __version__
from second_opinion.config import Config, load_config
from second_opinion.consult import describe_failure, resolve_alias, run_consultation
from second_opinion.errors import ConfigError, SecondOpinionError
from second_opinion.models import DEFAULT_BASE_REF, ConsultRequest, DiffSpec
from second_opinion.paths import CONFIG_DIR
from second_opinion.system_prompt import init_system_prompt
from second_opinion.transcript import configure_logging, log_server_start

log = logging.getLogger(__name__)


def _did_you_mean(name: str, choices: list[str]) -> str:
    matches = difflib.get_close_matches(name, choices, n=2, cutoff=0.5)
    return f" Did you mean: {', '.join(matches)}?" if matches else ""


class _JsonAwareGroup(click.Group):
    """Group whose usage and command errors print as ``{"ok": false, ...}``.

    Errors go to stdout before any server starts, so an MCP client that
    launched the wrong subcommand still gets a single parseable line.
    """

    def resolve_command(self, ctx, args):  # type: ignore[override]
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError:
            if not args:
                raise
            name = args[0]
            hint = _did_you_mean(name, self.list_commands(ctx))
            raise click.UsageError(f"No such command '{name}'.{hint}") from None

    def main(self, args=None, standalone_mode=True, **kwargs):  # type: ignore[override]
        try:
            exit_code = super().main(args=args, standalone_mode=False, **kwargs) or 0
        except click.ClickException as exc:
            click.echo(json.dumps({"ok": False, "error": exc.format_message()}))
            exit_code = exc.exit_code
        except click.Abort:
            if not standalone_mode:
                raise
            click.echo("Aborted!", err=True)
            exit_code = 1
        if standalone_mode:
            raise SystemExit(exit_code)
        return exit_code


def _load(ctx: click.Context) -> Config:
    config_path: Path | None = ctx.obj.get("config_path") if ctx.obj else None
    try:
        return load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from None


@click.group(cls=_JsonAwareGroup, invoke_without_command=True)
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/second-opinion/config.toml).",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None):
    """Ask a different AI coding CLI for a second opinion, over MCP.

    \b
    Quick start:
      second-opinion                     Run the MCP server on stdio (same as `serve`)
      second-opinion doctor              Check which backend CLIs are installed
      second-opinion config              Show the effective configuration
      second-opinion init-prompt         Write an editable SYSTEM_PROMPT.md
      second-opinion ask "Review this" -f src/app.py -m codex
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@main.command()
@click.pass_context
def serve(ctx: click.Context):
    """Run the MCP server over stdio."""
    from second_opinion.server import serve as run_server

    config = _load(ctx)
    configure_logging()
    log_server_start(__version__)
    run_server(config)


@main.command("init-prompt")
def init_prompt():
    """Create the default system prompt file for editing."""
    try:
        path = init_system_prompt(CONFIG_DIR)
    except FileExistsError as e:
        raise click.ClickException(str(e)) from None
    except OSError as e:
        raise click.ClickException(f"Failed to write system prompt: {e}") from None
    click.echo(
        json.dumps(
            {
                "ok": True,
                "path": str(path),
                "message": "You can now edit this file to customize the system prompt.",
            }
        )
    )


@main.command("config")
@click.pass_context
def show_config(ctx: click.Context):
    """Show the effective configuration as JSON."""
    config = _load(ctx)
    click.echo(json.dumps(config.to_dict(), indent=2))


@main.command()
@click.pass_context
def doctor(ctx: click.Context):
    """Check backend CLIs, git, and configuration."""
    from second_opinion.doctor import run_doctor

    config = _load(ctx)
    report = run_doctor(config, ctx.obj.get("config_path"))
    click.echo(json.dumps(report))
    if report["status"] == "fail":
        raise click.ClickException("Doctor checks failed.")


@main.command()
@click.argument("prompt")
@click.option("--model", "-m", default=None, help="Model alias (gemini, claude, codex, kilo).")
@click.option(
    "--file", "-f", "files", multiple=True, help="Context file to reference (repeatable)."
)
@click.option(
    "--diff-file", "diff_files", multiple=True, help="File to include in a git diff (repeatable)."
)
@click.option("--base-ref", default=DEFAULT_BASE_REF, show_default=True, help="Git diff base.")
@click.option(
    "--repo",
    "repo_path",
    default=None,
    type=click.Path(file_okay=False),
    help="Repository for --diff-file (default: current directory).",
)
@click.pass_context
def ask(
    ctx: click.Context,
    prompt: str,
    model: str | None,
    files: tuple[str, ...],
    diff_files: tuple[str, ...],
    base_ref: str,
    repo_path: str | None,
):
    """Run one consultation from the terminal and print the answer."""
    config = _load(ctx)
    configure_logging()

    git_diff = None
    if diff_files or repo_path:
        git_diff = DiffSpec(files=diff_files, repo_path=repo_path, base_ref=base_ref)
    request = ConsultRequest(prompt=prompt, model=model, files=files or None, git_diff=git_diff)

    try:
        alias = resolve_alias(model, config)
        response = asyncio.run(run_consultation(request, config))
    except SecondOpinionError as e:
        raise click.ClickException(describe_failure(e)) from None

    click.echo(json.dumps({"ok": True, "model": str(alias), "response": response}))
