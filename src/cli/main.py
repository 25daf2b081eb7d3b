"""workflow-relay CLI.

Commands:
- `dispatch`: trigger the remote workflow, wait for it and relay its logs.
- `workflows`: list the workflows of the remote repository.
- `doctor`: environment diagnostics.

Options left unset fall back to `RelaySettings`, i.e. to the `INPUT_*`
environment a GitHub Actions step provides.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, NoReturn, Optional

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console

from adapters.github_actions import GitHubActionsClient
from cli import doctor
from cli.ui_components import build_summary_panel, build_workflows_table, report_failure
from core.config import RelaySettings
from core.domain.models import RelayResult, Workflow
from core.errors import ConfigurationError, RelayError
from core.logging_setup import configure_logging
from core.services.dispatch_pipeline import DispatchRequest, PipelineHooks, run_pipeline

app = typer.Typer(no_args_is_help=True, help="Dispatch a remote GitHub Actions workflow and relay its logs.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

FAILED_RUN_MESSAGE = "External workflow failed."


def _build_settings(**overrides: Any) -> RelaySettings:
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return RelaySettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid inputs: {exc}") from exc


def _info(message: str) -> None:
    _console.print(message, markup=False, highlight=False, emoji=False, soft_wrap=True)


def _log_line(line: str) -> None:
    # Relayed verbatim: rich would expand tabs and drop carriage returns.
    typer.echo(line)


def _error(message: str) -> None:
    report_failure(message, console=_console, err_console=_err_console)


def _fail(message: str) -> NoReturn:
    report_failure(message, console=_console, err_console=_err_console)
    raise typer.Exit(code=1)


async def _dispatch(settings: RelaySettings, hooks: PipelineHooks) -> RelayResult:
    request = DispatchRequest.from_settings(settings)
    async with GitHubActionsClient(settings) as api:
        return await run_pipeline(api, request, hooks=hooks)


async def _list_workflows(settings: RelaySettings) -> list[Workflow]:
    async with GitHubActionsClient(settings) as api:
        return await api.list_workflows()


@app.command()
def dispatch(
    repo_owner: Optional[str] = typer.Option(None, "--repo-owner", help="Owner of the remote repository."),
    repo_name: Optional[str] = typer.Option(None, "--repo-name", help="Name of the remote repository."),
    workflow_file_name: Optional[str] = typer.Option(
        None, "--workflow", "-w", help="Workflow file name, e.g. 'ci.yml'."
    ),
    github_token: Optional[str] = typer.Option(None, "--token", help="Token with actions access."),
    git_ref: Optional[str] = typer.Option(None, "--ref", help="Git ref to run on [default: master]."),
    check_interval: Optional[float] = typer.Option(None, "--check-interval", help="Poll interval in seconds [default: 5]."),
    wait_timeout: Optional[float] = typer.Option(None, "--wait-timeout", help="Completion timeout in seconds [default: 600]."),
    client_payload: Optional[str] = typer.Option(None, "--payload", help="JSON object passed as workflow inputs."),
    summary: bool = typer.Option(False, "--summary", help="Print a summary panel after the logs."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    """Dispatch the workflow, wait for completion and relay its logs."""

    configure_logging(verbose)
    hooks = PipelineHooks(info=_info, error=_error, log_line=_log_line)
    try:
        settings = _build_settings(
            repo_owner=repo_owner,
            repo_name=repo_name,
            workflow_file_name=workflow_file_name,
            github_token=github_token,
            git_ref=git_ref,
            check_interval=check_interval,
            wait_timeout=wait_timeout,
            client_payload=client_payload,
        )
        result = asyncio.run(_dispatch(settings, hooks))
    except (RelayError, httpx.HTTPError, ValidationError) as exc:
        _fail(str(exc))

    if summary:
        _console.print(build_summary_panel(result))
    if not result.succeeded:
        _fail(FAILED_RUN_MESSAGE)


@app.command()
def workflows(
    repo_owner: Optional[str] = typer.Option(None, "--repo-owner"),
    repo_name: Optional[str] = typer.Option(None, "--repo-name"),
    github_token: Optional[str] = typer.Option(None, "--token"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List the workflows of the remote repository."""

    configure_logging(verbose)
    try:
        settings = _build_settings(repo_owner=repo_owner, repo_name=repo_name, github_token=github_token)
        if not settings.repo_owner or not settings.repo_name:
            raise ConfigurationError("Input required and not supplied: repo_owner, repo_name")
        found = asyncio.run(_list_workflows(settings))
    except (RelayError, httpx.HTTPError, ValidationError) as exc:
        _fail(str(exc))

    _console.print(build_workflows_table(found))


def run() -> None:
    # The run announcement carries an emoji; cp1252 consoles cannot encode it.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    app()
