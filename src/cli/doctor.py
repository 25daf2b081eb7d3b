"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adapters.github_actions import GitHubActionsClient
from adapters.http_client import build_async_client
from core.config import RelaySettings

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: RelaySettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get("/rate_limit")
        if response.status_code != 200:
            return False, f"HTTP {response.status_code}"
        remaining = response.json().get("resources", {}).get("core", {}).get("remaining")
        return True, f"HTTP 200, core requests remaining: {remaining}"
    except Exception as exc:
        return False, str(exc)


async def _check_actions(settings: RelaySettings) -> tuple[bool, str]:
    try:
        async with GitHubActionsClient(settings) as api:
            workflows = await api.list_workflows()
        return True, f"{len(workflows)} workflow(s) visible"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    try:
        settings = RelaySettings()
    except ValidationError as exc:
        _console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    table = Table(title="workflow-relay Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.github_token:
        table.add_row("Token", "OK", "INPUT_GITHUB_TOKEN / GITHUB_TOKEN set")
    else:
        table.add_row("Token", "MISSING", "Set INPUT_GITHUB_TOKEN or GITHUB_TOKEN")
    table.add_row("API URL", "OK", settings.api_url)
    if settings.workflow_file_name:
        table.add_row("Workflow", "OK", settings.workflow_file_name)
    else:
        table.add_row("Workflow", "MISSING", "Set INPUT_WORKFLOW_FILE_NAME or pass --workflow")

    # Connectivity (best-effort)
    ok_api, detail_api = asyncio.run(_check_api(settings))
    table.add_row("API connectivity", "OK" if ok_api else "FAIL", detail_api)

    ok_actions = False
    if settings.repo_owner and settings.repo_name:
        ok_actions, detail_actions = asyncio.run(_check_actions(settings))
        table.add_row("Actions access", "OK" if ok_actions else "FAIL", detail_actions)
    else:
        table.add_row("Actions access", "SKIPPED", "INPUT_REPO_OWNER / INPUT_REPO_NAME not set")

    _console.print(table)

    if settings.repo_owner and settings.repo_name and not ok_actions:
        _console.print(
            "\n[yellow]Note:[/yellow] The token needs 'actions: write' on the remote repository to dispatch runs."
        )
