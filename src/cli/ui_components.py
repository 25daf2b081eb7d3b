"""UI components for the CLI (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Tables and panels are reused by several commands.
"""

from __future__ import annotations

import os

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import RelayResult, Workflow


def running_in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS", "").lower() == "true"


def escape_command_data(value: str) -> str:
    """Escape a message for a `::error::` workflow command."""

    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def report_failure(message: str, *, console: Console, err_console: Console) -> None:
    """Surface a failure the way the current environment understands it.

    Inside a GitHub Actions job the message becomes an `::error::` command on
    stdout, which the runner turns into an annotation; elsewhere it is printed
    in red on stderr.
    """

    if running_in_github_actions():
        console.out(f"::error::{escape_command_data(message)}", highlight=False)
        return
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}", soft_wrap=True)


def build_workflows_table(workflows: list[Workflow]) -> Table:
    """Rich table listing repository workflows."""

    table = Table(title="Workflows")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Path", style="magenta")
    table.add_column("State", style="green")
    for workflow in workflows:
        table.add_row(str(workflow.id), workflow.name, workflow.path, workflow.state or "-")
    return table


def build_summary_panel(result: RelayResult) -> Panel:
    """Panel summarizing a finished relay."""

    ok = result.succeeded
    body = Text()
    body.append(f"Workflow: {result.workflow.path} (id {result.workflow.id})\n")
    body.append(f"Run: {result.run.id}")
    if result.run.run_number is not None:
        body.append(f" (#{result.run.run_number})")
    body.append("\n")
    body.append(f"Conclusion: {result.run.conclusion or 'unknown'}\n", style="bold green" if ok else "bold red")
    body.append(f"Log file: {result.log_file}\n")
    body.append(f"Lines relayed: {result.lines_relayed}, filtered: {result.lines_filtered}", style="dim")
    if result.run.html_url:
        body.append(f"\n{result.run.html_url}", style="dim")

    return Panel(body, title=Text("Remote run", style="bold"), border_style="green" if ok else "red")
