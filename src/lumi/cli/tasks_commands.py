"""CLI commands for inspecting stored generation tasks."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="tasks",
    help="Inspect generation tasks — list and show.",
    no_args_is_help=True,
)
console = Console()

_STATUS_STYLES = {
    "pending": "yellow",
    "generating_images": "cyan",
    "images_ready": "green",
    "failed": "red",
}


def _get_store(path=None):
    """Create a TaskStore (works without a running server)."""
    from pathlib import Path

    from lumi.config.settings import get_settings
    from lumi.tasks.store import TaskStore

    return TaskStore(path=path or Path(get_settings().tasks_file))


@app.command("list")
def list_tasks(
    limit: int = typer.Option(20, "--limit", "-l", help="Show at most this many tasks"),
):
    """List the most recent tasks."""
    store = _get_store()
    tasks = list(reversed(store.all()))[:limit]

    if not tasks:
        console.print("[dim]No tasks yet.[/dim]")
        console.print('[dim]Create one: lumi generate "a red fox in the snow"[/dim]')
        raise typer.Exit()

    table = Table(title="Tasks", show_lines=False)
    table.add_column("ID", style="dim", max_width=12)
    table.add_column("Status")
    table.add_column("Images", justify="right")
    table.add_column("Created")
    table.add_column("Prompt", max_width=40)

    for task in tasks:
        style = _STATUS_STYLES.get(task.status.value, "white")
        table.add_row(
            task.id,
            f"[{style}]{task.status.value}[/{style}]",
            str(len(task.images)),
            task.created_at.strftime("%Y-%m-%d %H:%M"),
            task.prompt[:40] + ("..." if len(task.prompt) > 40 else ""),
        )

    console.print(table)
    console.print(f"\n  [dim]{len(store.all())} tasks total.[/dim]\n")


@app.command("show")
def show_task(task_id: str = typer.Argument(help="Task ID")):
    """Show one task and its images."""
    store = _get_store()
    task = store.get(task_id)
    if task is None:
        console.print(f"[red]Task not found: {task_id}[/red]")
        raise typer.Exit(1)

    console.print(f"  [bold]ID:[/bold]      {task.id}")
    console.print(f"  [bold]Status:[/bold]  {task.status.value}")
    console.print(f"  [bold]Prompt:[/bold]  {task.prompt}")
    if task.error_message:
        console.print(f"  [bold]Error:[/bold]   {task.error_message}")
    for image in task.images:
        console.print(f"  {image.index + 1}. {image.url}")
