"""Lumi CLI — the main entry point."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console

from lumi import __version__
from lumi.cli.tasks_commands import app as tasks_app

app = typer.Typer(
    name="lumi",
    help="Prompt-to-image generation queue.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(tasks_app, name="tasks")
console = Console()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@app.callback(invoke_without_command=True)
def main_callback(
    version: bool = typer.Option(False, "--version", "-V", help="Show version"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    if version:
        console.print(f"lumi v{__version__}")
        raise typer.Exit()

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Override the configured host"),
    port: int = typer.Option(None, "--port", "-p", help="Override the configured port"),
):
    """Run the HTTP API with its task queue."""
    import uvicorn

    from lumi.config.settings import get_settings
    from lumi.server.app import create_app

    settings = get_settings()
    if host:
        settings.server.host = host
    if port:
        settings.server.port = port

    _show_config(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        access_log=False,
    )


@app.command()
def status():
    """Show the current configuration."""
    from lumi.config.settings import get_settings

    _show_config(get_settings())


@app.command()
def generate(
    prompt: str = typer.Argument(help="What to draw"),
    count: int = typer.Option(None, "--count", "-n", min=1, help="Images to generate"),
):
    """Generate images for one prompt and wait for the result."""
    from lumi.config.settings import get_settings
    from lumi.tasks.models import TaskStatus

    settings = get_settings()
    if count:
        settings.queue.images_per_task = count

    task = asyncio.run(_generate_once(settings, prompt))

    if task.status != TaskStatus.IMAGES_READY:
        console.print(f"[red]Generation failed:[/red] {task.error_message}")
        raise typer.Exit(1)

    console.print(f"[green]Task {task.id}: {len(task.images)} images[/green]")
    for image in task.images:
        console.print(f"  {image.index + 1}. {image.url}")


async def _generate_once(settings, prompt: str):
    """Run a single task through a private queue and return the stored record."""
    from pathlib import Path

    from lumi.providers import create_provider
    from lumi.taskqueue.manager import TaskQueueManager
    from lumi.tasks.models import GenerationTask
    from lumi.tasks.store import TaskStore

    store = TaskStore(path=Path(settings.tasks_file))
    queue = TaskQueueManager(create_provider(settings.provider), store, settings.queue)
    task = store.add(GenerationTask(prompt=prompt))

    with console.status("[dim]Generating...[/dim]"):
        await queue.submit(task.id, prompt)
        try:
            await queue.wait_idle()
        finally:
            await queue.shutdown()

    return store.get(task.id)


def _show_config(settings) -> None:
    """Print current config summary."""
    q = settings.queue
    console.print()
    console.print(f"  [bold]Provider:[/bold]    {settings.provider.provider}")
    console.print(f"  [bold]Concurrency:[/bold] {q.max_concurrent} (queue limit {q.max_queue_size})")
    console.print(f"  [bold]Timeout:[/bold]     {q.task_timeout_seconds:g}s per task")
    console.print(
        f"  [bold]Retries:[/bold]     {q.max_retries} "
        f"(backoff {q.retry_base_delay_seconds:g}s, rate limit {q.rate_limit_delay_seconds:g}s)"
    )
    console.print(f"  [bold]Tasks file:[/bold]  {settings.tasks_file}")
    console.print(f"  [bold]Server:[/bold]      http://{settings.server.host}:{settings.server.port}")
    console.print()


if __name__ == "__main__":
    app()
