"""CLI interface for stitch-studio."""

import asyncio
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from .config.logging import get_logger, setup_logging
from .config.settings import Settings, get_settings
from .exceptions import ConfigurationError, StitchStudioError, ValidationError
from .generators import StudioAPIClient, validate_prompt
from .library import VideoLibrary, merge_library_videos
from .orchestrator import ActionController, Failed, Finalized, Idle, Ready

app = typer.Typer(
    name="stitch-studio",
    help="Generate AI video clips, auto-stitch them and save the result to your library.",
    rich_markup_mode="rich",
)
library_app = typer.Typer(help="Browse and compile the video library.")
app.add_typer(library_app, name="library")

console = Console()
logger = get_logger(__name__)


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as e:
        console.print(
            Panel(
                f"[red]{e.message}[/red]\n\n{e.details or ''}\n"
                "Check your STITCH_STUDIO_* environment variables or .env file.",
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(1)


def _on_event(name: str, payload: dict[str, Any]) -> None:
    """Render controller events that matter on a terminal."""
    if name == "__onJobStatus":
        line = f"[dim]job {payload['jobId']}: {payload['status']}[/dim]"
        if payload.get("lastLog"):
            line += f" [dim]- {payload['lastLog']}[/dim]"
        console.print(line)
    elif name == "__onStudioError":
        console.print(f"[red]{payload['kind']}:[/red] {payload['message']}")


def _show_state(controller: ActionController) -> None:
    state = controller.state
    clips = "\n".join(f"  {c.sequence_index + 1}. {c.prompt}" for c in controller.session)
    body = (
        f"[bold]State:[/bold] {state.name}\n"
        f"[bold]Preview:[/bold] {controller.preview or '-'}\n"
        f"[bold]Clips:[/bold]\n{clips or '  (none)'}"
    )
    if isinstance(state, Ready) and state.degraded:
        body += f"\n\n[yellow]Merge failed:[/yellow] {state.merge_error}"
    if isinstance(state, Failed):
        body += f"\n\n[red]{state.kind.value}:[/red] {state.message}"
    console.print(Panel(body, title="Session", border_style="blue"))


def _show_finalized(record_id: str) -> None:
    console.print(
        Panel(
            f"[green]Saved to library as[/green] [bold]{record_id}[/bold]\n"
            "Hand this id to the scheduler to publish the video.",
            title="Finalized",
            border_style="green",
        )
    )


async def _generate_clip(controller: ActionController, prompt: str) -> None:
    with console.status(f"[cyan]Generating: {prompt[:60]}"):
        await controller.submit(prompt)
        await controller.wait()


async def _run_generate(
    prompts: list[str], finalize: bool, title: str | None, settings: Settings
) -> int:
    async with ActionController.from_settings(settings, push_event=_on_event) as controller:
        for i, prompt in enumerate(prompts):
            if i:
                controller.add_clip()
            await _generate_clip(controller, prompt)
            if isinstance(controller.state, Failed):
                _show_state(controller)
                return 1
        _show_state(controller)
        if not finalize:
            return 0
        record_id = controller.finalize(title=title)
        if record_id is None:
            return 1
        _show_finalized(record_id)
        return 0


async def _run_studio(settings: Settings) -> None:
    async with ActionController.from_settings(settings, push_event=_on_event) as controller:
        while True:
            state = controller.state
            if isinstance(state, Finalized):
                _show_finalized(state.record_id)
                return
            if isinstance(state, Ready):
                choices = ["r", "a", "f", "q"] + (["m"] if state.degraded else [])
                action = Prompt.ask(
                    "[r]ecreate last clip, [a]dd a clip, [f]inalize"
                    + (", [m] retry merge" if state.degraded else "")
                    + ", [q]uit",
                    choices=choices,
                    default="a",
                )
                if action == "q":
                    return
                if action == "a":
                    controller.add_clip()
                elif action == "r":
                    with console.status("[cyan]Recreating last clip"):
                        await controller.recreate()
                        await controller.wait()
                    _show_state(controller)
                elif action == "m":
                    with console.status("[cyan]Merging clips"):
                        await controller.retry_merge()
                    _show_state(controller)
                else:
                    title = Prompt.ask("Title (blank for default)", default="")
                    controller.finalize(title=title or None)
                continue

            if isinstance(state, (Idle, Failed)):
                prompt = Prompt.ask("Describe the next clip (blank to quit)", default="")
                if not prompt.strip():
                    if isinstance(state, Failed) and controller.preview:
                        if Prompt.ask("Finalize the last preview?", choices=["y", "n"]) == "y":
                            controller.finalize()
                            continue
                    return
                await _generate_clip(controller, prompt)
                _show_state(controller)


@app.command()
def studio() -> None:
    """Start an interactive authoring session.

    Each prompt becomes a clip; from the second clip on, the whole session is
    stitched automatically. Recreate the last clip, add another one or
    finalize the preview into your library.
    """
    settings = _load_settings()
    try:
        asyncio.run(_run_studio(settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Session abandoned.[/yellow]")
        raise typer.Exit(130)


@app.command()
def generate(
    prompts: list[str] = typer.Argument(..., help="One prompt per clip, in playback order"),
    finalize: bool = typer.Option(False, "--finalize", "-f", help="Save the result to the library"),
    title: str = typer.Option(None, "--title", "-t", help="Library title for the result"),
) -> None:
    """Generate clips from prompts and stitch them into one video.

    Examples:
        stitch-studio generate "A cat wakes up" "The cat chases a laser" --finalize
    """
    try:
        prompts = [validate_prompt(p) for p in prompts]
    except ValidationError as e:
        console.print(f"[red]Invalid prompt:[/red] {e}")
        raise typer.Exit(1)
    settings = _load_settings()
    logger.info("Generating %d clip(s)", len(prompts))
    try:
        code = asyncio.run(_run_generate(prompts, finalize, title, settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Generation cancelled by user.[/yellow]")
        raise typer.Exit(130)
    raise typer.Exit(code)


@library_app.command("list")
def list_videos() -> None:
    """List library videos, newest first."""
    settings = _load_settings()
    try:
        videos = VideoLibrary.from_settings(settings).list_videos()
    except StitchStudioError as e:
        console.print(f"[red]Library error:[/red] {e}")
        raise typer.Exit(1)
    if not videos:
        console.print("[dim]The library is empty.[/dim]")
        return
    table = Table(title="Video Library")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Created")
    for video in videos:
        table.add_row(
            video.id,
            video.title or "Untitled",
            video.topic or "-",
            video.status,
            video.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@library_app.command("merge")
def merge_videos(
    video_ids: list[str] = typer.Argument(..., help="Library video ids in playback order"),
) -> None:
    """Stitch existing library videos into a new compilation."""
    settings = _load_settings()

    async def _merge() -> str:
        async with StudioAPIClient.from_settings(settings) as client:
            record = await merge_library_videos(
                VideoLibrary.from_settings(settings), client, video_ids, user_id=settings.user_id
            )
        return record.id

    try:
        with console.status(f"[cyan]Merging {len(video_ids)} videos"):
            record_id = asyncio.run(_merge())
    except StitchStudioError as e:
        console.print(f"[red]Merge failed:[/red] {e}")
        raise typer.Exit(1)
    _show_finalized(record_id)


def main() -> None:
    """Entry point for the CLI."""
    try:
        log_level = get_settings().log_level
    except ConfigurationError:
        log_level = "INFO"
    setup_logging(level=log_level)
    app()


if __name__ == "__main__":
    main()
