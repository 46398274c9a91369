"""Command-line interface for reelcut.

Uses Typer for a modern, type-hinted CLI experience.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console

# Load environment variables from .env files
# Priority: local .env > ~/.reelcut/.env
_user_env = Path.home() / ".reelcut" / ".env"
if _user_env.exists():
    load_dotenv(_user_env)
load_dotenv()  # Load local .env (overrides user-level)
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from reelcut import __version__
from reelcut.config import DEFAULT_CONFIG_PATH, AppConfig, ChannelConfig, load_config
from reelcut.errors import (
    ConfigurationError,
    CredentialError,
    MediaToolNotFoundError,
    format_error_for_display,
)
from reelcut.ffmpeg_binary import ToolPaths, get_tool_report
from reelcut.logging import LogContext, LogLevel, set_verbosity
from reelcut.pipeline.processor import VideoResult, VideoStatus, build_channel_processor
from reelcut.publish.auth import CredentialStore, login as run_login_flow

# Create the main Typer app
app = typer.Typer(
    name="reelcut",
    help="Cut long-form channel videos into short, topical clips.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

STATUS_STYLES = {
    VideoStatus.COMPLETED: "green",
    VideoStatus.SKIPPED: "yellow",
    VideoStatus.FAILED: "red",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"reelcut version {__version__}")
        raise typer.Exit()


def _load_config_or_exit(config_path: Path) -> AppConfig:
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show progress messages."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Show debug messages."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only show errors."),
    ] = False,
) -> None:
    """Reelcut - turn long videos into short clips.

    [bold]exec[/bold]: download the latest videos of a channel, ask the semantic
    service for the best excerpts, render them and optionally publish them.

    [bold]login[/bold]: authorize publishing to YouTube.
    """
    if debug:
        set_verbosity(LogLevel.DEBUG)
    elif verbose:
        set_verbosity(LogLevel.VERBOSE)
    elif quiet:
        set_verbosity(LogLevel.QUIET)


# =============================================================================
# Publishing
# =============================================================================


@app.command()
def login(
    config_path: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to the configuration file"),
    ] = DEFAULT_CONFIG_PATH,
    no_browser: Annotated[
        bool,
        typer.Option("--no-browser", help="Print the consent URL instead of opening a browser"),
    ] = False,
) -> None:
    """Authorize reelcut to upload videos to YouTube."""
    config = _load_config_or_exit(config_path)
    store = CredentialStore(config.token_path)

    try:
        run_login_flow(config.credentials_path, store, open_browser=not no_browser)
    except CredentialError as e:
        console.print(f"[red]Error:[/red] {escape(format_error_for_display(e))}")
        raise typer.Exit(1)

    console.print(f"[green]Logged in.[/green] Token saved to {store.token_path}")


# =============================================================================
# Processing
# =============================================================================


def _select_channels(config: AppConfig, channel_id: str | None) -> list[ChannelConfig]:
    if channel_id is None:
        return list(config.channels)
    return [config.get_channel(channel_id)]


def _print_results(channel: ChannelConfig, results: list[VideoResult]) -> None:
    if not results:
        console.print(f"[yellow]No videos processed for {channel.id}.[/yellow]")
        return

    table = Table(title=f"Channel {channel.name or channel.id}")
    table.add_column("Video", style="cyan")
    table.add_column("Status")
    table.add_column("Segments", justify="right")
    table.add_column("Cuts", justify="right")
    table.add_column("Uploads", justify="right")
    table.add_column("Errors", justify="right")

    for result in results:
        style = STATUS_STYLES.get(result.status, "white")
        table.add_row(
            result.video_id,
            f"[{style}]{result.status.value}[/{style}]",
            str(result.segments),
            f"{result.cuts_rendered}/{result.cuts_proposed}",
            str(len(result.uploads)),
            str(len(result.errors)),
        )

    console.print(table)

    for result in results:
        for error in result.errors:
            console.print(f"  [red]{result.video_id}[/red] {escape(error)}")


@app.command("exec")
def exec_cmd(
    channel_id: Annotated[
        Optional[str],
        typer.Argument(help="Channel id to process (default: every configured channel)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Reprocess videos that already have output"),
    ] = False,
    video: Annotated[
        Optional[str],
        typer.Option("--video", "-v", help="Process a single video id instead of the feed"),
    ] = None,
    config_path: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to the configuration file"),
    ] = DEFAULT_CONFIG_PATH,
    parallel: Annotated[
        Optional[int],
        typer.Option("--parallel", "-p", help="Videos processed in parallel (overrides config)", min=1),
    ] = None,
) -> None:
    """Process the latest videos of one or every configured channel.

    Videos whose output folder already exists are skipped unless --force
    is given.
    """
    config = _load_config_or_exit(config_path)
    if parallel is not None:
        config = config.model_copy(update={"max_parallel_videos": parallel})

    try:
        channels = _select_channels(config, channel_id)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not channels:
        console.print("[yellow]No channels configured.[/yellow]")
        raise typer.Exit(1)

    if video and len(channels) > 1:
        console.print("[red]Error:[/red] --video requires a channel id")
        raise typer.Exit(1)

    if not config.openai.resolved_key():
        console.print(
            "[red]Error:[/red] No semantic service key configured.\n"
            "Set [cyan]openai.key[/cyan] in the config or the OPENAI_API_KEY environment variable."
        )
        raise typer.Exit(1)

    run_id = datetime.now().strftime("%Y%m%d-%H%M%S")
    failed = 0
    for channel in channels:
        if video:
            channel = channel.for_video(video)

        console.print(
            Panel(
                f"[bold]Channel:[/bold] {channel.name or channel.id}\n"
                f"[bold]Output:[/bold] {channel.folder}\n"
                f"[bold]Upload:[/bold] {'yes' if channel.upload_to_youtube else 'no'}",
                title="Processing",
            )
        )

        try:
            processor = build_channel_processor(config, channel)
        except (MediaToolNotFoundError, ConfigurationError) as e:
            console.print(f"[red]Error:[/red] {escape(format_error_for_display(e))}")
            raise typer.Exit(1)

        with LogContext(run=run_id):
            results = processor.process_channel(force=force)

        _print_results(channel, results)
        failed += sum(1 for r in results if r.status == VideoStatus.FAILED)

    if failed:
        console.print(f"[yellow]{failed} video(s) failed.[/yellow]")
        raise typer.Exit(1)


# =============================================================================
# Inspection
# =============================================================================


@app.command("channels")
def list_channels(
    config_path: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to the configuration file"),
    ] = DEFAULT_CONFIG_PATH,
) -> None:
    """List configured channels."""
    config = _load_config_or_exit(config_path)

    if not config.channels:
        console.print("[yellow]No channels configured.[/yellow]")
        return

    table = Table(title="Channels")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Folder", style="white")
    table.add_column("Excerpts", justify="right")
    table.add_column("Upload", style="green")

    for channel in config.channels:
        table.add_row(
            channel.id,
            channel.name or "-",
            str(channel.folder),
            str(channel.excerpts),
            "yes" if channel.upload_to_youtube else "no",
        )

    console.print(table)


@app.command()
def check(
    config_path: Annotated[
        Path,
        typer.Option("--config", "-c", help="Path to the configuration file"),
    ] = DEFAULT_CONFIG_PATH,
) -> None:
    """Check that FFmpeg, FFprobe and yt-dlp are available."""
    paths = ToolPaths()
    if config_path.exists():
        config = _load_config_or_exit(config_path)
        paths = ToolPaths(ffmpeg=config.ffmpeg, ffprobe=config.ffprobe, ytdlp=config.ytdlp)

    table = Table(title="External Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Details", style="dim")

    missing = 0
    for info in get_tool_report(paths):
        if info.available:
            table.add_row(
                info.name,
                f"[green]Available[/green] ({info.version or 'unknown'})",
                f"Source: {info.source}\n{info.path}",
            )
        else:
            missing += 1
            table.add_row(info.name, "[red]Not found[/red]", "-")

    console.print(table)
    if missing:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
