"""
CLI entry point for SessionReel.

This module provides the Typer-based command-line interface. All commands
take a session file (YAML or JSON, as exported by the session API).

Commands:
    timeline    Show the normalized session timeline
    tools       Show reconciled tool calls
    stats       Show tool call statistics
    replay      Play the session back in the terminal

Architecture Note:
    The CLI is intentionally thin - it loads the session and delegates to
    sessionreel.session, sessionreel.replay and sessionreel.report.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from sessionreel import __version__
from sessionreel.config import DEFAULT_CONFIG, TimelineConfig, load_config
from sessionreel.diagnostics import DiagnosticSink, LoggingSink, NullSink
from sessionreel.errors import SessionReelError
from sessionreel.replay import PlaybackClock, RealtimeFrameScheduler, coerce_speed
from sessionreel.report import (
    print_session_header,
    print_stats,
    print_timeline,
    print_tool_calls,
    render_replay_status,
)
from sessionreel.schema import DisplayEntry, SessionDetail, load_session
from sessionreel.session import SessionAnalysis, SessionAnalyzer, create_clock

app = typer.Typer(
    name="sessionreel",
    help="Inspect and replay recorded agent sessions.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

SessionPath = Annotated[
    Path,
    typer.Argument(
        help="Path to the session YAML/JSON file.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to a timeline configuration YAML file.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Show full content and debug logging."),
]
QuietOption = Annotated[
    bool,
    typer.Option("--quiet", "-q", help="Suppress diagnostics about malformed events."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]sessionreel[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    SessionReel - timeline, tool call and replay views for agent sessions.
    """
    pass


@app.command()
def timeline(
    session_path: SessionPath,
    config_path: ConfigOption = None,
    show_startup: Annotated[
        bool,
        typer.Option("--show-startup", help="Include startup/status entries."),
    ] = False,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """
    Show the normalized timeline of a session.

    Example:
        $ sessionreel timeline session.json --show-startup
    """
    session, analysis, _ = _analyze(session_path, config_path, verbose, quiet)
    print_session_header(console, session)
    console.print()
    print_timeline(console, analysis.entries, show_startup=show_startup, verbose=verbose)


@app.command()
def tools(
    session_path: SessionPath,
    config_path: ConfigOption = None,
    tool: Annotated[
        Optional[str],
        typer.Option("--tool", "-t", help="Only show calls of this tool."),
    ] = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """
    Show every tool call in a session with status and duration.

    Example:
        $ sessionreel tools session.json --tool Read
    """
    _, analysis, _ = _analyze(session_path, config_path, verbose, quiet)
    print_tool_calls(console, analysis.tool_calls, filter_tool=tool, verbose=verbose)


@app.command()
def stats(
    session_path: SessionPath,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """
    Show aggregate tool call statistics for a session.

    Example:
        $ sessionreel stats session.json
    """
    _, analysis, _ = _analyze(session_path, config_path, verbose, quiet)
    print_stats(console, analysis.stats)


@app.command()
def replay(
    session_path: SessionPath,
    config_path: ConfigOption = None,
    speed: Annotated[
        Optional[int],
        typer.Option("--speed", "-s", help="Playback speed: 1, 2 or 4."),
    ] = None,
    start_ms: Annotated[
        int,
        typer.Option("--from", help="Start position in ms from the first event.", min=0),
    ] = 0,
    window: Annotated[
        int,
        typer.Option("--window", "-w", help="Number of entries to show.", min=1),
    ] = 8,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """
    Play a session back in the terminal. Press Ctrl+C to stop.

    Example:
        $ sessionreel replay session.json --speed 4
    """
    session, analysis, config = _analyze(session_path, config_path, verbose, quiet)

    try:
        replay_speed = coerce_speed(speed) if speed is not None else config.default_speed
    except SessionReelError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    scheduler = RealtimeFrameScheduler(frame_interval_ms=config.frame_interval_ms)
    clock = create_clock(session, scheduler=scheduler, config=config)
    clock.set_speed(replay_speed)
    positions = {entry.id: i for i, entry in enumerate(analysis.entries)}

    with clock, Live(console=console, auto_refresh=False) as live:

        def redraw(_state: object) -> None:
            live.update(_replay_view(clock, analysis.entries, positions, window), refresh=True)

        clock.subscribe(redraw)
        clock.seek(start_ms)
        clock.play()
        try:
            scheduler.run_until_idle()
        except KeyboardInterrupt:
            clock.pause()


def _replay_view(
    clock: PlaybackClock,
    entries: list[DisplayEntry],
    positions: dict[str, int],
    window: int,
) -> Group:
    """Transport line plus the entries leading up to the current one."""
    current_id = _current_entry_id(clock, positions)
    upto = len(entries)
    if current_id is not None:
        upto = positions[current_id] + 1
    elif clock.current_event_index < 0:
        upto = 0

    table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    table.add_column("Time", style="dim", width=8, justify="right")
    table.add_column("Content", overflow="ellipsis", no_wrap=True)
    for entry in entries[max(0, upto - window):upto]:
        style = "bold" if entry.id == current_id else ""
        label = entry.tool_call.name if entry.tool_call is not None else entry.content
        table.add_row(entry.time_offset, f"[{style}]{escape(label)}[/{style}]" if style else escape(label))

    return Group(render_replay_status(clock.state), table)


def _current_entry_id(clock: PlaybackClock, positions: dict[str, int]) -> str | None:
    """Latest event at or before the clock that has its own timeline entry."""
    index = clock.current_event_index
    while index >= 0:
        event_id = clock.events[index].id
        if event_id in positions:
            return event_id
        index -= 1
    return None


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_path: Path | None) -> TimelineConfig:
    if config_path is None:
        return DEFAULT_CONFIG
    try:
        return load_config(config_path)
    except SessionReelError as e:
        err_console.print(f"[red]Error loading config: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def _analyze(
    session_path: Path,
    config_path: Path | None,
    verbose: bool,
    quiet: bool,
) -> tuple[SessionDetail, SessionAnalysis, TimelineConfig]:
    """Load, validate and analyze a session, exiting with code 1 on failure."""
    _configure_logging(verbose)
    sink: DiagnosticSink = NullSink() if quiet else LoggingSink()
    config = _load_config(config_path)

    try:
        session = load_session(session_path, diagnostics=sink)
    except SessionReelError as e:
        err_console.print(f"[red]Error loading session: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    analysis = SessionAnalyzer(config=config, diagnostics=sink).analyze(session)
    if not analysis.ok:
        err_console.print(f"[red]{analysis.error}[/red]")
        raise typer.Exit(code=1)

    if verbose:
        err_console.print(f"[dim]Loaded session: {session_path}[/dim]")
        err_console.print(f"[dim]  Events: {len(session.events)}[/dim]")

    return session, analysis, config


if __name__ == "__main__":
    app()
