"""
Console report generator for SessionReel.

Prints a session's timeline, tool calls and statistics using Rich.

Design Principles:
    - Human-readable first: Optimize for quick scanning
    - Status at a glance: Use icons and colors for status
    - Startup noise folded away unless asked for
"""

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sessionreel.schema import (
    DisplayEntry,
    EntryType,
    ReplayState,
    SessionDetail,
    ToolCallRecord,
    ToolCallStats,
    ToolCallStatus,
)
from sessionreel.timeline import format_duration, format_time_offset


# Status icons
ICON_COMPLETE = "[green]✓[/green]"
ICON_ERROR = "[red]✗[/red]"
ICON_RUNNING = "[yellow]►[/yellow]"

_STATUS_ICONS = {
    ToolCallStatus.COMPLETE: ICON_COMPLETE,
    ToolCallStatus.ERROR: ICON_ERROR,
    ToolCallStatus.RUNNING: ICON_RUNNING,
}

_ENTRY_STYLES = {
    EntryType.SYSTEM: ("System", "dim"),
    EntryType.USER: ("User", "cyan"),
    EntryType.ASSISTANT: ("Assistant", "magenta"),
    EntryType.TOOL: ("Tool Call", "yellow"),
}


def print_session_header(console: Console, session: SessionDetail) -> None:
    """Print the session title panel."""
    header = Text()
    header.append(" Session ", style="bold")
    header.append(session.id, style="bold cyan")
    if session.title:
        header.append(" │ ", style="dim")
        header.append(session.title)
    console.print(Panel(header, expand=False))
    console.print(f"  [dim]Created:[/dim] {escape(session.created_at)}")
    console.print(f"  [dim]Events:[/dim]  {len(session.events)}")


def print_timeline(
    console: Console,
    entries: Sequence[DisplayEntry],
    show_startup: bool = False,
    verbose: bool = False,
) -> None:
    """Print the normalized timeline as a table."""
    startup = [e for e in entries if e.is_startup]
    visible = list(entries) if show_startup else [e for e in entries if not e.is_startup]

    console.print("[bold]Timeline[/bold]")
    if startup and not show_startup:
        console.print(f"[dim]  {len(startup)} startup entries hidden (use --show-startup)[/dim]")
    console.print()

    table = Table(show_header=True, header_style="bold", show_lines=verbose, expand=True)
    table.add_column("Time", style="dim", width=8, justify="right")
    table.add_column("Type", width=10)
    table.add_column("Content", overflow="fold")

    for entry in visible:
        label, style = _ENTRY_STYLES[entry.type]
        table.add_row(
            entry.time_offset,
            f"[{style}]{label}[/{style}]",
            _format_entry(entry, verbose),
        )

    console.print(table)


def _format_entry(entry: DisplayEntry, verbose: bool) -> str:
    tool_call = entry.tool_call
    if tool_call is None:
        text = escape(entry.content if verbose else _truncate(entry.content, 120))
        if verbose and entry.model:
            text += f"\n[dim]model: {escape(entry.model)}[/dim]"
        if verbose and entry.usage:
            text += f"\n[dim]tokens: {entry.usage.total_tokens}[/dim]"
        return text

    parts = [f"{_STATUS_ICONS[tool_call.status]} [cyan]{escape(tool_call.name)}[/cyan]"]
    if tool_call.duration is not None:
        parts[0] += f" [dim]({format_duration(tool_call.duration)})[/dim]"
    if tool_call.error:
        parts.append(f"[red]{escape(_truncate(tool_call.error, 80))}[/red]")
    elif verbose and tool_call.output is not None:
        parts.append(f"[dim]output:[/dim] {escape(_truncate(str(tool_call.output), 100))}")
    return "\n".join(parts)


def print_tool_calls(
    console: Console,
    tool_calls: Sequence[ToolCallRecord],
    filter_tool: str | None = None,
    verbose: bool = False,
) -> None:
    """Print reconciled tool calls, optionally only those of one tool."""
    rows = [tc for tc in tool_calls if filter_tool is None or tc.tool == filter_tool]

    title = "Tool Calls" if filter_tool is None else f"Tool Calls ({escape(filter_tool)})"
    console.print(f"[bold]{title}[/bold]")
    console.print()

    if not rows:
        console.print("[dim]No tool calls[/dim]")
        return

    table = Table(show_header=True, header_style="bold", show_lines=verbose, expand=True)
    table.add_column("#", style="dim", width=3, justify="right")
    table.add_column("Status", width=6, justify="center")
    table.add_column("Tool", style="cyan", width=15)
    table.add_column("Start", style="dim", width=8, justify="right")
    table.add_column("Duration", justify="right", width=10)
    table.add_column("Details", overflow="fold")

    for index, tc in enumerate(rows, start=1):
        table.add_row(
            str(index),
            _STATUS_ICONS[tc.status],
            escape(tc.tool),
            tc.time_offset,
            format_duration(tc.duration),
            _format_call_details(tc, verbose),
        )

    console.print(table)


def _format_call_details(tc: ToolCallRecord, verbose: bool) -> str:
    parts = []
    if verbose and isinstance(tc.input, dict) and tc.input:
        args_str = ", ".join(f"{k}={_truncate(str(v), 30)}" for k, v in tc.input.items())
        parts.append(f"[dim]input:[/dim] {escape(args_str)}")

    if tc.status == ToolCallStatus.RUNNING:
        parts.append("[dim]running[/dim]")
    elif tc.status == ToolCallStatus.ERROR:
        parts.append(f"[red]{escape(_truncate(tc.error or '', 80))}[/red]")
    elif tc.output is not None:
        parts.append(escape(_truncate(str(tc.output), 100 if verbose else 60)))

    return "\n".join(parts)


def print_stats(console: Console, stats: ToolCallStats) -> None:
    """Print aggregate tool call statistics."""
    console.print("[bold]Summary[/bold]")
    console.print()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column("Metric", style="dim")
    stats_table.add_column("Value")

    stats_table.add_row("Tool Calls", str(stats.total_calls))
    stats_table.add_row(
        "Errors",
        f"[red]{stats.error_count}[/red]" if stats.error_count > 0 else "0",
    )
    stats_table.add_row("Avg Duration", format_duration(stats.avg_duration_ms))
    stats_table.add_row("Total Duration", format_duration(stats.total_duration_ms))
    console.print(stats_table)

    if stats.tool_breakdown:
        console.print()
        console.print("[bold]By Tool[/bold]")
        console.print()
        for item in stats.tool_breakdown[:10]:
            console.print(f"  • {escape(item.tool)} [dim]×{item.count}[/dim]")
        if len(stats.tool_breakdown) > 10:
            console.print(f"  [dim]... and {len(stats.tool_breakdown) - 10} more[/dim]")


def render_replay_status(state: ReplayState) -> Text:
    """One-line transport status for the live replay view."""
    icon = "►" if state.is_playing else "❚❚"
    bar_width = 30
    filled = int(bar_width * state.progress / 100)
    line = Text()
    line.append(f"{icon} ", style="bold green" if state.is_playing else "bold yellow")
    line.append("█" * filled, style="green")
    line.append("░" * (bar_width - filled), style="dim")
    line.append(
        f" {format_time_offset(state.current_time)} / {format_time_offset(state.total_time)}"
    )
    line.append(f"  {state.speed.value}x", style="bold")
    return line


def _truncate(s: str, max_len: int) -> str:
    """Truncate string with ellipsis."""
    if len(s) <= max_len:
        return s
    return s[: max_len - 3] + "..."
