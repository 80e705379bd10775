"""
Reporting module for SessionReel.

Renders analysis results to the terminal with Rich:
    - Session header
    - Timeline of display entries (startup entries folded by default)
    - Tool call table with status icons and durations
    - Summary statistics with per-tool breakdown
    - One-line transport status for live replay

Example:
    from rich.console import Console
    from sessionreel.report import print_stats, print_timeline

    console = Console()
    print_timeline(console, analysis.entries)
    print_stats(console, analysis.stats)
"""

from sessionreel.report.console import (
    print_session_header,
    print_stats,
    print_timeline,
    print_tool_calls,
    render_replay_status,
)

__all__ = [
    "print_session_header",
    "print_stats",
    "print_timeline",
    "print_tool_calls",
    "render_replay_status",
]
