"""
Unit tests for the Rich console reports.

Tests cover:
- Timeline rendering with startup folding
- Markup in session content printed literally
"""

from io import StringIO

from rich.console import Console

from sessionreel.report.console import print_stats, print_timeline, print_tool_calls
from sessionreel.schema import (
    DisplayEntry,
    EntryType,
    ToolBreakdownItem,
    ToolCallRecord,
    ToolCallStats,
    ToolCallStatus,
)


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


def _entry(id: str, content: str, **fields) -> DisplayEntry:
    fields.setdefault("type", EntryType.ASSISTANT)
    return DisplayEntry(id=id, timestamp=0, time_offset="0:00", content=content, **fields)


class TestTimeline:
    """Tests for print_timeline."""

    def test_startup_hidden_by_default(self) -> None:
        console, buffer = _console()
        entries = [
            _entry("e1", "Booting", type=EntryType.SYSTEM, is_startup=True),
            _entry("e2", "Hello"),
        ]
        print_timeline(console, entries)

        output = buffer.getvalue()
        assert "1 startup entries hidden" in output
        assert "Hello" in output
        assert "Booting" not in output

    def test_show_startup(self) -> None:
        console, buffer = _console()
        entries = [_entry("e1", "Booting", type=EntryType.SYSTEM, is_startup=True)]
        print_timeline(console, entries, show_startup=True)
        assert "Booting" in buffer.getvalue()

    def test_verbose_model_with_brackets(self) -> None:
        """A model name that looks like markup is printed as-is."""
        console, buffer = _console()
        entries = [_entry("e1", "Hi", model="claude[/x]")]
        print_timeline(console, entries, verbose=True)
        assert "model: claude[/x]" in buffer.getvalue()

    def test_content_with_brackets(self) -> None:
        console, buffer = _console()
        print_timeline(console, [_entry("e1", "see [bold]this[/bold]")])
        assert "see [bold]this[/bold]" in buffer.getvalue()


class TestToolCalls:
    """Tests for print_tool_calls and print_stats."""

    def test_filter_with_bracketed_name(self) -> None:
        console, buffer = _console()
        calls = [
            ToolCallRecord(
                id="t1",
                tool="mcp[/srv]",
                output="done",
                status=ToolCallStatus.COMPLETE,
                duration=12,
                timestamp=0,
                time_offset="0:00",
            )
        ]
        print_tool_calls(console, calls, filter_tool="mcp[/srv]", verbose=True)

        output = buffer.getvalue()
        assert "Tool Calls (mcp[/srv])" in output
        assert "done" in output

    def test_stats_breakdown_with_bracketed_name(self) -> None:
        console, buffer = _console()
        stats = ToolCallStats(
            total_calls=1,
            error_count=0,
            avg_duration_ms=12.0,
            total_duration_ms=12,
            tool_breakdown=[ToolBreakdownItem(tool="mcp[/srv]", count=1)],
        )
        print_stats(console, stats)
        assert "mcp[/srv]" in buffer.getvalue()
