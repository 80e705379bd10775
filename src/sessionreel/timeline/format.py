"""Time offset and duration formatting."""


def time_offset_ms(timestamp: int, session_start_time: int) -> int:
    """Milliseconds from session start to ``timestamp``, never negative."""
    return max(0, timestamp - session_start_time)


def format_time_offset(offset_ms: float) -> str:
    """
    Format an offset as a clock reading.

    Examples:
        >>> format_time_offset(95_000)
        '1:35'
        >>> format_time_offset(5_025_000)
        '1:23:45'
    """
    total_seconds = int(max(0, offset_ms) // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_duration(duration_ms: float | None) -> str:
    """
    Format a tool call duration for display.

    Examples:
        >>> format_duration(450)
        '450ms'
        >>> format_duration(1500)
        '1.5s'
        >>> format_duration(125_000)
        '2m 5s'
    """
    if duration_ms is None:
        return "—"
    if duration_ms < 1000:
        return f"{int(duration_ms)}ms"
    if duration_ms < 60_000:
        return f"{duration_ms / 1000:.1f}s"
    minutes, seconds = divmod(int(duration_ms // 1000), 60)
    return f"{minutes}m {seconds}s"
