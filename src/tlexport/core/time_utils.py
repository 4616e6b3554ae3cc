"""Time formatting helpers for ffmpeg arguments."""


def ms_to_seconds_arg(ms: int) -> str:
    """Format milliseconds as a seconds argument with millisecond precision.

    >>> ms_to_seconds_arg(30000)
    '30.000'
    """
    return f"{ms / 1000.0:.3f}"


def format_seconds(ms: int) -> str:
    """Format milliseconds as HH:MM:SS.mmm for display."""
    total_seconds, millis = divmod(max(0, int(ms)), 1000)
    minutes, seconds = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"
