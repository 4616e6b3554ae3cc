"""Pure parsers for ffprobe text output.

Every function here takes literal ffprobe output and never spawns a
process, so they can be tested against captured fixtures.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Absorbs float error in decimal timestamps such as 30.02 - 30.0
_EPSILON = 1e-9

_RATIONAL_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)\s*$")


def parse_key_value_output(output: str) -> dict[str, str]:
    """Parse ``key=value`` lines (``-of default=noprint_wrappers=1``).

    The first occurrence of a key wins, which selects the first stream
    when several streams report the same field.
    """
    values: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep or not key:
            continue
        values.setdefault(key.strip(), value.strip())
    return values


def parse_duration_ms(values: dict[str, str]) -> int | None:
    """Extract the container duration in milliseconds.

    Returns None for missing, ``N/A``, non-numeric, or non-positive values.
    """
    raw = values.get("duration")
    if raw is None:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    ms = int(seconds * 1000)
    return ms if ms > 0 else None


def parse_dimensions(values: dict[str, str]) -> tuple[int, int]:
    """Extract (width, height); 0 for each dimension that is unknown."""

    def _int(key: str) -> int:
        try:
            return max(0, int(values.get(key, "0")))
        except ValueError:
            return 0

    return _int("width"), _int("height")


def parse_frame_rate(value: str | None) -> float | None:
    """Parse a rational frame rate such as ``30000/1001``.

    Returns None for missing values, ``0/0``, or a zero denominator.
    """
    if value is None:
        return None
    match = _RATIONAL_RE.match(value)
    if not match:
        return None
    numerator = float(match.group(1))
    denominator = float(match.group(2))
    if denominator == 0 or numerator <= 0:
        return None
    return numerator / denominator


def parse_audio_presence(output: str) -> bool:
    """Audio exists when the stream index query printed anything."""
    return bool(output.strip())


def parse_keyframe_rows(output: str) -> list[tuple[bool, float]]:
    """Parse ``key_frame,best_effort_timestamp_time`` CSV rows.

    Rows with missing or non-numeric fields (``N/A`` timestamps) are
    skipped.

    >>> parse_keyframe_rows("1,12.345678\\n0,12.378999\\n")
    [(True, 12.345678), (False, 12.378999)]
    """
    rows: list[tuple[bool, float]] = []
    for line in output.splitlines():
        parts = [part.strip() for part in line.strip().split(",")]
        if len(parts) < 2:
            continue
        try:
            key_frame = int(parts[0]) == 1
            timestamp = float(parts[1])
        except ValueError:
            continue
        rows.append((key_frame, timestamp))
    return rows


def has_keyframe_within(
    rows: list[tuple[bool, float]], target_seconds: float, tolerance_seconds: float
) -> bool:
    """True iff a keyframe row lies within tolerance of the target."""
    return any(
        key_frame and abs(timestamp - target_seconds) <= tolerance_seconds + _EPSILON
        for key_frame, timestamp in rows
    )
