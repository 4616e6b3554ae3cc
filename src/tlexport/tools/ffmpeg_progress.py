"""FFmpeg progress parsing and translation.

ffmpeg's ``-progress pipe:1`` output is a stream of ``key=value`` lines
grouped into blocks terminated by ``progress=continue`` or ``progress=end``.
This module turns those lines into normalized export progress:

- parse_progress_line: pure line -> ProgressEvent parser
- resolve_out_time_ms: the microsecond/millisecond unit decision
- ProgressTranslator: stateful, monotonic conversion into a [0, 1] fraction
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ProgressSink = Callable[[float], None]

# out_time_ms is the ambiguous one: most builds actually write microseconds
_AMBIGUOUS_KEY = "out_time_ms"
_MICROSECOND_KEY = "out_time_us"
_TIMESTAMP_KEY = "out_time"
_STATUS_KEY = "progress"

_TIMESTAMP_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2}(?:\.\d+)?)$")


@dataclass(frozen=True)
class ProgressEvent:
    """A recognized progress field.

    For ``out_time_ms`` and ``out_time_us`` ``value`` is the raw integer as
    printed. For ``out_time`` it is already converted to milliseconds. For
    ``progress`` lines ``value`` is None and ``status`` holds the state.
    """

    key: str
    value: int | None = None
    status: str | None = None


def parse_timestamp_ms(value: str) -> int | None:
    """Parse ``HH:MM:SS.ffffff`` into milliseconds.

    >>> parse_timestamp_ms("00:01:02.500000")
    62500
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = float(match.group(3))
    return int((hours * 3600 + minutes * 60 + seconds) * 1000)


def parse_progress_line(line: str) -> ProgressEvent | None:
    """Parse a single line of ffmpeg ``-progress`` output.

    Args:
        line: One output line, with or without trailing newline.

    Returns:
        ProgressEvent for recognized fields with usable values, else None.
        ``N/A`` and malformed values yield None.
    """
    line = line.strip()
    key, sep, value = line.partition("=")
    if not sep:
        return None
    key = key.strip()
    value = value.strip()

    if key in (_AMBIGUOUS_KEY, _MICROSECOND_KEY):
        try:
            raw = int(value)
        except ValueError:
            return None
        if raw < 0:
            return None
        return ProgressEvent(key=key, value=raw)
    if key == _TIMESTAMP_KEY:
        ms = parse_timestamp_ms(value)
        if ms is None:
            return None
        return ProgressEvent(key=key, value=ms)
    if key == _STATUS_KEY:
        return ProgressEvent(key=key, status=value)
    return None


def resolve_out_time_ms(raw: int, total_expected_ms: int) -> int:
    """Decide the unit of an ``out_time_ms`` value and return milliseconds.

    Builds disagree on whether ``out_time_ms`` carries milliseconds or
    microseconds. A value strictly greater than ``total_expected_ms * 1000``
    cannot be a millisecond offset into this output, so it is treated as
    microseconds and divided by 1000. A value at or below the threshold is
    taken as milliseconds.

    Args:
        raw: Integer as printed by ffmpeg.
        total_expected_ms: Expected output duration in milliseconds.

    Returns:
        Output time in milliseconds.

    >>> resolve_out_time_ms(10_000_001, 10_000)
    10000
    >>> resolve_out_time_ms(10_000_000, 10_000)
    10000000
    """
    if raw > total_expected_ms * 1000:
        return raw // 1000
    return raw


@dataclass
class ProgressState:
    """Mutable progress bookkeeping for one export invocation."""

    total_expected_ms: int
    last_reported_ms: int = -1
    last_fraction: float = -1.0


class ProgressTranslator:
    """Translate ffmpeg progress lines into a monotonic fraction.

    Values reach the sink only when the output time strictly exceeds the
    last reported time and the resulting fraction strictly exceeds the last
    fraction sent. Fractions are clamped to [0, 1); the value 1.0 is reserved
    for finish().

    Once an unambiguous field (``out_time_us`` or ``out_time``) has been
    seen, ``out_time_ms`` lines are ignored, so the unit heuristic only
    applies to builds that print nothing else.
    """

    def __init__(self, total_expected_ms: int, sink: ProgressSink | None) -> None:
        self.state = ProgressState(
            total_expected_ms=total_expected_ms if total_expected_ms > 0 else 1
        )
        self._sink = sink
        self._seen_unambiguous = False

    def event_ms(self, event: ProgressEvent) -> int | None:
        """Return the output time in ms carried by an event, if any."""
        if event.value is None:
            return None
        if event.key == _MICROSECOND_KEY:
            self._seen_unambiguous = True
            return event.value // 1000
        if event.key == _TIMESTAMP_KEY:
            self._seen_unambiguous = True
            return event.value
        if event.key == _AMBIGUOUS_KEY:
            if self._seen_unambiguous:
                return None
            return resolve_out_time_ms(event.value, self.state.total_expected_ms)
        return None

    def feed(self, line: str) -> float | None:
        """Process one output line.

        Returns:
            The fraction sent to the sink, or None if nothing was reported.
        """
        event = parse_progress_line(line)
        if event is None:
            return None
        out_ms = self.event_ms(event)
        if out_ms is None or out_ms <= self.state.last_reported_ms:
            return None

        self.state.last_reported_ms = out_ms
        fraction = max(0.0, min(1.0, out_ms / self.state.total_expected_ms))
        if fraction >= 1.0 or fraction <= self.state.last_fraction:
            return None

        self.state.last_fraction = fraction
        if self._sink is not None:
            self._sink(fraction)
        return fraction

    def finish(self) -> None:
        """Report completion (1.0) unconditionally."""
        self.state.last_fraction = 1.0
        self.state.last_reported_ms = max(
            self.state.last_reported_ms, self.state.total_expected_ms
        )
        if self._sink is not None:
            self._sink(1.0)
