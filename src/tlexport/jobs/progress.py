"""Progress delivery to export callers.

The orchestrator forwards every exporter update through a
MonotonicProgressSink, which is what guarantees the caller-facing
contract: strictly increasing values in [0, 1] followed by exactly one
terminal 1.0 on success.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class MonotonicProgressSink:
    """Filter progress values into a strictly increasing sequence.

    Callable with a fraction; values that do not exceed the previous one
    are dropped. 1.0 is only forwarded through complete() (or a direct 1.0
    call) and at most once. Callback exceptions are logged and swallowed so
    a faulty display never aborts an export.
    """

    def __init__(self, callback: ProgressCallback | None) -> None:
        self._callback = callback
        self._last: float | None = None
        self._completed = False
        self._lock = threading.Lock()

    @property
    def last_value(self) -> float | None:
        return self._last

    @property
    def completed(self) -> bool:
        return self._completed

    def __call__(self, value: float) -> None:
        value = max(0.0, min(1.0, value))
        with self._lock:
            if self._completed:
                return
            if self._last is not None and value <= self._last:
                return
            self._last = value
            if value >= 1.0:
                self._completed = True
        self._emit(value)

    def complete(self) -> None:
        """Send the terminal 1.0 if it has not been sent yet."""
        self(1.0)

    def _emit(self, value: float) -> None:
        if self._callback is None:
            return
        try:
            self._callback(value)
        except Exception as e:
            logger.warning("Progress callback error: %s", e)


class StderrProgressReporter:
    """Progress callback that writes an in-place percentage to stderr."""

    def __init__(self, label: str = "Exporting", enabled: bool = True) -> None:
        """Initialize stderr progress reporter.

        Args:
            label: Text shown before the percentage.
            enabled: If False, suppresses output (for JSON mode or tests).
        """
        self.label = label
        self.enabled = enabled
        self._lock = threading.Lock()

    def __call__(self, fraction: float) -> None:
        if not self.enabled:
            return
        with self._lock:
            sys.stderr.write(f"\r{self.label}: {fraction * 100:5.1f}%")
            if fraction >= 1.0:
                sys.stderr.write("\n")
            sys.stderr.flush()
