"""Keyframe lookup around candidate cut points.

Used only to decide whether a stream copy can start or end at a cut point
without re-encoding.
"""

from __future__ import annotations

import logging
from pathlib import Path

from tlexport.introspector.ffprobe import FFprobeIntrospector
from tlexport.introspector.parsers import has_keyframe_within, parse_keyframe_rows
from tlexport.jobs.exceptions import ProbeFailure

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_MS = 20

# Extra read length past the tolerance window so ffprobe decodes at least
# one frame after the cut point.
READ_MARGIN_MS = 100


def build_read_interval(timestamp_ms: int, tolerance_ms: int) -> str:
    """Build the ``-read_intervals`` value for a keyframe query.

    >>> build_read_interval(30000, 20)
    '29.980%+0.140'
    """
    start = max(0.0, (timestamp_ms - tolerance_ms) / 1000.0)
    length = (2 * tolerance_ms + READ_MARGIN_MS) / 1000.0
    return f"{start:.3f}%+{length:.3f}"


class KeyframeLocator:
    """Answers "is there a keyframe near this timestamp?" via ffprobe."""

    def __init__(
        self,
        introspector: FFprobeIntrospector | None = None,
        tolerance_ms: int | None = None,
        timeout: float | None = None,
    ) -> None:
        if tolerance_ms is None or timeout is None:
            from tlexport.config import get_config

            settings = get_config().export
            tolerance_ms = (
                tolerance_ms if tolerance_ms is not None
                else settings.keyframe_tolerance_ms
            )
            timeout = timeout if timeout is not None else settings.keyframe_timeout
        self._introspector = introspector or FFprobeIntrospector()
        self.tolerance_ms = tolerance_ms
        self._timeout = timeout

    def is_keyframe_near(
        self, path: Path, timestamp_ms: int, tolerance_ms: int | None = None
    ) -> bool:
        """True iff a keyframe's decoded timestamp is within tolerance.

        Any query failure answers False, which makes the caller take the
        re-encode path.
        """
        tolerance = self.tolerance_ms if tolerance_ms is None else tolerance_ms
        try:
            output = self._introspector.query(
                [
                    "-v", "error",
                    "-select_streams", "v:0",
                    "-read_intervals", build_read_interval(timestamp_ms, tolerance),
                    "-show_frames",
                    "-show_entries", "frame=key_frame,best_effort_timestamp_time",
                    "-of", "csv=p=0",
                    str(path),
                ],
                timeout=self._timeout,
            )  # fmt: skip
        except ProbeFailure as e:
            logger.warning(
                "Keyframe query failed for %s at %dms: %s", path, timestamp_ms, e
            )
            return False

        rows = parse_keyframe_rows(output)
        found = has_keyframe_within(rows, timestamp_ms / 1000.0, tolerance / 1000.0)
        logger.debug(
            "Keyframe near %dms in %s: %s (%d frames read)",
            timestamp_ms,
            path,
            found,
            len(rows),
        )
        return found
