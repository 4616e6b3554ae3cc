"""ffprobe-based media introspection.

Each query is a short read-only ffprobe invocation. Failures never
propagate: the introspector logs them and substitutes the defaults from
tlexport.introspector.interface, so an unreadable source surfaces later as
a loud ffmpeg failure instead of an aborted probe.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from tlexport.core.subprocess_utils import run_command
from tlexport.introspector.interface import (
    DEFAULT_DURATION_MS,
    DEFAULT_FPS,
    DEFAULT_HAS_AUDIO,
    MediaInfo,
)
from tlexport.introspector.parsers import (
    parse_audio_presence,
    parse_dimensions,
    parse_duration_ms,
    parse_frame_rate,
    parse_key_value_output,
)
from tlexport.jobs.exceptions import ProbeFailure

logger = logging.getLogger(__name__)


class FFprobeIntrospector:
    """Queries duration, resolution, frame rate and audio presence."""

    def __init__(
        self,
        ffprobe_path: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the introspector.

        Args:
            ffprobe_path: ffprobe executable. None uses the configured path
                (FFPROBE_PATH or "ffprobe" from PATH).
            timeout: Per-query timeout in seconds. None uses configuration.
        """
        if ffprobe_path is None or timeout is None:
            from tlexport.config import get_config

            config = get_config()
            ffprobe_path = ffprobe_path or config.tools.ffprobe
            timeout = timeout if timeout is not None else config.export.probe_timeout
        self._ffprobe_path = ffprobe_path
        self._timeout = timeout

    @property
    def ffprobe_path(self) -> str:
        return self._ffprobe_path

    def get_media_info(self, path: Path) -> MediaInfo:
        """Return metadata for ``path``; never raises for probe problems."""
        duration_ms, width, height = self.probe_format(path)
        return MediaInfo(
            duration_ms=duration_ms,
            width=width,
            height=height,
            fps=self.probe_fps(path),
            has_audio=self.probe_has_audio(path),
        )

    def probe_format(self, path: Path) -> tuple[int, int, int]:
        """Return (duration_ms, width, height) with defaults for unknowns."""
        try:
            output = self.query(
                [
                    "-v", "error",
                    "-show_entries", "format=duration:stream=width,height",
                    "-of", "default=noprint_wrappers=1:nokey=0",
                    str(path),
                ]
            )  # fmt: skip
        except ProbeFailure as e:
            logger.warning("Format probe failed for %s: %s", path, e)
            return DEFAULT_DURATION_MS, 0, 0

        values = parse_key_value_output(output)
        duration_ms = parse_duration_ms(values)
        if duration_ms is None:
            logger.debug("No usable duration for %s, using default", path)
            duration_ms = DEFAULT_DURATION_MS
        width, height = parse_dimensions(values)
        return duration_ms, width, height

    def probe_has_audio(self, path: Path) -> bool:
        """True when the source has at least one audio stream.

        A failed query assumes audio exists, so a later encode fails loudly
        rather than silently dropping sound.
        """
        try:
            output = self.query(
                [
                    "-v", "error",
                    "-select_streams", "a:0",
                    "-show_entries", "stream=index",
                    "-of", "csv=p=0",
                    str(path),
                ]
            )  # fmt: skip
        except ProbeFailure as e:
            logger.warning("Audio probe failed for %s: %s", path, e)
            return DEFAULT_HAS_AUDIO
        return parse_audio_presence(output)

    def probe_fps(self, path: Path) -> float:
        """Average frame rate of the first video stream (30 fps if unknown)."""
        try:
            output = self.query(
                [
                    "-v", "error",
                    "-select_streams", "v:0",
                    "-show_entries", "stream=avg_frame_rate",
                    "-of", "default=noprint_wrappers=1:nokey=0",
                    str(path),
                ]
            )  # fmt: skip
        except ProbeFailure as e:
            logger.warning("Frame rate probe failed for %s: %s", path, e)
            return DEFAULT_FPS

        fps = parse_frame_rate(parse_key_value_output(output).get("avg_frame_rate"))
        if fps is None:
            logger.debug("Unparsable frame rate for %s, using %s", path, DEFAULT_FPS)
            return DEFAULT_FPS
        return fps

    def query(self, args: list[str], timeout: float | None = None) -> str:
        """Run ffprobe and return its stdout.

        Raises:
            ProbeFailure: On spawn error, timeout, or non-zero exit.
        """
        command = [self._ffprobe_path, *args]
        try:
            stdout, stderr, rc = run_command(
                command, timeout=timeout if timeout is not None else self._timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeFailure(f"ffprobe timed out after {e.timeout}s") from e
        except OSError as e:
            raise ProbeFailure(f"could not run {self._ffprobe_path}: {e}") from e

        if rc != 0:
            raise ProbeFailure(f"ffprobe exited with code {rc}: {stderr.strip()}")
        return stdout
