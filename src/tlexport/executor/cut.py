"""Single-clip cutting.

``build_copy_command`` is the stream-copy cut shared with the fast path:
it copies packets verbatim, so it is exact only when the cut points are
keyframes. ClipCutter.exact_to re-encodes instead and tries the full
encoder cascade.
"""

from __future__ import annotations

import logging
from pathlib import Path

from tlexport.core.time_utils import ms_to_seconds_arg
from tlexport.executor.process import ProcessRunner
from tlexport.jobs.exceptions import (
    EncoderExhaustedError,
    ProcessFailure,
    ProcessSpawnError,
)
from tlexport.jobs.models import EncoderCandidate
from tlexport.tools.encoders import PIXEL_FORMAT_ARGS, EncoderSelector

logger = logging.getLogger(__name__)

QUIET_ARGS: tuple[str, ...] = ("-y", "-hide_banner", "-loglevel", "error")


def build_copy_command(
    ffmpeg_path: str, source: Path, start_ms: int, end_ms: int, output: Path
) -> list[str]:
    """Stream-copy ``[start_ms, end_ms)`` of ``source`` into ``output``."""
    duration_ms = max(0, end_ms - start_ms)
    return [
        ffmpeg_path, *QUIET_ARGS,
        "-ss", ms_to_seconds_arg(start_ms),
        "-t", ms_to_seconds_arg(duration_ms),
        "-i", str(source),
        "-c", "copy",
        "-avoid_negative_ts", "make_zero",
        "-reset_timestamps", "1",
        str(output),
    ]  # fmt: skip


def build_exact_command(
    ffmpeg_path: str,
    source: Path,
    start_ms: int,
    end_ms: int,
    output: Path,
    candidate: EncoderCandidate,
) -> list[str]:
    """Re-encode ``[start_ms, end_ms)`` of ``source`` with ``candidate``."""
    duration_ms = max(0, end_ms - start_ms)
    return [
        ffmpeg_path, *QUIET_ARGS,
        "-ss", ms_to_seconds_arg(start_ms),
        "-t", ms_to_seconds_arg(duration_ms),
        "-i", str(source),
        "-map", "0:v:0",
        "-map", "0:a?",
        "-movflags", "+faststart",
        *candidate.video_args,
        *candidate.audio_args,
        *PIXEL_FORMAT_ARGS,
        str(output),
    ]  # fmt: skip


class ClipCutter:
    """Cuts one range out of one source file."""

    def __init__(
        self,
        runner: ProcessRunner,
        ffmpeg_path: str,
        selector: EncoderSelector,
    ) -> None:
        self._runner = runner
        self._ffmpeg_path = ffmpeg_path
        self._selector = selector

    def copy_to(self, source: Path, start_ms: int, end_ms: int, output: Path) -> None:
        """Stream-copy cut. Fast, exact only on keyframes.

        Raises:
            ProcessFailure: If ffmpeg fails.
        """
        self._runner.run(
            build_copy_command(self._ffmpeg_path, source, start_ms, end_ms, output)
        )

    def exact_to(
        self, source: Path, start_ms: int, end_ms: int, output: Path
    ) -> EncoderCandidate:
        """Frame-exact cut by re-encoding, first working candidate wins.

        Returns:
            The encoder candidate that produced the output.

        Raises:
            ProcessSpawnError: If ffmpeg cannot be started.
            EncoderExhaustedError: If every candidate failed.
        """
        attempts: list[tuple[str, ProcessFailure]] = []
        for candidate in self._selector.candidates:
            command = build_exact_command(
                self._ffmpeg_path, source, start_ms, end_ms, output, candidate
            )
            try:
                self._runner.run(command)
            except ProcessSpawnError:
                raise
            except ProcessFailure as e:
                logger.warning("Cut with %s failed, trying next", candidate.name)
                attempts.append((candidate.name, e))
                continue
            logger.info("Cut %s using %s", source.name, candidate.name)
            return candidate

        raise EncoderExhaustedError(attempts) from (
            attempts[-1][1] if attempts else None
        )
