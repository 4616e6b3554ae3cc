"""Lossless export by stream copy and demuxer concatenation.

Applies only when every segment comes from one source file and every cut
boundary sits on a keyframe (within tolerance). Each segment is copied into
a temporary file and the parts are joined with the concat demuxer, so no
frame is decoded or re-encoded.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from tlexport.executor.cut import QUIET_ARGS, build_copy_command
from tlexport.executor.process import ProcessRunner
from tlexport.executor.temp_files import TempFileArena
from tlexport.introspector.interface import (
    DEFAULT_DURATION_MS,
    KeyframeProbe,
    MediaIntrospector,
)
from tlexport.jobs.exceptions import ProcessFailure
from tlexport.jobs.models import ExportJob
from tlexport.logging import export_context

logger = logging.getLogger(__name__)

# Progress ceiling while parts are copied; the concat step owns the rest.
COPY_PROGRESS_CEILING = 0.98


def normalize_source(path: Path) -> Path:
    """Absolute, normalized path used to compare segment sources."""
    return Path(os.path.abspath(path.expanduser()))


def _describe(error: Exception) -> str:
    if isinstance(error, ProcessFailure):
        return error.reason or f"exit={error.returncode}"
    return str(error)


def escape_concat_path(path: Path) -> str:
    """Quote a path for a concat demuxer list file.

    Embedded single quotes are closed, escaped, and reopened.
    """
    return "'" + str(path).replace("'", "'\\''") + "'"


def build_concat_command(ffmpeg_path: str, list_file: Path, output: Path) -> list[str]:
    """Join the files named in ``list_file`` without re-encoding."""
    return [
        ffmpeg_path, *QUIET_ARGS,
        "-f", "concat",
        "-safe", "0",
        "-i", str(list_file),
        "-c", "copy",
        str(output),
    ]  # fmt: skip


class FastPathExporter:
    """Stream-copy exporter for keyframe-aligned single-source jobs."""

    def __init__(
        self,
        introspector: MediaIntrospector,
        keyframes: KeyframeProbe,
        runner: ProcessRunner,
        ffmpeg_path: str,
        temp_dir: Path | None = None,
        fallback_on_error: bool = True,
    ) -> None:
        """Initialize the exporter.

        Args:
            introspector: Source metadata provider.
            keyframes: Keyframe lookup used for eligibility.
            runner: Process runner for ffmpeg.
            ffmpeg_path: ffmpeg executable.
            temp_dir: Directory for intermediate parts (None = system temp).
            fallback_on_error: If True, a failing copy or concat makes the
                job ineligible instead of failing it.
        """
        self._introspector = introspector
        self._keyframes = keyframes
        self._runner = runner
        self._ffmpeg_path = ffmpeg_path
        self._temp_dir = temp_dir
        self.fallback_on_error = fallback_on_error

    def single_source(self, job: ExportJob) -> Path | None:
        """Return the common normalized source, or None if there are several."""
        sources = {normalize_source(p) for p in job.sources}
        if len(sources) != 1:
            return None
        return sources.pop()

    def is_eligible(self, job: ExportJob) -> bool:
        """Check the single-source and keyframe-alignment conditions."""
        source = self.single_source(job)
        if source is None:
            logger.info("Fast path ineligible: segments use more than one source")
            return False

        source_duration_ms = self._introspector.get_media_info(source).duration_ms
        # An unprobeable source reports the placeholder duration; check every end.
        duration_known = source_duration_ms > DEFAULT_DURATION_MS

        for index, segment in enumerate(job.segments):
            if segment.start_ms > 0 and not self._keyframes.is_keyframe_near(
                source, segment.start_ms
            ):
                logger.info(
                    "Fast path ineligible: segment %d start %dms is not on a keyframe",
                    index,
                    segment.start_ms,
                )
                return False
            runs_to_end = duration_known and segment.end_ms >= source_duration_ms - 1
            if not runs_to_end and not (
                self._keyframes.is_keyframe_near(source, segment.end_ms)
            ):
                logger.info(
                    "Fast path ineligible: segment %d end %dms is not on a keyframe",
                    index,
                    segment.end_ms,
                )
                return False
        return True

    def try_export(
        self,
        job: ExportJob,
        on_progress: Callable[[float], None] | None = None,
    ) -> bool:
        """Export ``job`` losslessly if possible.

        Returns:
            True if the output was written, False if the job must be
            rendered instead.

        Raises:
            ProcessFailure: If copying or concatenation fails and
                ``fallback_on_error`` is False.
            OSError: If an intermediate file cannot be created or written
                and ``fallback_on_error`` is False.
        """
        if not self.is_eligible(job):
            return False

        source = self.single_source(job)
        assert source is not None
        try:
            self._copy_and_concat(job, source, on_progress)
        except (ProcessFailure, OSError) as e:
            if not self.fallback_on_error:
                raise
            logger.warning("Fast path failed, falling back to render: %s", _describe(e))
            return False
        logger.info("Fast path export complete: %s", job.output_path)
        return True

    def _copy_and_concat(
        self,
        job: ExportJob,
        source: Path,
        on_progress: Callable[[float], None] | None,
    ) -> None:
        total_ms = job.total_duration_ms or 1
        suffix = job.output_path.suffix or ".mp4"
        done_ms = 0

        with TempFileArena(self._temp_dir) as arena:
            parts: list[Path] = []
            for index, segment in enumerate(job.segments):
                with export_context(job.job_id, segment_index=index):
                    part = arena.create(f"seg-copy-{index}-", suffix)
                    logger.debug(
                        "Copying %dms-%dms into %s",
                        segment.start_ms,
                        segment.end_ms,
                        part,
                    )
                    self._runner.run(
                        build_copy_command(
                            self._ffmpeg_path,
                            source,
                            segment.start_ms,
                            segment.end_ms,
                            part,
                        )
                    )
                parts.append(part)

                done_ms += segment.duration_ms
                if on_progress is not None:
                    on_progress(min(COPY_PROGRESS_CEILING, done_ms / total_ms))

            list_file = arena.create("concat-", ".txt")
            list_file.write_text(
                "".join(f"file {escape_concat_path(p.absolute())}\n" for p in parts),
                encoding="utf-8",
            )
            self._runner.run(
                build_concat_command(self._ffmpeg_path, list_file, job.output_path)
            )
