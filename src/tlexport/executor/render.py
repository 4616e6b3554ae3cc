"""General export path: one filter-graph render, encoded once.

Works for any mix of sources. Every segment is trimmed, letterboxed into
the target resolution, resampled to a common frame rate, and paired with
real or synthesized audio before concatenation. The encoder cascade is
tried in order and the first candidate that completes wins; each attempt
starts from a freshly built command and a fresh progress translator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from tlexport.executor.cut import QUIET_ARGS
from tlexport.executor.filtergraph import (
    AUDIO_OUT_LABEL,
    VIDEO_OUT_LABEL,
    build_filter_graph,
    select_target_fps,
)
from tlexport.executor.process import ProcessRunner
from tlexport.introspector.interface import MediaInfo, MediaIntrospector
from tlexport.jobs.exceptions import (
    EncoderExhaustedError,
    ProcessFailure,
    ProcessSpawnError,
)
from tlexport.jobs.models import EncoderCandidate, ExportJob
from tlexport.tools.encoders import AUDIO_ENCODE_ARGS, EncoderSelector
from tlexport.tools.ffmpeg_progress import ProgressTranslator

logger = logging.getLogger(__name__)

PROGRESS_ARGS: tuple[str, ...] = ("-progress", "pipe:1", "-nostats")
FASTSTART_ARGS: tuple[str, ...] = ("-movflags", "+faststart")


def build_render_command(
    ffmpeg_path: str,
    job: ExportJob,
    filter_graph: str,
    candidate: EncoderCandidate,
) -> list[str]:
    """Assemble the ffmpeg command for one render attempt.

    One ``-i`` per segment, in segment order, matching the input indices
    used by the filter graph. Audio is always encoded with the fixed
    codec and bitrate regardless of the candidate's audio variant.
    """
    command: list[str] = [ffmpeg_path, *QUIET_ARGS]
    for segment in job.segments:
        command.extend(["-i", str(segment.source)])
    command.extend(
        [
            "-filter_complex", filter_graph,
            "-map", VIDEO_OUT_LABEL,
            "-map", AUDIO_OUT_LABEL,
            *FASTSTART_ARGS,
            *candidate.video_args,
            *AUDIO_ENCODE_ARGS,
            *PROGRESS_ARGS,
            str(job.output_path),
        ]
    )  # fmt: skip
    return command


class RenderPathExporter:
    """Filter-graph exporter with encoder fallback."""

    def __init__(
        self,
        introspector: MediaIntrospector,
        selector: EncoderSelector | Callable[[], EncoderSelector],
        runner: ProcessRunner,
        ffmpeg_path: str,
    ) -> None:
        """Initialize the exporter.

        Args:
            introspector: Source metadata provider.
            selector: Encoder selector, or a factory called on first use so
                that capability detection only runs when a render happens.
            runner: Process runner for ffmpeg.
            ffmpeg_path: ffmpeg executable.
        """
        self._introspector = introspector
        self._selector = selector
        self._runner = runner
        self._ffmpeg_path = ffmpeg_path

    @property
    def selector(self) -> EncoderSelector:
        if not isinstance(self._selector, EncoderSelector):
            self._selector = self._selector()
        return self._selector

    def probe_segments(self, job: ExportJob) -> list[MediaInfo]:
        """Probe each segment's source once per distinct path."""
        cache: dict[Path, MediaInfo] = {}
        infos: list[MediaInfo] = []
        for segment in job.segments:
            if segment.source not in cache:
                cache[segment.source] = self._introspector.get_media_info(
                    segment.source
                )
            infos.append(cache[segment.source])
        return infos

    def plan(self, job: ExportJob) -> tuple[str, float]:
        """Return (filter graph, target fps) for ``job``."""
        infos = self.probe_segments(job)
        fps = select_target_fps([info.fps for info in infos])
        graph = build_filter_graph(job.segments, infos, job.target, fps)
        logger.debug("Render plan: %d segments at %.3f fps", len(infos), fps)
        return graph, fps

    def export(
        self,
        job: ExportJob,
        on_progress: Callable[[float], None] | None = None,
    ) -> EncoderCandidate:
        """Render ``job`` to its output path.

        Returns:
            The encoder candidate that produced the output.

        Raises:
            ProcessSpawnError: If ffmpeg cannot be started.
            EncoderExhaustedError: If every candidate failed; the last
                ProcessFailure is chained.
        """
        graph, _ = self.plan(job)
        total_ms = job.total_duration_ms
        attempts: list[tuple[str, ProcessFailure]] = []

        for candidate in self.selector.render_candidates:
            translator = ProgressTranslator(total_ms, on_progress)
            command = build_render_command(self._ffmpeg_path, job, graph, candidate)
            logger.info(
                "Rendering with %s (%s)",
                candidate.name,
                "hardware" if candidate.is_hardware else "software",
            )
            try:
                self._runner.run(command, on_line=translator.feed)
            except ProcessSpawnError:
                raise
            except ProcessFailure as e:
                logger.warning(
                    "Render with %s failed (exit=%d), trying next candidate",
                    candidate.name,
                    e.returncode,
                )
                attempts.append((candidate.name, e))
                continue

            translator.finish()
            logger.info("Render complete: %s (%s)", job.output_path, candidate.name)
            return candidate

        raise EncoderExhaustedError(attempts) from (
            attempts[-1][1] if attempts else None
        )
