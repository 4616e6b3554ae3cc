"""Export entry point and state machine.

States: PLANNED -> FAST_PATH_ATTEMPTED -> (SUCCEEDED | RENDER_ATTEMPTED)
-> (SUCCEEDED | FAILED). An empty job goes straight from PLANNED to FAILED
without spawning anything.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from tlexport.config import ExportConfig, get_config
from tlexport.executor.fast_path import FastPathExporter
from tlexport.executor.process import ProcessRunner
from tlexport.executor.render import RenderPathExporter
from tlexport.introspector.ffprobe import FFprobeIntrospector
from tlexport.introspector.interface import KeyframeProbe, MediaIntrospector
from tlexport.introspector.keyframes import KeyframeLocator
from tlexport.jobs.exceptions import InvalidJobError
from tlexport.jobs.models import ExportJob, ExportResult, ExportState, ExportStrategy
from tlexport.jobs.progress import MonotonicProgressSink, ProgressCallback
from tlexport.logging import export_context
from tlexport.tools.encoders import EncoderSelector, get_encoder_capabilities

logger = logging.getLogger(__name__)


class ExportOrchestrator:
    """Runs one export: fast path first, render path as fallback.

    Collaborators are injectable; anything not supplied is built from
    configuration. Hardware encoder detection is deferred until a render
    is actually needed.
    """

    def __init__(
        self,
        config: ExportConfig | None = None,
        *,
        introspector: MediaIntrospector | None = None,
        keyframes: KeyframeProbe | None = None,
        runner: ProcessRunner | None = None,
        selector: EncoderSelector | None = None,
        fallback_on_error: bool | None = None,
    ) -> None:
        self.config = config or get_config()
        tools = self.config.tools
        settings = self.config.export

        introspector = introspector or FFprobeIntrospector(
            ffprobe_path=tools.ffprobe, timeout=settings.probe_timeout
        )
        if keyframes is None:
            if not isinstance(introspector, FFprobeIntrospector):
                raise ValueError("keyframes is required with a custom introspector")
            keyframes = KeyframeLocator(
                introspector,
                tolerance_ms=settings.keyframe_tolerance_ms,
                timeout=settings.keyframe_timeout,
            )
        runner = runner or ProcessRunner()

        self.state = ExportState.PLANNED
        self.fast_path = FastPathExporter(
            introspector,
            keyframes,
            runner,
            tools.ffmpeg,
            temp_dir=settings.temp_dir,
            fallback_on_error=(
                settings.fallback_on_error
                if fallback_on_error is None
                else fallback_on_error
            ),
        )
        self.render_path = RenderPathExporter(
            introspector,
            selector or self._detect_selector,
            runner,
            tools.ffmpeg,
        )

    def _detect_selector(self) -> EncoderSelector:
        return EncoderSelector(get_encoder_capabilities(self.config.tools.ffmpeg))

    def _transition(self, state: ExportState) -> None:
        logger.debug("Export state %s -> %s", self.state.value, state.value)
        self.state = state

    def export(
        self,
        job: ExportJob,
        on_progress: ProgressCallback | None = None,
    ) -> ExportResult:
        """Export ``job`` and return the outcome.

        Progress reaches ``on_progress`` as strictly increasing values in
        [0, 1]; 1.0 is sent exactly once, only on success. Callbacks run on
        the calling thread.

        Raises:
            InvalidJobError: If the job has no segments.
            ProcessFailure: If ffmpeg cannot be started, or a fast-path step
                failed with fallback disabled.
            OSError: If fast-path intermediates cannot be written with
                fallback disabled.
            EncoderExhaustedError: If every render candidate failed.
        """
        self._transition(ExportState.PLANNED)
        if not job.segments:
            self._transition(ExportState.FAILED)
            raise InvalidJobError("No segments to export.")

        sink = MonotonicProgressSink(on_progress)
        with export_context(job.job_id):
            logger.info(
                "Exporting %d segments (%dms) to %s at %s",
                len(job.segments),
                job.total_duration_ms,
                job.output_path,
                job.target,
            )
            sink(0.0)
            try:
                return self._run(job, sink)
            except Exception:
                if not self.state.is_terminal:
                    self._transition(ExportState.FAILED)
                logger.error("Export failed: %s", job.output_path)
                raise

    def _run(self, job: ExportJob, sink: MonotonicProgressSink) -> ExportResult:
        self._transition(ExportState.FAST_PATH_ATTEMPTED)
        if self.fast_path.try_export(job, sink):
            self._transition(ExportState.SUCCEEDED)
            sink.complete()
            return ExportResult(
                state=self.state,
                strategy=ExportStrategy.FAST_PATH,
                output_path=job.output_path,
            )

        self._transition(ExportState.RENDER_ATTEMPTED)
        candidate = self.render_path.export(job, sink)
        self._transition(ExportState.SUCCEEDED)
        sink.complete()
        return ExportResult(
            state=self.state,
            strategy=ExportStrategy.RENDER,
            output_path=job.output_path,
            encoder=candidate.name,
        )


def export_timeline(
    job: ExportJob,
    on_progress: Callable[[float], None] | None = None,
    config: ExportConfig | None = None,
) -> ExportResult:
    """Export ``job`` with a default-configured orchestrator."""
    return ExportOrchestrator(config).export(job, on_progress)
