"""Background execution of exports.

Each submitted export runs on its own thread so that the caller's thread
(typically an interactive surface) stays responsive. Progress callbacks
are invoked on the worker thread; marshaling them elsewhere is the
caller's job.

There is no cancellation: stopping an in-flight export means terminating
the ffmpeg process.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from tlexport.jobs.models import ExportJob, ExportResult
from tlexport.jobs.orchestrator import ExportOrchestrator
from tlexport.jobs.progress import ProgressCallback

logger = logging.getLogger(__name__)


class ExportHandle:
    """Tracks one background export."""

    def __init__(self, job: ExportJob) -> None:
        self.job = job
        self._done = threading.Event()
        self._result: ExportResult | None = None
        self._error: BaseException | None = None
        self._thread: threading.Thread | None = None

    def done(self) -> bool:
        """True once the export finished, successfully or not."""
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> ExportResult:
        """Block until the export finishes.

        Returns:
            The export result.

        Raises:
            TimeoutError: If ``timeout`` elapsed first.
            ExportError: Whatever the export raised.
        """
        if not self._done.wait(timeout):
            raise TimeoutError(f"Export {self.job.job_id} still running")
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result

    @property
    def error(self) -> BaseException | None:
        return self._error

    def _run(
        self,
        orchestrator: ExportOrchestrator,
        on_progress: ProgressCallback | None,
    ) -> None:
        try:
            self._result = orchestrator.export(self.job, on_progress)
        except Exception as e:
            # Re-raised from wait() on the caller's thread
            logger.debug("Export %s raised %s", self.job.job_id, type(e).__name__)
            self._error = e
        finally:
            self._done.set()


class ExportWorker:
    """Starts exports on dedicated background threads."""

    def __init__(
        self,
        orchestrator_factory: Callable[[], ExportOrchestrator] = ExportOrchestrator,
    ) -> None:
        """Initialize the worker.

        Args:
            orchestrator_factory: Builds a fresh orchestrator per export so
                that concurrent exports share no state machine.
        """
        self._factory = orchestrator_factory

    def submit(
        self,
        job: ExportJob,
        on_progress: ProgressCallback | None = None,
    ) -> ExportHandle:
        """Start exporting ``job`` in the background and return its handle."""
        handle = ExportHandle(job)
        thread = threading.Thread(
            target=handle._run,
            args=(self._factory(), on_progress),
            name=f"export-{job.job_id}",
            daemon=True,
        )
        handle._thread = thread
        thread.start()
        logger.debug("Started export thread %s", thread.name)
        return handle
