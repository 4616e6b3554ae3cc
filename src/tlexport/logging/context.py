"""Export context for structured logging.

Provides context propagation for export worker threads using contextvars,
enabling automatic injection of job_id and segment index into log records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_segment_index: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "segment_index", default=None
)


@contextmanager
def export_context(
    job_id: str,
    segment_index: int | None = None,
) -> Generator[None, None, None]:
    """Context manager for export processing context.

    Sets the context on entry and restores the previous values on exit.

    Example:
        with export_context("a1b2c3", segment_index=2):
            logger.info("Copying segment")  # tagged [a1b2c3:S2]
    """
    job_token = _job_id.set(job_id)
    segment_token = _segment_index.set(segment_index)
    try:
        yield
    finally:
        _segment_index.reset(segment_token)
        _job_id.reset(job_token)


def get_export_context() -> tuple[str | None, int | None]:
    """Get current export context as (job_id, segment_index)."""
    return _job_id.get(), _segment_index.get()


class ExportContextFilter(logging.Filter):
    """Logging filter that injects export context into log records.

    Adds job_id and segment_index attributes, plus a compact export_tag
    like ``[a1b2c3:S2] `` for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        job_id, segment_index = get_export_context()

        record.job_id = job_id
        record.segment_index = segment_index

        if job_id:
            if segment_index is not None:
                record.export_tag = f"[{job_id}:S{segment_index}] "
            else:
                record.export_tag = f"[{job_id}] "
        else:
            record.export_tag = ""

        return True
