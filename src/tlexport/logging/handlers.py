"""Formatters for tlexport log output.

Both formatters understand the attributes set by ExportContextFilter. The
JSON form groups them under an ``export`` object so that log processors can
follow one export across its worker thread and ffmpeg attempts.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

TEXT_FORMAT = "%(asctime)s - %(export_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

_EXPORT_ATTRS: frozenset[str] = frozenset({"job_id", "segment_index", "export_tag"})


def text_formatter() -> logging.Formatter:
    """Human-readable formatter; records outside an export get no tag."""
    return logging.Formatter(
        TEXT_FORMAT, datefmt=TEXT_DATEFMT, defaults={"export_tag": ""}
    )


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line.

    Keys: ``timestamp`` (ISO-8601 UTC), ``level``, ``logger``, ``thread``,
    ``message``; ``export`` with ``job_id`` and ``segment`` inside an
    export; ``context`` for fields passed via ``extra``; ``exception``
    when exc_info is set.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        job_id = getattr(record, "job_id", None)
        if job_id:
            export: dict[str, Any] = {"job_id": job_id}
            segment_index = getattr(record, "segment_index", None)
            if segment_index is not None:
                export["segment"] = segment_index
            entry["export"] = export

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _EXPORT_ATTRS
            and not key.startswith("_")
        }
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
