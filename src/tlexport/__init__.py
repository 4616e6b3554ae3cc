"""tlexport: timeline export engine.

Exports an ordered list of trimmed media segments into a single playable
file, using a lossless stream-copy path when the cuts allow it and a
filter-graph re-encode otherwise.
"""

__version__ = "0.1.0"

from tlexport.jobs.models import (  # noqa: E402
    EncoderCandidate,
    ExportJob,
    ExportResult,
    ExportState,
    Resolution,
    Segment,
)
from tlexport.jobs.orchestrator import ExportOrchestrator, export_timeline  # noqa: E402

__all__ = [
    "EncoderCandidate",
    "ExportJob",
    "ExportOrchestrator",
    "ExportResult",
    "ExportState",
    "Resolution",
    "Segment",
    "__version__",
    "export_timeline",
]
