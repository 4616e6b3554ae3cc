"""Export jobs: data model, errors, orchestration, and background workers.

The orchestrator and worker live in their own modules
(tlexport.jobs.orchestrator, tlexport.jobs.worker) and are not imported
here, so the executors can depend on the model and errors alone.
"""

from tlexport.jobs.exceptions import (
    EncoderExhaustedError,
    ExportError,
    InvalidJobError,
    JobFileError,
    ProbeFailure,
    ProcessFailure,
    ProcessSpawnError,
)
from tlexport.jobs.models import (
    EncoderCandidate,
    ExportJob,
    ExportResult,
    ExportState,
    ExportStrategy,
    Resolution,
    Segment,
)

__all__ = [
    "EncoderCandidate",
    "EncoderExhaustedError",
    "ExportError",
    "ExportJob",
    "ExportResult",
    "ExportState",
    "ExportStrategy",
    "InvalidJobError",
    "JobFileError",
    "ProbeFailure",
    "ProcessFailure",
    "ProcessSpawnError",
    "Resolution",
    "Segment",
]
