"""Process exit codes for the tlexport CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes returned by tlexport commands."""

    SUCCESS = 0
    EXPORT_FAILED = 1
    INVALID_JOB = 2
    INTERRUPTED = 130
