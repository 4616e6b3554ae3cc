"""Core utilities shared across tlexport modules."""

from tlexport.core.subprocess_utils import run_command
from tlexport.core.time_utils import format_seconds, ms_to_seconds_arg

__all__ = [
    "format_seconds",
    "ms_to_seconds_arg",
    "run_command",
]
