"""External tool helpers: encoder selection and progress translation."""

from tlexport.tools.encoders import (
    EncoderCapabilities,
    EncoderSelector,
    build_encoder_candidates,
    detect_encoder_capabilities,
    get_encoder_capabilities,
    reset_encoder_capabilities,
)
from tlexport.tools.ffmpeg_progress import (
    ProgressEvent,
    ProgressState,
    ProgressTranslator,
    parse_progress_line,
    resolve_out_time_ms,
)

__all__ = [
    "EncoderCapabilities",
    "EncoderSelector",
    "ProgressEvent",
    "ProgressState",
    "ProgressTranslator",
    "build_encoder_candidates",
    "detect_encoder_capabilities",
    "get_encoder_capabilities",
    "parse_progress_line",
    "reset_encoder_capabilities",
    "resolve_out_time_ms",
]
