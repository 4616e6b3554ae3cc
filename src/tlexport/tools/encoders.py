"""Hardware encoder detection and encoder candidate selection.

Detection runs ``ffmpeg -hide_banner -encoders`` once and records which
hardware encoders the build exposes. The result is an immutable
EncoderCapabilities value that is passed into EncoderSelector; the
module-level memo exists only as a convenience for callers that do not
manage detection themselves and is initialized under a lock.

Candidate order encodes intent: prefer hardware speed, prefer leaving audio
untouched, then fall back progressively to the CPU software encoder.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg detection
import threading
from dataclasses import dataclass

from tlexport.core.subprocess_utils import run_command
from tlexport.jobs.models import EncoderCandidate

logger = logging.getLogger(__name__)

# Timeout for the capability listing (seconds)
DETECTION_TIMEOUT = 10

NVENC_ENCODER = "h264_nvenc"
SOFTWARE_ENCODER = "libx264"

NVENC_VIDEO_ARGS: tuple[str, ...] = (
    "-c:v", NVENC_ENCODER,
    "-preset", "p4",
    "-rc", "vbr",
    "-cq", "19",
    "-b:v", "0",
)  # fmt: skip

SOFTWARE_VIDEO_ARGS: tuple[str, ...] = (
    "-c:v", SOFTWARE_ENCODER,
    "-preset", "veryfast",
    "-crf", "18",
)  # fmt: skip

AUDIO_COPY_ARGS: tuple[str, ...] = ("-c:a", "copy")
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "192k"
AUDIO_ENCODE_ARGS: tuple[str, ...] = ("-c:a", AUDIO_CODEC, "-b:a", AUDIO_BITRATE)

PIXEL_FORMAT_ARGS: tuple[str, ...] = ("-pix_fmt", "yuv420p")


@dataclass(frozen=True)
class EncoderCapabilities:
    """Hardware encoders exposed by the ffmpeg build."""

    nvenc: bool = False

    @property
    def hardware_encoders(self) -> tuple[str, ...]:
        return (NVENC_ENCODER,) if self.nvenc else ()


def detect_encoder_capabilities(ffmpeg_path: str) -> EncoderCapabilities:
    """Query ffmpeg for available hardware encoders.

    Any failure (missing executable, timeout, non-zero exit) is reported
    as "no hardware encoders" so the CPU encoder remains usable.

    Args:
        ffmpeg_path: ffmpeg executable name or path.

    Returns:
        Detected capabilities.
    """
    try:
        stdout, _, rc = run_command(
            [ffmpeg_path, "-hide_banner", "-encoders"],
            timeout=DETECTION_TIMEOUT,
            merge_stderr=True,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning("Encoder detection failed: %s", e)
        return EncoderCapabilities()

    if rc != 0:
        logger.warning("Encoder detection exited with code %d", rc)
        return EncoderCapabilities()

    caps = EncoderCapabilities(nvenc=NVENC_ENCODER in stdout)
    logger.info(
        "Detected encoders: %s",
        ", ".join(caps.hardware_encoders + (SOFTWARE_ENCODER,)),
    )
    return caps


_capabilities: EncoderCapabilities | None = None
_capabilities_lock = threading.Lock()


def get_encoder_capabilities(ffmpeg_path: str | None = None) -> EncoderCapabilities:
    """Return process-wide capabilities, detecting them once (thread-safe).

    Args:
        ffmpeg_path: ffmpeg executable. None uses the configured path.
    """
    global _capabilities

    if _capabilities is not None:
        return _capabilities

    with _capabilities_lock:
        if _capabilities is None:
            if ffmpeg_path is None:
                from tlexport.config import get_config

                ffmpeg_path = get_config().tools.ffmpeg
            _capabilities = detect_encoder_capabilities(ffmpeg_path)
    return _capabilities


def reset_encoder_capabilities() -> None:
    """Forget memoized capabilities so the next call re-detects them."""
    global _capabilities
    with _capabilities_lock:
        _capabilities = None


def _video_args_for(encoder: str) -> tuple[str, ...]:
    if encoder == NVENC_ENCODER:
        return NVENC_VIDEO_ARGS
    return SOFTWARE_VIDEO_ARGS


def build_encoder_candidates(
    capabilities: EncoderCapabilities,
) -> tuple[EncoderCandidate, ...]:
    """Build the ordered candidate list.

    For each hardware encoder: audio copy, then audio re-encode. Then the
    same two variants with the CPU software encoder.
    """
    candidates: list[EncoderCandidate] = []
    for encoder in capabilities.hardware_encoders + (SOFTWARE_ENCODER,):
        video_args = _video_args_for(encoder)
        candidates.append(
            EncoderCandidate(
                name=f"{encoder}+copy",
                video_args=video_args,
                audio_args=AUDIO_COPY_ARGS,
            )
        )
        candidates.append(
            EncoderCandidate(
                name=f"{encoder}+{AUDIO_CODEC}",
                video_args=video_args,
                audio_args=AUDIO_ENCODE_ARGS,
            )
        )
    return tuple(candidates)


class EncoderSelector:
    """Ordered encoder candidates for one set of capabilities."""

    def __init__(self, capabilities: EncoderCapabilities) -> None:
        self.capabilities = capabilities
        self._candidates = build_encoder_candidates(capabilities)

    @property
    def candidates(self) -> tuple[EncoderCandidate, ...]:
        """All candidates, hardware first, audio copy before re-encode."""
        return self._candidates

    @property
    def render_candidates(self) -> tuple[EncoderCandidate, ...]:
        """Candidates for the filter-graph render.

        Filter-graph audio is always re-encoded to one codec, so only the
        re-encode variant of each video encoder applies.
        """
        return tuple(c for c in self._candidates if c.audio_args == AUDIO_ENCODE_ARGS)
