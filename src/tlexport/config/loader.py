"""Configuration loader with precedence handling.

Configuration is resolved with the following precedence (highest to lowest):
1. Explicit arguments (CLI flags, constructor parameters)
2. Environment variables
3. Default values

Environment variables:
- FFMPEG_PATH: ffmpeg executable (default: "ffmpeg" via PATH)
- FFPROBE_PATH: ffprobe executable (default: "ffprobe" via PATH)
- TLEXPORT_KEYFRAME_TOLERANCE_MS: keyframe tolerance for stream copy (default 20)
- TLEXPORT_KEYFRAME_TIMEOUT: keyframe query timeout in seconds (default 30)
- TLEXPORT_PROBE_TIMEOUT: metadata query timeout in seconds (default 60)
- TLEXPORT_FAST_PATH_FALLBACK: fall back to render on stream-copy errors
- TLEXPORT_TEMP_DIR: directory for intermediate files
- TLEXPORT_LOG_LEVEL / TLEXPORT_LOG_FILE / TLEXPORT_LOG_FORMAT: logging
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

from tlexport.config.env import EnvReader
from tlexport.config.models import (
    ExportConfig,
    ExportSettings,
    LoggingConfig,
    ToolPathsConfig,
)

logger = logging.getLogger(__name__)

_config: ExportConfig | None = None
_config_lock = threading.Lock()


def build_config(env: Mapping[str, str] | None = None) -> ExportConfig:
    """Build configuration from environment variables and defaults.

    Args:
        env: Optional mapping used instead of os.environ.

    Returns:
        Fully resolved ExportConfig.
    """
    reader = EnvReader(env)
    defaults = ExportSettings()
    log_defaults = LoggingConfig()

    tools = ToolPathsConfig(
        ffmpeg=reader.get_str("FFMPEG_PATH", "ffmpeg") or "ffmpeg",
        ffprobe=reader.get_str("FFPROBE_PATH", "ffprobe") or "ffprobe",
    )

    temp_dir = reader.get_path("TLEXPORT_TEMP_DIR", must_exist=True)
    if temp_dir is not None and not temp_dir.is_dir():
        logger.warning(
            "TLEXPORT_TEMP_DIR '%s' is not a directory, using system default",
            temp_dir,
        )
        temp_dir = None

    export = ExportSettings(
        keyframe_tolerance_ms=reader.get_int(
            "TLEXPORT_KEYFRAME_TOLERANCE_MS", defaults.keyframe_tolerance_ms
        ),
        keyframe_timeout=reader.get_float(
            "TLEXPORT_KEYFRAME_TIMEOUT", defaults.keyframe_timeout
        ),
        probe_timeout=reader.get_float(
            "TLEXPORT_PROBE_TIMEOUT", defaults.probe_timeout
        ),
        fallback_on_error=reader.get_bool(
            "TLEXPORT_FAST_PATH_FALLBACK", defaults.fallback_on_error
        ),
        temp_dir=temp_dir,
    )

    logging_config = LoggingConfig(
        level=reader.get_str("TLEXPORT_LOG_LEVEL", log_defaults.level),
        file=reader.get_path("TLEXPORT_LOG_FILE", must_exist=False),
        format=reader.get_str("TLEXPORT_LOG_FORMAT", log_defaults.format),
    )

    return ExportConfig(tools=tools, export=export, logging=logging_config)


def get_config() -> ExportConfig:
    """Get the process configuration, building it on first use (thread-safe)."""
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = build_config()
    return _config


def clear_config_cache() -> None:
    """Forget the cached configuration so the next get_config() rebuilds it."""
    global _config
    with _config_lock:
        _config = None
