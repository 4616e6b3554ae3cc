"""Configuration management for tlexport.

Configuration precedence:
1. Explicit arguments / CLI flags (highest priority)
2. Environment variables (FFMPEG_PATH, FFPROBE_PATH, TLEXPORT_*)
3. Default values (lowest priority)
"""

from tlexport.config.env import EnvReader
from tlexport.config.loader import (
    build_config,
    clear_config_cache,
    get_config,
)
from tlexport.config.logging_factory import (
    build_logging_config,
    configure_logging_from_cli,
)
from tlexport.config.models import (
    ExportConfig,
    ExportSettings,
    LoggingConfig,
    ToolPathsConfig,
)

__all__ = [
    # Models
    "ExportConfig",
    "ExportSettings",
    "LoggingConfig",
    "ToolPathsConfig",
    # Loader
    "build_config",
    "clear_config_cache",
    "get_config",
    "EnvReader",
    "build_logging_config",
    "configure_logging_from_cli",
]
