"""Configuration data models.

This module defines dataclasses for tlexport configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ToolPathsConfig:
    """Executables used by the engine.

    Bare names are resolved by the operating system's executable search
    path when the process is spawned.
    """

    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"


@dataclass(frozen=True)
class ExportSettings:
    """Tunables for the export engine."""

    keyframe_tolerance_ms: int = 20
    """Maximum distance between a cut point and a keyframe for stream copy."""

    keyframe_timeout: float = 30.0
    """Upper bound in seconds for a single keyframe query."""

    probe_timeout: float = 60.0
    """Upper bound in seconds for a single metadata query."""

    fallback_on_error: bool = True
    """Fall through to the render path when a stream-copy step fails."""

    temp_dir: Path | None = None
    """Directory for intermediate segment files (None = system default)."""

    fallback_width: int = 1920
    fallback_height: int = 1080

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.keyframe_tolerance_ms < 0:
            raise ValueError(
                "keyframe_tolerance_ms must be >= 0, "
                f"got {self.keyframe_tolerance_ms}"
            )
        if self.keyframe_timeout <= 0 or self.probe_timeout <= 0:
            raise ValueError("probe and keyframe timeouts must be positive")
        if self.fallback_width <= 0 or self.fallback_height <= 0:
            raise ValueError("fallback resolution must be positive")


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass(frozen=True)
class ExportConfig:
    """Top-level configuration."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    export: ExportSettings = field(default_factory=ExportSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
