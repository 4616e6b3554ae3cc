"""Media introspection types and protocol."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

# Defaults substituted when a metadata query fails or returns nothing usable.
DEFAULT_DURATION_MS = 1
DEFAULT_FPS = 30.0
DEFAULT_HAS_AUDIO = True


@dataclass(frozen=True)
class MediaInfo:
    """Container and stream properties of one source file.

    Width and height are 0 when unknown; callers substitute a fallback
    resolution. Duration is never 0.
    """

    duration_ms: int = DEFAULT_DURATION_MS
    width: int = 0
    height: int = 0
    fps: float = DEFAULT_FPS
    has_audio: bool = DEFAULT_HAS_AUDIO

    @property
    def has_dimensions(self) -> bool:
        return self.width > 0 and self.height > 0


class MediaIntrospector(Protocol):
    """Protocol for media introspection implementations."""

    def get_media_info(self, path: Path) -> MediaInfo:
        """Return metadata for a source file, substituting defaults on failure."""
        ...


class KeyframeProbe(Protocol):
    """Protocol for keyframe lookups around a cut point."""

    def is_keyframe_near(
        self, path: Path, timestamp_ms: int, tolerance_ms: int | None = None
    ) -> bool:
        """True iff a keyframe lies within tolerance of ``timestamp_ms``."""
        ...
