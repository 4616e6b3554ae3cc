"""Export data model.

Immutable value types passed between the orchestrator and the exporters.
Times are integer milliseconds throughout; conversion to seconds happens
only when ffmpeg arguments are built.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

_RESOLUTION_RE = re.compile(r"^\s*(\d+)\s*[xX:]\s*(\d+)\s*$")


@dataclass(frozen=True)
class Segment:
    """One timeline clip: take ``[start_ms, end_ms)`` from ``source``."""

    source: Path
    start_ms: int
    end_ms: int

    def __post_init__(self) -> None:
        if not isinstance(self.source, Path):
            object.__setattr__(self, "source", Path(self.source))
        if self.start_ms < 0:
            raise ValueError(f"start_ms must be >= 0, got {self.start_ms}")
        if self.start_ms >= self.end_ms:
            raise ValueError(
                f"start_ms ({self.start_ms}) must be less than "
                f"end_ms ({self.end_ms})"
            )

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class Resolution:
    """Output frame size in pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Resolution must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def parse(cls, value: str) -> Resolution:
        """Parse ``"1280x720"`` (also accepts ``X`` or ``:`` as separator)."""
        match = _RESOLUTION_RE.match(value)
        if not match:
            raise ValueError(f"Invalid resolution '{value}', expected WIDTHxHEIGHT")
        return cls(int(match.group(1)), int(match.group(2)))

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class EncoderCandidate:
    """One complete encoder configuration tried by the render cascade."""

    name: str
    """Tag used in logs and diagnostics (e.g. 'h264_nvenc+copy')."""

    video_args: tuple[str, ...]
    audio_args: tuple[str, ...]

    @property
    def is_hardware(self) -> bool:
        return not self.name.startswith("libx264")


@dataclass(frozen=True)
class ExportJob:
    """A single export request.

    An empty segment list is representable so that the orchestrator can
    reject it explicitly; every other invariant is enforced by Segment.
    """

    segments: tuple[Segment, ...]
    target: Resolution
    output_path: Path
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def __post_init__(self) -> None:
        if not isinstance(self.segments, tuple):
            object.__setattr__(self, "segments", tuple(self.segments))
        if not isinstance(self.output_path, Path):
            object.__setattr__(self, "output_path", Path(self.output_path))

    @classmethod
    def create(
        cls,
        segments: Iterable[Segment],
        target: Resolution,
        output_path: Path | str,
    ) -> ExportJob:
        """Build a job, copying the caller's segment sequence."""
        return cls(
            segments=tuple(segments), target=target, output_path=Path(output_path)
        )

    @property
    def total_duration_ms(self) -> int:
        return sum(s.duration_ms for s in self.segments)

    @property
    def sources(self) -> list[Path]:
        """Distinct segment sources in first-use order."""
        seen: dict[Path, None] = {}
        for segment in self.segments:
            seen.setdefault(segment.source, None)
        return list(seen)


class ExportState(str, Enum):
    """Orchestrator state machine."""

    PLANNED = "planned"
    FAST_PATH_ATTEMPTED = "fast_path_attempted"
    RENDER_ATTEMPTED = "render_attempted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExportState.SUCCEEDED, ExportState.FAILED)


class ExportStrategy(str, Enum):
    """Which exporter produced the output."""

    FAST_PATH = "fast_path"
    RENDER = "render"


@dataclass(frozen=True)
class ExportResult:
    """Outcome of a successful export."""

    state: ExportState
    strategy: ExportStrategy
    output_path: Path
    encoder: str | None = None
    """Name of the encoder candidate used (render path only)."""
