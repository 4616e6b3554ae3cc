"""Job description files.

A job file is a JSON document validated with Pydantic and converted into
an ExportJob:

    {
      "output": "out.mp4",
      "resolution": "1280x720",
      "segments": [
        {"source": "a.mp4", "start_ms": 0, "end_ms": 5000},
        {"source": "b.mp4", "start": 12.5, "end": 20.0}
      ]
    }

Relative paths resolve against the job file's directory. When
``resolution`` is omitted, the first source's resolution is used (or the
configured fallback when it cannot be probed).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from tlexport.config import ExportSettings
from tlexport.introspector.interface import MediaIntrospector
from tlexport.jobs.exceptions import JobFileError
from tlexport.jobs.models import ExportJob, Resolution, Segment

logger = logging.getLogger(__name__)


class SegmentModel(BaseModel):
    """Pydantic model for one segment, in milliseconds or seconds."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str = Field(min_length=1)
    start_ms: int | None = Field(default=None, ge=0)
    end_ms: int | None = Field(default=None, ge=0)
    start: float | None = Field(default=None, ge=0)
    end: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_range(self) -> SegmentModel:
        """Require exactly one unit per boundary and a non-empty range."""
        if (self.start_ms is None) == (self.start is None):
            raise ValueError("give exactly one of 'start_ms' or 'start'")
        if (self.end_ms is None) == (self.end is None):
            raise ValueError("give exactly one of 'end_ms' or 'end'")
        if self.start_millis >= self.end_millis:
            raise ValueError(
                f"segment start ({self.start_millis}ms) must be before "
                f"end ({self.end_millis}ms)"
            )
        return self

    @property
    def start_millis(self) -> int:
        if self.start_ms is not None:
            return self.start_ms
        return round((self.start or 0.0) * 1000)

    @property
    def end_millis(self) -> int:
        if self.end_ms is not None:
            return self.end_ms
        return round((self.end or 0.0) * 1000)


class JobFileModel(BaseModel):
    """Pydantic model for a job file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    output: str = Field(min_length=1)
    resolution: str | None = None
    segments: list[SegmentModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_resolution(self) -> JobFileModel:
        if self.resolution is not None:
            Resolution.parse(self.resolution)
        return self


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def default_target(
    source: Path,
    introspector: MediaIntrospector,
    settings: ExportSettings,
) -> Resolution:
    """Resolution of ``source``, or the configured fallback if unknown."""
    info = introspector.get_media_info(source)
    if info.has_dimensions:
        return Resolution(info.width, info.height)
    logger.warning(
        "Could not determine resolution of %s, using %dx%d",
        source,
        settings.fallback_width,
        settings.fallback_height,
    )
    return Resolution(settings.fallback_width, settings.fallback_height)


def job_from_model(
    model: JobFileModel,
    base_dir: Path,
    introspector: MediaIntrospector | None = None,
    settings: ExportSettings | None = None,
) -> ExportJob:
    """Convert a validated model into an ExportJob."""
    segments = tuple(
        Segment(
            source=_resolve(base_dir, s.source),
            start_ms=s.start_millis,
            end_ms=s.end_millis,
        )
        for s in model.segments
    )
    if model.resolution is not None:
        target = Resolution.parse(model.resolution)
    else:
        settings = settings or ExportSettings()
        if segments and introspector is not None:
            target = default_target(segments[0].source, introspector, settings)
        else:
            target = Resolution(settings.fallback_width, settings.fallback_height)
    return ExportJob(
        segments=segments,
        target=target,
        output_path=_resolve(base_dir, model.output),
    )


def load_job_file(
    path: Path,
    introspector: MediaIntrospector | None = None,
    settings: ExportSettings | None = None,
) -> ExportJob:
    """Load and validate a job file.

    Raises:
        JobFileError: If the file cannot be read, is not JSON, or fails
            validation.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise JobFileError(f"Cannot read job file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise JobFileError(f"Invalid JSON in job file {path}: {e}") from e

    try:
        model = JobFileModel.model_validate(data)
    except ValidationError as e:
        raise JobFileError(f"Invalid job file {path}:\n{e}") from e

    return job_from_model(
        model, path.parent.absolute(), introspector=introspector, settings=settings
    )
