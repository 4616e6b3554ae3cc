"""Tests for the export data model."""

import dataclasses
from pathlib import Path

import pytest

from tlexport.jobs.models import (
    EncoderCandidate,
    ExportJob,
    ExportState,
    Resolution,
    Segment,
)


class TestSegment:
    """Tests for Segment."""

    def test_duration(self):
        segment = Segment(Path("a.mp4"), 1000, 3500)
        assert segment.duration_ms == 2500

    def test_coerces_source_to_path(self):
        segment = Segment("a.mp4", 0, 10)  # type: ignore[arg-type]
        assert segment.source == Path("a.mp4")

    def test_rejects_negative_start(self):
        with pytest.raises(ValueError, match="start_ms must be >= 0"):
            Segment(Path("a.mp4"), -1, 10)

    @pytest.mark.parametrize("start,end", [(10, 10), (20, 10)])
    def test_rejects_empty_or_reversed_range(self, start, end):
        with pytest.raises(ValueError, match="must be less than"):
            Segment(Path("a.mp4"), start, end)

    def test_is_immutable(self):
        segment = Segment(Path("a.mp4"), 0, 10)
        with pytest.raises(dataclasses.FrozenInstanceError):
            segment.end_ms = 20  # type: ignore[misc]


class TestResolution:
    """Tests for Resolution."""

    @pytest.mark.parametrize(
        "value", ["1280x720", "1280X720", "1280:720", " 1280 x 720 "]
    )
    def test_parse(self, value):
        assert Resolution.parse(value) == Resolution(1280, 720)

    @pytest.mark.parametrize("value", ["1280", "axb", "1280x", ""])
    def test_parse_rejects_garbage(self, value):
        with pytest.raises(ValueError, match="Invalid resolution"):
            Resolution.parse(value)

    def test_rejects_zero_dimension(self):
        with pytest.raises(ValueError, match="must be positive"):
            Resolution(0, 720)

    def test_str(self):
        assert str(Resolution(1920, 1080)) == "1920x1080"


class TestExportJob:
    """Tests for ExportJob."""

    def test_create_copies_segments(self):
        segments = [Segment(Path("a.mp4"), 0, 1000)]
        job = ExportJob.create(segments, Resolution(640, 360), "out.mp4")
        segments.append(Segment(Path("b.mp4"), 0, 1000))

        assert len(job.segments) == 1
        assert isinstance(job.segments, tuple)
        assert job.output_path == Path("out.mp4")

    def test_total_duration(self):
        job = ExportJob.create(
            [Segment(Path("a.mp4"), 0, 1000), Segment(Path("a.mp4"), 5000, 7500)],
            Resolution(640, 360),
            "out.mp4",
        )
        assert job.total_duration_ms == 3500

    def test_sources_in_first_use_order(self):
        job = ExportJob.create(
            [
                Segment(Path("b.mp4"), 0, 1),
                Segment(Path("a.mp4"), 0, 1),
                Segment(Path("b.mp4"), 5, 6),
            ],
            Resolution(640, 360),
            "out.mp4",
        )
        assert job.sources == [Path("b.mp4"), Path("a.mp4")]

    def test_empty_job_is_representable(self):
        job = ExportJob.create([], Resolution(640, 360), "out.mp4")
        assert job.total_duration_ms == 0

    def test_job_ids_are_unique(self):
        first = ExportJob.create([], Resolution(640, 360), "out.mp4")
        second = ExportJob.create([], Resolution(640, 360), "out.mp4")
        assert first.job_id != second.job_id


class TestExportState:
    """Tests for ExportState."""

    def test_terminal_states(self):
        assert ExportState.SUCCEEDED.is_terminal
        assert ExportState.FAILED.is_terminal
        assert not ExportState.PLANNED.is_terminal
        assert not ExportState.RENDER_ATTEMPTED.is_terminal


class TestEncoderCandidate:
    """Tests for EncoderCandidate."""

    def test_hardware_flag(self):
        nvenc = EncoderCandidate("h264_nvenc+copy", ("-c:v", "h264_nvenc"), ())
        cpu = EncoderCandidate("libx264+aac", ("-c:v", "libx264"), ())
        assert nvenc.is_hardware
        assert not cpu.is_hardware
