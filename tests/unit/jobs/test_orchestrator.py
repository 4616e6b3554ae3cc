"""Tests for the export orchestrator state machine."""

from pathlib import Path
from unittest.mock import patch

import pytest

from tlexport.config import ExportConfig, ExportSettings
from tlexport.introspector.interface import MediaInfo
from tlexport.jobs.exceptions import (
    EncoderExhaustedError,
    InvalidJobError,
    ProcessFailure,
    ProcessSpawnError,
)
from tlexport.jobs.models import (
    ExportJob,
    ExportState,
    ExportStrategy,
    Resolution,
    Segment,
)
from tlexport.jobs.orchestrator import ExportOrchestrator, export_timeline

PROGRESS_10S = [
    "frame=48",
    "out_time_us=1600000",
    "out_time_ms=1600000",
    "out_time=00:00:01.600000",
    "progress=continue",
    "out_time_us=5034667",
    "out_time_ms=5034667",
    "out_time=00:00:05.034667",
    "progress=continue",
    "out_time_us=10000000",
    "out_time_ms=10000000",
    "out_time=00:00:10.000000",
    "progress=end",
]


def _job(temp_dir: Path, *segments: Segment) -> ExportJob:
    return ExportJob.create(segments, Resolution(1280, 720), temp_dir / "out.mp4")


def _assert_strictly_increasing(values: list[float]) -> None:
    assert all(0.0 <= v <= 1.0 for v in values)
    assert all(b > a for a, b in zip(values, values[1:]))


@pytest.fixture
def build(
    export_config, make_introspector, make_keyframes, make_runner, cpu_selector
):
    """Build an orchestrator wired to fakes; returns (orchestrator, fakes)."""

    def _build(
        script=None,
        keyframes=None,
        introspector=None,
        selector=cpu_selector,
        **kwargs,
    ):
        fakes = {
            "introspector": introspector or make_introspector(),
            "keyframes": keyframes or make_keyframes(everywhere=True),
            "runner": make_runner(script),
        }
        orchestrator = ExportOrchestrator(
            export_config,
            introspector=fakes["introspector"],
            keyframes=fakes["keyframes"],
            runner=fakes["runner"],
            selector=selector,
            **kwargs,
        )
        return orchestrator, fakes

    return _build


class TestEmptyJob:
    """Jobs without segments are rejected up front."""

    def test_raises_before_any_process(self, build, temp_dir):
        orchestrator, fakes = build()
        progress = []

        with pytest.raises(InvalidJobError, match="No segments to export"):
            orchestrator.export(_job(temp_dir), progress.append)

        assert fakes["runner"].commands == []
        assert fakes["introspector"].calls == []
        assert progress == []
        assert orchestrator.state is ExportState.FAILED


class TestFastPath:
    """Keyframe-aligned single-source jobs are stream copied."""

    def test_single_source_aligned_uses_stream_copy(self, build, temp_dir):
        orchestrator, fakes = build()
        progress = []
        job = _job(
            temp_dir,
            Segment(Path("/media/a.mp4"), 0, 2000),
            Segment(Path("/media/a.mp4"), 4000, 6000),
        )

        result = orchestrator.export(job, progress.append)

        assert result.strategy is ExportStrategy.FAST_PATH
        assert result.state is ExportState.SUCCEEDED
        assert result.encoder is None
        commands = fakes["runner"].commands
        assert len(commands) == 3
        assert all("copy" in c for c in commands)
        assert "-filter_complex" not in commands[-1]
        assert progress == [0.0, 0.5, 0.98, 1.0]

    def test_temp_files_removed(self, build, temp_dir):
        orchestrator, _ = build()
        job = _job(temp_dir, Segment(Path("/media/a.mp4"), 0, 2000))

        orchestrator.export(job)

        assert list(temp_dir.iterdir()) == []

    def test_encoder_detection_not_needed(
        self, export_config, make_introspector, make_keyframes, make_runner, temp_dir
    ):
        """Hardware detection only runs when a render is attempted."""
        orchestrator = ExportOrchestrator(
            export_config,
            introspector=make_introspector(),
            keyframes=make_keyframes(everywhere=True),
            runner=make_runner(),
        )
        with patch("tlexport.jobs.orchestrator.get_encoder_capabilities") as detect:
            orchestrator.export(_job(temp_dir, Segment(Path("/media/a.mp4"), 0, 2000)))

        detect.assert_not_called()


class TestRenderPath:
    """Everything else is rendered through the filter graph."""

    def test_multi_source_never_reaches_fast_path(self, build, temp_dir):
        orchestrator, fakes = build(script=[PROGRESS_10S])
        progress = []
        job = _job(
            temp_dir,
            Segment(Path("/media/a.mp4"), 0, 4000),
            Segment(Path("/media/b.mp4"), 0, 6000),
        )

        result = orchestrator.export(job, progress.append)

        assert result.strategy is ExportStrategy.RENDER
        assert result.encoder == "libx264+aac"
        assert fakes["keyframes"].calls == []
        assert len(fakes["runner"].commands) == 1
        assert "-filter_complex" in fakes["runner"].commands[0]
        assert progress == [0.0, 0.16, 0.5034, 1.0]

    def test_unaligned_cut_renders(self, build, make_keyframes, temp_dir):
        orchestrator, fakes = build(keyframes=make_keyframes({2000}))
        job = _job(temp_dir, Segment(Path("/media/a.mp4"), 1500, 2000))

        result = orchestrator.export(job)

        assert result.strategy is ExportStrategy.RENDER
        assert len(fakes["runner"].commands) == 1

    def test_cascade_progress_stays_monotonic(
        self, build, nvenc_selector, process_failure, temp_dir
    ):
        """A retried render never makes progress go backwards."""
        failing_attempt = (PROGRESS_10S[:9], process_failure())
        orchestrator, fakes = build(
            script=[failing_attempt, PROGRESS_10S], selector=nvenc_selector
        )
        progress = []
        job = _job(
            temp_dir,
            Segment(Path("/media/a.mp4"), 0, 4000),
            Segment(Path("/media/b.mp4"), 0, 6000),
        )

        result = orchestrator.export(job, progress.append)

        assert result.encoder == "libx264+aac"
        commands = fakes["runner"].commands
        assert "h264_nvenc" in commands[0]
        assert "libx264" in commands[1]
        _assert_strictly_increasing(progress)
        assert progress[-1] == 1.0
        assert progress.count(1.0) == 1

    def test_all_candidates_fail(
        self, build, nvenc_selector, process_failure, temp_dir
    ):
        first = process_failure(output="No NVENC capable devices found")
        last = process_failure(output="Invalid argument")
        orchestrator, _ = build(script=[first, last], selector=nvenc_selector)
        progress = []
        job = _job(
            temp_dir,
            Segment(Path("/media/a.mp4"), 0, 4000),
            Segment(Path("/media/b.mp4"), 0, 6000),
        )

        with pytest.raises(EncoderExhaustedError) as exc_info:
            orchestrator.export(job, progress.append)

        assert exc_info.value.__cause__ is last
        assert orchestrator.state is ExportState.FAILED
        assert 1.0 not in progress

    def test_missing_ffmpeg_fails_once(self, build, nvenc_selector, temp_dir):
        spawn_error = ProcessSpawnError(["ffmpeg"], -1, "No such file")
        orchestrator, fakes = build(script=[spawn_error], selector=nvenc_selector)
        job = _job(
            temp_dir,
            Segment(Path("/media/a.mp4"), 0, 4000),
            Segment(Path("/media/b.mp4"), 0, 6000),
        )

        with pytest.raises(ProcessSpawnError):
            orchestrator.export(job)

        assert len(fakes["runner"].commands) == 1


class TestFastPathFailure:
    """Stream-copy failures fall back to rendering unless disabled."""

    def test_copy_failure_falls_back(self, build, process_failure, temp_dir):
        orchestrator, fakes = build(script=[process_failure()])
        job = _job(temp_dir, Segment(Path("/media/a.mp4"), 0, 2000))

        result = orchestrator.export(job)

        assert result.strategy is ExportStrategy.RENDER
        assert "-filter_complex" in fakes["runner"].commands[-1]

    def test_copy_failure_propagates_without_fallback(
        self, build, process_failure, temp_dir
    ):
        orchestrator, _ = build(script=[process_failure()], fallback_on_error=False)
        job = _job(temp_dir, Segment(Path("/media/a.mp4"), 0, 2000))

        with pytest.raises(ProcessFailure):
            orchestrator.export(job)

        assert orchestrator.state is ExportState.FAILED
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.parametrize("fallback", [True, False])
    def test_unusable_temp_dir(
        self,
        fallback,
        make_introspector,
        make_keyframes,
        make_runner,
        cpu_selector,
        temp_dir,
    ):
        config = ExportConfig(export=ExportSettings(temp_dir=temp_dir / "gone"))
        runner = make_runner()
        orchestrator = ExportOrchestrator(
            config,
            introspector=make_introspector(),
            keyframes=make_keyframes(everywhere=True),
            runner=runner,
            selector=cpu_selector,
            fallback_on_error=fallback,
        )
        job = _job(temp_dir, Segment(Path("/media/a.mp4"), 0, 2000))

        if fallback:
            result = orchestrator.export(job)
            assert result.strategy is ExportStrategy.RENDER
            assert orchestrator.state is ExportState.SUCCEEDED
            assert "-filter_complex" in runner.commands[0]
        else:
            with pytest.raises(FileNotFoundError):
                orchestrator.export(job)
            assert orchestrator.state is ExportState.FAILED
            assert runner.commands == []


class TestConstruction:
    """Tests for collaborator wiring."""

    def test_custom_introspector_requires_keyframes(
        self, export_config, make_introspector
    ):
        with pytest.raises(ValueError, match="keyframes is required"):
            ExportOrchestrator(export_config, introspector=make_introspector())

    def test_probe_defaults_flow_into_render(
        self, build, make_introspector, temp_dir
    ):
        """A source without audio gets generated silence in the graph."""
        silent = make_introspector(
            default=MediaInfo(duration_ms=60_000, has_audio=False)
        )
        orchestrator, fakes = build(introspector=silent)
        job = _job(
            temp_dir,
            Segment(Path("/media/a.mp4"), 0, 4000),
            Segment(Path("/media/b.mp4"), 0, 6000),
        )

        orchestrator.export(job)

        graph = fakes["runner"].commands[0][
            fakes["runner"].commands[0].index("-filter_complex") + 1
        ]
        assert graph.count("anullsrc") == 2


class TestExportTimeline:
    """Tests for the export_timeline convenience wrapper."""

    def test_empty_job_rejected_without_spawning(self, export_config, temp_dir):
        job = ExportJob.create([], Resolution(1280, 720), temp_dir / "out.mp4")

        with patch("tlexport.executor.process.subprocess.Popen") as popen:
            with pytest.raises(InvalidJobError):
                export_timeline(job, config=export_config)

        popen.assert_not_called()
