"""Shared test fixtures for tlexport."""

import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from tlexport.config import (
    ExportConfig,
    ExportSettings,
    ToolPathsConfig,
    clear_config_cache,
)
from tlexport.executor.process import ProcessOutput
from tlexport.introspector.interface import MediaInfo
from tlexport.jobs.exceptions import ProcessFailure
from tlexport.tools.encoders import (
    EncoderCapabilities,
    EncoderSelector,
    reset_encoder_capabilities,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(relative: str) -> str:
    """Read a captured tool output fixture as text.

    Args:
        relative: Path below tests/fixtures, e.g. "ffmpeg/progress_modern.txt".
    """
    return (FIXTURES_DIR / relative).read_text(encoding="utf-8")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep process-wide caches and environment out of every test.

    Clears FFMPEG_PATH / FFPROBE_PATH / TLEXPORT_* so a developer's shell
    settings never leak into assertions, and resets the memoized config and
    encoder capabilities before and after each test.
    """
    for var in list(os.environ):
        if var.startswith("TLEXPORT_") or var in ("FFMPEG_PATH", "FFPROBE_PATH"):
            monkeypatch.delenv(var, raising=False)
    clear_config_cache()
    reset_encoder_capabilities()
    yield
    clear_config_cache()
    reset_encoder_capabilities()


@pytest.fixture
def export_config(temp_dir: Path) -> ExportConfig:
    """Configuration pointing intermediate files at the test temp dir."""
    return ExportConfig(
        tools=ToolPathsConfig(ffmpeg="ffmpeg", ffprobe="ffprobe"),
        export=ExportSettings(temp_dir=temp_dir),
    )


@pytest.fixture
def cpu_selector() -> EncoderSelector:
    """Selector for an ffmpeg build without hardware encoders."""
    return EncoderSelector(EncoderCapabilities(nvenc=False))


@pytest.fixture
def nvenc_selector() -> EncoderSelector:
    """Selector for an ffmpeg build exposing h264_nvenc."""
    return EncoderSelector(EncoderCapabilities(nvenc=True))


class FakeIntrospector:
    """MediaIntrospector returning canned MediaInfo per path."""

    def __init__(
        self,
        infos: dict[Path, MediaInfo] | None = None,
        default: MediaInfo | None = None,
    ) -> None:
        self.infos = {Path(k): v for k, v in (infos or {}).items()}
        self.default = default or MediaInfo(
            duration_ms=60_000, width=1920, height=1080, fps=30.0, has_audio=True
        )
        self.calls: list[Path] = []

    def get_media_info(self, path: Path) -> MediaInfo:
        self.calls.append(Path(path))
        return self.infos.get(Path(path), self.default)


class FakeKeyframes:
    """KeyframeProbe that answers from a set of keyframe timestamps (ms)."""

    def __init__(self, keyframes_ms: set[int] | None = None, everywhere=False):
        self.keyframes_ms = keyframes_ms or set()
        self.everywhere = everywhere
        self.calls: list[tuple[Path, int]] = []

    def is_keyframe_near(self, path, timestamp_ms, tolerance_ms=None):
        self.calls.append((Path(path), timestamp_ms))
        return self.everywhere or timestamp_ms in self.keyframes_ms


class FakeRunner:
    """ProcessRunner stand-in that records commands instead of spawning.

    Each call pops the next behaviour from ``script``: None succeeds, an
    exception instance is raised, a list of strings is fed to ``on_line``
    before succeeding, and a (lines, exception) tuple feeds the lines and
    then raises. When the script is exhausted every call succeeds.
    The contents of concat list files are captured at call time, since
    the exporter deletes them afterwards.
    """

    def __init__(self, script: list | None = None) -> None:
        self.script = list(script or [])
        self.commands: list[list[str]] = []
        self.concat_lists: list[str] = []

    def run(
        self,
        args,
        on_line: Callable[[str], None] | None = None,
        timeout: float | None = None,
    ) -> ProcessOutput:
        command = [str(a) for a in args]
        self.commands.append(command)
        if "concat" in command:
            list_file = Path(command[command.index("-i") + 1])
            self.concat_lists.append(list_file.read_text(encoding="utf-8"))
        behaviour = self.script.pop(0) if self.script else None
        if isinstance(behaviour, BaseException):
            raise behaviour
        if isinstance(behaviour, tuple):
            lines, error = behaviour
            if on_line is not None:
                for line in lines:
                    on_line(line)
            raise error
        if isinstance(behaviour, list) and on_line is not None:
            for line in behaviour:
                on_line(line)
        return ProcessOutput(args=command, returncode=0, lines=[])


def make_failure(
    command: str = "ffmpeg", returncode: int = 1, output: str = "boom"
) -> ProcessFailure:
    return ProcessFailure([command, "-i", "in.mp4"], returncode, output)


@pytest.fixture
def process_failure() -> Callable[..., ProcessFailure]:
    """Factory for ProcessFailure instances used in runner scripts."""
    return make_failure


@pytest.fixture
def make_runner() -> Callable[..., FakeRunner]:
    """Factory for scripted FakeRunner instances."""
    return FakeRunner


@pytest.fixture
def make_introspector() -> Callable[..., FakeIntrospector]:
    """Factory for FakeIntrospector instances."""
    return FakeIntrospector


@pytest.fixture
def make_keyframes() -> Callable[..., FakeKeyframes]:
    """Factory for FakeKeyframes instances."""
    return FakeKeyframes


@pytest.fixture
def fixture_text() -> Callable[[str], str]:
    """Loader for captured ffmpeg/ffprobe output under tests/fixtures."""
    return load_fixture