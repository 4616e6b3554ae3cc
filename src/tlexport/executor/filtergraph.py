"""Filter graph construction for the render path.

Every segment gets one video chain and one audio chain; the chains are
concatenated in order into ``[vout]`` and ``[aout]``. Sources without audio
contribute generated silence of exactly the segment's length so that every
concat input has the same stream layout.
"""

from __future__ import annotations

from collections.abc import Sequence

from tlexport.introspector.interface import MediaInfo
from tlexport.jobs.models import Resolution, Segment

AUDIO_SAMPLE_RATE = 48000
PIXEL_FORMAT = "yuv420p"
VIDEO_OUT_LABEL = "[vout]"
AUDIO_OUT_LABEL = "[aout]"


def select_target_fps(fps_values: Sequence[float]) -> float:
    """Pick the most frequent frame rate.

    Ties go to the value that reached the winning count first in input
    order. Values are grouped after rounding to three decimals, the
    precision used in the fps filter argument.

    Raises:
        ValueError: If ``fps_values`` is empty.
    """
    if not fps_values:
        raise ValueError("No frame rates to choose from")

    counts: dict[float, int] = {}
    first_value: dict[float, float] = {}
    best_key: float | None = None
    best_count = 0
    for fps in fps_values:
        key = round(fps, 3)
        first_value.setdefault(key, fps)
        counts[key] = counts.get(key, 0) + 1
        if counts[key] > best_count:
            best_key = key
            best_count = counts[key]
    assert best_key is not None
    return first_value[best_key]


def build_video_chain(
    index: int, segment: Segment, target: Resolution, fps: float
) -> str:
    """Trim, rebase timestamps, letterbox into ``target``, fix fps and format."""
    start = segment.start_ms / 1000.0
    end = segment.end_ms / 1000.0
    w, h = target.width, target.height
    return (
        f"[{index}:v]trim=start={start:.6f}:end={end:.6f},setpts=PTS-STARTPTS,"
        f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
        f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2,setsar=1,"
        f"fps=fps={fps:.3f},format={PIXEL_FORMAT}[v{index}]"
    )


def build_audio_chain(index: int, segment: Segment, has_audio: bool) -> str:
    """Trim the source audio, or synthesize silence of the segment's length."""
    if has_audio:
        start = segment.start_ms / 1000.0
        end = segment.end_ms / 1000.0
        return (
            f"[{index}:a]atrim=start={start:.6f}:end={end:.6f},"
            f"asetpts=PTS-STARTPTS,aresample={AUDIO_SAMPLE_RATE}[a{index}]"
        )
    duration = segment.duration_ms / 1000.0
    return (
        f"anullsrc=r={AUDIO_SAMPLE_RATE}:cl=stereo,atrim=0:{duration:.6f},"
        f"asetpts=PTS-STARTPTS[a{index}]"
    )


def build_concat(count: int) -> str:
    """Concatenate ``count`` video/audio pairs into the output labels."""
    inputs = "".join(f"[v{i}][a{i}]" for i in range(count))
    return f"{inputs}concat=n={count}:v=1:a=1{VIDEO_OUT_LABEL}{AUDIO_OUT_LABEL}"


def build_filter_graph(
    segments: Sequence[Segment],
    infos: Sequence[MediaInfo],
    target: Resolution,
    fps: float,
) -> str:
    """Build the complete ``-filter_complex`` value.

    Input ``i`` of the ffmpeg command must be the source of ``segments[i]``.
    """
    if len(segments) != len(infos):
        raise ValueError("segments and infos must have the same length")
    chains: list[str] = []
    for index, (segment, info) in enumerate(zip(segments, infos)):
        chains.append(build_video_chain(index, segment, target, fps))
        chains.append(build_audio_chain(index, segment, info.has_audio))
    chains.append(build_concat(len(segments)))
    return ";".join(chains)
