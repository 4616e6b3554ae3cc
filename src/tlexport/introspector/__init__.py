"""Media introspection: source metadata and keyframe lookups."""

from tlexport.introspector.ffprobe import FFprobeIntrospector
from tlexport.introspector.interface import (
    KeyframeProbe,
    MediaInfo,
    MediaIntrospector,
)
from tlexport.introspector.keyframes import KeyframeLocator

__all__ = [
    "FFprobeIntrospector",
    "KeyframeLocator",
    "KeyframeProbe",
    "MediaInfo",
    "MediaIntrospector",
]
