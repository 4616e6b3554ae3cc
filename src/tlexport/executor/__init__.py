"""Export executors: process runner, fast path, render path, clip cutting.

Module organization:
- process.py: ProcessRunner (spawn, stream output, fail with diagnostics)
- temp_files.py: TempFileArena for intermediate files
- filtergraph.py: filter graph construction and frame rate selection
- cut.py: stream-copy and re-encode cutting of a single range
- fast_path.py: FastPathExporter (lossless stream copy + concat)
- render.py: RenderPathExporter (filter graph + encoder cascade)
"""

from tlexport.executor.cut import ClipCutter, build_copy_command
from tlexport.executor.fast_path import FastPathExporter
from tlexport.executor.filtergraph import build_filter_graph, select_target_fps
from tlexport.executor.process import ProcessOutput, ProcessRunner
from tlexport.executor.render import RenderPathExporter, build_render_command
from tlexport.executor.temp_files import TempFileArena

__all__ = [
    "ClipCutter",
    "FastPathExporter",
    "ProcessOutput",
    "ProcessRunner",
    "RenderPathExporter",
    "TempFileArena",
    "build_copy_command",
    "build_filter_graph",
    "build_render_command",
    "select_target_fps",
]
