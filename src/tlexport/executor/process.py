"""External process execution with line streaming.

ProcessRunner spawns ffmpeg with a fully built argument vector, merges its
stdout and stderr, hands every line to an optional callback as it arrives,
and turns a non-zero exit into a ProcessFailure carrying the command and the
captured output.
"""

from __future__ import annotations

import logging
import queue
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from tlexport.jobs.exceptions import ProcessFailure, ProcessSpawnError

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]


@dataclass
class ProcessOutput:
    """Result of a completed process."""

    args: list[str]
    returncode: int
    lines: list[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        return "".join(self.lines)


class ProcessRunner:
    """Runs external tools and streams their combined output.

    The runner blocks the calling thread until the process exits. Output is
    read on a helper thread so that an optional timeout can still be
    enforced while the process is silent.
    """

    OUTPUT_DRAIN_TIMEOUT: float = 5.0
    POLL_INTERVAL: float = 0.5

    def run(
        self,
        args: Sequence[str | Path],
        on_line: LineCallback | None = None,
        timeout: float | None = None,
    ) -> ProcessOutput:
        """Run a process to completion.

        Args:
            args: Complete argument vector, executable first.
            on_line: Called synchronously with each output line (newline
                stripped). Exceptions raised by the callback are logged and
                do not interrupt the process.
            timeout: Maximum run time in seconds. None = no limit.

        Returns:
            ProcessOutput with the exit code and every captured line.

        Raises:
            ProcessFailure: If the executable cannot be started, the process
                exits non-zero, or the timeout expires.
        """
        str_args = [str(arg) for arg in args]
        logger.debug("Executing command: %s", " ".join(str_args))

        try:
            process = subprocess.Popen(  # nosec B603 - args built by exporters
                str_args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise ProcessSpawnError(
                str_args,
                -1,
                str(e),
                reason=f"Could not start {str_args[0] if str_args else 'process'}",
            ) from e

        lines: list[str] = []
        line_queue: queue.Queue[str | None] = queue.Queue()
        stop_event = threading.Event()

        def read_output() -> None:
            try:
                assert process.stdout is not None
                for line in process.stdout:
                    if stop_event.is_set():
                        break
                    line_queue.put(line)
            except (ValueError, OSError) as e:
                # Pipe closed after kill
                logger.debug("Output reader stopped: %s", e)
            finally:
                line_queue.put(None)

        reader_thread = threading.Thread(target=read_output, daemon=True)
        reader_thread.start()

        start_time = time.monotonic()
        timed_out = False

        while True:
            if timeout is not None and time.monotonic() - start_time >= timeout:
                timed_out = True
                break
            try:
                line = line_queue.get(timeout=self.POLL_INTERVAL)
            except queue.Empty:
                continue
            if line is None:
                break
            lines.append(line if line.endswith("\n") else line + "\n")
            if on_line is not None:
                try:
                    on_line(line.rstrip("\r\n"))
                except Exception as e:
                    logger.warning("Output callback error: %s", e)

        if timed_out:
            logger.warning("Command timed out after %ss: %s", timeout, str_args[0])
            stop_event.set()
            process.kill()
            if process.stdout:
                try:
                    process.stdout.close()
                except OSError:  # nosec B110 - closing a killed pipe
                    pass
            process.wait()
            reader_thread.join(timeout=2.0)
            raise ProcessFailure(
                str_args,
                -1,
                "".join(lines),
                reason=f"{str_args[0]} timed out after {timeout}s",
            )

        reader_thread.join(timeout=self.OUTPUT_DRAIN_TIMEOUT)
        returncode = process.wait()

        result = ProcessOutput(args=str_args, returncode=returncode, lines=lines)
        if returncode != 0:
            logger.debug(
                "Command failed",
                extra={"returncode": returncode, "command": str_args[0]},
            )
            raise ProcessFailure(str_args, returncode, result.output)
        return result
