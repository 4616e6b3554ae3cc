"""Exceptions raised by the export engine.

All engine failures inherit from ExportError so callers can catch every
export problem with a single except clause. Diagnostic messages are meant
for direct display to the operator and include command lines verbatim.
"""

from __future__ import annotations

from collections.abc import Sequence


class ExportError(Exception):
    """Base exception for export errors."""


class InvalidJobError(ExportError):
    """Raised when a job cannot be exported at all (e.g. no segments).

    Raised before any external process is spawned.
    """


class JobFileError(ExportError):
    """Raised when a job description file cannot be loaded or validated."""


class ProbeFailure(ExportError):
    """Raised when a metadata query fails or returns unusable output.

    Introspection code catches this and substitutes documented defaults;
    it never terminates an export.
    """


class ProcessFailure(ExportError):
    """Raised when an external process fails.

    Attributes:
        args_list: The exact argument vector that was executed.
        returncode: Process exit code, or -1 when it could not be started
            or was killed after a timeout.
        output: Combined stdout/stderr captured from the process.
    """

    def __init__(
        self,
        args_list: Sequence[str],
        returncode: int,
        output: str = "",
        reason: str | None = None,
    ) -> None:
        self.args_list = list(args_list)
        self.returncode = returncode
        self.output = output
        self.reason = reason
        super().__init__(self._build_message())

    @property
    def command_line(self) -> str:
        return " ".join(self.args_list)

    def _build_message(self) -> str:
        tool = self.args_list[0] if self.args_list else "process"
        header = self.reason or f"{tool} failed (exit={self.returncode})"
        parts = [header, self.command_line]
        if self.output:
            parts.append(self.output.rstrip("\n"))
        return "\n".join(parts)


class EncoderExhaustedError(ExportError):
    """Raised when every encoder candidate of the render path failed.

    The last ProcessFailure is chained as ``__cause__``.

    Attributes:
        attempts: (candidate name, failure) pairs in the order tried.
    """

    def __init__(self, attempts: Sequence[tuple[str, ProcessFailure]]) -> None:
        self.attempts = list(attempts)
        names = ", ".join(name for name, _ in self.attempts) or "none"
        message = f"All encoder candidates failed ({names})"
        if self.attempts:
            message += f"\n{self.attempts[-1][1]}"
        super().__init__(message)

    @property
    def last_failure(self) -> ProcessFailure | None:
        return self.attempts[-1][1] if self.attempts else None


class ProcessSpawnError(ProcessFailure):
    """Raised when an external executable cannot be started at all.

    No retry with different arguments can succeed, so encoder cascades
    stop at the first occurrence.
    """
