"""Unit tests for logging handlers and configuration."""

import json
import logging
import sys
from pathlib import Path

import pytest

from tlexport.config.models import LoggingConfig
from tlexport.logging import JSONFormatter, configure_logging, export_context
from tlexport.logging.context import ExportContextFilter
from tlexport.logging.handlers import text_formatter


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after configure_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tlexport.executor.render",
        level=logging.WARNING,
        pathname="render.py",
        lineno=10,
        msg="Render with %s failed",
        args=("h264_nvenc+aac",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self) -> None:
        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["level"] == "WARNING"
        assert entry["message"] == "Render with h264_nvenc+aac failed"
        assert entry["logger"] == "tlexport.executor.render"
        assert entry["thread"] == "MainThread"
        assert "timestamp" in entry
        assert "context" not in entry
        assert "export" not in entry

    def test_extra_fields_become_context(self) -> None:
        entry = json.loads(JSONFormatter().format(_record(returncode=1)))
        assert entry["context"] == {"returncode": 1}

    def test_export_context_fields(self) -> None:
        record = _record()
        with export_context("a1b2c3d4", segment_index=3):
            ExportContextFilter().filter(record)

        entry = json.loads(JSONFormatter().format(record))

        assert entry["export"] == {"job_id": "a1b2c3d4", "segment": 3}
        assert "context" not in entry
        assert "export_tag" not in json.dumps(entry)

    def test_outside_export_has_no_export_block(self) -> None:
        record = _record()
        ExportContextFilter().filter(record)

        entry = json.loads(JSONFormatter().format(record))

        assert "export" not in entry
        assert "context" not in entry

    def test_exception_is_formatted(self) -> None:
        try:
            raise ValueError("bad value")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad value" in entry["exception"]


class TestTextFormatter:
    """Tests for the text formatter."""

    def test_tag_from_filter(self) -> None:
        record = _record()
        with export_context("a1b2c3d4", segment_index=0):
            ExportContextFilter().filter(record)

        line = text_formatter().format(record)

        assert line.endswith(
            "[a1b2c3d4:S0] tlexport.executor.render - WARNING - "
            "Render with h264_nvenc+aac failed"
        )

    def test_unfiltered_record_has_no_tag(self) -> None:
        line = text_formatter().format(_record())
        assert " - tlexport.executor.render - WARNING - " in line


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_stderr_handler_by_default(self, restore_root_logger) -> None:
        configure_logging(LoggingConfig(level="warning"))

        root = restore_root_logger
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_file_handler_with_json(
        self, restore_root_logger, temp_dir: Path
    ) -> None:
        log_file = temp_dir / "logs" / "tlexport.log"
        configure_logging(LoggingConfig(level="info", file=log_file, format="json"))

        with export_context("job42"):
            logging.getLogger("tlexport.test").info("hello")
        for handler in restore_root_logger.handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["message"] == "hello"
        assert entry["export"] == {"job_id": "job42"}

    def test_text_format_includes_export_tag(
        self, restore_root_logger, temp_dir: Path
    ) -> None:
        log_file = temp_dir / "tlexport.log"
        configure_logging(LoggingConfig(level="debug", file=log_file))

        with export_context("job42", segment_index=1):
            logging.getLogger("tlexport.test").debug("copying")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert "[job42:S1] tlexport.test - DEBUG - copying" in log_file.read_text(
            encoding="utf-8"
        )

    def test_unwritable_log_file_falls_back_to_stderr(
        self, restore_root_logger, temp_dir: Path
    ) -> None:
        blocker = temp_dir / "not-a-dir"
        blocker.write_text("", encoding="utf-8")

        configure_logging(LoggingConfig(file=blocker / "tlexport.log"))

        handlers = restore_root_logger.handlers
        assert len(handlers) == 1
        assert type(handlers[0]) is logging.StreamHandler

    def test_include_stderr_adds_second_handler(
        self, restore_root_logger, temp_dir: Path
    ) -> None:
        configure_logging(
            LoggingConfig(file=temp_dir / "tlexport.log", include_stderr=True)
        )

        kinds = [type(h).__name__ for h in restore_root_logger.handlers]
        assert kinds == ["RotatingFileHandler", "StreamHandler"]
