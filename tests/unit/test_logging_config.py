"""Unit tests for logging configuration."""

import json
import logging

import pytest

from hanzilex.utils.logging_config import JsonFormatter, configure_logging, pipeline_stage_logger


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJsonFormatter:
    def test_extra_fields(self):
        record = logging.LogRecord("hanzilex.merge", logging.INFO, __file__, 1, "merged %s", ("爱",), None)
        record.source = "cedict"

        data = json.loads(JsonFormatter().format(record))

        assert data["message"] == "merged 爱"
        assert data["level"] == "INFO"
        assert data["extra"] == {"source": "cedict"}


class TestConfigureLogging:
    def test_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "build.log"
        configure_logging(level="DEBUG", log_file=log_file, log_format="json")

        logging.getLogger("hanzilex.test").info("hello", extra={"stage": "parse"})
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert lines[-1]["message"] == "hello"
        assert lines[-1]["extra"]["stage"] == "parse"

    def test_console_uses_stderr(self, capsys):
        """Stdout stays free for command output."""
        configure_logging(level="INFO", log_format="text")

        logging.getLogger("hanzilex.test").warning("careful")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "WARNING" in captured.err
        assert "hanzilex.test: careful" in captured.err


class TestPipelineStageLogger:
    def test_logs_start_and_completion(self, caplog):
        with caplog.at_level(logging.INFO):
            with pipeline_stage_logger("merge", sources=3) as logger:
                logger.info("working")

        messages = [r.getMessage() for r in caplog.records]
        assert "Starting build stage: merge" in messages
        assert "Completed build stage: merge" in messages
        assert caplog.records[-1].duration_ms >= 0

    def test_failure_is_logged_and_reraised(self, caplog):
        with caplog.at_level(logging.INFO):
            with pytest.raises(RuntimeError):
                with pipeline_stage_logger("parse"):
                    raise RuntimeError("boom")

        failed = caplog.records[-1]
        assert failed.levelno == logging.ERROR
        assert failed.status == "failed"
