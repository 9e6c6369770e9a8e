"""Logging setup for the lexicon build and the sampling CLI.

Console output goes to stderr so that commands printing JSON to stdout stay
machine-readable. ``LOG_FORMAT=json`` switches every handler to one JSON
object per line, with ``extra=`` fields nested under ``"extra"``.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from constants import LOG_FORMAT

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(
    level: Union[str, int] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = LOG_FORMAT,
) -> None:
    """Install stderr (and optionally file) handlers on the root logger.

    Args:
        level: Level name or number
        log_file: Also append records to this file
        log_format: "text" or "json"
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S")

    handlers: list = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


@contextmanager
def pipeline_stage_logger(stage_name: str, **context):
    """Log the start, end and duration of one build stage.

    Yields the stage's logger. A failing stage is logged with its error and
    the exception propagates.

    Example:
        >>> with pipeline_stage_logger("merge", sources=4) as logger:
        ...     logger.info("Merging records")
    """
    logger = logging.getLogger(f"hanzilex.{stage_name}")
    fields = {"stage": stage_name, **context}
    logger.info(f"Starting build stage: {stage_name}", extra={**fields, "status": "started"})
    started = time.perf_counter()

    def elapsed_ms() -> float:
        return round((time.perf_counter() - started) * 1000, 2)

    try:
        yield logger
    except Exception as e:
        logger.error(
            f"Failed build stage: {stage_name}",
            extra={**fields, "status": "failed", "duration_ms": elapsed_ms(), "error": str(e)[:200]},
            exc_info=True,
        )
        raise
    logger.info(
        f"Completed build stage: {stage_name}",
        extra={**fields, "status": "completed", "duration_ms": elapsed_ms()},
    )
