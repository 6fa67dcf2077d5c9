# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for Ravensaid.

Every log line is a single JSON object with a timestamp, level, the emitting
module, and the message. Anything passed through `extra=` is merged in as
additional fields, which is how the training loop reports loss and accuracy
and how the scorer reports sentinel results.

Log output goes to stderr. Stdout belongs to the commands themselves: the
`score` and `run` commands print their results there, and mixing JSON log
lines into that stream would make the output useless to pipe.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "ravensaid.scoring.handle", "msg": "Network loaded", ...}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "ravensaid"

# Attributes every LogRecord carries. Anything else on the record came in
# through `extra=` and belongs in the JSON output.
_STANDARD_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "relativeCreated",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "pathname",
        "filename",
        "module",
        "levelno",
        "levelname",
        "processName",
        "process",
        "threadName",
        "thread",
        "message",
        "msecs",
        "taskName",
    }
)


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Mandatory fields:
      ts    : ISO 8601 UTC timestamp
      level : log level name
      module: the logger name (usually the Python module path)
      msg   : the formatted message string

    Exception info, when attached, is rendered into an `exc` field so a
    traceback never spans multiple lines of the log.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Create a structured JSON logger.

    This is the only sanctioned way to get a logger in Ravensaid. Modules
    call it once at import time with their `__name__`.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  the stream and the file.
        stream: Where console output goes. Defaults to sys.stderr, looked up
                at call time so pytest's capture sees it.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    # get_logger runs once per module import and again from tests; only the
    # first call attaches handlers.
    if logger.handlers:
        return logger

    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(stream=stream if stream is not None else sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def configure_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """
    Apply one log level to every Ravensaid logger that already exists.

    Module-level loggers are created at import time with the default INFO
    level, before the CLI has parsed --log-level. This walks the logger
    registry and brings them all in line. When `log_file` is given, each
    logger also gets a file handler for it (once).
    """
    level = _resolve_log_level(log_level)
    formatter = JsonFormatter()
    resolved_file = str(log_file.resolve()) if log_file is not None else None
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    for name in list(logging.Logger.manager.loggerDict):
        if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
            continue
        logger = logging.getLogger(name)
        logger.setLevel(level)

        if resolved_file is None:
            continue
        already_attached = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == resolved_file
            for h in logger.handlers
        )
        if not already_attached:
            file_handler = logging.FileHandler(resolved_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
