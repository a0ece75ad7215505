# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for dnntrain.

Every log entry is a single JSON line carrying a timestamp, the level, the
source module and the message. Subsystems attach structured context (epoch,
accuracy, learning rate, ...) through the standard `extra` kwarg and it lands
as top-level keys in the JSON object.

Module loggers are created at import time with `get_logger(__name__)`, before
the CLI knows which level the user asked for. `set_package_log_level` walks
the logger registry afterwards and re-levels every `dnntrain.*` logger.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "dnntrain.training.engine.core",
   "msg": "Epoch complete", "epoch": 3, "valid_accuracy": 0.91}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER_PREFIX = "dnntrain"

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Mandatory fields:
      ts     — ISO 8601 UTC timestamp
      level  — log level name
      module — the logger name
      msg    — the formatted message string

    Extra fields are merged in as-is. Exceptions attached with `exc_info`
    are rendered into an `exc` field so tracebacks stay inside the JSON line.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class _StdoutHandler(logging.StreamHandler):
    """
    StreamHandler that always writes to the current sys.stdout.

    Module loggers are built at import time; re-reading sys.stdout per record
    keeps them pointed at a stream swapped in later (pytest capture,
    contextlib.redirect_stdout). A stream passed to setStream is replaced on
    the next record.
    """

    def __init__(self) -> None:
        super().__init__(stream=sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stdout
        super().emit(record)

    def flush(self) -> None:
        self.acquire()
        try:
            self.stream = sys.stdout
        finally:
            self.release()
        super().flush()


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
) -> logging.Logger:
    """
    Create a structured JSON logger.

    Every module calls this once at the top and keeps the returned instance.
    Calling it again for the same name returns the existing logger without
    stacking a second set of handlers.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  stdout and the file.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    formatter = JsonFormatter()

    stdout_handler = _StdoutHandler()
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if log_file is not None:
        _attach_file_handler(logger, log_file, formatter)

    logger.propagate = False

    return logger


def _attach_file_handler(
    logger: logging.Logger,
    log_file: Path,
    formatter: logging.Formatter,
) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


def set_package_log_level(log_level: str, log_file: Optional[Path] = None) -> int:
    """
    Apply a level (and optionally a log file) to every dnntrain logger.

    Handlers are created without their own level, so the logger level is the
    only filter and changing it here takes effect immediately.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional file every package logger should also write to.

    Returns:
        Number of loggers that were updated.
    """
    level = _resolve_log_level(log_level)
    updated = 0
    for name in list(logging.Logger.manager.loggerDict):
        if name != PACKAGE_LOGGER_PREFIX and not name.startswith(PACKAGE_LOGGER_PREFIX + "."):
            continue
        logger = logging.getLogger(name)
        if not logger.handlers:
            continue
        logger.setLevel(level)
        if log_file is not None and not any(
            isinstance(h, logging.FileHandler) for h in logger.handlers
        ):
            _attach_file_handler(logger, log_file, JsonFormatter())
        updated += 1
    return updated
