"""Logging for reelcut runs.

Everything logs under the ``reelcut`` logger. The CLI verbosity flags pick
the level; records carry the pipeline fields (run, video, segment, cut,
stage) they were logged with, rendered as ``key=value`` pairs in text mode
or under ``context`` in JSON mode.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any, MutableMapping

ROOT_LOGGER = "reelcut"

# Attribute names of a bare record; the rest were attached by the caller.
_BUILTIN_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_ANSI = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[92m",
    logging.WARNING: "\033[93m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: "\033[91m",
}
_DIM = "\033[90m"
_RESET = "\033[0m"


class LogLevel(IntEnum):
    """Verbosity selected on the command line."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3

    @property
    def stdlib_level(self) -> int:
        return {
            LogLevel.QUIET: logging.ERROR,
            LogLevel.NORMAL: logging.WARNING,
            LogLevel.VERBOSE: logging.INFO,
            LogLevel.DEBUG: logging.DEBUG,
        }[self]


@dataclass
class LogConfig:
    """Logging settings.

    Attributes:
        level: Console verbosity
        log_file: Also write every record (DEBUG and up) here
        json_format: One JSON object per line instead of text
        include_timestamp: Prefix records with the local time
        include_context: Render the pipeline fields attached to records
        color: ANSI colors on the console when it is a terminal
    """

    level: LogLevel = LogLevel.NORMAL
    log_file: Path | None = None
    json_format: bool = False
    include_timestamp: bool = True
    include_context: bool = True
    color: bool = True


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached to ``record`` through ``extra`` or a ``LogContext``."""
    return {key: value for key, value in vars(record).items() if key not in _BUILTIN_FIELDS}


class StructuredFormatter(logging.Formatter):
    """Render records as aligned text lines or as JSON objects."""

    def __init__(
        self,
        json_format: bool = False,
        include_timestamp: bool = True,
        include_context: bool = True,
        color: bool = True,
    ):
        super().__init__()
        self.json_format = json_format
        self.include_timestamp = include_timestamp
        self.include_context = include_context
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        line = self._as_json(record) if self.json_format else self._as_text(record)
        if record.exc_info and not self.json_format:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _as_json(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_timestamp:
            payload["timestamp"] = datetime.fromtimestamp(record.created).isoformat()
        context = record_context(record) if self.include_context else {}
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)

    def _as_text(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.color:
            level = f"{_ANSI.get(record.levelno, '')}{level}{_RESET}"

        line = f"{level} {record.name}: {record.getMessage()}"
        if self.include_timestamp:
            stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
            line = f"{stamp} {line}"

        context = record_context(record) if self.include_context else {}
        if context:
            fields = " ".join(f"{key}={value}" for key, value in context.items())
            line = f"{line}  {_DIM}{fields}{_RESET}" if self.color else f"{line}  {fields}"
        return line


class BoundLogger(logging.LoggerAdapter):
    """Adapter that adds fixed fields to every record it emits."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    def with_context(self, **context: Any) -> "BoundLogger":
        return BoundLogger(self.logger, {**self.extra, **context})


class ReelcutLogger(logging.Logger):
    """Logger class installed for the ``reelcut`` hierarchy."""

    def with_context(self, **context: Any) -> BoundLogger:
        """Return a view of this logger that tags records with ``context``."""
        return BoundLogger(self, context)


_settings = LogConfig()
_configured = False


def _handler(stream_or_path: Any, formatter: StructuredFormatter, level: int) -> logging.Handler:
    if isinstance(stream_or_path, Path):
        stream_or_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(stream_or_path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(stream_or_path)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: LogConfig | None = None) -> None:
    """(Re)build the handlers of the ``reelcut`` logger from ``config``."""
    global _settings, _configured
    if config is not None:
        _settings = config

    level = _settings.level.stdlib_level
    root = logging.getLogger(ROOT_LOGGER)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(logging.DEBUG if _settings.log_file else level)
    root.propagate = True

    console = StructuredFormatter(
        json_format=_settings.json_format,
        include_timestamp=_settings.include_timestamp,
        include_context=_settings.include_context,
        color=_settings.color and sys.stderr.isatty(),
    )
    root.addHandler(_handler(sys.stderr, console, level))

    if _settings.log_file:
        to_file = StructuredFormatter(json_format=_settings.json_format, color=False)
        root.addHandler(_handler(Path(_settings.log_file), to_file, logging.DEBUG))

    _configured = True


def get_logger(name: str) -> ReelcutLogger:
    """Return the ``ReelcutLogger`` called ``name``, configuring on first use."""
    if not _configured:
        configure_logging()

    manager = logging.Logger.manager
    existing = manager.loggerDict.get(name)
    if isinstance(existing, ReelcutLogger):
        return existing
    if isinstance(existing, logging.Logger):
        # Created by someone else before us; hand back a twin wired the same way.
        twin = ReelcutLogger(name, existing.level)
        twin.parent = existing.parent
        twin.handlers = existing.handlers
        return twin

    previous = manager.loggerClass
    manager.setLoggerClass(ReelcutLogger)
    try:
        return logging.getLogger(name)  # type: ignore[return-value]
    finally:
        manager.loggerClass = previous


def set_verbosity(level: LogLevel) -> None:
    """Change the console verbosity."""
    _settings.level = level
    configure_logging()


def enable_file_logging(log_file: Path) -> None:
    """Additionally write all records to ``log_file``."""
    _settings.log_file = Path(log_file)
    configure_logging()


class LogContext:
    """Attach fields to every record created while the block runs.

    Applies to all threads, so records from the per-video worker pool are
    tagged too::

        with LogContext(run="20240101-120000"):
            processor.process_channel()

    Field names must not be reused in ``extra`` inside the block.
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._previous: Any = None

    def __enter__(self) -> "LogContext":
        previous = self._previous = logging.getLogRecordFactory()
        fields = self.fields

        def make_record(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = previous(*args, **kwargs)
            record.__dict__.update(fields)
            return record

        logging.setLogRecordFactory(make_record)
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._previous is not None:
            logging.setLogRecordFactory(self._previous)
            self._previous = None


def log_stage_failed(logger: logging.Logger | logging.LoggerAdapter, stage: str, error: Exception, **context: Any) -> None:
    """Log ``error`` as the failure of pipeline ``stage``.

    Args:
        logger: Logger or bound logger to use
        stage: download, segment, cut, render, metadata, upload...
        error: What went wrong
        **context: Extra fields for the record
    """
    logger.error(
        "%s failed: %s",
        stage,
        error,
        extra={**context, "stage": stage, "error_type": type(error).__name__},
    )
