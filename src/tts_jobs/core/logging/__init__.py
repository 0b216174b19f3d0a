"""
tts-jobs Structured Logging.

Numeric levels (1-4), coloured console output, optional JSONL file output
and job-id correlation.

Log Levels:
    1 = MINIMAL  - Startup, shutdown, critical errors only
    2 = NORMAL   - Job lifecycle (default)
    3 = VERBOSE  - Progress markers, admission decisions
    4 = DEBUG    - Queue internals

Configuration:
    export TTS_JOBS_LOG_LEVEL=3
    export TTS_JOBS_LOG_DIR=logs
    export TTS_JOBS_NO_COLOR=1

Usage:
    from tts_jobs.core.logging import get_logger, info, warn, error

    log = get_logger("tts-jobs.scheduler")
    info(log, "job_admitted", active=2, queued=4)
    verbose(log, "job_progress", progress=80)
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .context import (
    get_job_id,
    get_level,
    is_configured,
    read_logging_config,
    set_configured,
    set_job_id,
    set_level,
)
from .formatters import ColoredConsoleFormatter, Colors, JsonlFormatter, supports_color
from .levels import LEVEL_MAP, TRACE, LogLevel, coerce_level


def configure_logging(level: Optional[int | str | LogLevel] = None, force: bool = False) -> None:
    """
    Configure the root logger with console and (optional) JSONL handlers.

    Args:
        level: Log level (1-4, level name, or LogLevel)
        force: Reconfigure even if already configured
    """
    if is_configured() and not force:
        return

    log_config = read_logging_config()

    current_level = coerce_level(level or log_config.get("level", LogLevel.NORMAL))
    set_level(current_level)

    root = logging.getLogger()
    root.setLevel(TRACE)
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(LEVEL_MAP.get(current_level, logging.INFO))
    console.setFormatter(ColoredConsoleFormatter())
    root.addHandler(console)

    log_dir = log_config.get("log_dir")
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(log_dir) / str(log_config.get("jsonl_file", "tts-jobs.jsonl")),
            maxBytes=int(log_config.get("rotate_max_bytes", 10 * 1024 * 1024)),
            backupCount=int(log_config.get("rotate_backup_count", 5)),
            encoding="utf-8",
            delay=True,
        )
        file_handler.setLevel(TRACE)
        file_handler.setFormatter(JsonlFormatter())
        root.addHandler(file_handler)

    set_configured(True)

    if "settings_error" in log_config:
        warn(get_logger("tts-jobs.logging"), "settings_unreadable", error=log_config["settings_error"])


def _log(
    logger: logging.Logger,
    level: int,
    tag: str,
    msg: str,
    numeric_level: int = 2,
    exc_info: bool = False,
    **fields: Any,
) -> None:
    if numeric_level > get_level():
        return

    seconds = fields.pop("seconds", None)
    logger.log(
        level,
        msg,
        exc_info=exc_info,
        extra={
            "tag": tag,
            "job_id": fields.pop("job_id", None) or get_job_id(),
            "seconds": seconds,
            "extra_data": fields or None,
            "numeric_level": numeric_level,
        },
    )


def get_logger(name: str = "tts-jobs") -> logging.Logger:
    """Get a logger instance, configuring logging if needed."""
    configure_logging()
    return logging.getLogger(name)


def info(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 2 (NORMAL)."""
    _log(logger, logging.INFO, "INFO", msg, numeric_level=2, **fields)


def warn(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 2 (NORMAL)."""
    _log(logger, logging.WARNING, "WARN", msg, numeric_level=2, **fields)


def error(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 1 (MINIMAL)."""
    _log(logger, logging.ERROR, "ERROR", msg, numeric_level=1, **fields)


def exception(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 1 (MINIMAL), with the active traceback attached."""
    _log(logger, logging.ERROR, "ERROR", msg, numeric_level=1, exc_info=True, **fields)


def success(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 2 (NORMAL)."""
    _log(logger, logging.INFO, "SUCCESS", msg, numeric_level=2, **fields)


def fail(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 1 (MINIMAL)."""
    _log(logger, logging.ERROR, "FAIL", msg, numeric_level=1, **fields)


def verbose(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 3 (VERBOSE)."""
    _log(logger, logging.DEBUG, "INFO", msg, numeric_level=3, **fields)


def debug(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 4 (DEBUG)."""
    _log(logger, TRACE, "DEBUG", msg, numeric_level=4, **fields)


__all__ = [
    "LogLevel",
    "LEVEL_MAP",
    "coerce_level",
    "Colors",
    "supports_color",
    "JsonlFormatter",
    "ColoredConsoleFormatter",
    "get_job_id",
    "set_job_id",
    "get_level",
    "configure_logging",
    "get_logger",
    "info",
    "warn",
    "error",
    "exception",
    "success",
    "fail",
    "verbose",
    "debug",
]
