"""
Correlation context and module-level logging state.

The job id lives in a ContextVar so that every line logged while a job is
being executed (or while a request handles one) carries it. Worker threads
start with a fresh context, so the scheduler sets it explicitly at the top
of each execution.

Environment Variables:
    - TTS_JOBS_LOG_LEVEL: Override log level (1-4 or name)
    - TTS_JOBS_LOG_DIR: Directory for the JSONL log file
    - TTS_JOBS_JSONL_FILE: JSONL filename
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LogLevel

_job_id: ContextVar[str] = ContextVar("job_id", default="-")

_configured: bool = False
_current_level: LogLevel = LogLevel.NORMAL


def get_job_id() -> str:
    """Current job id, or "-" outside a job context."""
    return _job_id.get()


def set_job_id(job_id: str) -> None:
    _job_id.set(job_id)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve logging configuration from the settings file and environment.

    Priority (highest first): TTS_JOBS_* environment variables, the
    `logging` section of the settings file, built-in defaults.
    """
    from tts_jobs.core.config import load_settings_or_default

    cfg: Dict[str, Any] = {}
    try:
        settings = load_settings_or_default()
        cfg.update(settings.raw.get("logging", {}) or {})
    except (OSError, ValueError, yaml.YAMLError) as e:
        # Malformed settings must not prevent logging from coming up
        cfg["settings_error"] = str(e)

    if os.getenv("TTS_JOBS_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_JOBS_LOG_LEVEL"]
    if os.getenv("TTS_JOBS_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_JOBS_LOG_DIR"]
    if os.getenv("TTS_JOBS_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_JOBS_JSONL_FILE"]

    return cfg
