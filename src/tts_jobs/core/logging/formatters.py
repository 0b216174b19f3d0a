"""
Log formatters for console and JSON Lines output.

Console (coloured when stdout is a TTY):
    14:30:05 [ INFO  ] (3f2a9c1d) job_completed status=completed 2.412s

JSONL (file):
    {"ts":"2026-01-15T14:30:05+00:00","level":2,"tag":"INFO","message":"job_completed","job_id":"3f2a9c1d...","extra":{...}}

Colours are disabled when stdout is not a TTY, when NO_COLOR is set, or
when TTS_JOBS_NO_COLOR=1.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict


class Colors:
    """ANSI escape codes."""
    RESET = "\033[0m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


TAG_COLORS = {
    "SUCCESS": Colors.BRIGHT_GREEN,
    "FAIL": Colors.BRIGHT_RED,
    "ERROR": Colors.BRIGHT_RED,
    "WARN": Colors.BRIGHT_YELLOW,
    "INFO": Colors.BRIGHT_CYAN,
    "DEBUG": Colors.GRAY,
}

# Job status values get their own colour so lifecycle lines stand out
STATUS_COLORS = {
    "pending": Colors.BLUE,
    "processing": Colors.YELLOW,
    "completed": Colors.GREEN,
    "failed": Colors.RED,
}


def supports_color() -> bool:
    """True when ANSI colours should be emitted on stdout."""
    if os.getenv("TTS_JOBS_NO_COLOR", "0") == "1":
        return False
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    if isatty is None or not isatty():
        return False
    return sys.platform != "win32" or "WT_SESSION" in os.environ


class JsonlFormatter(logging.Formatter):
    """One JSON object per line, for machine consumption."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "job_id": getattr(record, "job_id", "-"),
            "logger": record.name,
        }

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Human-readable console lines.

    Format:
        HH:MM:SS [ TAG   ] (job) message key=value 0.123s
    """

    def __init__(self, use_colors: bool | None = None):
        super().__init__()
        self.use_colors = supports_color() if use_colors is None else use_colors

    def _c(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        job_id = getattr(record, "job_id", "-")

        parts = [
            self._c(ts, Colors.DIM),
            self._c(f"[{tag:^7}]", TAG_COLORS.get(tag.upper(), Colors.WHITE)),
        ]
        if job_id != "-":
            # Short form is enough to correlate lines on a terminal
            parts.append(self._c(f"({job_id[:8]})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for key, value in extra_data.items():
                color = STATUS_COLORS.get(str(value), Colors.DIM) if key == "status" else Colors.DIM
                parts.append(self._c(f"{key}={value}", color))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            if seconds < 1.0:
                time_color = Colors.GREEN
            elif seconds < 10.0:
                time_color = Colors.YELLOW
            else:
                time_color = Colors.RED
            parts.append(self._c(f"{seconds:.3f}s", time_color))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line
