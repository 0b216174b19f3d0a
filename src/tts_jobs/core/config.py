"""
Configuration Management for tts-jobs.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration sections
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (TTS_JOBS_MAX_CONCURRENT, GEMINI_API_KEY, etc.)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Example settings.yaml:
    jobs:
      max_concurrent: 3
      max_retries: 3
      poll_interval_s: 5.0

    synthesis:
      provider: gemini
      default_voice: Kore

    storage:
      output_dir: ./uploads

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class ConfigValidationError(Exception):
    """Raised when a configuration value is outside acceptable bounds."""
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Jobs: Background admission queue and scheduler
        - Synthesis: External speech provider
        - Storage: Generated audio files
        - Logging: Log level and formatting
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Jobs (admission queue + scheduler)
    # ─────────────────────────────────────────────────────────────────────────
    JOBS_MAX_CONCURRENT = 3         # Simultaneous synthesis executions
    JOBS_MAX_RETRIES = 3            # Retry chain bound per original failure
    JOBS_POLL_INTERVAL_S = 5.0      # Fallback admission re-check period
    JOBS_MAX_TEXT_CHARS = 32000     # Longest accepted input text

    # ─────────────────────────────────────────────────────────────────────────
    # Synthesis provider
    # ─────────────────────────────────────────────────────────────────────────
    SYNTHESIS_PROVIDER = "gemini"
    SYNTHESIS_MODEL = "gemini-2.5-flash-preview-tts"
    SYNTHESIS_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
    SYNTHESIS_DEFAULT_VOICE = "Kore"
    SYNTHESIS_SAMPLE_RATE = 24000   # Provider returns 16-bit mono PCM at this rate
    SYNTHESIS_TIMEOUT_S = 120.0     # HTTP timeout for one provider call

    # ─────────────────────────────────────────────────────────────────────────
    # Storage
    # ─────────────────────────────────────────────────────────────────────────
    STORAGE_OUTPUT_DIR = "./uploads"

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80
    LOGGING_LEVEL = 2               # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


# Prebuilt voices offered by the Gemini speech models
GEMINI_VOICES = (
    "Zephyr", "Puck", "Charon", "Kore", "Fenrir", "Leda",
    "Orus", "Aoede", "Callirrhoe", "Autonoe", "Enceladus", "Iapetus",
    "Umbriel", "Algieba", "Despina", "Erinome", "Algenib", "Rasalgethi",
    "Laomedeia", "Achernar", "Alnilam", "Schedar", "Gacrux", "Pulcherrima",
    "Achird", "Zubenelgenubi", "Vindemiatrix", "Sadachbia", "Sadaltager", "Sulafat",
)


@dataclass
class JobsConfig:
    """
    Background job configuration.

    max_concurrent bounds how many jobs are in `processing` at once;
    max_retries bounds how long a retry chain can grow.
    """
    max_concurrent: int = Defaults.JOBS_MAX_CONCURRENT
    max_retries: int = Defaults.JOBS_MAX_RETRIES
    poll_interval_s: float = Defaults.JOBS_POLL_INTERVAL_S
    max_text_chars: int = Defaults.JOBS_MAX_TEXT_CHARS


@dataclass
class SynthesisConfig:
    """External speech provider configuration."""
    provider: str = Defaults.SYNTHESIS_PROVIDER
    model: str = Defaults.SYNTHESIS_MODEL
    api_base: str = Defaults.SYNTHESIS_API_BASE
    api_key: Optional[str] = None
    default_voice: str = Defaults.SYNTHESIS_DEFAULT_VOICE
    sample_rate: int = Defaults.SYNTHESIS_SAMPLE_RATE
    timeout_s: float = Defaults.SYNTHESIS_TIMEOUT_S


@dataclass
class StorageConfig:
    """Where generated WAV files are written."""
    output_dir: str = Defaults.STORAGE_OUTPUT_DIR


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Job lifecycle (default)
        3 = VERBOSE: Progress markers, admission decisions
        4 = DEBUG: Queue internals
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ServiceConfig:
    """
    Validated configuration for the whole service.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ServiceConfig.from_settings(settings)
        print(config.jobs.max_concurrent)
    """
    jobs: JobsConfig = field(default_factory=JobsConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ServiceConfig":
        """
        Create ServiceConfig from Settings with validation.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Jobs
        # ─────────────────────────────────────────────────────────────────────
        jobs_raw = raw.get("jobs", {}) or {}
        jobs = JobsConfig(
            max_concurrent=int(jobs_raw.get("max_concurrent", Defaults.JOBS_MAX_CONCURRENT)),
            max_retries=int(jobs_raw.get("max_retries", Defaults.JOBS_MAX_RETRIES)),
            poll_interval_s=float(jobs_raw.get("poll_interval_s", Defaults.JOBS_POLL_INTERVAL_S)),
            max_text_chars=int(jobs_raw.get("max_text_chars", Defaults.JOBS_MAX_TEXT_CHARS)),
        )
        cls._validate_positive("jobs.max_concurrent", jobs.max_concurrent)
        cls._validate_non_negative("jobs.max_retries", jobs.max_retries)
        cls._validate_positive("jobs.poll_interval_s", jobs.poll_interval_s)
        cls._validate_positive("jobs.max_text_chars", jobs.max_text_chars)

        # ─────────────────────────────────────────────────────────────────────
        # Synthesis
        # ─────────────────────────────────────────────────────────────────────
        synth_raw = raw.get("synthesis", {}) or {}
        synthesis = SynthesisConfig(
            provider=str(synth_raw.get("provider", Defaults.SYNTHESIS_PROVIDER)),
            model=str(synth_raw.get("model", Defaults.SYNTHESIS_MODEL)),
            api_base=str(synth_raw.get("api_base", Defaults.SYNTHESIS_API_BASE)).rstrip("/"),
            api_key=synth_raw.get("api_key") or None,
            default_voice=str(synth_raw.get("default_voice", Defaults.SYNTHESIS_DEFAULT_VOICE)),
            sample_rate=int(synth_raw.get("sample_rate", Defaults.SYNTHESIS_SAMPLE_RATE)),
            timeout_s=float(synth_raw.get("timeout_s", Defaults.SYNTHESIS_TIMEOUT_S)),
        )
        cls._validate_positive("synthesis.sample_rate", synthesis.sample_rate)
        cls._validate_positive("synthesis.timeout_s", synthesis.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Storage
        # ─────────────────────────────────────────────────────────────────────
        storage_raw = raw.get("storage", {}) or {}
        storage = StorageConfig(
            output_dir=str(storage_raw.get("output_dir", Defaults.STORAGE_OUTPUT_DIR)),
        )

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(jobs=jobs, synthesis=synthesis, storage=storage, logging=logging_cfg)

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable raw settings loaded from YAML.

    Use get_service_config() for the validated, typed view.
    """
    raw: Dict[str, Any]

    @property
    def voices(self) -> tuple[str, ...]:
        """Known voice set accepted by submit."""
        configured = (self.raw.get("synthesis") or {}).get("voices")
        if configured:
            return tuple(str(v) for v in configured)
        return GEMINI_VOICES

    @property
    def default_voice(self) -> str:
        return (self.raw.get("synthesis") or {}).get("default_voice", Defaults.SYNTHESIS_DEFAULT_VOICE)

    @property
    def output_dir(self) -> str:
        return (self.raw.get("storage") or {}).get("output_dir", Defaults.STORAGE_OUTPUT_DIR)

    def get_service_config(self) -> ServiceConfig:
        """
        Get validated ServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ServiceConfig.from_settings(self)


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return raw[name] as a dict, replacing an empty (None) YAML section."""
    if not isinstance(raw.get(name), dict):
        raw[name] = {}
    return raw[name]


def _apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay environment variables onto a raw settings dict."""
    max_concurrent = os.getenv("TTS_JOBS_MAX_CONCURRENT")
    if max_concurrent:
        _section(raw, "jobs")["max_concurrent"] = int(max_concurrent)

    output_dir = os.getenv("TTS_JOBS_OUTPUT_DIR")
    if output_dir:
        _section(raw, "storage")["output_dir"] = output_dir

    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if api_key:
        _section(raw, "synthesis")["api_key"] = api_key

    return raw


def load_settings(path: str = "config/settings.yaml") -> Settings:
    """
    Load settings from a YAML configuration file.

    Environment variable overrides:
        - TTS_JOBS_MAX_CONCURRENT: jobs.max_concurrent
        - TTS_JOBS_OUTPUT_DIR: storage.output_dir
        - GEMINI_API_KEY / GOOGLE_API_KEY: synthesis.api_key

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=_apply_env_overrides(raw))


def load_settings_or_default(path: Optional[str] = None) -> Settings:
    """Like load_settings(), but falls back to defaults when the file is absent."""
    path = path or os.getenv("TTS_JOBS_SETTINGS", "config/settings.yaml")
    try:
        return load_settings(path)
    except FileNotFoundError:
        return Settings(raw=_apply_env_overrides({}))
