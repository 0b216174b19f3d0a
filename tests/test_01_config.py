"""
Tests for configuration validation and defaults.

Tests cover:
- ServiceConfig.from_settings() - all sections
- Defaults class values
- ConfigValidationError on invalid values
- String log level coercion ("DEBUG" -> 4)
- Missing sections use defaults
- Settings properties and environment overrides
"""

import pytest

from tts_jobs.core.config import (
    GEMINI_VOICES,
    ConfigValidationError,
    Defaults,
    JobsConfig,
    ServiceConfig,
    Settings,
    load_settings,
    load_settings_or_default,
)


class TestDefaults:
    """Tests for Defaults class values."""

    def test_jobs_defaults(self):
        """Defaults should have correct job values."""
        assert Defaults.JOBS_MAX_CONCURRENT == 3
        assert Defaults.JOBS_MAX_RETRIES == 3
        assert Defaults.JOBS_POLL_INTERVAL_S == 5.0
        assert Defaults.JOBS_MAX_TEXT_CHARS == 32000

    def test_synthesis_defaults(self):
        assert Defaults.SYNTHESIS_PROVIDER == "gemini"
        assert Defaults.SYNTHESIS_DEFAULT_VOICE == "Kore"
        assert Defaults.SYNTHESIS_SAMPLE_RATE == 24000

    def test_storage_and_logging_defaults(self):
        assert Defaults.STORAGE_OUTPUT_DIR == "./uploads"
        assert Defaults.LOGGING_LEVEL == 2

    def test_voice_set(self):
        """Thirty prebuilt voices, including the default."""
        assert len(GEMINI_VOICES) == 30
        assert len(set(GEMINI_VOICES)) == 30
        assert "Kore" in GEMINI_VOICES
        assert "Puck" in GEMINI_VOICES


class TestServiceConfigFromSettings:
    """Tests for ServiceConfig.from_settings()."""

    def test_empty_settings_use_defaults(self):
        config = ServiceConfig.from_settings(Settings(raw={}))
        assert config.jobs == JobsConfig()
        assert config.synthesis.provider == "gemini"
        assert config.synthesis.api_key is None
        assert config.storage.output_dir == "./uploads"
        assert config.logging.level == 2

    def test_values_read_from_sections(self):
        settings = Settings(raw={
            "jobs": {"max_concurrent": 5, "max_retries": 1, "poll_interval_s": 0.5},
            "synthesis": {"provider": "silence", "sample_rate": 16000, "api_base": "http://x/"},
            "storage": {"output_dir": "/tmp/out"},
        })
        config = settings.get_service_config()
        assert config.jobs.max_concurrent == 5
        assert config.jobs.max_retries == 1
        assert config.jobs.poll_interval_s == 0.5
        assert config.synthesis.provider == "silence"
        assert config.synthesis.sample_rate == 16000
        assert config.synthesis.api_base == "http://x"
        assert config.storage.output_dir == "/tmp/out"

    def test_zero_concurrency_rejected(self):
        with pytest.raises(ConfigValidationError, match="max_concurrent"):
            ServiceConfig.from_settings(Settings(raw={"jobs": {"max_concurrent": 0}}))

    def test_negative_retries_rejected(self):
        with pytest.raises(ConfigValidationError, match="max_retries"):
            ServiceConfig.from_settings(Settings(raw={"jobs": {"max_retries": -1}}))

    def test_zero_retries_allowed(self):
        config = ServiceConfig.from_settings(Settings(raw={"jobs": {"max_retries": 0}}))
        assert config.jobs.max_retries == 0

    def test_log_level_out_of_range(self):
        with pytest.raises(ConfigValidationError, match="logging.level"):
            ServiceConfig.from_settings(Settings(raw={"logging": {"level": 7}}))

    def test_string_log_level(self):
        config = ServiceConfig.from_settings(Settings(raw={"logging": {"level": "DEBUG"}}))
        assert config.logging.level == 4


class TestSettings:
    """Settings properties and loading."""

    def test_voices_default_to_gemini(self):
        assert Settings(raw={}).voices == GEMINI_VOICES

    def test_voices_from_config(self):
        settings = Settings(raw={"synthesis": {"voices": ["Kore", "Puck"]}})
        assert settings.voices == ("Kore", "Puck")

    def test_default_voice(self):
        assert Settings(raw={}).default_voice == "Kore"

    def test_load_settings_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "nope.yaml"))

    def test_load_settings_or_default_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        settings = load_settings_or_default(str(tmp_path / "nope.yaml"))
        assert settings.get_service_config().jobs.max_concurrent == 3

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("jobs:\n  max_concurrent: 7\nsynthesis:\n  provider: silence\n", encoding="utf-8")
        config = load_settings(str(path)).get_service_config()
        assert config.jobs.max_concurrent == 7
        assert config.synthesis.provider == "silence"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("jobs:\n  max_concurrent: 7\n", encoding="utf-8")
        monkeypatch.setenv("TTS_JOBS_MAX_CONCURRENT", "2")
        monkeypatch.setenv("TTS_JOBS_OUTPUT_DIR", str(tmp_path / "wav"))
        monkeypatch.setenv("GEMINI_API_KEY", "secret")

        config = load_settings(str(path)).get_service_config()
        assert config.jobs.max_concurrent == 2
        assert config.storage.output_dir == str(tmp_path / "wav")
        assert config.synthesis.api_key == "secret"

    def test_empty_sections(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        path = tmp_path / "settings.yaml"
        path.write_text("jobs:\nsynthesis:\nstorage:\nlogging:\n", encoding="utf-8")

        settings = load_settings(str(path))
        assert settings.voices == GEMINI_VOICES
        assert settings.default_voice == "Kore"
        assert settings.output_dir == Defaults.STORAGE_OUTPUT_DIR
        assert settings.get_service_config().jobs.max_concurrent == 3

    def test_env_overrides_fill_empty_sections(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("jobs:\nsynthesis:\nstorage:\n", encoding="utf-8")
        monkeypatch.setenv("TTS_JOBS_MAX_CONCURRENT", "4")
        monkeypatch.setenv("TTS_JOBS_OUTPUT_DIR", str(tmp_path / "wav"))
        monkeypatch.setenv("GEMINI_API_KEY", "secret")

        settings = load_settings(str(path))
        assert settings.output_dir == str(tmp_path / "wav")
        config = settings.get_service_config()
        assert config.jobs.max_concurrent == 4
        assert config.synthesis.api_key == "secret"

    def test_repository_settings_file_is_valid(self):
        from pathlib import Path

        path = Path(__file__).parent.parent / "config" / "settings.yaml"
        config = load_settings(str(path)).get_service_config()
        assert config.jobs.max_concurrent == 3
        assert config.synthesis.default_voice == "Kore"
