"""Tests for pyproject.toml and package installation."""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

PYPROJECT = Path(__file__).parent.parent / "pyproject.toml"


class TestPackageInstallation:
    """Test that the package is properly installed."""

    def test_version_defined(self):
        import tts_jobs

        assert isinstance(tts_jobs.__version__, str)
        assert len(tts_jobs.__version__) > 0

    def test_core_modules_importable(self):
        from tts_jobs.api import jobs, routes, schemas
        from tts_jobs.core import config, errors, logging, metrics
        from tts_jobs.jobs import queue, scheduler, store
        from tts_jobs.services import job_controller

        for module in (jobs, routes, schemas, config, errors, logging, metrics,
                       queue, scheduler, store, job_controller):
            assert module is not None


class TestCLIEntryPoint:
    """Test the CLI entry point."""

    def test_cli_help_exits_zero(self):
        result = subprocess.run(
            [sys.executable, "-m", "tts_jobs.cli", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "tts-jobs CLI" in result.stdout


class TestPyprojectToml:
    """Test pyproject.toml configuration."""

    @pytest.fixture
    def data(self):
        tomllib = pytest.importorskip("tomllib")  # Python 3.11+
        return tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))

    def test_name(self, data):
        assert data["project"]["name"] == "tts-jobs"

    def test_dependencies(self, data):
        deps = data["project"]["dependencies"]
        names = [d.split(">=")[0].split("[")[0] for d in deps]
        for required in ("fastapi", "uvicorn", "pydantic", "pyyaml", "httpx",
                         "numpy", "soundfile", "prometheus_client"):
            assert required in names

    def test_scripts(self, data):
        scripts = data["project"]["scripts"]
        assert scripts["tts-jobs"] == "tts_jobs.cli:main"
        assert scripts["tts-jobs-server"] == "tts_jobs.main:run"
