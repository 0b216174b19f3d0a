"""
FastAPI Dependency Injection Providers.

    1. get_settings() - Loads and caches application configuration
    2. get_tts_service() - Returns the singleton TTSService

Both are singletons so every request sees the same JobStore, AdmissionQueue
and Scheduler.

create_app(service=...) overrides get_tts_service through
app.dependency_overrides, which is how tests inject a service built around
a fake synthesis client.

Usage in Route Handlers:
    from fastapi import Depends
    from tts_jobs.api.dependencies import get_tts_service

    @router.get("/job/{job_id}")
    def get_job(job_id: str, service: TTSService = Depends(get_tts_service)):
        return service.controller.get_status(job_id).to_dict()
"""
from __future__ import annotations

from functools import lru_cache

from tts_jobs.core.config import Settings, load_settings_or_default
from tts_jobs.services.tts_service import TTSService, get_service


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Path comes from TTS_JOBS_SETTINGS (default config/settings.yaml); a
    missing file means defaults plus environment overrides.
    """
    return load_settings_or_default()


def get_tts_service() -> TTSService:
    """Get the singleton TTSService, creating it on first use."""
    return get_service(get_settings())
