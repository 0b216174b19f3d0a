"""
tts-jobs Services Layer.

Business logic between the HTTP layer and the job core.

Components:
    - job_controller.py: JobController (submit / status / list / cancel / retry)
    - tts_service.py: TTSService (wiring + synchronous conversion)
    - validators.py: Input validation functions
"""
from .job_controller import JobController, estimated_time
from .tts_service import TTSService, get_service, reset_service

__all__ = [
    "JobController",
    "TTSService",
    "estimated_time",
    "get_service",
    "reset_service",
]
