"""
Error responses shared by the routers.

    {"success": false, "error": "<ERROR_CODE>", "message": "...", "details": {...}}

The status code comes from core.errors.HTTP_STATUS.
"""
from __future__ import annotations

from fastapi.responses import JSONResponse

from tts_jobs.core.errors import HTTP_STATUS, ErrorCode, JobError
from tts_jobs.core.logging import exception, get_logger

_LOG = get_logger("tts-jobs.api")


def error_response(error: JobError) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_STATUS.get(error.code, 500),
        content=error.to_dict(),
    )


def internal_error(where: str) -> JSONResponse:
    """500 for unexpected exceptions. Logs the traceback, hides it from the client."""
    exception(_LOG, "unhandled_error", where=where)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": ErrorCode.INTERNAL_ERROR,
            "message": "Internal server error",
        },
    )
