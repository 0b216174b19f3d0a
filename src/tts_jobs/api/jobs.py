"""
Background job routes.

Endpoints:
    POST   /tts               - Create a job (202, returns immediately)
    GET    /job/{job_id}      - Job status
    GET    /jobs              - List jobs, newest first (?status=&limit=)
    DELETE /job/{job_id}      - Cancel a pending job
    POST   /job/{job_id}/retry - Retry a failed job as a new job

Status codes:
    VALIDATION_ERROR -> 400, NOT_FOUND -> 404, INVALID_STATE -> 409,
    RETRY_LIMIT -> 429, unexpected -> 500.

Example:
    $ curl -X POST localhost:3000/tts -H 'Content-Type: application/json' \\
        -d '{"text": "Hello there", "voiceName": "Puck"}'
    {"success": true, "jobId": "3f2a...", "status": "pending", "estimatedTime": "~5s", ...}

    $ curl localhost:3000/job/3f2a...
    {"success": true, "job": {"id": "3f2a...", "status": "processing", "progress": 25, ...}}
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from tts_jobs.api.dependencies import get_tts_service
from tts_jobs.api.errors import error_response, internal_error
from tts_jobs.api.schemas import JobCreated, JobRetried, TTSRequest
from tts_jobs.core.errors import JobError
from tts_jobs.services.job_controller import estimated_time
from tts_jobs.services.tts_service import TTSService

router = APIRouter()

DEFAULT_LIST_LIMIT = 50


@router.post("/tts", status_code=202)
def create_job(req: TTSRequest, service: TTSService = Depends(get_tts_service)):
    """Queue a conversion and return its job id without waiting."""
    try:
        job_id = service.controller.submit(
            req.text,
            req.voice_name or service.default_voice,
            req.filename,
        )
    except JobError as e:
        return error_response(e)
    except Exception:
        return internal_error("create_job")

    body = JobCreated(
        message="TTS job created successfully",
        job_id=job_id,
        status="pending",
        estimated_time=estimated_time(req.text or ""),
    )
    return JSONResponse(status_code=202, content=body.model_dump(by_alias=True))


@router.get("/job/{job_id}")
def get_job(job_id: str, service: TTSService = Depends(get_tts_service)):
    try:
        job = service.controller.get_status(job_id)
    except JobError as e:
        return error_response(e)
    return {"success": True, "job": job.to_dict()}


@router.get("/jobs")
def list_jobs(
    status: Optional[str] = Query(default=None),
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=0),
    service: TTSService = Depends(get_tts_service),
):
    try:
        jobs = service.controller.list_jobs(status=status, limit=limit)
    except JobError as e:
        return error_response(e)
    return {
        "success": True,
        "jobs": [j.to_dict() for j in jobs],
        "count": len(jobs),
        "queueLength": len(service.queue),
    }


@router.delete("/job/{job_id}")
def cancel_job(job_id: str, service: TTSService = Depends(get_tts_service)):
    """Cancel a job that has not started yet."""
    try:
        job = service.controller.cancel(job_id)
    except JobError as e:
        return error_response(e)
    except Exception:
        return internal_error("cancel_job")
    return {"success": True, "message": "Job cancelled successfully", "job": job.to_dict()}


@router.post("/job/{job_id}/retry", status_code=202)
def retry_job(job_id: str, service: TTSService = Depends(get_tts_service)):
    """Queue a new job repeating a failed one."""
    try:
        job = service.controller.retry(job_id)
    except JobError as e:
        return error_response(e)
    except Exception:
        return internal_error("retry_job")

    body = JobRetried(
        message="Job retry created successfully",
        job_id=job.id,
        original_job_id=job.chain_root_id,
        retry_count=job.retry_count,
        status="pending",
        estimated_time=estimated_time(job.text),
    )
    return JSONResponse(status_code=202, content=body.model_dump(by_alias=True))
