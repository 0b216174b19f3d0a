"""
Synchronous and informational API routes.

Endpoints:
    GET  /                     - API documentation
    GET  /health               - Health check with scheduler load
    GET  /voices               - Available voices
    POST /tts/sync             - Convert and write a WAV file (blocks)
    POST /tts/base64           - Convert and return the WAV inline (blocks)
    GET  /files                - Generated WAV files, newest first
    GET  /download/{filename}  - Download one generated file
    GET  /metrics              - Prometheus metrics

Job endpoints (POST /tts, /job/..., /jobs) live in api/jobs.py.

Error Handling:
    {"success": false, "error": "<ERROR_CODE>", "message": "..."}
    VALIDATION_ERROR -> 400, NOT_FOUND -> 404, SYNTHESIS_FAILED -> 500,
    anything unexpected -> 500 INTERNAL_ERROR.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from fastapi.responses import FileResponse

from tts_jobs import __version__
from tts_jobs.api.dependencies import get_tts_service
from tts_jobs.api.errors import error_response, internal_error
from tts_jobs.api.schemas import FileInfo, TTSRequest
from tts_jobs.core.errors import JobError
from tts_jobs.services.tts_service import TTSService

router = APIRouter()


@router.get("/")
def index():
    """Self-describing endpoint list."""
    return {
        "name": "tts-jobs",
        "version": __version__,
        "description": "Text-to-speech API with a background job queue",
        "endpoints": {
            "GET /": "API documentation",
            "GET /health": "Health check",
            "GET /voices": "Get available voices",
            "POST /tts": "Create a background conversion job",
            "POST /tts/sync": "Convert text to speech (returns file info)",
            "POST /tts/base64": "Convert text to speech (returns base64 audio)",
            "GET /job/{id}": "Job status",
            "GET /jobs": "List jobs (?status=&limit=)",
            "DELETE /job/{id}": "Cancel a pending job",
            "POST /job/{id}/retry": "Retry a failed job",
            "GET /download/{filename}": "Download audio file",
            "GET /files": "List generated audio files",
            "GET /metrics": "Prometheus metrics",
        },
        "usage": {
            "POST /tts": {
                "body": {
                    "text": "Text to convert to speech (required)",
                    "voiceName": "Voice name (optional, default: Kore)",
                    "filename": "Output filename (optional, auto-generated if not provided)",
                },
            },
        },
    }


@router.get("/health")
def health(service: TTSService = Depends(get_tts_service)):
    """Liveness plus current scheduler load."""
    return service.get_health_info()


@router.get("/voices")
def voices(service: TTSService = Depends(get_tts_service)):
    names = service.controller.voices()
    return {"success": True, "voices": names, "count": len(names)}


@router.post("/tts/sync")
def tts_sync(req: TTSRequest, service: TTSService = Depends(get_tts_service)):
    """
    Convert text and write the WAV to the output directory before replying.

    Does not use the job queue.
    """
    try:
        result = service.synthesize_to_file(req.text, req.voice_name, req.filename)
    except JobError as e:
        return error_response(e)
    except Exception:
        return internal_error("tts_sync")

    return FileInfo(
        message="Text-to-speech conversion completed successfully",
        filename=result.filename,
        download_url=result.download_url,
        duration=result.duration_seconds,
        file_size=result.size_kb,
    ).model_dump(by_alias=True)


@router.post("/tts/base64")
def tts_base64(req: TTSRequest, service: TTSService = Depends(get_tts_service)):
    """Convert text and return the WAV base64-encoded; nothing is written."""
    try:
        audio = service.synthesize_base64(req.text, req.voice_name)
    except JobError as e:
        return error_response(e)
    except Exception:
        return internal_error("tts_base64")

    return {
        "success": True,
        "message": "Text-to-speech conversion completed successfully",
        **audio,
    }


@router.get("/files")
def files(service: TTSService = Depends(get_tts_service)):
    try:
        stored = service.audio_store.list_files()
    except OSError:
        return internal_error("files")
    return {"success": True, "files": [f.to_dict() for f in stored], "count": len(stored)}


@router.get("/download/{filename}")
def download(filename: str, service: TTSService = Depends(get_tts_service)):
    """Send one generated WAV. Names with path components are rejected."""
    try:
        path = service.audio_store.resolve(filename)
    except JobError as e:
        return error_response(e)
    return FileResponse(path, media_type="audio/wav", filename=filename)


@router.get("/metrics")
def prometheus_metrics(service: TTSService = Depends(get_tts_service)):
    content, content_type = service.metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
