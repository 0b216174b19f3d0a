"""
API Request/Response Schemas.

Pydantic models for the HTTP endpoints. Field names on the wire are
camelCase (voiceName, jobId, ...) so existing dashboard clients keep
working; the Python attributes are snake_case.

Models:
    TTSRequest: body of POST /tts, /tts/sync, /tts/base64
    JobCreated: response of POST /tts (async)
    JobRetried: response of POST /job/{id}/retry
    FileInfo: response of POST /tts/sync

Content checks (blank text, length, voice) are not done here; they are
done by services.validators so that every entry point rejects the same
inputs with the same error body.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TTSRequest(BaseModel):
    """
    Text-to-speech request.

    Example:
        {"text": "Hello there", "voiceName": "Puck", "filename": "greeting"}
    """
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = Field(
        default=None,
        description="Text to convert (required, up to 32000 characters)",
    )
    voice_name: Optional[str] = Field(
        default=None,
        alias="voiceName",
        description="Voice name (default from settings, usually Kore)",
    )
    filename: Optional[str] = Field(
        default=None,
        description="Output filename hint (auto-generated if omitted)",
    )


class JobCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    job_id: str = Field(..., alias="jobId")
    status: str
    estimated_time: str = Field(..., alias="estimatedTime")


class JobRetried(JobCreated):
    original_job_id: str = Field(..., alias="originalJobId")
    retry_count: int = Field(..., alias="retryCount")


class FileInfo(BaseModel):
    """Result of a synchronous conversion written to the output directory."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    filename: str
    download_url: str = Field(..., alias="downloadUrl")
    duration: float
    file_size: float = Field(..., alias="fileSize", description="Size in KB")
