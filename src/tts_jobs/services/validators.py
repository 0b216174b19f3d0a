"""
Input Validation for job submission and the synchronous path.

Validation happens before a job exists, so a rejected request leaves no
trace in the JobStore or the AdmissionQueue.

Validation Rules:
    - Text: required, not whitespace-only, at most max_length characters
      (measured on the text as submitted)
    - Voice: must be one of the known voices
    - Filename hint: optional, max 200 characters

Error Handling:
    All functions raise tts_jobs.core.errors.ValidationError. The reason is
    carried in details["reason"]:
        - {FIELD}_REQUIRED: Missing required field
        - {FIELD}_TOO_LONG: Exceeds max length
        - {FIELD}_UNKNOWN: Not in the allowed set

Usage:
    from tts_jobs.services.validators import validate_text, validate_voice

    text = validate_text(request.text, max_length=32000)
    voice = validate_voice(request.voice_name, settings.voices)
"""
from __future__ import annotations

from typing import Optional, Sequence

from tts_jobs.core.config import Defaults
from tts_jobs.core.errors import ValidationError
from tts_jobs.core.logging import get_logger, verbose

_LOG = get_logger("tts-jobs.validators")

MAX_FILENAME_HINT_CHARS = 200


def validate_text(text: Optional[str], max_length: int = Defaults.JOBS_MAX_TEXT_CHARS) -> str:
    """
    Validate text input.

    The text is returned unchanged; surrounding whitespace is part of what
    the caller asked to have read aloud.

    Raises:
        ValidationError: Missing, blank or too long.
    """
    if text is None or not text.strip():
        raise ValidationError("Text is required", details={"reason": "TEXT_REQUIRED"})

    if len(text) > max_length:
        verbose(_LOG, "text_rejected", length=len(text), max_length=max_length)
        raise ValidationError(
            f"Text too long. Maximum {max_length} characters allowed.",
            details={"reason": "TEXT_TOO_LONG", "length": len(text), "max_length": max_length},
        )

    return text


def validate_voice(voice_name: Optional[str], voices: Sequence[str]) -> str:
    """
    Check that voice_name is a known voice.

    Raises:
        ValidationError: Missing or unknown voice.
    """
    if not voice_name:
        raise ValidationError("Voice name is required", details={"reason": "VOICE_REQUIRED"})

    if voice_name not in voices:
        raise ValidationError(
            f"Invalid voice name. Available voices: {', '.join(voices)}",
            details={"reason": "VOICE_UNKNOWN", "voice": voice_name},
        )

    return voice_name


def validate_filename_hint(filename: Optional[str]) -> Optional[str]:
    """Blank hints become None; overly long ones are rejected."""
    if filename is None or not filename.strip():
        return None
    if len(filename) > MAX_FILENAME_HINT_CHARS:
        raise ValidationError(
            f"Filename too long. Maximum {MAX_FILENAME_HINT_CHARS} characters allowed.",
            details={"reason": "FILENAME_TOO_LONG"},
        )
    return filename.strip()
