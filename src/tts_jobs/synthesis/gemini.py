"""
Gemini speech synthesis over the Generative Language REST API.

Request:
    POST {api_base}/models/{model}:generateContent
    {
      "contents": [{"role": "user", "parts": [{"text": "Please read this text aloud: ..."}]}],
      "generationConfig": {
        "responseModalities": ["AUDIO"],
        "speechConfig": {"voiceConfig": {"prebuiltVoiceConfig": {"voiceName": "Kore"}}}
      }
    }

Response audio is base64 PCM (16-bit, mono, 24 kHz) at
candidates[0].content.parts[0].inlineData.data.
"""
from __future__ import annotations

import base64
import binascii
import time
from typing import Any, Dict, Optional

import httpx

from tts_jobs.core.config import Defaults
from tts_jobs.core.errors import SynthesisError
from tts_jobs.core.logging import verbose, warn
from tts_jobs.synthesis.base import SynthesisClient

PROMPT_PREFIX = "Please read this text aloud: "


class GeminiSynthesisClient(SynthesisClient):
    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = Defaults.SYNTHESIS_MODEL,
        api_base: str = Defaults.SYNTHESIS_API_BASE,
        sample_rate: int = Defaults.SYNTHESIS_SAMPLE_RATE,
        timeout_s: float = Defaults.SYNTHESIS_TIMEOUT_S,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(sample_rate=sample_rate)
        if not api_key:
            raise SynthesisError("GEMINI_API_KEY or GOOGLE_API_KEY is required")
        self.model = model
        self._url = f"{api_base.rstrip('/')}/models/{model}:generateContent"
        self._http = http_client or httpx.Client(timeout=timeout_s)
        self._http.headers["x-goog-api-key"] = api_key

    def _payload(self, text: str, voice_name: str) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": f"{PROMPT_PREFIX}{text}"}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice_name}},
                },
            },
        }

    def synthesize(self, text: str, voice_name: str) -> bytes:
        t0 = time.perf_counter()
        try:
            r = self._http.post(self._url, json=self._payload(text, voice_name))
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPStatusError as e:
            warn(self.logger, "gemini_http_error", status=e.response.status_code)
            raise SynthesisError(
                f"Gemini request failed with HTTP {e.response.status_code}",
                details={"status": e.response.status_code, "body": e.response.text[:500]},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise SynthesisError(f"Gemini request failed: {e}") from e

        pcm = self._extract_audio(data)
        verbose(
            self.logger, "gemini_audio_received",
            chars=len(text), voice=voice_name, pcm_bytes=len(pcm),
            seconds=round(time.perf_counter() - t0, 3),
        )
        return pcm

    @staticmethod
    def _extract_audio(data: Dict[str, Any]) -> bytes:
        try:
            encoded = data["candidates"][0]["content"]["parts"][0]["inlineData"]["data"]
        except (KeyError, IndexError, TypeError):
            encoded = None
        if not encoded:
            raise SynthesisError("No audio data received from Gemini API")
        try:
            return base64.b64decode(encoded)
        except (binascii.Error, ValueError) as e:
            raise SynthesisError("Gemini returned malformed audio data") from e

    def close(self) -> None:
        self._http.close()
