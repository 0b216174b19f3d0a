"""
Synthesis client interface and provider factory.

The job core consumes exactly one capability:

    synthesize(text, voice_name) -> bytes   # raw 16-bit mono PCM

and expects SynthesisError on failure. Clients do no concurrency control of
their own; the scheduler bounds how many calls run at once.

Providers:
    - gemini: Google Gemini speech models over REST (GeminiSynthesisClient)
    - silence: offline provider producing silent PCM, for local runs and tests
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from tts_jobs.core.config import GEMINI_VOICES, ServiceConfig
from tts_jobs.core.errors import SynthesisError
from tts_jobs.core.logging import get_logger, info


class SynthesisClient(ABC):
    """
    Base class for speech providers.

    Subclasses implement synthesize(); voices() lists the voice names the
    provider accepts.
    """
    name: str = "base"

    def __init__(self, sample_rate: int):
        self.sample_rate = sample_rate
        self.logger = get_logger(f"tts-jobs.synthesis.{self.name}")

    @abstractmethod
    def synthesize(self, text: str, voice_name: str) -> bytes:
        """
        Produce raw PCM for text spoken in voice_name.

        Raises:
            SynthesisError: If the provider could not produce audio.
        """

    def voices(self) -> Sequence[str]:
        return GEMINI_VOICES

    def close(self) -> None:
        """Release provider resources (HTTP connections, etc.)."""


class SilenceSynthesisClient(SynthesisClient):
    """
    Offline provider: returns silence whose length grows with the text.

    Roughly 60 ms of audio per character, capped at 10 minutes, so that
    durations and file sizes behave like a real provider's.
    """
    name = "silence"

    SECONDS_PER_CHAR = 0.06
    MAX_SECONDS = 600.0

    def synthesize(self, text: str, voice_name: str) -> bytes:
        if not text:
            raise SynthesisError("No text to synthesize")
        seconds = min(self.MAX_SECONDS, max(0.1, len(text) * self.SECONDS_PER_CHAR))
        n_samples = int(seconds * self.sample_rate)
        return b"\x00\x00" * n_samples


def make_client(config: ServiceConfig) -> SynthesisClient:
    """
    Build the configured synthesis client.

    Raises:
        ValueError: Unknown provider name.
        SynthesisError: Provider cannot be initialised (e.g. missing API key).
    """
    provider = config.synthesis.provider.lower()

    if provider == "gemini":
        from tts_jobs.synthesis.gemini import GeminiSynthesisClient

        client: SynthesisClient = GeminiSynthesisClient(
            api_key=config.synthesis.api_key,
            model=config.synthesis.model,
            api_base=config.synthesis.api_base,
            sample_rate=config.synthesis.sample_rate,
            timeout_s=config.synthesis.timeout_s,
        )
    elif provider == "silence":
        client = SilenceSynthesisClient(sample_rate=config.synthesis.sample_rate)
    else:
        raise ValueError(f"Unknown synthesis provider: {config.synthesis.provider}")

    info(get_logger("tts-jobs.synthesis"), "client_ready", provider=provider)
    return client
