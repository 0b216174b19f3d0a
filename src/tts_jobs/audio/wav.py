"""
WAV container helpers.

Providers hand back headerless PCM (16-bit little-endian, mono). These
helpers wrap it in a RIFF/WAVE container, estimate its duration and check
that a file really is a WAV.

Dependencies:
    - numpy: sample buffer
    - soundfile: WAV writing (libsndfile)
"""
from __future__ import annotations

import io

import numpy as np
import soundfile as sf

BYTES_PER_SAMPLE = 2  # PCM 16-bit


def pcm_to_wav(pcm: bytes, sample_rate: int, channels: int = 1) -> bytes:
    """
    Wrap raw 16-bit PCM in a WAV container.

    A trailing odd byte (half a sample) is dropped.
    """
    usable = len(pcm) - (len(pcm) % (BYTES_PER_SAMPLE * channels))
    samples = np.frombuffer(pcm[:usable], dtype="<i2")
    if channels > 1:
        samples = samples.reshape(-1, channels)

    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def pcm_duration_seconds(n_bytes: int, sample_rate: int, channels: int = 1) -> float:
    """Duration of n_bytes of 16-bit PCM, rounded to 0.1 s."""
    if sample_rate <= 0:
        return 0.0
    return round(n_bytes / (sample_rate * channels * BYTES_PER_SAMPLE), 1)


def is_wav(data: bytes) -> bool:
    """True when data starts with a RIFF/WAVE header."""
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WAVE"
