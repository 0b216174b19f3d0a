"""
Audio output: WAV container construction and the output directory.
"""
from .storage import AudioStore, StoredFile, filename_stem
from .wav import is_wav, pcm_duration_seconds, pcm_to_wav

__all__ = [
    "AudioStore",
    "StoredFile",
    "filename_stem",
    "is_wav",
    "pcm_duration_seconds",
    "pcm_to_wav",
]
