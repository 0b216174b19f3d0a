"""
Output Storage for Generated Audio.

Completed jobs and the synchronous endpoint write WAV files into a single
flat output directory:

    {output_dir}/
        greeting_1760781234567.wav     # from filename hint "greeting.txt"
        tts_1760781239001.wav          # no hint

File names are {stem}_{unix_ms}.wav. If two writes land on the same
millisecond a numeric suffix is appended; files are created with exclusive
mode so an existing file is never overwritten.

Usage:
    store = AudioStore("./uploads", sample_rate=24000)
    result = store.save_pcm(pcm_bytes, filename_hint="greeting")
    path = store.resolve(result.filename)
"""
from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from tts_jobs.audio.wav import pcm_duration_seconds, pcm_to_wav
from tts_jobs.core.errors import NotFoundError, ValidationError
from tts_jobs.core.logging import get_logger, verbose
from tts_jobs.jobs.models import JobResult

_LOG = get_logger("tts-jobs.storage")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredFile:
    """A WAV file present in the output directory."""
    filename: str
    size_bytes: int
    created: datetime

    @property
    def download_url(self) -> str:
        return f"/download/{self.filename}"

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "size": round(self.size_bytes / 1024, 1),
            "created": self.created.isoformat(),
            "downloadUrl": self.download_url,
        }


def filename_stem(hint: Optional[str]) -> str:
    """
    Turn a user-supplied name hint into a safe file stem.

    The extension is dropped and anything outside [A-Za-z0-9._-] becomes
    "_". Empty or missing hints give "tts".
    """
    if not hint:
        return "tts"
    name = Path(hint.replace("\\", "/")).name
    stem = re.sub(r"\.[^.]+$", "", name)
    stem = _UNSAFE_CHARS.sub("_", stem).strip("._")
    return stem[:100] or "tts"


class AudioStore:
    """Writes, lists and resolves WAV files in one output directory."""

    def __init__(self, output_dir: str | Path, sample_rate: int):
        self.output_dir = Path(output_dir)
        self.sample_rate = sample_rate
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _write_exclusive(self, stem: str, data: bytes) -> Path:
        millis = int(time.time() * 1000)
        candidate = self.output_dir / f"{stem}_{millis}.wav"
        n = 1
        while True:
            try:
                with candidate.open("xb") as f:
                    f.write(data)
                return candidate
            except FileExistsError:
                candidate = self.output_dir / f"{stem}_{millis}_{n}.wav"
                n += 1

    def save_pcm(self, pcm: bytes, filename_hint: Optional[str] = None) -> JobResult:
        """Wrap PCM in a WAV container, write it, and describe the result."""
        wav = pcm_to_wav(pcm, self.sample_rate)
        path = self._write_exclusive(filename_stem(filename_hint), wav)
        result = JobResult(
            filename=path.name,
            size_bytes=len(wav),
            duration_seconds=pcm_duration_seconds(len(pcm), self.sample_rate),
        )
        verbose(_LOG, "audio_saved", filename=result.filename, bytes=result.size_bytes)
        return result

    def list_files(self) -> List[StoredFile]:
        """WAV files in the output directory, newest first."""
        files = []
        for p in self.output_dir.glob("*.wav"):
            st = p.stat()
            files.append(StoredFile(
                filename=p.name,
                size_bytes=st.st_size,
                created=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            ))
        files.sort(key=lambda f: f.created, reverse=True)
        return files

    def resolve(self, filename: str) -> Path:
        """
        Map a download name to a path inside the output directory.

        Raises:
            ValidationError: Name contains a path component.
            NotFoundError: No such file.
        """
        if not filename or ".." in filename or "/" in filename or "\\" in filename:
            raise ValidationError("Invalid filename", details={"filename": filename})
        path = self.output_dir / filename
        if not path.is_file():
            raise NotFoundError("File not found", details={"filename": filename})
        return path
