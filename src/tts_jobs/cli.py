"""
Command-Line Interface for tts-jobs.

Converts text to a WAV file without running the HTTP server or the job
queue: one synchronous provider call, one file written.

Usage Examples:
    # Single text
    tts-jobs --text "Hello there" --out hello.wav

    # Positional text (same as above)
    tts-jobs "Hello there" --out hello.wav

    # Whole text file read aloud as one text
    tts-jobs --file chapter1.txt --voice Puck --out chapter1.wav --verify

    # Validate and summarise without calling the provider
    tts-jobs --text "Test" --dry-run --json

    # List voices
    tts-jobs --voices

Environment Variables:
    GEMINI_API_KEY / GOOGLE_API_KEY: Provider credentials
    TTS_JOBS_SETTINGS: Settings file (default config/settings.yaml)
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from tts_jobs.audio.wav import is_wav, pcm_duration_seconds, pcm_to_wav
from tts_jobs.core.config import Settings, load_settings_or_default
from tts_jobs.core.errors import JobError
from tts_jobs.core.logging import configure_logging, get_logger, info, set_job_id
from tts_jobs.jobs.models import new_job_id
from tts_jobs.services.job_controller import estimated_time
from tts_jobs.services.validators import validate_text, validate_voice
from tts_jobs.synthesis.base import make_client


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tts-jobs CLI (serverless synth)")

    # Input options (text vs file)
    parser.add_argument("text_pos", nargs="?", help="Text to synthesize (positional)")
    parser.add_argument("--text", help="Text to synthesize")
    parser.add_argument("--file", help="Text file to read aloud (whole file is one text)")

    # Output options
    parser.add_argument("--out", help="Output WAV path (default: out.wav)")
    parser.add_argument("--voice", help="Voice name override")
    parser.add_argument("--provider", help="Synthesis provider override (gemini, silence)")

    # Execution modes
    parser.add_argument("--voices", action="store_true",
                        help="List available voices and exit")
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and summarize without synth")
    parser.add_argument("--verify", action="store_true",
                        help="Check the RIFF/WAVE header of the written file")
    parser.add_argument("--json", action="store_true",
                        help="Print JSON summary")

    return parser.parse_args(argv)


def _load_text(args: argparse.Namespace) -> str:
    """
    Resolve the input text.

    Raises:
        SystemExit: No input, or --file combined with inline text.
    """
    text = args.text or args.text_pos

    if args.file:
        if text:
            raise SystemExit("Use --file without --text or positional text.")
        path = Path(args.file)
        if not path.is_file():
            raise SystemExit(f"Input file not found: {path}")
        return path.read_text(encoding="utf-8").strip()

    if not text:
        raise SystemExit("Provide --text, --file or a positional text.")
    return text


def _with_provider(settings: Settings, provider: Optional[str]) -> Settings:
    if not provider:
        return settings
    raw = dict(settings.raw)
    raw["synthesis"] = {**(raw.get("synthesis") or {}), "provider": provider}
    return Settings(raw=raw)


def _emit(payload: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for rejected input or provider failure,
        2 when --verify finds a bad file).
    """
    args = _parse_args(argv)

    configure_logging()
    log = get_logger("tts-jobs.cli")
    set_job_id(new_job_id())

    settings = _with_provider(load_settings_or_default(), args.provider)
    config = settings.get_service_config()

    if args.voices:
        voices = list(settings.voices)
        if args.json:
            print(json.dumps({"voices": voices, "count": len(voices)}))
        else:
            print("Available voices: " + ", ".join(voices))
        return 0

    text = _load_text(args)
    voice = args.voice or config.synthesis.default_voice
    out_path = Path(args.out or "out.wav")

    try:
        validate_text(text, max_length=config.jobs.max_text_chars)
        validate_voice(voice, settings.voices)
    except JobError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    if args.dry_run:
        payload = {
            "ok": True,
            "dry_run": True,
            "text_len": len(text),
            "voice": voice,
            "provider": config.synthesis.provider,
            "estimated_time": estimated_time(text),
            "out": str(out_path),
        }
        _emit(payload, args.json)
        print("DRY_RUN_OK")
        return 0

    try:
        client = make_client(config)
        info(log, "synth_start", chars=len(text), voice=voice, out=str(out_path))
        try:
            pcm = client.synthesize(text, voice)
        finally:
            client.close()
    except JobError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    wav = pcm_to_wav(pcm, config.synthesis.sample_rate)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(wav)

    payload = {
        "ok": True,
        "dry_run": False,
        "out": str(out_path),
        "bytes": len(wav),
        "duration": pcm_duration_seconds(len(pcm), config.synthesis.sample_rate),
        "voice": voice,
    }

    if args.verify:
        payload["valid_wav"] = is_wav(out_path.read_bytes())

    _emit(payload, args.json)
    if args.verify and not payload["valid_wav"]:
        print("VERIFY_FAILED")
        return 2
    print("CLI_OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
