"""tts-jobs: text-to-speech HTTP service with a bounded background job queue."""

__version__ = "0.1.0"
