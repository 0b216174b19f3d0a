"""
Speech providers consumed by the job core.

    - base.py: SynthesisClient interface, offline provider, factory
    - gemini.py: Gemini REST client
"""
from .base import SilenceSynthesisClient, SynthesisClient, make_client

__all__ = ["SynthesisClient", "SilenceSynthesisClient", "make_client"]
