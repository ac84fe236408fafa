"""Infrastructure components for the interview coach.

This module contains low-level technical components: capture devices, speech
recognition and synthesis, and clients for the hosted LLM functions.
"""

# Media
from .media import MediaCaptureSession, MediaDevices

# Audio infrastructure
from .audio import SpeechRecognizer, SpeechSynthesizer

# LLM infrastructure
from .llm import FunctionsClient, InterviewChatClient

__all__ = [
    "MediaCaptureSession", "MediaDevices",
    "SpeechRecognizer", "SpeechSynthesizer",
    "FunctionsClient", "InterviewChatClient",
]
