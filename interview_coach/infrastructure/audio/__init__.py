"""
Audio processing and speech services for the interview coach.

This module contains all audio-related functionality organized into submodules:
- processing: Signal processing and PyAudio microphone capture
- speech: Speech recognition and synthesis state machines plus their engines
"""

from .speech import (
    SpeechRecognizer, SpeechSynthesizer, recognize_google_sync, synthesize_google,
    GoogleRecognitionEngine, GoogleSynthesisEngine,
    ConsoleRecognitionEngine, ConsoleSynthesisEngine, ConsoleMediaDevices
)

__all__ = [
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "recognize_google_sync",
    "synthesize_google",
    "GoogleRecognitionEngine",
    "GoogleSynthesisEngine",
    "ConsoleRecognitionEngine",
    "ConsoleSynthesisEngine",
    "ConsoleMediaDevices",
]
