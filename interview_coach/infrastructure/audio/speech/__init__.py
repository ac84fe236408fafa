"""Speech-to-text and text-to-speech modules."""

from .stt import (
    SpeechRecognizer, RecognitionEngine, RecognitionSegment, RecognitionState,
    recognize_google_sync, TRANSCRIPT_CHANGED, LISTENING_CHANGED
)
from .tts import SpeechSynthesizer, SynthesisEngine, Utterance, Voice, select_voice, synthesize_google, SPEAKING_CHANGED
from .engines import (
    GoogleRecognitionEngine, GoogleSynthesisEngine,
    ConsoleRecognitionEngine, ConsoleSynthesisEngine, ConsoleMediaDevices
)

__all__ = [
    "SpeechRecognizer", "RecognitionEngine", "RecognitionSegment", "RecognitionState",
    "recognize_google_sync", "TRANSCRIPT_CHANGED", "LISTENING_CHANGED",
    "SpeechSynthesizer", "SynthesisEngine", "Utterance", "Voice", "select_voice",
    "synthesize_google", "SPEAKING_CHANGED",
    "GoogleRecognitionEngine", "GoogleSynthesisEngine",
    "ConsoleRecognitionEngine", "ConsoleSynthesisEngine", "ConsoleMediaDevices",
]
