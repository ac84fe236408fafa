"""
Text-to-speech: utterance playback state and Google Cloud synthesis.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from google.cloud import texttospeech

from ....config import TTS_RATE, TTS_PITCH, TTS_VOLUME, TTS_VOICE, LANGUAGE_CODE, SAMPLE_RATE_TARGET

logger = logging.getLogger("speech_tts")

SPEAKING_CHANGED = "speaking"
ERROR_RAISED = "error"


def synthesize_google(text: str,
                      voice: str = TTS_VOICE,
                      language_code: str = LANGUAGE_CODE,
                      rate: float = TTS_RATE,
                      pitch: float = TTS_PITCH,
                      client: Optional[texttospeech.TextToSpeechClient] = None) -> bytes:
    """
    Render text to LINEAR16 WAV bytes with Google Cloud Text-to-Speech.

    rate is a multiplier (1.0 normal speed); pitch is a multiplier mapped onto
    the API's semitone range.
    """
    client = client or texttospeech.TextToSpeechClient()
    response = client.synthesize_speech(
        input=texttospeech.SynthesisInput(text=text),
        voice=texttospeech.VoiceSelectionParams(language_code=language_code, name=voice),
        audio_config=texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.LINEAR16,
            sample_rate_hertz=SAMPLE_RATE_TARGET,
            speaking_rate=max(0.25, min(4.0, rate)),
            pitch=max(-20.0, min(20.0, (pitch - 1.0) * 20.0)),
        ),
    )
    return response.audio_content


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str
    default: bool = False


@dataclass(eq=False)
class Utterance:
    """One playback request. The engine reports progress through the callbacks."""
    text: str
    rate: float = TTS_RATE
    pitch: float = TTS_PITCH
    volume: float = TTS_VOLUME
    voice: Optional[Voice] = None
    on_start: Optional[Callable[[], None]] = field(default=None, repr=False)
    on_end: Optional[Callable[[], None]] = field(default=None, repr=False)
    on_error: Optional[Callable[[str], None]] = field(default=None, repr=False)

    def started(self) -> None:
        if self.on_start:
            self.on_start()

    def ended(self) -> None:
        if self.on_end:
            self.on_end()

    def failed(self, error: str) -> None:
        if self.on_error:
            self.on_error(error)


class SynthesisEngine(ABC):
    """Platform speech synthesis service (one queue, one speaker)."""

    @abstractmethod
    def get_voices(self) -> List[Voice]:
        """Voices available for utterances."""

    @abstractmethod
    def speak(self, utterance: Utterance) -> None:
        """Queue an utterance for playback."""

    @abstractmethod
    def cancel(self) -> None:
        """Drop the current and queued utterances."""

    @abstractmethod
    def pause(self) -> None:
        """Pause playback."""

    @abstractmethod
    def resume(self) -> None:
        """Resume paused playback."""


def select_voice(voices: List[Voice]) -> Optional[Voice]:
    """Prefer a Google English voice, then any English voice."""
    for voice in voices:
        if "Google" in voice.name and voice.lang.startswith("en"):
            return voice
    for voice in voices:
        if voice.lang.startswith("en"):
            return voice
    return None


class SpeechSynthesizer:
    """
    Speaks one utterance at a time.

    Starting a new utterance cancels the one in flight; late callbacks from a
    superseded utterance are ignored.
    """

    def __init__(self,
                 engine: SynthesisEngine,
                 rate: float = TTS_RATE,
                 pitch: float = TTS_PITCH,
                 volume: float = TTS_VOLUME):
        self.engine = engine
        self.rate = rate
        self.pitch = pitch
        self.volume = volume
        self.is_speaking = False
        self.error: Optional[str] = None
        self._current: Optional[Utterance] = None
        self._listeners: List[Callable[[str], None]] = []

        try:
            voices = engine.get_voices()
        except Exception as e:
            logger.warning("Could not list voices: %s", e)
            voices = []
        self.voice = select_voice(voices)
        logger.info("Selected voice: %s", self.voice.name if self.voice else "(engine default)")

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Call back with SPEAKING_CHANGED or ERROR_RAISED."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def speak(self, text: str) -> None:
        if not text or not text.strip():
            return

        # Detach first so the cancelled utterance's end callback is ignored
        self._current = None
        self.engine.cancel()
        utterance = Utterance(text=text, rate=self.rate, pitch=self.pitch,
                              volume=self.volume, voice=self.voice)
        utterance.on_start = lambda: self._handle_start(utterance)
        utterance.on_end = lambda: self._handle_end(utterance)
        utterance.on_error = lambda err: self._handle_error(utterance, err)
        self._current = utterance
        self.error = None

        try:
            self.engine.speak(utterance)
        except Exception as e:
            logger.error("Speech synthesis failed to start: %s", e)
            self._handle_error(utterance, str(e) or type(e).__name__)

    def stop(self) -> None:
        """Cancel playback immediately. Safe to call repeatedly."""
        self._current = None
        try:
            self.engine.cancel()
        except Exception as e:
            logger.warning("Engine cancel failed: %s", e)
        self._set_speaking(False)

    def pause(self) -> None:
        self.engine.pause()

    def resume(self) -> None:
        self.engine.resume()

    def shutdown(self) -> None:
        self.stop()
        self._listeners.clear()

    def _handle_start(self, utterance: Utterance) -> None:
        if utterance is self._current:
            self._set_speaking(True)

    def _handle_end(self, utterance: Utterance) -> None:
        if utterance is not self._current:
            return
        self._current = None
        self._set_speaking(False)

    def _handle_error(self, utterance: Utterance, error: str) -> None:
        if utterance is not self._current:
            return
        logger.error("Speech synthesis error: %s", error)
        self._current = None
        self.error = error
        self._set_speaking(False)
        self._notify(ERROR_RAISED)

    def _set_speaking(self, speaking: bool) -> None:
        if self.is_speaking == speaking:
            return
        self.is_speaking = speaking
        self._notify(SPEAKING_CHANGED)

    def _notify(self, kind: str) -> None:
        for callback in list(self._listeners):
            callback(kind)
