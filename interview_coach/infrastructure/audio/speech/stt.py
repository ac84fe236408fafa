"""
Speech-to-text: the continuous recognizer state machine and Google Cloud Speech recognition.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

from google.cloud import speech

from ....config import LANGUAGE_CODE, RECOGNITION_RESTART_DELAY, BENIGN_RECOGNITION_ERRORS, SAMPLE_RATE_TARGET
from ....utils.scheduling import Scheduler, TimerHandle

logger = logging.getLogger("speech_stt")

# Change kinds passed to recognizer listeners
TRANSCRIPT_CHANGED = "transcript"
LISTENING_CHANGED = "listening"
ERROR_RAISED = "error"


def recognize_google_sync(pcm16_bytes: bytes,
                          sr_hz: int = SAMPLE_RATE_TARGET,
                          language: str = LANGUAGE_CODE,
                          client: Optional[speech.SpeechClient] = None) -> str:
    """
    Synchronous Google Cloud Speech-to-Text recognition.
    Returns transcribed text or empty string if no speech detected.
    """
    client = client or speech.SpeechClient()
    audio = speech.RecognitionAudio(content=pcm16_bytes)
    config = speech.RecognitionConfig(
        encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
        sample_rate_hertz=sr_hz,
        language_code=language,
        enable_automatic_punctuation=True,
    )

    resp = client.recognize(config=config, audio=audio)
    texts = [r.alternatives[0].transcript for r in resp.results if r.alternatives]
    return " ".join(texts).strip()


@dataclass(frozen=True)
class RecognitionSegment:
    """One result of a recognition event."""
    transcript: str
    is_final: bool
    confidence: float = 0.0


@dataclass(frozen=True)
class RecognitionState:
    """Snapshot of what has been heard so far."""
    is_listening: bool = False
    final_transcript: str = ""
    interim_transcript: str = ""

    def with_listening(self, listening: bool) -> "RecognitionState":
        return replace(self, is_listening=listening)

    def append_final(self, text: str) -> "RecognitionState":
        text = text.strip()
        if not text:
            return self
        joined = f"{self.final_transcript} {text}" if self.final_transcript else text
        return replace(self, final_transcript=joined)

    def with_interim(self, text: str) -> "RecognitionState":
        return replace(self, interim_transcript=text)

    def cleared(self) -> "RecognitionState":
        return replace(self, final_transcript="", interim_transcript="")


class RecognitionEngine(ABC):
    """
    Platform speech recognition service.

    The engine reports back through three callbacks which the SpeechRecognizer
    installs: on_result(segments), on_error(kind) and on_end(). An engine
    raises from start() if it is already running.
    """

    def __init__(self, language: str = LANGUAGE_CODE, continuous: bool = True, interim_results: bool = True):
        self.language = language
        self.continuous = continuous
        self.interim_results = interim_results
        self.on_result: Optional[Callable[[Sequence[RecognitionSegment]], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    @abstractmethod
    def start(self) -> None:
        """Begin a recognition session."""

    @abstractmethod
    def stop(self) -> None:
        """Finish the session, delivering pending results, then fire on_end."""

    @abstractmethod
    def abort(self) -> None:
        """Drop the session immediately."""

    def _emit_result(self, segments: Sequence[RecognitionSegment]) -> None:
        if self.on_result:
            self.on_result(segments)

    def _emit_error(self, kind: str) -> None:
        if self.on_error:
            self.on_error(kind)

    def _emit_end(self) -> None:
        if self.on_end:
            self.on_end()


class SpeechRecognizer:
    """
    Continuous speech-to-text with final/interim separation and auto-restart.

    States: Idle -> Listening -> Idle on a clean stop; an engine-driven end while
    still wanted schedules a restart; errors always land in Idle.
    """

    def __init__(self,
                 engine: RecognitionEngine,
                 scheduler: Scheduler,
                 restart_delay: float = RECOGNITION_RESTART_DELAY,
                 benign_errors: Sequence[str] = BENIGN_RECOGNITION_ERRORS):
        self.engine = engine
        self.scheduler = scheduler
        self.restart_delay = restart_delay
        self.benign_errors = tuple(benign_errors)

        self.state = RecognitionState()
        self.error: Optional[str] = None
        self._should_continue = False
        self._start_pending = False
        self._restart_timer: Optional[TimerHandle] = None
        self._listeners: List[Callable[[str], None]] = []

        engine.on_result = self._handle_result
        engine.on_error = self._handle_error
        engine.on_end = self._handle_end

    @property
    def is_listening(self) -> bool:
        return self.state.is_listening

    @property
    def transcript(self) -> str:
        return self.state.final_transcript

    @property
    def interim_transcript(self) -> str:
        return self.state.interim_transcript

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Call back with TRANSCRIPT_CHANGED, LISTENING_CHANGED or ERROR_RAISED."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def start(self) -> None:
        """Start listening with empty transcripts. No-op while listening or starting."""
        if self.state.is_listening or self._start_pending:
            logger.debug("Start ignored: recognition already active")
            return
        self.error = None
        self._should_continue = True
        self._set_state(self.state.cleared(), TRANSCRIPT_CHANGED)
        if not self._start_engine():
            self.error = "start-failed"
            self._should_continue = False
            self._notify(ERROR_RAISED)

    def stop(self) -> None:
        """Stop listening and suppress auto-restart. Safe when already stopped."""
        self._should_continue = False
        self._start_pending = False
        self._cancel_restart()
        if self.state.is_listening:
            try:
                self.engine.stop()
            except Exception as e:
                logger.warning("Engine stop failed: %s", e)
            self._set_state(self.state.with_listening(False), LISTENING_CHANGED)

    def shutdown(self) -> None:
        """Abort the engine outright and stop reacting to its callbacks."""
        was_listening = self.state.is_listening
        self.stop()
        if was_listening:
            try:
                self.engine.abort()
            except Exception as e:
                logger.warning("Engine abort failed: %s", e)
        self._listeners.clear()

    def reset_transcript(self) -> None:
        """Clear final and interim text without touching listening state."""
        if self.state.final_transcript or self.state.interim_transcript:
            self._set_state(self.state.cleared(), TRANSCRIPT_CHANGED)

    def _start_engine(self) -> bool:
        self._start_pending = True
        try:
            self.engine.start()
        except Exception as e:
            logger.error("Failed to start speech recognition: %s", e)
            return False
        finally:
            self._start_pending = False
        self._set_state(self.state.with_listening(True), LISTENING_CHANGED)
        logger.debug("Recognition started")
        return True

    def _restart(self) -> None:
        self._restart_timer = None
        if not self._should_continue or self.state.is_listening:
            return
        # The heard text belongs to the same answer, so it is kept across restarts
        if not self._start_engine():
            logger.warning("Recognition restart failed; staying idle")

    def _cancel_restart(self) -> None:
        if self._restart_timer is not None:
            self._restart_timer.cancel()
            self._restart_timer = None

    def _handle_result(self, segments: Sequence[RecognitionSegment]) -> None:
        finals = [s.transcript.strip() for s in segments if s.is_final and s.transcript.strip()]
        interim = "".join(s.transcript for s in segments if not s.is_final)

        new_state = self.state.with_interim(interim)
        if finals:
            new_state = new_state.append_final(" ".join(finals))
        self._set_state(new_state, TRANSCRIPT_CHANGED)

    def _handle_error(self, kind: str) -> None:
        benign = kind in self.benign_errors
        if benign:
            logger.debug("Ignoring benign recognition error: %s", kind)
        else:
            logger.error("Speech recognition error: %s", kind)
            self.error = kind
            self._should_continue = False
            self._cancel_restart()
        self._set_state(self.state.with_listening(False), LISTENING_CHANGED)
        if not benign:
            self._notify(ERROR_RAISED)

    def _handle_end(self) -> None:
        self._start_pending = False
        self._set_state(self.state.with_listening(False), LISTENING_CHANGED)
        if self._should_continue and self._restart_timer is None:
            logger.debug("Recognition ended; restarting in %.2fs", self.restart_delay)
            self._restart_timer = self.scheduler.call_later(self.restart_delay, self._restart)

    def _set_state(self, new_state: RecognitionState, kind: str) -> None:
        if new_state == self.state:
            return
        self.state = new_state
        self._notify(kind)

    def _notify(self, kind: str) -> None:
        for callback in list(self._listeners):
            callback(kind)
