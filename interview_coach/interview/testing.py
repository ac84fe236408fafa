"""
Testing infrastructure: fake platform services and a mock chat client.

These stand in for the microphone, the speech engines, the hosted chat
function and the event loop so the orchestrator can be driven step by step.
"""
import heapq
import itertools
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .orchestrator import InterviewOrchestrator
from ..errors import MediaAccessDenied, MediaAccessUnavailable
from ..infrastructure.media import MediaCaptureSession, MediaDevices, MediaStream, MediaTrack, AUDIO, VIDEO
from ..infrastructure.audio.speech.stt import RecognitionEngine, RecognitionSegment, SpeechRecognizer
from ..infrastructure.audio.speech.tts import SynthesisEngine, SpeechSynthesizer, Utterance, Voice
from ..infrastructure.llm.client import InterviewChatClient
from ..utils.scheduling import Scheduler, TimerHandle


class _FakeTimer(TimerHandle):

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class FakeScheduler(Scheduler):
    """Manual clock: timers only fire inside advance()."""

    def __init__(self):
        self.now = 0.0
        self._queue: List = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = _FakeTimer(self.now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))
        return timer

    def time(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            # A late timer fires at the current time; the clock never runs backwards
            self.now = max(self.now, due)
            timer._cancelled = True
            timer.callback()
        self.now = max(self.now, target)

    def run_pending(self) -> None:
        self.advance(0)

    @property
    def pending(self) -> int:
        """Number of live timers."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)


class FakeTrack(MediaTrack):

    def __init__(self, kind: str, label: str = ""):
        super().__init__(kind, label or f"fake {kind}")
        self.close_count = 0

    def _close(self) -> None:
        self.close_count += 1


class FakeMediaDevices(MediaDevices):
    """Grants, denies or fails device access on demand."""

    def __init__(self, mode: str = "grant"):
        self.mode = mode
        self.requests: List[Dict[str, bool]] = []
        self.streams: List[MediaStream] = []

    def get_user_media(self, video: bool, audio: bool) -> MediaStream:
        self.requests.append({"video": video, "audio": audio})
        if self.mode == "deny":
            raise MediaAccessDenied("Permission denied")
        if self.mode == "unavailable":
            raise MediaAccessUnavailable("Requested device not found")
        tracks: List[MediaTrack] = []
        if video:
            tracks.append(FakeTrack(VIDEO))
        if audio:
            tracks.append(FakeTrack(AUDIO))
        stream = MediaStream(tracks)
        self.streams.append(stream)
        return stream


class ScriptedRecognitionEngine(RecognitionEngine):
    """Recognition engine whose results are pushed by the test."""

    def __init__(self, fail_start: bool = False):
        super().__init__()
        self.running = False
        self.fail_start = fail_start
        self.start_count = 0

    def start(self) -> None:
        if self.running:
            raise RuntimeError("recognition has already started")
        if self.fail_start:
            raise RuntimeError("not allowed")
        self.running = True
        self.start_count += 1

    def stop(self) -> None:
        if self.running:
            self.running = False
            self._emit_end()

    def abort(self) -> None:
        if self.running:
            self.running = False
            self._emit_error("aborted")
            self._emit_end()

    def hear(self, text: str, final: bool = True) -> None:
        self._emit_result([RecognitionSegment(transcript=text, is_final=final)])

    def hear_segments(self, segments: Sequence[RecognitionSegment]) -> None:
        self._emit_result(segments)

    def fail(self, kind: str) -> None:
        """Engine error followed by end of session, as platforms report it."""
        self.running = False
        self._emit_error(kind)
        self._emit_end()

    def time_out(self) -> None:
        """Engine-driven end of session."""
        self.running = False
        self._emit_end()


class FakeSynthesisEngine(SynthesisEngine):
    """Records utterances; the test decides when they finish."""

    def __init__(self, voices: Optional[List[Voice]] = None, auto_finish: bool = False):
        self.voices = voices if voices is not None else [Voice("Google US English", "en-US")]
        self.auto_finish = auto_finish
        self.spoken: List[Utterance] = []
        self.current: Optional[Utterance] = None
        self.cancel_count = 0
        self.paused = False

    def get_voices(self) -> List[Voice]:
        return list(self.voices)

    def speak(self, utterance: Utterance) -> None:
        self.spoken.append(utterance)
        self.current = utterance
        utterance.started()
        if self.auto_finish:
            self.finish()

    def cancel(self) -> None:
        self.cancel_count += 1
        utterance, self.current = self.current, None
        if utterance is not None:
            utterance.failed("interrupted")

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def finish(self) -> None:
        utterance, self.current = self.current, None
        if utterance is not None:
            utterance.ended()

    def fail(self, error: str = "synthesis-failed") -> None:
        utterance, self.current = self.current, None
        if utterance is not None:
            utterance.failed(error)

    @property
    def texts(self) -> List[str]:
        return [u.text for u in self.spoken]


class MockChatClient(InterviewChatClient):
    """Returns scripted replies; an exception in the script is raised instead."""

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None,
                 default: str = "Tell me more about that."):
        # No FunctionsClient: nothing leaves the process
        self.responses = list(responses or [])
        self.default = default
        self.current_response = ""
        self.calls: List[Dict[str, Any]] = []

    def start_interview(self, personality="professional", resume_text=None, target_role=None, on_delta=None) -> str:
        self.calls.append({"kind": "start", "personality": personality,
                           "resume_text": resume_text, "target_role": target_role})
        return self._next(on_delta)

    def send_message(self, history, text, personality="professional", resume_text=None,
                     target_role=None, on_delta=None) -> str:
        self.calls.append({"kind": "message", "history": [dict(m) for m in history], "text": text,
                           "personality": personality})
        return self._next(on_delta)

    def _next(self, on_delta) -> str:
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        self.current_response = response
        if on_delta:
            on_delta(response)
        self.current_response = ""
        return response

    @property
    def sent_texts(self) -> List[str]:
        return [c["text"] for c in self.calls if c["kind"] == "message"]


def create_mock_interview_setup(responses: Optional[List[Union[str, Exception]]] = None,
                                media_mode: str = "grant",
                                **orchestrator_kwargs) -> Dict[str, Any]:
    """Wire an orchestrator to fakes and return every piece by name."""
    scheduler = FakeScheduler()
    devices = FakeMediaDevices(media_mode)
    media = MediaCaptureSession(devices)
    recognition_engine = ScriptedRecognitionEngine()
    recognizer = SpeechRecognizer(recognition_engine, scheduler)
    synthesis_engine = FakeSynthesisEngine()
    synthesizer = SpeechSynthesizer(synthesis_engine)
    chat = MockChatClient(responses)
    summaries: List[Any] = []

    orchestrator_kwargs.setdefault("summary_handler", summaries.append)
    orchestrator = InterviewOrchestrator(
        media=media,
        recognizer=recognizer,
        synthesizer=synthesizer,
        chat=chat,
        scheduler=scheduler,
        **orchestrator_kwargs
    )
    return {
        "scheduler": scheduler,
        "devices": devices,
        "media": media,
        "recognition_engine": recognition_engine,
        "recognizer": recognizer,
        "synthesis_engine": synthesis_engine,
        "synthesizer": synthesizer,
        "chat": chat,
        "summaries": summaries,
        "orchestrator": orchestrator,
    }


__all__ = [
    "FakeScheduler", "FakeTrack", "FakeMediaDevices", "ScriptedRecognitionEngine",
    "FakeSynthesisEngine", "MockChatClient", "create_mock_interview_setup",
]
