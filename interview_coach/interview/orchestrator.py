"""
Interview orchestrator: the turn-taking state machine.
"""
import time
import uuid
import logging
from typing import Callable, Optional, Any

from .models import InterviewSummary
from .schemas import InterviewSession, InterviewPhase, ActiveStage, Personality
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics, InterviewEvent,
    InterviewStartedEvent, ResponseStreamingEvent, QuestionAskedEvent, ResponseSubmittedEvent,
    ListeningStartedEvent, NoticeRaisedEvent, ErrorOccurredEvent, InterviewEndedEvent
)
from ..errors import InterviewCoachError, ChatRequestFailed, RecognitionError, SynthesisError
from ..infrastructure.media import MediaCaptureSession
from ..infrastructure.audio.speech.stt import SpeechRecognizer, TRANSCRIPT_CHANGED
from ..infrastructure.audio.speech.stt import ERROR_RAISED as RECOGNITION_ERROR
from ..infrastructure.audio.speech.tts import SpeechSynthesizer, SPEAKING_CHANGED
from ..infrastructure.audio.speech.tts import ERROR_RAISED as SYNTHESIS_ERROR
from ..infrastructure.llm import InterviewChatClient, InterviewPrompts
from ..utils.scheduling import Scheduler, TimerHandle
from ..config import (
    SILENCE_SUBMIT_SECONDS, MIN_AUTO_SUBMIT_CHARS, QUESTION_WINDOW_SECONDS,
    LISTEN_AFTER_SPEECH_DELAY, CLOCK_TICK_SECONDS, DEFAULT_PERSONALITY
)

logger = logging.getLogger("orchestrator")

SummaryHandler = Callable[[InterviewSummary], Any]


class InterviewOrchestrator:
    """
    Runs one live interview.

    States: NotStarted -> Active{Speaking | Listening | Processing} -> Ended.

    The orchestrator is the only component that decides when the candidate is
    heard and when the interviewer speaks: it stops recognition before a reply
    is spoken and starts it again only once speaking has ended. Every timer
    goes through the injected scheduler and every timer callback re-checks
    that the session is still active.
    """

    def __init__(self,
                 media: MediaCaptureSession,
                 recognizer: SpeechRecognizer,
                 synthesizer: SpeechSynthesizer,
                 chat: InterviewChatClient,
                 scheduler: Scheduler,
                 personality: str = DEFAULT_PERSONALITY,
                 resume_text: Optional[str] = None,
                 target_role: Optional[str] = None,
                 enable_video: bool = False,
                 summary_handler: Optional[SummaryHandler] = None,
                 event_bus: Optional[InterviewEventBus] = None,
                 conversation_id: Optional[str] = None,
                 silence_seconds: float = SILENCE_SUBMIT_SECONDS,
                 min_auto_submit_chars: int = MIN_AUTO_SUBMIT_CHARS,
                 question_window: int = QUESTION_WINDOW_SECONDS,
                 listen_delay: float = LISTEN_AFTER_SPEECH_DELAY,
                 tick_seconds: float = CLOCK_TICK_SECONDS):
        self.media = media
        self.recognizer = recognizer
        self.synthesizer = synthesizer
        self.chat = chat
        self.scheduler = scheduler
        self.enable_video = enable_video
        self.summary_handler = summary_handler

        self.silence_seconds = silence_seconds
        self.min_auto_submit_chars = min_auto_submit_chars
        self.question_window = question_window
        self.listen_delay = listen_delay
        self.tick_seconds = tick_seconds

        self.session = InterviewSession(
            conversation_id=conversation_id or f"conv_{uuid.uuid4().hex[:12]}",
            personality=Personality(personality),
            resume_text=resume_text,
            target_role=target_role,
            question_time_left=question_window,
        )
        self.summary: Optional[InterviewSummary] = None

        # Event system
        self.event_bus = event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        self._in_flight = False
        self._started_at = 0.0
        self._silence_timer: Optional[TimerHandle] = None
        self._listen_timer: Optional[TimerHandle] = None
        self._clock_timer: Optional[TimerHandle] = None
        self._question_timer: Optional[TimerHandle] = None

        self.recognizer.add_listener(self._on_recognizer_change)
        self.synthesizer.add_listener(self._on_synthesizer_change)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> InterviewPhase:
        return self.session.phase

    @property
    def stage(self) -> Optional[ActiveStage]:
        return self.session.stage

    @property
    def is_request_in_flight(self) -> bool:
        return self._in_flight

    @property
    def transcript(self) -> str:
        return self.recognizer.transcript

    @property
    def interim_transcript(self) -> str:
        return self.recognizer.interim_transcript

    @property
    def current_response(self) -> str:
        """Partial interviewer reply, readable from RESPONSE_STREAMING handlers."""
        return self.chat.current_response

    @property
    def notice(self) -> Optional[str]:
        return self.session.notice

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def begin(self) -> None:
        """
        Acquire media and open the interview.

        Raises:
            MediaAccessDenied: If access to the devices was refused
            MediaAccessUnavailable: If the devices could not be opened
        """
        if self.session.phase != InterviewPhase.NOT_STARTED:
            logger.debug("begin() ignored in phase %s", self.session.phase.value)
            return

        # Errors propagate; the session stays NotStarted so begin() can be retried
        self.media.acquire(video=self.enable_video, audio=True)

        self.session.activate()
        self._started_at = self.scheduler.time()
        self._clock_timer = self.scheduler.call_every(self.tick_seconds, self._tick_clock)
        self._question_timer = self.scheduler.call_every(self.tick_seconds, self._tick_question)
        self._emit(InterviewStartedEvent(
            self.session.conversation_id, time.time(), self.session.personality.value,
            self.media.video_enabled, bool(self.session.resume_text)
        ))
        logger.info("Interview %s started (%s)", self.session.conversation_id,
                    self.session.personality.value)

        self.session.open_conversation(
            InterviewPrompts.opening_message(self.session.resume_text, self.session.target_role))
        self._request(lambda: self.chat.start_interview(
            personality=self.session.personality.value,
            resume_text=self.session.resume_text,
            target_role=self.session.target_role,
            on_delta=self._on_delta,
        ))

    def set_manual_input(self, text: str) -> None:
        """Typed answer used when nothing has been recognized."""
        self.session.manual_input = text

    def send_response(self, text: Optional[str] = None) -> bool:
        """
        Submit the candidate's answer.

        Uses the recognized transcript if there is one, else the manual input,
        else text. Returns False when there was nothing to send or a request
        is already in flight.
        """
        message = (self.recognizer.transcript.strip()
                   or self.session.manual_input.strip()
                   or (text or "").strip())
        return self._submit(message, trigger="manual")

    def next_question(self) -> bool:
        """Ask the interviewer to move on."""
        if self.session.question_count < 1:
            return False
        return self._move_on(trigger="skip")

    def end(self) -> Optional[InterviewSummary]:
        """
        Tear the interview down and hand its summary over.

        Safe to call repeatedly; does nothing before begin().
        """
        if self.session.phase != InterviewPhase.ACTIVE:
            return self.summary

        self._cancel_timers()
        self._update_elapsed()
        self.session.finish()
        self.recognizer.stop()
        self.synthesizer.stop()
        self.media.release()

        self.summary = InterviewSummary(
            conversation_id=self.session.conversation_id,
            personality=self.session.personality.value,
            messages=self.session.transcript(),
            duration_seconds=self.session.elapsed_seconds,
            question_count=self.session.question_count,
            resume_text=self.session.resume_text,
            target_role=self.session.target_role,
        )
        self._emit(InterviewEndedEvent(
            self.session.conversation_id, time.time(),
            self.summary.question_count, self.summary.duration_seconds
        ))
        logger.info("Interview %s ended after %ds and %d questions", self.session.conversation_id,
                    self.summary.duration_seconds, self.summary.question_count)

        if self.summary_handler is not None:
            try:
                self.summary_handler(self.summary)
            except (InterviewCoachError, OSError) as e:
                logger.error("Summary handoff failed: %s", e)
                self._report_error(e, "summary")
        return self.summary

    def shutdown(self) -> None:
        """End the interview and detach from the speech components."""
        self.end()
        self.recognizer.remove_listener(self._on_recognizer_change)
        self.synthesizer.remove_listener(self._on_synthesizer_change)

    # ------------------------------------------------------------------
    # Turn handling
    # ------------------------------------------------------------------

    def _move_on(self, trigger: str) -> bool:
        sent = self._submit(InterviewPrompts.move_on_message(), trigger=trigger)
        if sent:
            self.session.reset_question_timer(self.question_window)
        return sent

    def _submit(self, message: str, trigger: str) -> bool:
        if not self.session.is_active:
            return False
        if not message:
            logger.debug("Nothing to send")
            return False
        if self._in_flight:
            logger.debug("Send ignored: a request is already in flight")
            return False

        self._cancel(self._silence_timer)
        self._cancel(self._listen_timer)
        self._silence_timer = self._listen_timer = None
        self.session.enter(ActiveStage.PROCESSING)
        self.recognizer.stop()
        self.synthesizer.stop()

        history = self.session.history()
        # Kept even if the request fails so a retry resends the context
        self.session.add_user_message(message)
        self._emit(ResponseSubmittedEvent(self.session.conversation_id, time.time(), message, trigger))
        logger.info("Submitting answer (%s): %s", trigger, message)

        try:
            self._request(lambda: self.chat.send_message(
                history, message,
                personality=self.session.personality.value,
                resume_text=self.session.resume_text,
                target_role=self.session.target_role,
                on_delta=self._on_delta,
            ))
        finally:
            self.recognizer.reset_transcript()
            self.session.manual_input = ""
        return True

    def _request(self, call: Callable[[], str]) -> None:
        self._in_flight = True
        self.session.notice = None
        try:
            response = call()
        except ChatRequestFailed as e:
            self._in_flight = False
            logger.error("Chat request failed: %s", e)
            self._report_error(e, "chat")
            self._raise_notice(str(e) or "Failed to get a response")
            self._start_listening()
            return
        finally:
            self._in_flight = False
        self._accept_response(response)

    def _accept_response(self, response: str) -> None:
        if not self.session.is_active:
            return
        response = response.strip()
        if not response:
            logger.warning("Interviewer returned an empty reply")
            self._start_listening()
            return

        self.session.accept_assistant_message(response, self.question_window)
        self._emit(QuestionAskedEvent(self.session.conversation_id, time.time(),
                                      self.session.question_count, response))
        self.session.enter(ActiveStage.SPEAKING)
        self.synthesizer.speak(response)

        # Synthesis may already have finished (or failed) by the time speak() returns
        if self.session.is_speaking and not self.synthesizer.is_speaking:
            self._schedule_listening()

    def _schedule_listening(self) -> None:
        self._cancel(self._listen_timer)
        self._listen_timer = self.scheduler.call_later(self.listen_delay, self._start_listening)

    def _start_listening(self) -> None:
        self._listen_timer = None
        if not self.session.is_active or self._in_flight:
            return
        self.session.enter(ActiveStage.LISTENING)
        self.recognizer.start()
        self._emit(ListeningStartedEvent(self.session.conversation_id, time.time(),
                                         self.session.question_count))

    # ------------------------------------------------------------------
    # Component callbacks
    # ------------------------------------------------------------------

    def _on_synthesizer_change(self, kind: str) -> None:
        if kind == SYNTHESIS_ERROR:
            error = self.synthesizer.error or "speech synthesis failed"
            self._report_error(SynthesisError(error), "synthesis")
            self._raise_notice(f"Could not play the question: {error}")
        if not self.session.is_speaking or self._in_flight:
            return
        if not self.synthesizer.is_speaking:
            self._schedule_listening()

    def _on_recognizer_change(self, kind: str) -> None:
        if kind == RECOGNITION_ERROR:
            error = self.recognizer.error or "speech recognition failed"
            self._report_error(RecognitionError(error), "recognition")
            self._raise_notice(f"Speech recognition error: {error}")
            return
        if kind != TRANSCRIPT_CHANGED:
            return
        if not self.session.is_listening or self._in_flight or self.synthesizer.is_speaking:
            return

        # Every transcript write restarts the quiet window
        self._cancel(self._silence_timer)
        self._silence_timer = None
        snapshot = self.recognizer.transcript
        if snapshot.strip():
            self._silence_timer = self.scheduler.call_later(
                self.silence_seconds, lambda: self._on_silence(snapshot))

    def _on_silence(self, snapshot: str) -> None:
        self._silence_timer = None
        if not self.session.is_listening or self._in_flight or self.synthesizer.is_speaking:
            return
        transcript = self.recognizer.transcript
        if transcript != snapshot:
            return
        if len(transcript.strip()) <= self.min_auto_submit_chars:
            return
        logger.debug("Quiet for %.1fs; submitting", self.silence_seconds)
        self._submit(transcript.strip(), trigger="silence")

    def _on_delta(self, text: str) -> None:
        if self.session.is_active:
            self._emit(ResponseStreamingEvent(self.session.conversation_id, time.time(), text))

    def _tick_clock(self) -> None:
        if self.session.is_active:
            self._update_elapsed()

    def _tick_question(self) -> None:
        session = self.session
        if not session.is_active or session.question_count < 1:
            return
        if session.is_processing or session.is_speaking or self._in_flight:
            return
        if session.tick_question():
            logger.info("Question window elapsed; moving on")
            if not self._move_on(trigger="timeout"):
                session.reset_question_timer(self.question_window)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _update_elapsed(self) -> None:
        # Measured on the scheduler clock, not by counting ticks
        self.session.set_elapsed(self.scheduler.time() - self._started_at)

    def _raise_notice(self, message: str) -> None:
        self.session.notice = message
        self._emit(NoticeRaisedEvent(self.session.conversation_id, time.time(), message))

    def _report_error(self, error: Exception, component: str) -> None:
        self._emit(ErrorOccurredEvent(self.session.conversation_id, time.time(),
                                      type(error).__name__, str(error), component))

    def _emit(self, event: InterviewEvent) -> None:
        self.event_bus.emit(event)

    @staticmethod
    def _cancel(handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()

    def _cancel_timers(self) -> None:
        for handle in (self._silence_timer, self._listen_timer, self._clock_timer, self._question_timer):
            self._cancel(handle)
        self._silence_timer = self._listen_timer = None
        self._clock_timer = self._question_timer = None
