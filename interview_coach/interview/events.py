"""
Event-driven notifications for the interview system.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    INTERVIEW_STARTED = "interview_started"
    RESPONSE_STREAMING = "response_streaming"
    QUESTION_ASKED = "question_asked"
    RESPONSE_SUBMITTED = "response_submitted"
    LISTENING_STARTED = "listening_started"
    NOTICE_RAISED = "notice_raised"
    ERROR_OCCURRED = "error_occurred"
    INTERVIEW_ENDED = "interview_ended"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    conversation_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class InterviewStartedEvent(InterviewEvent):
    """Event fired when media is acquired and the interview opens."""
    def __init__(self, conversation_id: str, timestamp: float, personality: str,
                 video_enabled: bool, has_resume: bool):
        super().__init__(
            event_type=EventType.INTERVIEW_STARTED,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={
                "personality": personality,
                "video_enabled": video_enabled,
                "has_resume": has_resume
            }
        )


@dataclass
class ResponseStreamingEvent(InterviewEvent):
    """Event fired per streamed fragment; carries the reply received so far."""
    def __init__(self, conversation_id: str, timestamp: float, text: str):
        super().__init__(
            event_type=EventType.RESPONSE_STREAMING,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={"text": text}
        )


@dataclass
class QuestionAskedEvent(InterviewEvent):
    """Event fired when an interviewer message is accepted."""
    def __init__(self, conversation_id: str, timestamp: float, question_number: int, question: str):
        super().__init__(
            event_type=EventType.QUESTION_ASKED,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={
                "question_number": question_number,
                "question": question
            }
        )


@dataclass
class ResponseSubmittedEvent(InterviewEvent):
    """Event fired when the candidate's answer is sent."""
    def __init__(self, conversation_id: str, timestamp: float, text: str, trigger: str):
        super().__init__(
            event_type=EventType.RESPONSE_SUBMITTED,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={
                "text": text,
                "trigger": trigger
            }
        )


@dataclass
class ListeningStartedEvent(InterviewEvent):
    """Event fired when the orchestrator hands the turn to the candidate."""
    def __init__(self, conversation_id: str, timestamp: float, question_number: int):
        super().__init__(
            event_type=EventType.LISTENING_STARTED,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={"question_number": question_number}
        )


@dataclass
class NoticeRaisedEvent(InterviewEvent):
    """Event fired when the user should see a transient message."""
    def __init__(self, conversation_id: str, timestamp: float, message: str):
        super().__init__(
            event_type=EventType.NOTICE_RAISED,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={"message": message}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs."""
    def __init__(self, conversation_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


@dataclass
class InterviewEndedEvent(InterviewEvent):
    """Event fired when the interview is finalized."""
    def __init__(self, conversation_id: str, timestamp: float, question_count: int,
                 duration_seconds: int):
        super().__init__(
            event_type=EventType.INTERVIEW_ENDED,
            conversation_id=conversation_id,
            timestamp=timestamp,
            data={
                "question_count": question_count,
                "duration_seconds": duration_seconds
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview system communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        A failing handler is logged and does not stop delivery to the others.
        """
        logger.debug(f"Emitting event: {event.event_type} for conversation {event.conversation_id}")

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        # One streaming event per received fragment
        level = logging.DEBUG if event.event_type == EventType.RESPONSE_STREAMING else logging.INFO
        self.logger.log(level, f"Event: {event.event_type} | Conversation: {event.conversation_id} | Data: {event.data}")


class InterviewMetrics:
    """Collects metrics from interview events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.INTERVIEW_STARTED:
            self.interviews_started += 1
        elif event.event_type == EventType.INTERVIEW_ENDED:
            self.interviews_ended += 1
        elif event.event_type == EventType.QUESTION_ASKED:
            self.questions_asked += 1
        elif event.event_type == EventType.RESPONSE_SUBMITTED:
            self.responses_submitted += 1
            if event.data.get("trigger") == "silence":
                self.auto_submits += 1
            elif event.data.get("trigger") == "timeout":
                self.timeouts += 1
        elif event.event_type == EventType.NOTICE_RAISED:
            self.notices_raised += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "interviews_started": self.interviews_started,
            "interviews_ended": self.interviews_ended,
            "questions_asked": self.questions_asked,
            "responses_submitted": self.responses_submitted,
            "auto_submits": self.auto_submits,
            "timeouts": self.timeouts,
            "notices_raised": self.notices_raised,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.interviews_started = 0
        self.interviews_ended = 0
        self.questions_asked = 0
        self.responses_submitted = 0
        self.auto_submits = 0
        self.timeouts = 0
        self.notices_raised = 0
        self.errors_occurred = 0
