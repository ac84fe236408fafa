"""
Interview session state and its transitions.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .models import ChatMessage, Role
from ..config import QUESTION_WINDOW_SECONDS, PERSONALITIES


class Personality(str, Enum):
    """Interviewer styles the chat endpoint understands."""
    FRIENDLY = "friendly"
    PROFESSIONAL = "professional"
    STRICT = "strict"
    TECHNICAL = "technical"
    ANALYTICAL = "analytical"

    @property
    def label(self) -> str:
        return PERSONALITIES[self.value].label


class InterviewPhase(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"


class ActiveStage(str, Enum):
    """What the interview is doing while active."""
    SPEAKING = "speaking"
    LISTENING = "listening"
    PROCESSING = "processing"


@dataclass
class InterviewSession:
    """
    Everything one interview owns: the conversation, counters and phase.

    Only the orchestrator mutates a session, and only through these methods.
    """
    conversation_id: str
    personality: Personality = Personality.PROFESSIONAL
    resume_text: Optional[str] = None
    target_role: Optional[str] = None
    messages: List[ChatMessage] = field(default_factory=list)
    phase: InterviewPhase = InterviewPhase.NOT_STARTED
    stage: Optional[ActiveStage] = None
    elapsed_seconds: int = 0
    question_count: int = 0
    question_time_left: int = QUESTION_WINDOW_SECONDS
    manual_input: str = ""
    notice: Optional[str] = None
    opening_message: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.phase == InterviewPhase.ACTIVE

    @property
    def is_processing(self) -> bool:
        return self.is_active and self.stage == ActiveStage.PROCESSING

    @property
    def is_speaking(self) -> bool:
        return self.is_active and self.stage == ActiveStage.SPEAKING

    @property
    def is_listening(self) -> bool:
        return self.is_active and self.stage == ActiveStage.LISTENING

    def activate(self) -> None:
        self.phase = InterviewPhase.ACTIVE
        self.stage = ActiveStage.PROCESSING
        self.notice = None

    def enter(self, stage: ActiveStage) -> None:
        if self.is_active:
            self.stage = stage

    def add_user_message(self, content: str) -> None:
        self.messages.append(ChatMessage(Role.USER, content))

    def accept_assistant_message(self, content: str, window: int = QUESTION_WINDOW_SECONDS) -> None:
        """A new interviewer question: count it and restart its countdown."""
        self.messages.append(ChatMessage(Role.ASSISTANT, content))
        self.question_count += 1
        self.question_time_left = window

    def open_conversation(self, opening: str) -> None:
        """Record the candidate's opening turn; it is resent with every later request."""
        self.messages.append(ChatMessage(Role.USER, opening))
        self.opening_message = opening

    def set_elapsed(self, seconds: float) -> None:
        self.elapsed_seconds = max(0, int(seconds))

    def tick_question(self) -> bool:
        """Count down one second. True when the question window has run out."""
        self.question_time_left = max(0, self.question_time_left - 1)
        return self.question_time_left == 0

    def reset_question_timer(self, window: int = QUESTION_WINDOW_SECONDS) -> None:
        self.question_time_left = window

    def history(self) -> List[Dict[str, str]]:
        """Role and content of every message, oldest first."""
        return [m.to_dict() for m in self.messages]

    def transcript(self) -> List[ChatMessage]:
        """The conversation without the opening turn."""
        if self.opening_message is not None:
            return list(self.messages[1:])
        return list(self.messages)

    def finish(self) -> None:
        self.phase = InterviewPhase.ENDED
        self.stage = None
