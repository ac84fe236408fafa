"""
Data models for the interview system.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Role(str, Enum):
    """Who wrote a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """One entry of the interview conversation."""
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class InterviewSummary:
    """What a finished interview hands over for analysis and storage."""
    conversation_id: str
    personality: str
    messages: List[ChatMessage] = field(default_factory=list)
    duration_seconds: int = 0
    question_count: int = 0
    resume_text: Optional[str] = None
    target_role: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Body of the summary request."""
        return {
            "messages": [m.to_dict() for m in self.messages],
            "duration": self.duration_seconds,
            "questionCount": self.question_count,
        }


@dataclass
class InterviewFeedback:
    """Coach's assessment of a finished interview."""
    summary: str
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    overall_score: int = 0
    is_fallback: bool = False
