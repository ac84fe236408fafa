"""Interview system components.

This module contains the business logic for conducting live practice
interviews: the turn-taking orchestrator, session state, events and the
summary services.
"""

# Core orchestrator class
from .orchestrator import InterviewOrchestrator

# Data models
from .models import Role, ChatMessage, InterviewSummary, InterviewFeedback

# Session state
from .schemas import Personality, InterviewPhase, ActiveStage, InterviewSession

# Service classes
from .services import InterviewSummaryService, ConversationManager, parse_feedback

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent, InterviewStartedEvent, ResponseStreamingEvent,
    QuestionAskedEvent, ResponseSubmittedEvent, ListeningStartedEvent,
    NoticeRaisedEvent, ErrorOccurredEvent, InterviewEndedEvent
)

__all__ = [
    # Orchestrator
    "InterviewOrchestrator",

    # Data models
    "Role", "ChatMessage", "InterviewSummary", "InterviewFeedback",

    # Session state
    "Personality", "InterviewPhase", "ActiveStage", "InterviewSession",

    # Services
    "InterviewSummaryService", "ConversationManager", "parse_feedback",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent", "InterviewStartedEvent", "ResponseStreamingEvent",
    "QuestionAskedEvent", "ResponseSubmittedEvent", "ListeningStartedEvent",
    "NoticeRaisedEvent", "ErrorOccurredEvent", "InterviewEndedEvent",
]
