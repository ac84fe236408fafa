"""
Interview coach: practice interviews with an AI interviewer and scored
reading-aloud tests.

Live interviews are driven by a turn-taking state machine over injected
capture, recognition and synthesis services; reading attempts are scored
against the reference passage word by word.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.models import ChatMessage, InterviewSummary
from .reading.scoring import score_transcript, edit_distance
from .reading.schemas import ScoreReport

__all__ = ["InterviewOrchestrator", "ChatMessage", "InterviewSummary",
           "score_transcript", "edit_distance", "ScoreReport"]
