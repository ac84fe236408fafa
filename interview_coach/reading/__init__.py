"""Scrolling reading test: passages, transcript scoring and feedback."""

from .schemas import ReferencePassage, WordAlignmentRecord, WordError, ScoreReport, weighted_overall
from .scoring import edit_distance, TranscriptAligner, score_transcript
from .passage import PassageService, fallback_passage
from .analysis import ReadingAnalyzer, AnalysisClient, default_feedback
from .session import ReadingTestSession, scroll_speed_value

__all__ = [
    "ReferencePassage", "WordAlignmentRecord", "WordError", "ScoreReport", "weighted_overall",
    "edit_distance", "TranscriptAligner", "score_transcript",
    "PassageService", "fallback_passage",
    "ReadingAnalyzer", "AnalysisClient", "default_feedback",
    "ReadingTestSession", "scroll_speed_value",
]
