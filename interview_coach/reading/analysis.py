"""
Reading attempt analysis: local scoring plus optional coaching feedback.
"""
import logging
from typing import Optional

from pydantic import ValidationError

from .schemas import ScoreReport
from .scoring import TranscriptAligner
from ..errors import ChatRequestFailed
from ..infrastructure.llm import FunctionsClient
from ..config import ANALYZE_FUNCTION, LLM_FEEDBACK_MIN_CHARS

logger = logging.getLogger("reading_analysis")

FEEDBACK_BANDS = (
    (90, "Excellent reading! Your pronunciation and pacing were outstanding."),
    (80, "Great job! Minor improvements in pacing could make it even better."),
    (70, "Good effort. Focus on maintaining a steady pace and clear pronunciation."),
    (60, "Fair performance. Practice reading aloud more frequently to improve fluency."),
)
FEEDBACK_FLOOR = "Keep practicing! Regular reading practice will significantly improve your skills."


def default_feedback(overall_score: int) -> str:
    """Canned feedback for an overall score."""
    for threshold, text in FEEDBACK_BANDS:
        if overall_score >= threshold:
            return text
    return FEEDBACK_FLOOR


class AnalysisClient:
    """Client for the hosted analyze-speech function."""

    def __init__(self, functions: FunctionsClient, function_name: str = ANALYZE_FUNCTION):
        self.functions = functions
        self.function_name = function_name

    def analyze_remote(self, original_text: str, spoken_text: str, duration: float,
                       scroll_speed: Optional[str] = None) -> ScoreReport:
        """
        Ask the hosted function to score an attempt.

        Raises:
            ChatRequestFailed: If the request fails or the report is malformed
        """
        body = {
            "originalText": original_text,
            "spokenText": spoken_text,
            "duration": duration,
            "scrollSpeed": scroll_speed,
        }
        data = self.functions.post_json(self.function_name, body)
        try:
            return ScoreReport.model_validate(data)
        except ValidationError as e:
            raise ChatRequestFailed(f"{self.function_name} returned an invalid report: {e}") from e


class ReadingAnalyzer:
    """
    Scores attempts locally and attaches feedback.

    The local score is authoritative. The hosted function is only asked for
    its written feedback, and only when enough was spoken to comment on.
    """

    def __init__(self,
                 aligner: Optional[TranscriptAligner] = None,
                 client: Optional[AnalysisClient] = None,
                 min_feedback_chars: int = LLM_FEEDBACK_MIN_CHARS):
        self.aligner = aligner or TranscriptAligner()
        self.client = client
        self.min_feedback_chars = min_feedback_chars

    def analyze(self, reference_text: str, spoken_text: str, elapsed_seconds: float,
                scroll_speed: Optional[str] = None) -> ScoreReport:
        report = self.aligner.score(reference_text, spoken_text, elapsed_seconds, scroll_speed)
        feedback = self._remote_feedback(reference_text, spoken_text, elapsed_seconds, scroll_speed,
                                         report.overall_score)
        return report.model_copy(update={"feedback": feedback or default_feedback(report.overall_score)})

    def _remote_feedback(self, reference_text: str, spoken_text: str, elapsed_seconds: float,
                         scroll_speed: Optional[str], local_overall: int) -> str:
        if self.client is None or len(spoken_text.strip()) <= self.min_feedback_chars:
            return ""
        try:
            remote = self.client.analyze_remote(reference_text, spoken_text, elapsed_seconds, scroll_speed)
        except ChatRequestFailed as e:
            logger.warning("Remote feedback unavailable: %s", e)
            return ""
        if remote.overall_score != local_overall:
            logger.debug("Remote overall score %d differs from local %d", remote.overall_score, local_overall)
        return remote.feedback.strip()
