"""
Service classes for the interview system.
"""
import os
import re
import json
import time
import logging
from typing import Dict, Any, Optional, Union

from .models import InterviewSummary, InterviewFeedback
from ..errors import ChatRequestFailed
from ..infrastructure.llm import FunctionsClient
from ..config import SUMMARY_FUNCTION

logger = logging.getLogger("services")

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

FALLBACK_FEEDBACK = InterviewFeedback(
    summary=("Interview completed successfully. Your responses showed good engagement "
             "and communication skills."),
    strengths=["Active participation", "Clear communication", "Professional demeanor"],
    improvements=["Consider providing more specific examples", "Practice structured responses"],
    overall_score=70,
    is_fallback=True,
)


def parse_feedback(raw: Union[str, Dict[str, Any]]) -> InterviewFeedback:
    """
    Build feedback from the summary endpoint's answer.

    Accepts either the decoded object or model text, which may wrap its JSON
    in a markdown code fence.

    Raises:
        ValueError: If no JSON object can be recovered
    """
    if isinstance(raw, str):
        match = _FENCE.search(raw)
        text = (match.group(1) if match else raw).strip()
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            start, end = text.find("{"), text.rfind("}")
            if start == -1 or end <= start:
                raise ValueError(f"No JSON found in summary response: {raw[:200]}")
            try:
                data = json.loads(text[start:end + 1])
            except json.JSONDecodeError as e:
                raise ValueError(f"Could not extract valid JSON from summary response: {e}") from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise ValueError("Summary response is not an object")

    score = data.get("overallScore")
    return InterviewFeedback(
        summary=data.get("summary") or FALLBACK_FEEDBACK.summary,
        strengths=list(data.get("strengths") or FALLBACK_FEEDBACK.strengths),
        improvements=list(data.get("improvements") or FALLBACK_FEEDBACK.improvements),
        overall_score=int(score) if isinstance(score, (int, float)) and score else 75,
    )


class InterviewSummaryService:
    """Asks the hosted coach to assess a finished interview."""

    def __init__(self, functions: FunctionsClient, function_name: str = SUMMARY_FUNCTION):
        self.functions = functions
        self.function_name = function_name

    def summarize(self, summary: InterviewSummary) -> InterviewFeedback:
        """
        Assess the interview, falling back to a generic assessment on failure.
        """
        if not summary.messages:
            logger.info("No conversation to analyze; using default feedback")
            return FALLBACK_FEEDBACK

        try:
            data = self.functions.post_json(self.function_name, summary.to_payload())
        except ChatRequestFailed as e:
            logger.error("Interview summary failed: %s", e)
            return FALLBACK_FEEDBACK

        if data.get("error"):
            logger.warning("Summary endpoint reported: %s", data["error"])
        payload = data.get("content", data)
        try:
            return parse_feedback(payload)
        except ValueError as e:
            logger.error("Unusable summary response: %s", e)
            return FALLBACK_FEEDBACK


class ConversationManager:
    """Owns the per-interview workspace and writes finished sessions to it."""

    def __init__(self, workdir: str):
        self.workdir = workdir

    def conversation_dir(self, conversation_id: str) -> str:
        return os.path.join(self.workdir, conversation_id)

    def save(self, summary: InterviewSummary, feedback: Optional[InterviewFeedback] = None) -> str:
        """Write the session (and its assessment, if any) as session.json."""
        conversation_dir = self.conversation_dir(summary.conversation_id)
        os.makedirs(conversation_dir, exist_ok=True)

        record: Dict[str, Any] = {
            "conversation_id": summary.conversation_id,
            "date_time": time.strftime("%Y-%m-%dT%H:%M:%S"),
            "personality": summary.personality,
            "target_role": summary.target_role,
            "duration_seconds": summary.duration_seconds,
            "question_count": summary.question_count,
            "transcript": [m.to_dict() for m in summary.messages],
        }
        if feedback is not None:
            record.update({
                "summary": feedback.summary,
                "strengths": feedback.strengths,
                "improvements": feedback.improvements,
                "overall_score": feedback.overall_score,
            })

        path = os.path.join(conversation_dir, "session.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)
        logger.info("Saved conversation %s to %s", summary.conversation_id, path)
        return path

    def load(self, conversation_id: str) -> Dict[str, Any]:
        path = os.path.join(self.conversation_dir(conversation_id), "session.json")
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
