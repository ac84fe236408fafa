"""
Prompt text sent to the hosted functions.

The interviewer persona itself is built server-side from the personality key;
these are the user-side messages and the coaching prompts used for summaries.
"""
from typing import Optional

from ...config import OPENING_MESSAGE, MOVE_ON_MESSAGE

RESUME_EXCERPT_CHARS = 1500


class InterviewPrompts:
    """Collection of the client-side interview prompts."""

    @staticmethod
    def opening_message(resume_text: Optional[str] = None, target_role: Optional[str] = None) -> str:
        """First user turn. Mentions the resume when one was supplied."""
        if not resume_text or not resume_text.strip():
            return OPENING_MESSAGE

        role_line = f" for the {target_role} role" if target_role else ""
        return (
            f"Hello, I'm ready to begin the interview{role_line}. "
            "Please tailor your questions to my background. Here is my resume:\n\n"
            f"{resume_text.strip()[:RESUME_EXCERPT_CHARS]}"
        )

    @staticmethod
    def move_on_message() -> str:
        return MOVE_ON_MESSAGE
