"""
Reference passages for the reading test.
"""
import logging
from typing import Optional

from .schemas import ReferencePassage
from ..errors import ChatRequestFailed
from ..infrastructure.llm import FunctionsClient
from ..config import PASSAGE_FUNCTION, PASSAGE_WORD_COUNTS, PASSAGE_DEFAULT_WORD_COUNT, DEFAULT_DIFFICULTY

logger = logging.getLogger("passage")

FALLBACK_PASSAGE = (
    "Effective communication is essential in today's professional environment. Whether you are "
    "presenting ideas to colleagues, negotiating with clients, or collaborating on projects, your "
    "ability to express thoughts clearly can significantly impact your success.\n\n"
    "Strong communicators understand their audience and adapt their message accordingly. They use "
    "appropriate vocabulary, maintain a confident tone, and organize their thoughts logically. Active "
    "listening is equally important, as it demonstrates respect and helps build meaningful connections.\n\n"
    "In the workplace, clear communication reduces misunderstandings and improves productivity. Team "
    "members who communicate effectively can resolve conflicts more easily and work together more "
    "harmoniously. Leaders who master this skill inspire trust and motivate their teams to achieve "
    "common goals.\n\n"
    "Practice is key to improving communication skills. Regular reading helps expand vocabulary, while "
    "public speaking opportunities build confidence. Remember that effective communication is a journey, "
    "not a destination. Continue to learn, adapt, and grow in your professional interactions."
)


def target_word_count(difficulty: str) -> int:
    return PASSAGE_WORD_COUNTS.get(difficulty, PASSAGE_DEFAULT_WORD_COUNT)


def fallback_passage(difficulty: str = DEFAULT_DIFFICULTY, topic: Optional[str] = None) -> ReferencePassage:
    return ReferencePassage(
        text=FALLBACK_PASSAGE,
        target_word_count=target_word_count(difficulty),
        difficulty=difficulty,
        topic=topic,
        is_fallback=True,
    )


class PassageService:
    """Generates reading passages, falling back to a fixed one when generation fails."""

    def __init__(self, functions: Optional[FunctionsClient] = None, function_name: str = PASSAGE_FUNCTION):
        self.functions = functions
        self.function_name = function_name

    def generate(self, difficulty: str = DEFAULT_DIFFICULTY, topic: Optional[str] = None) -> ReferencePassage:
        if self.functions is None:
            return fallback_passage(difficulty, topic)

        body = {"difficulty": difficulty, "topic": topic}
        try:
            data = self.functions.post_json(self.function_name, body)
        except ChatRequestFailed as e:
            logger.warning("Passage generation failed, using fallback: %s", e)
            return fallback_passage(difficulty, topic)

        text = data.get("passage")
        if not isinstance(text, str) or not text.strip():
            logger.warning("Passage generation returned no text, using fallback")
            return fallback_passage(difficulty, topic)

        passage = ReferencePassage(
            text=text.strip(),
            target_word_count=target_word_count(difficulty),
            difficulty=difficulty,
            topic=topic,
        )
        logger.info("Generated %s passage: %d words (target %d)", difficulty,
                    passage.word_count, passage.target_word_count)
        return passage
