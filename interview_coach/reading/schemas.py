"""
Wire-compatible models for the reading test.

Field aliases match the camelCase JSON used by the analyze-speech and
generate-passage functions, so reports can be parsed from and dumped to the
same payloads.
"""
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from ..config import MAX_DISPLAY_ERRORS, SCORE_WEIGHTS


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (2.5 -> 3, not 2)."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def weighted_overall(accuracy: float, pronunciation: float, fluency: float, clarity: float) -> int:
    """Fixed-weight composite of the four sub-scores."""
    return round_half_up(
        accuracy * SCORE_WEIGHTS["accuracy"]
        + pronunciation * SCORE_WEIGHTS["pronunciation"]
        + fluency * SCORE_WEIGHTS["fluency"]
        + clarity * SCORE_WEIGHTS["clarity"]
    )


@dataclass(frozen=True)
class ReferencePassage:
    """A passage the user reads aloud."""
    text: str
    target_word_count: int
    difficulty: str
    topic: Optional[str] = None
    is_fallback: bool = False

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(frozen=True)
class WordAlignmentRecord:
    """One reference position compared against the spoken word at the same index."""
    expected: str
    spoken: str
    index: int
    edit_distance: int
    credit: float

    @property
    def skipped(self) -> bool:
        return not self.spoken


class WordError(BaseModel):
    model_config = ConfigDict(frozen=True)

    expected: str
    spoken: str
    index: int


class ScoreReport(BaseModel):
    """
    Result of one reading attempt.

    overall_score is always derived from the sub-scores; a value present in
    parsed JSON is ignored and recomputed.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    accuracy_percent: int = Field(alias="accuracyPercentage", ge=0, le=100)
    pronunciation_score: int = Field(alias="pronunciationScore", ge=0, le=100)
    fluency_score: int = Field(alias="fluencyScore", ge=0, le=100)
    clarity_score: int = Field(alias="clarityScore", ge=0, le=100)
    words_per_minute: int = Field(alias="wordsPerMinute", ge=0)
    total_words: int = Field(default=0, alias="totalWords")
    spoken_words: int = Field(default=0, alias="spokenWords")
    word_errors: List[WordError] = Field(default_factory=list, alias="wordErrors")
    feedback: str = ""
    scroll_speed: Optional[str] = Field(default=None, alias="scrollSpeed")
    duration: float = 0.0

    @field_validator("word_errors", mode="before")
    @classmethod
    def _truncate_errors(cls, value):
        if isinstance(value, list):
            return value[:MAX_DISPLAY_ERRORS]
        return value

    @computed_field(alias="overallScore")
    @property
    def overall_score(self) -> int:
        return weighted_overall(
            self.accuracy_percent,
            self.pronunciation_score,
            self.fluency_score,
            self.clarity_score,
        )

    def to_payload(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")
