"""
Transcript scoring for the scrolling reading test.

Spoken words are compared to the reference passage by position: word i of the
transcript is checked against word i of the passage. There is no realignment
after an inserted or dropped word, so one skipped word shifts every later
comparison.
"""
import re
import logging
from typing import List, Optional, Sequence

from .schemas import (
    ScoreReport, WordAlignmentRecord, WordError,
    round_half_up, weighted_overall
)
from ..errors import EmptyReferenceError
from ..config import (
    PARTIAL_CREDIT, SIMILARITY_THRESHOLD, MAX_DISPLAY_ERRORS, SKIPPED_MARKER,
    PRONUNCIATION_BONUS, FLUENCY_BANDS, FLUENCY_FLOOR
)

logger = logging.getLogger("reading_scoring")

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def edit_distance(a: str, b: str) -> int:
    """
    Levenshtein distance between two tokens.

    Rows follow b and columns follow a, so the table is (len(b)+1) x (len(a)+1).
    """
    matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for i in range(len(b) + 1):
        matrix[i][0] = i
    for j in range(len(a) + 1):
        matrix[0][j] = j

    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,  # substitute
                    matrix[i][j - 1] + 1,      # insert
                    matrix[i - 1][j] + 1,      # delete
                )
    return matrix[len(b)][len(a)]


def similarity(expected: str, spoken: str) -> float:
    """1.0 for identical tokens, falling towards 0.0 as the edit distance grows."""
    longest = max(len(expected), len(spoken))
    if longest == 0:
        return 1.0
    return 1 - edit_distance(expected, spoken) / longest


def normalize_text(text: str) -> str:
    text = _PUNCTUATION.sub("", (text or "").lower())
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(text: str) -> List[str]:
    """Normalize and split into words; blank input gives an empty list."""
    normalized = normalize_text(text)
    return normalized.split(" ") if normalized else []


def fluency_score(words_per_minute: int) -> int:
    """First matching band wins; bands are nested so the tightest is checked first."""
    for low, high, score in FLUENCY_BANDS:
        if low <= words_per_minute <= high:
            return score
    return FLUENCY_FLOOR


def words_per_minute(spoken_count: int, elapsed_seconds: float) -> int:
    if elapsed_seconds <= 0:
        return 0
    return round_half_up(spoken_count / elapsed_seconds * 60)


class TranscriptAligner:
    """Positional word alignment of a spoken transcript against a reference passage."""

    def __init__(self,
                 similarity_threshold: float = SIMILARITY_THRESHOLD,
                 partial_credit: float = PARTIAL_CREDIT,
                 max_errors: int = MAX_DISPLAY_ERRORS):
        self.similarity_threshold = similarity_threshold
        self.partial_credit = partial_credit
        self.max_errors = max_errors

    def align(self, reference: Sequence[str], spoken: Sequence[str]) -> List[WordAlignmentRecord]:
        """
        Build one record per reference word.

        Args:
            reference: Normalized reference tokens
            spoken: Normalized spoken tokens

        Returns:
            Alignment records in reference order
        """
        records = []
        for index, expected in enumerate(reference):
            said = spoken[index] if index < len(spoken) else ""

            if expected == said:
                credit, distance = 1.0, 0
            elif said:
                distance = edit_distance(expected, said)
                close = similarity(expected, said) >= self.similarity_threshold
                credit = self.partial_credit if close else 0.0
            else:
                credit, distance = 0.0, len(expected)

            records.append(WordAlignmentRecord(
                expected=expected, spoken=said, index=index,
                edit_distance=distance, credit=credit
            ))
        return records

    @staticmethod
    def is_error(record: WordAlignmentRecord) -> bool:
        """Skipped words, and substitutions more than one edit away."""
        return record.skipped or record.edit_distance > 1

    def word_errors(self, records: Sequence[WordAlignmentRecord]) -> List[WordError]:
        errors = []
        for record in records:
            if not self.is_error(record):
                continue
            errors.append(WordError(
                expected=record.expected,
                spoken=record.spoken or SKIPPED_MARKER,
                index=record.index,
            ))
            if len(errors) >= self.max_errors:
                break
        return errors

    def score(self,
              reference_text: str,
              spoken_text: str,
              elapsed_seconds: float,
              scroll_speed: Optional[str] = None) -> ScoreReport:
        """
        Score a reading attempt.

        Args:
            reference_text: Passage the user was asked to read
            spoken_text: Final recognized transcript
            elapsed_seconds: Reading duration used for words per minute
            scroll_speed: Scroll speed label, echoed into the report

        Returns:
            ScoreReport with sub-scores and at most max_errors word errors

        Raises:
            EmptyReferenceError: If the reference has no words
        """
        reference = tokenize(reference_text)
        if not reference:
            raise EmptyReferenceError("Reference passage is empty")
        spoken = tokenize(spoken_text)

        records = self.align(reference, spoken)
        total_credit = sum(record.credit for record in records)

        accuracy = round_half_up(total_credit / len(reference) * 100)
        wpm = words_per_minute(len(spoken), elapsed_seconds)
        pronunciation = min(100, accuracy + PRONUNCIATION_BONUS)
        fluency = fluency_score(wpm)
        clarity = round_half_up((accuracy + pronunciation) / 2)

        report = ScoreReport(
            accuracy_percent=accuracy,
            pronunciation_score=pronunciation,
            fluency_score=fluency,
            clarity_score=clarity,
            words_per_minute=wpm,
            total_words=len(reference),
            spoken_words=len(spoken),
            word_errors=self.word_errors(records),
            scroll_speed=scroll_speed,
            duration=elapsed_seconds,
        )
        logger.info("Scored reading attempt: accuracy=%d wpm=%d overall=%d errors=%d",
                    accuracy, wpm, report.overall_score,
                    sum(1 for r in records if self.is_error(r)))
        return report


def score_transcript(reference_text: str, spoken_text: str, elapsed_seconds: float,
                     scroll_speed: Optional[str] = None) -> ScoreReport:
    """Score with the default thresholds."""
    return TranscriptAligner().score(reference_text, spoken_text, elapsed_seconds, scroll_speed)


__all__ = [
    "edit_distance", "similarity", "normalize_text", "tokenize", "fluency_score",
    "words_per_minute", "weighted_overall", "TranscriptAligner", "score_transcript",
]
