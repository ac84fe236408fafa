import itertools

import pytest

from interview_coach.errors import EmptyReferenceError
from interview_coach.config import SCORE_WEIGHTS, SKIPPED_MARKER
from interview_coach.reading.schemas import ScoreReport, round_half_up, weighted_overall
from interview_coach.reading.scoring import (
    TranscriptAligner, edit_distance, fluency_score, score_transcript, tokenize, words_per_minute
)


class TestEditDistance:

    @pytest.mark.parametrize("a,b", [("kitten", "sitting"), ("flaw", "lawn"), ("", "abc"), ("same", "same")])
    def test_symmetric(self, a, b):
        assert edit_distance(a, b) == edit_distance(b, a)

    def test_identity_is_zero(self):
        assert edit_distance("interview", "interview") == 0

    def test_empty_is_length_of_other(self):
        assert edit_distance("", "fox") == 3
        assert edit_distance("fox", "") == 3
        assert edit_distance("", "") == 0

    def test_known_distances(self):
        assert edit_distance("kitten", "sitting") == 3
        assert edit_distance("helo", "hello") == 1


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(10.5) == 11
    assert round_half_up(2.49) == 2


def test_tokenize_strips_punctuation_and_case():
    assert tokenize("  Hello,   World!  It's  ") == ["hello", "world", "its"]
    assert tokenize("") == []
    assert tokenize("?!") == []


def test_tokenize_keeps_accented_letters():
    assert tokenize("Café crème, s'il vous plaît!") == ["café", "crème", "sil", "vous", "plaît"]
    assert score_transcript("Déjà vu", "déjà vu", elapsed_seconds=1).accuracy_percent == 100


@pytest.mark.parametrize("wpm,expected", [
    (100, 90), (130, 90), (160, 90),
    (80, 75), (99, 75), (161, 75), (180, 75),
    (60, 60), (79, 60), (181, 60), (200, 60),
    (0, 40), (59, 40), (201, 40),
])
def test_fluency_bands_tightest_first(wpm, expected):
    assert fluency_score(wpm) == expected


def test_words_per_minute_zero_duration():
    assert words_per_minute(12, 0) == 0
    assert words_per_minute(4, 2.0) == 120


def test_identical_transcript_scores_98_at_reading_pace():
    report = score_transcript("the quick brown fox", "the quick brown fox", elapsed_seconds=2.0)

    assert report.accuracy_percent == 100
    assert report.word_errors == []
    assert report.pronunciation_score == 100
    assert report.words_per_minute == 120
    assert report.fluency_score == 90
    assert report.clarity_score == 100
    assert report.overall_score == 98


def test_empty_transcript_scores_by_formula():
    report = score_transcript("the quick brown fox", "", elapsed_seconds=30)

    assert report.accuracy_percent == 0
    assert report.words_per_minute == 0
    assert report.fluency_score == 40
    assert report.pronunciation_score == 10
    assert report.clarity_score == 5
    assert report.overall_score == 11
    assert [e.spoken for e in report.word_errors] == [SKIPPED_MARKER] * 4


def test_punctuation_and_case_do_not_count_as_errors():
    report = score_transcript("Hello, World!", "hello world", elapsed_seconds=1)
    assert report.accuracy_percent == 100
    assert report.word_errors == []


def test_close_word_gets_partial_credit_without_error():
    report = score_transcript("hello world", "helo world", elapsed_seconds=1)
    # 1.5 credit over 2 words
    assert report.accuracy_percent == 75
    assert report.word_errors == []


def test_distant_word_is_an_error_with_no_credit():
    report = score_transcript("cat sat", "dog sat", elapsed_seconds=1)
    assert report.accuracy_percent == 50
    assert len(report.word_errors) == 1
    error = report.word_errors[0]
    assert (error.expected, error.spoken, error.index) == ("cat", "dog", 0)


def test_alignment_is_positional():
    aligner = TranscriptAligner()
    records = aligner.align(tokenize("one two three"), tokenize("two three"))

    assert [r.spoken for r in records] == ["two", "three", ""]
    assert records[2].skipped
    assert all(r.credit == 0.0 for r in records)


def test_word_errors_capped_at_twenty_but_accuracy_uses_all_words():
    reference = " ".join(f"word{i}" for i in range(50))
    spoken = " ".join(["zzzzzz"] * 25)

    report = score_transcript(reference, spoken, elapsed_seconds=60)

    assert len(report.word_errors) == 20
    assert report.total_words == 50
    assert report.spoken_words == 25
    assert report.accuracy_percent == 0


def test_empty_reference_is_rejected():
    with pytest.raises(EmptyReferenceError):
        score_transcript("  ...  ", "anything", elapsed_seconds=1)
    with pytest.raises(ValueError):
        score_transcript("", "", elapsed_seconds=1)


def test_weights_sum_to_one():
    assert sum(SCORE_WEIGHTS.values()) == pytest.approx(1.0)


def test_overall_stays_within_bounds():
    values = (0, 1, 49, 50, 99, 100)
    for combo in itertools.product(values, repeat=4):
        assert 0 <= weighted_overall(*combo) <= 100


def test_report_overall_is_derived_not_parsed():
    payload = {
        "accuracyPercentage": 100,
        "pronunciationScore": 100,
        "fluencyScore": 90,
        "clarityScore": 100,
        "overallScore": 3,
        "wordsPerMinute": 120,
        "wordErrors": [{"expected": "a", "spoken": "b", "index": i} for i in range(30)],
    }
    report = ScoreReport.model_validate(payload)

    assert report.overall_score == 98
    assert len(report.word_errors) == 20

    dumped = report.to_payload()
    assert dumped["overallScore"] == 98
    assert dumped["accuracyPercentage"] == 100
    assert "accuracy_percent" not in dumped


def test_report_is_immutable():
    report = score_transcript("a b", "a b", elapsed_seconds=1)
    with pytest.raises(Exception):
        report.accuracy_percent = 5
