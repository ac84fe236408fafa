from unittest.mock import Mock

import pytest

from interview_coach.errors import ChatRequestFailed, MediaAccessDenied
from interview_coach.infrastructure.audio.speech.stt import SpeechRecognizer
from interview_coach.infrastructure.media import MediaCaptureSession
from interview_coach.interview.testing import FakeMediaDevices, FakeScheduler, ScriptedRecognitionEngine
from interview_coach.reading import (
    AnalysisClient, PassageService, ReadingAnalyzer, ReadingTestSession, ReferencePassage,
    default_feedback, fallback_passage, scroll_speed_value
)
from interview_coach.reading.passage import FALLBACK_PASSAGE
from interview_coach.reading.session import FINISHED, PAUSED, READING, READY

PASSAGE = ReferencePassage(text="The quick brown fox jumps over the lazy dog", target_word_count=9,
                           difficulty="easy")
LONG_ANSWER = "The quick brown fox jumps over the lazy dog and keeps running far away"


class TestPassageService:

    def test_generated_passage(self):
        functions = Mock()
        functions.post_json.return_value = {"passage": "  A short passage.  "}

        passage = PassageService(functions).generate("hard", "space travel")

        assert passage.text == "A short passage."
        assert passage.target_word_count == 400
        assert not passage.is_fallback
        functions.post_json.assert_called_once_with("generate-passage",
                                                    {"difficulty": "hard", "topic": "space travel"})

    @pytest.mark.parametrize("reply", [{"passage": ""}, {"error": "quota"}, {"passage": 42}])
    def test_empty_reply_uses_fallback(self, reply):
        functions = Mock()
        functions.post_json.return_value = reply
        passage = PassageService(functions).generate("easy")
        assert passage.is_fallback
        assert passage.text == FALLBACK_PASSAGE

    def test_request_failure_uses_fallback(self):
        functions = Mock()
        functions.post_json.side_effect = ChatRequestFailed("Request failed: 502", 502)
        assert PassageService(functions).generate("medium").is_fallback

    def test_without_client(self):
        passage = PassageService().generate("unknown-level")
        assert passage.is_fallback
        assert passage.target_word_count == 200

    def test_fallback_word_counts(self):
        assert fallback_passage("easy").target_word_count == 150
        assert fallback_passage("medium").target_word_count == 250


class TestReadingAnalyzer:

    def remote_client(self, payload=None, error=None):
        functions = Mock()
        if error is not None:
            functions.post_json.side_effect = error
        else:
            functions.post_json.return_value = payload
        return AnalysisClient(functions), functions

    def test_feedback_bands(self):
        assert default_feedback(98).startswith("Excellent")
        assert default_feedback(80).startswith("Great")
        assert default_feedback(70).startswith("Good")
        assert default_feedback(60).startswith("Fair")
        assert default_feedback(11).startswith("Keep practicing")

    def test_local_only(self):
        report = ReadingAnalyzer().analyze(PASSAGE.text, PASSAGE.text, 5.4)
        assert report.accuracy_percent == 100
        assert report.feedback == default_feedback(report.overall_score)

    def test_remote_feedback_is_used_but_local_scores_win(self):
        client, functions = self.remote_client({
            "accuracyPercentage": 10, "pronunciationScore": 10, "fluencyScore": 10,
            "clarityScore": 10, "wordsPerMinute": 10, "feedback": "Watch your pacing.",
        })

        report = ReadingAnalyzer(client=client).analyze(PASSAGE.text, LONG_ANSWER, 6, "fast")

        assert report.feedback == "Watch your pacing."
        assert report.accuracy_percent == 100
        assert report.scroll_speed == "fast"
        body = functions.post_json.call_args[0][1]
        assert body == {"originalText": PASSAGE.text, "spokenText": LONG_ANSWER,
                        "duration": 6, "scrollSpeed": "fast"}

    def test_short_answers_are_not_sent(self):
        client, functions = self.remote_client({})
        ReadingAnalyzer(client=client).analyze(PASSAGE.text, "the quick brown fox", 3)
        functions.post_json.assert_not_called()

    def test_remote_failure_keeps_default_feedback(self):
        client, _ = self.remote_client(error=ChatRequestFailed("Request failed: 500", 500))
        report = ReadingAnalyzer(client=client).analyze(PASSAGE.text, LONG_ANSWER, 6)
        assert report.feedback == default_feedback(report.overall_score)

    def test_malformed_remote_report_is_rejected(self):
        client, _ = self.remote_client({"accuracyPercentage": "lots"})
        with pytest.raises(ChatRequestFailed):
            client.analyze_remote(PASSAGE.text, LONG_ANSWER, 6)


def test_scroll_speeds():
    assert scroll_speed_value("slow") == 30
    assert scroll_speed_value("fast") == 80
    assert scroll_speed_value("custom") == 50
    assert scroll_speed_value("custom", 65) == 65
    with pytest.raises(ValueError):
        scroll_speed_value("warp")
    with pytest.raises(ValueError):
        scroll_speed_value("custom", 0)


class TestReadingTestSession:

    def make_session(self, media_mode="grant", **kwargs):
        scheduler = FakeScheduler()
        engine = ScriptedRecognitionEngine()
        recognizer = SpeechRecognizer(engine, scheduler)
        media = MediaCaptureSession(FakeMediaDevices(media_mode))
        reports = []
        session = ReadingTestSession(PASSAGE, recognizer, scheduler, media=media,
                                     on_complete=reports.append, **kwargs)
        return scheduler, engine, session, reports

    def test_finishes_when_scrolled_to_the_end(self):
        scheduler, engine, session, reports = self.make_session(scroll_speed="medium", max_scroll=100)

        session.start()
        engine.hear("the quick brown fox")
        scheduler.advance(3)

        assert session.state == FINISHED
        assert session.duration == 2
        assert session.progress == 1.0
        assert reports == [session.report]
        assert reports[0].spoken_words == 4
        assert not session.media.is_active
        assert scheduler.pending == 0

    def test_pause_freezes_scroll_and_clock(self):
        scheduler, _, session, _ = self.make_session(max_scroll=1000)
        session.start()
        scheduler.advance(1.5)
        position = session.scroll_position

        session.pause()
        scheduler.advance(10)
        assert session.state == PAUSED
        assert session.scroll_position == position
        assert session.duration == 1

        session.toggle()
        assert session.state == READING

    def test_finish_scores_the_transcript(self):
        scheduler, engine, session, reports = self.make_session()
        session.start()
        engine.hear(PASSAGE.text)
        scheduler.advance(5)

        report = session.finish()

        assert report.accuracy_percent == 100
        assert report.duration == 5
        assert session.finish() is report
        assert len(reports) == 1

    def test_duration_follows_the_clock_not_tick_count(self):
        scheduler, _, session, _ = self.make_session(max_scroll=10000)
        session.start()
        scheduler.advance(1)
        # the loop was blocked for three seconds
        scheduler.now += 3
        scheduler.advance(1)

        report = session.finish()

        assert report.duration == 5
        assert session.duration == 5

    def test_paused_time_is_not_counted(self):
        scheduler, _, session, _ = self.make_session(max_scroll=10000)
        session.start()
        scheduler.advance(2)
        session.pause()
        scheduler.advance(30)
        session.resume()
        scheduler.advance(1)

        assert session.finish().duration == 3

    def test_finish_before_start(self):
        _, _, session, reports = self.make_session()
        assert session.finish() is None
        assert session.state == READY
        assert reports == []

    def test_denied_microphone(self):
        _, engine, session, _ = self.make_session(media_mode="deny")
        with pytest.raises(MediaAccessDenied):
            session.start()
        assert session.state == READY
        assert engine.start_count == 0

    def test_reset(self):
        scheduler, engine, session, _ = self.make_session()
        session.start()
        engine.hear("something")
        scheduler.advance(2)

        session.reset()

        assert session.state == READY
        assert session.scroll_position == 0
        assert session.recognizer.transcript == ""
        assert scheduler.pending == 0
