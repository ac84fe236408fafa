import json
from unittest.mock import Mock

import pytest

from interview_coach.errors import ChatRequestFailed
from interview_coach.interview import ChatMessage, InterviewSummary, Role
from interview_coach.interview.services import (
    FALLBACK_FEEDBACK, ConversationManager, InterviewSummaryService, parse_feedback
)


def make_summary(messages=None):
    if messages is None:
        messages = [
            ChatMessage(Role.ASSISTANT, "Tell me about yourself."),
            ChatMessage(Role.USER, "I build payment systems."),
        ]
    return InterviewSummary(conversation_id="conv_test", personality="friendly",
                            messages=messages, duration_seconds=125, question_count=1)


FEEDBACK = {
    "summary": "Solid answers.",
    "strengths": ["Concise"],
    "improvements": ["Use the STAR format"],
    "overallScore": 82,
}


class TestParseFeedback:

    def test_plain_object(self):
        feedback = parse_feedback(FEEDBACK)
        assert feedback.summary == "Solid answers."
        assert feedback.overall_score == 82
        assert not feedback.is_fallback

    def test_fenced_json(self):
        raw = "Here you go:\n```json\n" + json.dumps(FEEDBACK) + "\n```"
        assert parse_feedback(raw).strengths == ["Concise"]

    def test_json_embedded_in_prose(self):
        raw = "Assessment follows " + json.dumps(FEEDBACK) + " hope this helps"
        assert parse_feedback(raw).improvements == ["Use the STAR format"]

    def test_missing_score_defaults_to_75(self):
        assert parse_feedback({"summary": "ok"}).overall_score == 75

    def test_missing_lists_use_generic_text(self):
        feedback = parse_feedback({"summary": "ok", "overallScore": 60})
        assert feedback.strengths == FALLBACK_FEEDBACK.strengths

    @pytest.mark.parametrize("raw", ["no json here", "{not json}", "[1, 2]"])
    def test_unusable_text_raises(self, raw):
        with pytest.raises(ValueError):
            parse_feedback(raw)


class TestInterviewSummaryService:

    def test_summary_request_body(self):
        functions = Mock()
        functions.post_json.return_value = FEEDBACK
        service = InterviewSummaryService(functions)

        feedback = service.summarize(make_summary())

        assert feedback.overall_score == 82
        name, body = functions.post_json.call_args[0]
        assert name == "interview-summary"
        assert body == {
            "messages": [
                {"role": "assistant", "content": "Tell me about yourself."},
                {"role": "user", "content": "I build payment systems."},
            ],
            "duration": 125,
            "questionCount": 1,
        }

    def test_model_text_in_content_field(self):
        functions = Mock()
        functions.post_json.return_value = {"content": "```\n" + json.dumps(FEEDBACK) + "\n```"}

        assert InterviewSummaryService(functions).summarize(make_summary()).summary == "Solid answers."

    def test_empty_conversation_skips_the_request(self):
        functions = Mock()
        feedback = InterviewSummaryService(functions).summarize(make_summary(messages=[]))

        assert feedback is FALLBACK_FEEDBACK
        functions.post_json.assert_not_called()

    def test_request_failure_falls_back(self):
        functions = Mock()
        functions.post_json.side_effect = ChatRequestFailed("Request failed: 500", 500)

        feedback = InterviewSummaryService(functions).summarize(make_summary())

        assert feedback.is_fallback
        assert feedback.overall_score == 70

    def test_unusable_reply_falls_back(self):
        functions = Mock()
        functions.post_json.return_value = {"content": "I cannot help with that"}

        assert InterviewSummaryService(functions).summarize(make_summary()).is_fallback


class TestConversationManager:

    def test_save_and_load(self, tmp_path):
        manager = ConversationManager(str(tmp_path))

        path = manager.save(make_summary(), parse_feedback(FEEDBACK))
        record = manager.load("conv_test")

        assert path == str(tmp_path / "conv_test" / "session.json")
        assert record["question_count"] == 1
        assert record["overall_score"] == 82
        assert record["transcript"][1] == {"role": "user", "content": "I build payment systems."}

    def test_save_without_feedback(self, tmp_path):
        manager = ConversationManager(str(tmp_path))
        manager.save(make_summary())
        assert "overall_score" not in manager.load("conv_test")
