import json
from unittest.mock import Mock

import pytest
import requests

from interview_coach.config import OPENING_MESSAGE
from interview_coach.errors import ChatRequestFailed
from interview_coach.infrastructure.llm import FunctionsClient, InterviewChatClient, InterviewPrompts


def sse(*contents):
    body = "".join(
        "data: " + json.dumps({"choices": [{"delta": {"content": c}}]}) + "\n" for c in contents
    ) + "data: [DONE]\n"
    raw = body.encode()
    return [raw[i:i + 16] for i in range(0, len(raw), 16)]


def make_response(ok=True, status=200, chunks=None, payload=None):
    resp = Mock()
    resp.ok = ok
    resp.status_code = status
    resp.iter_content.return_value = chunks or []
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


def make_client(response=None, side_effect=None, api_key="secret"):
    session = Mock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    functions = FunctionsClient("https://example.test/functions/v1/", api_key=api_key, session=session)
    return InterviewChatClient(functions), session


def test_start_interview_sends_opening_prompt_and_streams_reply():
    client, session = make_client(make_response(chunks=sse("Welcome! ", "Tell me about yourself.")))
    partials = []

    reply = client.start_interview(personality="friendly", on_delta=partials.append)

    assert reply == "Welcome! Tell me about yourself."
    assert partials == ["Welcome! ", "Welcome! Tell me about yourself."]
    assert client.current_response == ""

    args, kwargs = session.post.call_args
    assert args[0] == "https://example.test/functions/v1/interview-chat"
    assert kwargs["stream"] is True
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["json"] == {
        "messages": [{"role": "user", "content": OPENING_MESSAGE}],
        "personality": "friendly",
    }


def test_resume_and_role_are_forwarded():
    client, session = make_client(make_response(chunks=sse("Hi")))

    client.start_interview(resume_text="Ten years of Python", target_role="Staff Engineer")

    body = session.post.call_args[1]["json"]
    assert body["resumeText"] == "Ten years of Python"
    assert body["targetRole"] == "Staff Engineer"
    assert "Ten years of Python" in body["messages"][0]["content"]


def test_send_message_appends_user_turn_to_history():
    client, session = make_client(make_response(chunks=sse("Next question?")))
    history = [
        {"role": "assistant", "content": "Why this job?", "extra": "dropped"},
    ]

    assert client.send_message(history, "Because I like it") == "Next question?"

    body = session.post.call_args[1]["json"]
    assert body["messages"] == [
        {"role": "assistant", "content": "Why this job?"},
        {"role": "user", "content": "Because I like it"},
    ]


def test_error_detail_from_server_is_surfaced():
    client, _ = make_client(make_response(ok=False, status=429, payload={"error": "Rate limit exceeded"}))

    with pytest.raises(ChatRequestFailed) as exc_info:
        client.send_message([], "hello")

    assert str(exc_info.value) == "Rate limit exceeded"
    assert exc_info.value.status_code == 429


def test_error_without_detail_reports_status():
    client, _ = make_client(make_response(ok=False, status=500, payload=ValueError("not json")))

    with pytest.raises(ChatRequestFailed, match="Request failed: 500"):
        client.send_message([], "hello")


def test_transport_errors_are_wrapped():
    client, _ = make_client(side_effect=requests.ConnectionError("connection refused"))

    with pytest.raises(ChatRequestFailed):
        client.start_interview()


def test_interrupted_stream_is_wrapped():
    resp = make_response()
    resp.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("reset")
    client, _ = make_client(resp)

    with pytest.raises(ChatRequestFailed, match="Stream interrupted"):
        client.send_message([], "hello")
    resp.close.assert_called()


def test_no_auth_header_without_api_key():
    functions = FunctionsClient("https://example.test", api_key=None, session=Mock())
    assert "Authorization" not in functions.headers()


def test_opening_message_without_resume():
    assert InterviewPrompts.opening_message(None) == OPENING_MESSAGE
    assert InterviewPrompts.opening_message("   ") == OPENING_MESSAGE
