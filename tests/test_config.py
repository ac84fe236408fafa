import logging

import pytest

from interview_coach.config import PERSONALITIES, get_config, get_personality
from interview_coach.infrastructure.llm import FunctionsClient
from interview_coach.utils import setup_logging


def test_functions_url_is_required(monkeypatch):
    monkeypatch.delenv("INTERVIEW_COACH_FUNCTIONS_URL", raising=False)
    with pytest.raises(ValueError):
        get_config()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("INTERVIEW_COACH_FUNCTIONS_URL", "https://example.test/functions/v1/")
    monkeypatch.setenv("INTERVIEW_COACH_API_KEY", "secret")
    monkeypatch.setenv("INTERVIEW_COACH_PERSONALITY", "technical")

    config = get_config()

    assert config.api_key == "secret"
    assert config.personality == "technical"
    client = FunctionsClient.from_config(config)
    assert client.url("interview-chat") == "https://example.test/functions/v1/interview-chat"


def test_unknown_personality_falls_back():
    assert get_personality("pirate") is PERSONALITIES["professional"]
    assert get_personality(None).key == "professional"
    assert get_personality("strict").label == "Strict Manager"


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "logs" / "coach.log"
    root = logging.getLogger()
    saved = list(root.handlers)
    try:
        setup_logging(str(log_file), level="INFO")
        logging.getLogger("orchestrator").info("hello from the test")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved

    assert "hello from the test" in log_file.read_text()
