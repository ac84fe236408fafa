"""
REST clients for the hosted interview functions.
"""
import json
import logging
from typing import Optional, Dict, Any, List, Callable

import requests

from .prompts import InterviewPrompts
from .streaming import DeltaStreamParser
from ...errors import ChatRequestFailed
from ...config import Config, REQUEST_TIMEOUT, STREAM_CHUNK_SIZE, CHAT_FUNCTION, DEFAULT_PERSONALITY

logger = logging.getLogger("llm_client")

DeltaCallback = Callable[[str], None]


class FunctionsClient:
    """Shared transport for the hosted functions (auth header, timeout, error mapping)."""

    def __init__(self,
                 base_url: str,
                 api_key: Optional[str] = None,
                 timeout: int = REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "FunctionsClient":
        return cls(config.functions_url, config.api_key, config.request_timeout, **kwargs)

    def url(self, function_name: str) -> str:
        return f"{self.base_url}/{function_name}"

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def post(self, function_name: str, body: Dict[str, Any], stream: bool = False) -> requests.Response:
        """
        POST a JSON body to a function.

        Raises:
            ChatRequestFailed: On transport errors and non-2xx responses
        """
        try:
            resp = self.session.post(self.url(function_name), headers=self.headers(),
                                     json=body, timeout=self.timeout, stream=stream)
        except requests.RequestException as e:
            logger.error("%s request failed: %s", function_name, e)
            raise ChatRequestFailed(f"Request failed: {e}") from e

        if not resp.ok:
            detail = self._error_detail(resp)
            resp.close()
            logger.error("%s returned %d: %s", function_name, resp.status_code, detail)
            raise ChatRequestFailed(detail, status_code=resp.status_code)
        return resp

    def post_json(self, function_name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST and decode a JSON object response."""
        resp = self.post(function_name, body)
        try:
            data = resp.json()
        except ValueError as e:
            raise ChatRequestFailed(f"{function_name} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise ChatRequestFailed(f"{function_name} returned unexpected payload")
        return data

    @staticmethod
    def _error_detail(resp: requests.Response) -> str:
        """Server-provided {error} text when present, else a status line."""
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("error"), str) and data["error"]:
            return data["error"]
        return f"Request failed: {resp.status_code}"


class InterviewChatClient:
    """
    Streaming exchange with the interviewer model.

    The client does not guard against overlapping calls; the orchestrator only
    issues one request at a time.
    """

    def __init__(self, functions: FunctionsClient, function_name: str = CHAT_FUNCTION):
        self.functions = functions
        self.function_name = function_name
        self.current_response = ""

    def start_interview(self,
                        personality: str = DEFAULT_PERSONALITY,
                        resume_text: Optional[str] = None,
                        target_role: Optional[str] = None,
                        on_delta: Optional[DeltaCallback] = None) -> str:
        """
        Open the interview and stream the interviewer's first reply.

        Returns:
            Full assistant response text
        """
        opening = InterviewPrompts.opening_message(resume_text, target_role)
        messages = [{"role": "user", "content": opening}]
        return self._stream(messages, personality, resume_text, target_role, on_delta)

    def send_message(self,
                     history: List[Dict[str, str]],
                     text: str,
                     personality: str = DEFAULT_PERSONALITY,
                     resume_text: Optional[str] = None,
                     target_role: Optional[str] = None,
                     on_delta: Optional[DeltaCallback] = None) -> str:
        """
        Send the candidate's answer with the prior conversation.

        Args:
            history: Earlier messages, oldest first
            text: New user message
        """
        messages = [{"role": m["role"], "content": m["content"]} for m in history]
        messages.append({"role": "user", "content": text})
        return self._stream(messages, personality, resume_text, target_role, on_delta)

    def _stream(self, messages: List[Dict[str, str]], personality: str,
                resume_text: Optional[str], target_role: Optional[str],
                on_delta: Optional[DeltaCallback]) -> str:
        body: Dict[str, Any] = {"messages": messages, "personality": personality}
        if resume_text:
            body["resumeText"] = resume_text
        if target_role:
            body["targetRole"] = target_role

        self.current_response = ""
        logger.debug("Sending %d messages to %s", len(messages), self.function_name)
        resp = self.functions.post(self.function_name, body, stream=True)

        parser = DeltaStreamParser()
        try:
            for chunk in resp.iter_content(chunk_size=STREAM_CHUNK_SIZE):
                if chunk:
                    self._publish(parser.feed(chunk), parser, on_delta)
            self._publish(parser.close(), parser, on_delta)
        except requests.RequestException as e:
            logger.error("Stream interrupted after %d chars: %s", len(parser.text), e)
            raise ChatRequestFailed(f"Stream interrupted: {e}") from e
        finally:
            resp.close()

        if parser.skipped_frames:
            logger.debug("Skipped %d malformed frames", parser.skipped_frames)
        logger.info("Assistant response (%d chars): %s", len(parser.text), json.dumps(parser.text[:200]))
        self.current_response = ""
        return parser.text

    def _publish(self, fragments: List[str], parser: DeltaStreamParser,
                 on_delta: Optional[DeltaCallback]) -> None:
        if not fragments:
            return
        self.current_response = parser.text
        if on_delta:
            on_delta(parser.text)
