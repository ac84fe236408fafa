"""Clients for the hosted LLM functions."""

from .client import FunctionsClient, InterviewChatClient
from .prompts import InterviewPrompts
from .streaming import DeltaStreamParser, parse_frame, iter_deltas

__all__ = [
    "FunctionsClient", "InterviewChatClient", "InterviewPrompts",
    "DeltaStreamParser", "parse_frame", "iter_deltas",
]
