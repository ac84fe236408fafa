"""
Exception hierarchy for the interview coach.
"""
from typing import Optional


class InterviewCoachError(Exception):
    """Base class for all interview coach errors."""


class MediaAccessError(InterviewCoachError):
    """Camera/microphone could not be acquired."""


class MediaAccessDenied(MediaAccessError):
    """The user or the platform refused access to the capture devices."""


class MediaAccessUnavailable(MediaAccessError):
    """No usable capture device (missing hardware, busy device, no backend)."""


class RecognitionError(InterviewCoachError):
    """Speech recognition engine reported an error."""

    def __init__(self, kind: str, message: str = ""):
        super().__init__(message or kind)
        self.kind = kind


class SynthesisError(InterviewCoachError):
    """Text-to-speech playback failed."""


class ChatRequestFailed(InterviewCoachError):
    """Chat endpoint returned a non-success response or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StreamParseError(InterviewCoachError):
    """A single streamed frame could not be decoded."""


class EmptyReferenceError(InterviewCoachError, ValueError):
    """Reference passage has no words to score against."""
