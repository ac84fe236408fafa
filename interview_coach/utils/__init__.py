"""Utility modules."""

from .logging import setup_logging
from .imports import with_suppressed_audio_warnings
from .scheduling import Scheduler, TimerHandle, AsyncioScheduler

__all__ = ["setup_logging", "with_suppressed_audio_warnings", "Scheduler", "TimerHandle", "AsyncioScheduler"]
