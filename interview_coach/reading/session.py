"""
Scrolling reading test: the passage scrolls at a fixed speed while the
recognizer transcribes, and the attempt is scored when it finishes.
"""
import logging
from typing import Callable, Optional

from .analysis import ReadingAnalyzer
from .schemas import ReferencePassage, ScoreReport
from ..infrastructure.audio.speech.stt import SpeechRecognizer
from ..infrastructure.media import MediaCaptureSession
from ..utils.scheduling import Scheduler, TimerHandle
from ..config import SCROLL_SPEEDS, SCROLL_TICKS_PER_SECOND, CLOCK_TICK_SECONDS, DEFAULT_SCROLL_SPEED

logger = logging.getLogger("reading_session")

READY = "ready"
READING = "reading"
PAUSED = "paused"
FINISHED = "finished"

DEFAULT_MAX_SCROLL = 1000.0


def scroll_speed_value(speed: str, custom_speed: Optional[float] = None) -> float:
    """Pixels per second for a named speed."""
    if speed not in SCROLL_SPEEDS:
        raise ValueError(f"Unknown scroll speed {speed!r}; expected one of {', '.join(SCROLL_SPEEDS)}")
    if speed == "custom" and custom_speed is not None:
        if custom_speed <= 0:
            raise ValueError("Custom scroll speed must be positive")
        return float(custom_speed)
    return float(SCROLL_SPEEDS[speed])


class ReadingTestSession:
    """
    One reading attempt.

    States: ready -> reading <-> paused -> finished. The scroll position
    advances speed/60 per tick and the attempt finishes by itself once the
    end of the passage is reached.
    """

    def __init__(self,
                 passage: ReferencePassage,
                 recognizer: SpeechRecognizer,
                 scheduler: Scheduler,
                 analyzer: Optional[ReadingAnalyzer] = None,
                 media: Optional[MediaCaptureSession] = None,
                 scroll_speed: str = DEFAULT_SCROLL_SPEED,
                 custom_speed: Optional[float] = None,
                 max_scroll: float = DEFAULT_MAX_SCROLL,
                 on_complete: Optional[Callable[[ScoreReport], None]] = None):
        self.passage = passage
        self.recognizer = recognizer
        self.scheduler = scheduler
        self.analyzer = analyzer or ReadingAnalyzer()
        self.media = media
        self.scroll_speed = scroll_speed
        self.speed = scroll_speed_value(scroll_speed, custom_speed)
        self.max_scroll = max_scroll
        self.on_complete = on_complete

        self.state = READY
        self.scroll_position = 0.0
        self.duration = 0
        self.report: Optional[ScoreReport] = None
        self._reading_time = 0.0
        self._resumed_at = 0.0
        self._clock: Optional[TimerHandle] = None
        self._scroller: Optional[TimerHandle] = None

    @property
    def is_scrolling(self) -> bool:
        return self.state == READING

    @property
    def progress(self) -> float:
        """Share of the passage scrolled past, 0..1."""
        if self.max_scroll <= 0:
            return 1.0
        return min(1.0, self.scroll_position / self.max_scroll)

    def start(self) -> None:
        """
        Open the microphone (if a media session was given) and begin reading.

        Raises:
            MediaAccessDenied: If access to the microphone was refused
            MediaAccessUnavailable: If the microphone could not be opened
        """
        if self.state != READY:
            return
        if self.media is not None:
            self.media.acquire(video=False, audio=True)
        self.recognizer.start()
        logger.info("Reading test started at %s (%.0f px/s)", self.scroll_speed, self.speed)
        self.resume()

    def pause(self) -> None:
        if self.state != READING:
            return
        self._stop_timers()
        self._reading_time = self._reading_elapsed()
        self.duration = int(self._reading_time)
        self.state = PAUSED

    def resume(self) -> None:
        if self.state not in (READY, PAUSED):
            return
        self.state = READING
        self._resumed_at = self.scheduler.time()
        self._clock = self.scheduler.call_every(CLOCK_TICK_SECONDS, self._tick_clock)
        self._scroller = self.scheduler.call_every(1.0 / SCROLL_TICKS_PER_SECOND, self._tick_scroll)

    def toggle(self) -> None:
        if self.state == READING:
            self.pause()
        else:
            self.resume()

    def finish(self) -> Optional[ScoreReport]:
        """Stop reading and score what was heard."""
        if self.state == FINISHED:
            return self.report
        if self.state == READY:
            logger.debug("finish() before start; nothing to score")
            return None

        self._stop_timers()
        self.duration = int(self._reading_elapsed())
        self.state = FINISHED
        self.recognizer.stop()
        if self.media is not None:
            self.media.release()

        spoken = self.recognizer.transcript
        self.report = self.analyzer.analyze(self.passage.text, spoken, self.duration, self.scroll_speed)
        logger.info("Reading test finished after %ds: overall %d", self.duration, self.report.overall_score)
        if self.on_complete is not None:
            self.on_complete(self.report)
        return self.report

    def reset(self) -> None:
        """Discard the attempt and go back to ready."""
        self._stop_timers()
        self.recognizer.stop()
        self.recognizer.reset_transcript()
        if self.media is not None:
            self.media.release()
        self.scroll_position = 0.0
        self.duration = 0
        self.report = None
        self._reading_time = 0.0
        self.state = READY

    def _reading_elapsed(self) -> float:
        """Seconds spent reading, pauses excluded."""
        if self.state != READING:
            return self._reading_time
        return self._reading_time + (self.scheduler.time() - self._resumed_at)

    def _tick_clock(self) -> None:
        if self.state == READING:
            self.duration = int(self._reading_elapsed())

    def _tick_scroll(self) -> None:
        if self.state != READING:
            return
        if self.scroll_position >= self.max_scroll:
            self.finish()
            return
        self.scroll_position = min(self.max_scroll, self.scroll_position + self.speed / SCROLL_TICKS_PER_SECOND)

    def _stop_timers(self) -> None:
        for handle in (self._clock, self._scroller):
            if handle is not None:
                handle.cancel()
        self._clock = self._scroller = None
