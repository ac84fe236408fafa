"""
Camera/microphone session with track-level mute.
"""
import logging
from typing import Callable, List, Optional

from .devices import MediaDevices, MediaStream
from ...errors import MediaAccessError, MediaAccessUnavailable

logger = logging.getLogger("media_capture")

PreviewSink = Callable[[Optional[MediaStream]], None]


class MediaCaptureSession:
    """
    Owns the device handle for one interview.

    Muting flips track.enabled on the live stream; it never reacquires the
    devices, so no new permission prompt is triggered.
    """

    def __init__(self, devices: MediaDevices):
        self.devices = devices
        self.stream: Optional[MediaStream] = None
        self.video_enabled = False
        self.audio_enabled = False
        self.error: Optional[str] = None
        self._preview_sinks: List[PreviewSink] = []

    @property
    def is_active(self) -> bool:
        return self.stream is not None

    def acquire(self, video: bool = True, audio: bool = True) -> MediaStream:
        """
        Open the requested devices, or return the stream already held.

        Raises:
            MediaAccessDenied: If the platform refused access
            MediaAccessUnavailable: If the devices could not be opened
        """
        if self.stream is not None:
            return self.stream
        if not video and not audio:
            raise ValueError("At least one of video or audio must be requested")

        self.error = None
        try:
            stream = self.devices.get_user_media(video=video, audio=audio)
        except MediaAccessError as e:
            self.error = str(e) or type(e).__name__
            logger.error("Media access error: %s", self.error)
            raise
        except OSError as e:
            self.error = str(e)
            logger.error("Media device failed to open: %s", e)
            raise MediaAccessUnavailable(f"Failed to access camera/microphone: {e}") from e

        self.stream = stream
        self.video_enabled = bool(stream.video_tracks())
        self.audio_enabled = bool(stream.audio_tracks())
        logger.info("Acquired media: %d video, %d audio tracks",
                    len(stream.video_tracks()), len(stream.audio_tracks()))
        self._notify_preview()
        return stream

    def release(self) -> None:
        """Stop every track. Safe to call when nothing is held."""
        if self.stream is None:
            return
        self.stream.stop()
        self.stream = None
        logger.info("Released media devices")
        self._notify_preview()

    def set_video_enabled(self, enabled: bool) -> None:
        if self.stream is None:
            return
        for track in self.stream.video_tracks():
            track.enabled = enabled
        self.video_enabled = enabled

    def set_audio_enabled(self, enabled: bool) -> None:
        if self.stream is None:
            return
        for track in self.stream.audio_tracks():
            track.enabled = enabled
        self.audio_enabled = enabled

    def toggle_video(self) -> bool:
        self.set_video_enabled(not self.video_enabled)
        return self.video_enabled

    def toggle_audio(self) -> bool:
        self.set_audio_enabled(not self.audio_enabled)
        return self.audio_enabled

    def attach_preview(self, sink: PreviewSink) -> None:
        """Register a sink that receives the stream (or None once released)."""
        self._preview_sinks.append(sink)
        sink(self.stream)

    def detach_preview(self, sink: PreviewSink) -> None:
        if sink in self._preview_sinks:
            self._preview_sinks.remove(sink)

    def _notify_preview(self) -> None:
        for sink in list(self._preview_sinks):
            try:
                sink(self.stream)
            except Exception as e:
                logger.error("Preview sink failed: %s", e)
