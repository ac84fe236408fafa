"""
Microphone access through PyAudio.
"""
import logging
from typing import Optional

import numpy as np
import pyaudio

from .processing import int16_to_float, stereo_to_mono
from ...media.devices import MediaDevices, MediaStream, MediaTrack, AUDIO
from ....errors import MediaAccessDenied, MediaAccessUnavailable
from ....config import CHANNELS, SAMPLE_RATE_CAPTURE, FRAME_MS
from ....utils import with_suppressed_audio_warnings

logger = logging.getLogger("audio_capture")


class PyAudioTrack(MediaTrack):
    """
    Audio track over an open PyAudio input stream.

    A disabled (muted) track keeps draining the device but hands out silence.
    """

    def __init__(self, pa: pyaudio.PyAudio, stream, sample_rate: int, channels: int, label: str = ""):
        super().__init__(AUDIO, label)
        self._pa = pa
        self._stream = stream
        self.sample_rate = sample_rate
        self.channels = channels

    def read_available(self) -> np.ndarray:
        """Mono float32 samples captured since the last read."""
        if self.ended:
            return np.zeros(0, dtype=np.float32)

        available = self._stream.get_read_available()
        if available <= 0:
            return np.zeros(0, dtype=np.float32)

        raw = self._stream.read(available, exception_on_overflow=False)
        mono = stereo_to_mono(int16_to_float(raw, self.channels)).astype(np.float32)
        if not self.enabled:
            return np.zeros_like(mono)
        return mono

    def _close(self) -> None:
        try:
            self._stream.stop_stream()
            self._stream.close()
        finally:
            self._pa.terminate()
        logger.info("Closed microphone %s", self.label or "")


class PyAudioMediaDevices(MediaDevices):
    """Microphone-only capture; there is no camera backend."""

    def __init__(self,
                 input_device: Optional[int] = None,
                 sample_rate: int = SAMPLE_RATE_CAPTURE,
                 channels: int = CHANNELS,
                 frame_ms: int = FRAME_MS):
        self.input_device = input_device
        self.sample_rate = sample_rate
        self.channels = channels
        self.frames_per_buffer = int(sample_rate * frame_ms / 1000)

    @with_suppressed_audio_warnings
    def get_user_media(self, video: bool, audio: bool) -> MediaStream:
        if video:
            raise MediaAccessUnavailable("No camera backend available; start with video disabled")
        if not audio:
            return MediaStream([])

        pa = pyaudio.PyAudio()
        try:
            if self.input_device is None:
                info = pa.get_default_input_device_info()
            else:
                info = pa.get_device_info_by_index(self.input_device)
            stream = pa.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=int(info["index"]),
                frames_per_buffer=self.frames_per_buffer,
            )
        except PermissionError as e:
            pa.terminate()
            raise MediaAccessDenied(f"Microphone access denied: {e}") from e
        except (OSError, IOError, ValueError) as e:
            pa.terminate()
            raise MediaAccessUnavailable(f"No usable microphone: {e}") from e

        label = str(info.get("name", ""))
        logger.info("Opened microphone %r at %d Hz, %d channel(s)", label, self.sample_rate, self.channels)
        return MediaStream([PyAudioTrack(pa, stream, self.sample_rate, self.channels, label)])
