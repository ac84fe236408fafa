"""Camera and microphone access."""

from .devices import MediaDevices, MediaStream, MediaTrack, AUDIO, VIDEO
from .session import MediaCaptureSession

__all__ = ["MediaDevices", "MediaStream", "MediaTrack", "AUDIO", "VIDEO", "MediaCaptureSession"]
