"""
Capture device capability interfaces.

Concrete platforms (PyAudio microphone, test fakes) implement MediaDevices and
hand back a MediaStream of tracks whose enablement can be flipped without
reopening the device.
"""
from abc import ABC, abstractmethod
from typing import List

AUDIO = "audio"
VIDEO = "video"


class MediaTrack(ABC):
    """One audio or video track of an acquired stream."""

    def __init__(self, kind: str, label: str = ""):
        self.kind = kind
        self.label = label
        self.enabled = True
        self.ended = False

    def stop(self) -> None:
        """Stop the track and free its device. Safe to call more than once."""
        if self.ended:
            return
        self.ended = True
        self._close()

    @abstractmethod
    def _close(self) -> None:
        """Release the underlying device handle."""


class MediaStream:
    """Tracks returned by one device acquisition."""

    def __init__(self, tracks: List[MediaTrack]):
        self.tracks = list(tracks)

    def audio_tracks(self) -> List[MediaTrack]:
        return [t for t in self.tracks if t.kind == AUDIO]

    def video_tracks(self) -> List[MediaTrack]:
        return [t for t in self.tracks if t.kind == VIDEO]

    @property
    def active(self) -> bool:
        return any(not t.ended for t in self.tracks)

    def stop(self) -> None:
        for track in self.tracks:
            track.stop()


class MediaDevices(ABC):
    """Platform service that grants access to camera and microphone."""

    @abstractmethod
    def get_user_media(self, video: bool, audio: bool) -> MediaStream:
        """
        Acquire the requested devices.

        Raises:
            MediaAccessDenied: If access was refused
            MediaAccessUnavailable: If no matching device can be opened
        """
