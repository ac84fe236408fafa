"""Audio processing and capture modules."""

from .processing import (
    stereo_to_mono,
    remove_dc,
    resample,
    rms,
    normalize_audio,
    int16_to_float,
    to_pcm16
)


# Lazy imports for capture (avoid importing pyaudio unless needed)
def __getattr__(name):
    if name in ("PyAudioMediaDevices", "PyAudioTrack"):
        from . import capture
        return getattr(capture, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "PyAudioMediaDevices",
    "PyAudioTrack",
    "stereo_to_mono",
    "remove_dc",
    "resample",
    "rms",
    "normalize_audio",
    "int16_to_float",
    "to_pcm16"
]
