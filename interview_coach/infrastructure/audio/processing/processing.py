"""
Basic audio processing functions including format conversions and normalization.
"""
from math import gcd

import numpy as np
from scipy.signal import resample_poly

from ....config import TARGET_RMS


def stereo_to_mono(x: np.ndarray) -> np.ndarray:
    """Convert multi-channel audio to mono by averaging channels."""
    if x.ndim == 1:
        return x
    return np.mean(x, axis=1)


def remove_dc(x: np.ndarray) -> np.ndarray:
    """Remove DC offset from audio signal."""
    if x.size == 0:
        return x
    return x - np.mean(x)


def resample(mono: np.ndarray, sr_from: int, sr_to: int) -> np.ndarray:
    """Polyphase resampling between integer sample rates."""
    if sr_from == sr_to:
        return mono.astype(np.float32)
    g = gcd(sr_from, sr_to)
    return resample_poly(mono, up=sr_to // g, down=sr_from // g).astype(np.float32)


def rms(x: np.ndarray) -> float:
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x ** 2)))


def normalize_audio(audio: np.ndarray, target_rms: float = TARGET_RMS) -> np.ndarray:
    """Normalize audio to target RMS level."""
    level = rms(audio) + 1e-9
    gain = min(20.0, target_rms / level)
    return audio * gain


def int16_to_float(raw: bytes, channels: int = 1) -> np.ndarray:
    """Decode interleaved PCM16 bytes to float32 frames in [-1, 1)."""
    samples = np.frombuffer(raw, dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples.reshape(-1, channels)
    return samples


def to_pcm16(audio: np.ndarray) -> bytes:
    """Encode float audio as little-endian PCM16 bytes."""
    return np.clip(audio * 32767, -32768, 32767).astype(np.int16).tobytes()
