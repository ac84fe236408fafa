"""
Utilities for quieting noisy native audio libraries.
"""
import os
import logging
import functools

logger = logging.getLogger("imports")

# PortAudio probes JACK and ALSA on open; keep it from spawning servers
os.environ.setdefault("JACK_NO_START_SERVER", "1")

# Suppress Google Cloud gRPC chatter
os.environ.setdefault("GRPC_VERBOSITY", "ERROR")
os.environ.setdefault("GLOG_minloglevel", "2")


def with_suppressed_audio_warnings(func):
    """
    Decorator that suppresses native audio warnings during a function call.
    This temporarily redirects stderr at the file descriptor level.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            original_stderr_fd = os.dup(2)
            null_fd = os.open(os.devnull, os.O_WRONLY)
            os.dup2(null_fd, 2)
            os.close(null_fd)
        except OSError as e:
            logger.debug("Could not redirect stderr: %s", e)
            original_stderr_fd = None

        try:
            return func(*args, **kwargs)
        finally:
            if original_stderr_fd is not None:
                os.dup2(original_stderr_fd, 2)
                os.close(original_stderr_fd)

    return wrapper
