"""
Concrete recognition and synthesis engines.

Google engines run on the microphone stream and the system audio player; the
console engines stand in for both in text mode (stdin lines are heard, replies
are printed).
"""
import os
import sys
import shutil
import signal
import asyncio
import logging
import tempfile
import subprocess
from typing import Callable, Dict, List, Optional

import numpy as np
from google.api_core.exceptions import GoogleAPICallError
from google.cloud import speech, texttospeech

from .stt import RecognitionEngine, RecognitionSegment, recognize_google_sync
from .tts import SynthesisEngine, Utterance, Voice, synthesize_google
from ..processing.processing import remove_dc, resample, normalize_audio, to_pcm16, rms
from ...media.devices import MediaDevices, MediaStream, MediaTrack, AUDIO
from ...media.session import MediaCaptureSession
from ....utils.scheduling import Scheduler, TimerHandle
from ....config import (
    LANGUAGE_CODE, TTS_VOICE, SAMPLE_RATE_TARGET, TARGET_RMS, POLL_INTERVAL,
    VAD_SILENCE_THRESHOLD, VAD_SILENCE_DURATION, VAD_MIN_SPEECH_DURATION, MAX_UTTERANCE_SECONDS
)

logger = logging.getLogger("speech_engines")

NO_SPEECH_TIMEOUT = 8.0
PRE_ROLL_SECONDS = 0.3


class GoogleRecognitionEngine(RecognitionEngine):
    """
    Endpointed recognition over the session microphone.

    Audio is polled from the capture track, speech is detected by RMS level, and
    each utterance is sent to Google Cloud Speech once the speaker pauses. Results
    are final only; there are no interim hypotheses.
    """

    def __init__(self,
                 capture: MediaCaptureSession,
                 scheduler: Scheduler,
                 language: str = LANGUAGE_CODE,
                 continuous: bool = True,
                 poll_interval: float = POLL_INTERVAL,
                 silence_threshold: float = VAD_SILENCE_THRESHOLD,
                 silence_duration: float = VAD_SILENCE_DURATION,
                 min_speech_duration: float = VAD_MIN_SPEECH_DURATION,
                 max_utterance_seconds: float = MAX_UTTERANCE_SECONDS,
                 client: Optional[speech.SpeechClient] = None):
        super().__init__(language=language, continuous=continuous, interim_results=False)
        self.capture = capture
        self.scheduler = scheduler
        self.poll_interval = poll_interval
        self.silence_threshold = silence_threshold
        self.silence_duration = silence_duration
        self.min_speech_duration = min_speech_duration
        self.max_utterance_seconds = max_utterance_seconds
        self._client = client
        self._timer: Optional[TimerHandle] = None
        self._track = None
        self._sample_rate = SAMPLE_RATE_TARGET
        self._reset_utterance()

    def start(self) -> None:
        if self._timer is not None:
            raise RuntimeError("recognition has already started")

        stream = self.capture.stream
        tracks = stream.audio_tracks() if stream else []
        if not tracks or not hasattr(tracks[0], "read_available"):
            self._timer = self.scheduler.call_later(0, self._fail_capture)
            return

        self._track = tracks[0]
        self._sample_rate = self._track.sample_rate
        self._reset_utterance()
        self._idle_time = 0.0
        self._timer = self.scheduler.call_every(self.poll_interval, self._poll)
        logger.debug("Google recognition started on %r", self._track.label)

    def stop(self) -> None:
        if self._timer is None:
            return
        self._teardown()
        if self._speech_started:
            self._finish_utterance()
        self._emit_end()

    def abort(self) -> None:
        if self._timer is None:
            return
        self._teardown()
        self._reset_utterance()
        self._emit_error("aborted")
        self._emit_end()

    def _teardown(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._track = None

    def _fail_capture(self) -> None:
        self._timer = None
        self._emit_error("audio-capture")
        self._emit_end()

    def _reset_utterance(self) -> None:
        self._frames: List[np.ndarray] = []
        self._pre_roll: List[np.ndarray] = []
        self._speech_started = False
        self._speech_time = 0.0
        self._silence_time = 0.0
        self._idle_time = 0.0

    def _poll(self) -> None:
        track = self._track
        if track is None:
            return
        if track.ended:
            self._teardown()
            self._emit_error("audio-capture")
            self._emit_end()
            return

        chunk = track.read_available()
        if chunk.size == 0:
            return
        duration = chunk.size / track.sample_rate
        speaking = rms(chunk) > self.silence_threshold

        if not self._speech_started:
            if not speaking:
                keep = max(1, int(PRE_ROLL_SECONDS / self.poll_interval))
                self._pre_roll = (self._pre_roll + [chunk])[-keep:]
                self._idle_time += duration
                if self._idle_time >= NO_SPEECH_TIMEOUT:
                    self._teardown()
                    self._emit_error("no-speech")
                    self._emit_end()
                return
            self._speech_started = True
            self._frames = list(self._pre_roll)
            self._pre_roll = []

        self._frames.append(chunk)
        if speaking:
            self._speech_time += duration
            self._silence_time = 0.0
        else:
            self._silence_time += duration

        long_pause = self._silence_time >= self.silence_duration
        too_long = self._speech_time >= self.max_utterance_seconds
        if long_pause or too_long:
            if self._speech_time < self.min_speech_duration:
                logger.debug("Discarding %.2fs blip", self._speech_time)
            elif not self._finish_utterance():
                self._teardown()
                self._emit_end()
                return
            self._reset_utterance()
            if not self.continuous and self._timer is not None:
                self._teardown()
                self._emit_end()

    def _finish_utterance(self) -> bool:
        """Recognize the buffered utterance. False if the request failed."""
        sample_rate = self._sample_rate
        audio = remove_dc(np.concatenate(self._frames)) if self._frames else np.zeros(0, dtype=np.float32)
        self._frames = []
        if audio.size == 0:
            return True

        audio = normalize_audio(resample(audio, sample_rate, SAMPLE_RATE_TARGET), TARGET_RMS)
        try:
            text = recognize_google_sync(to_pcm16(audio), SAMPLE_RATE_TARGET, self.language, self._get_client())
        except (GoogleAPICallError, OSError) as e:
            logger.error("Speech recognition request failed: %s", e)
            self._emit_error("network")
            return False

        logger.info("Recognized: %s", text or "(empty)")
        if text:
            self._emit_result([RecognitionSegment(transcript=text, is_final=True)])
        return True

    def _get_client(self) -> speech.SpeechClient:
        if self._client is None:
            self._client = speech.SpeechClient()
        return self._client


class GoogleSynthesisEngine(SynthesisEngine):
    """Google Cloud TTS rendered to a temp WAV and played by the system player."""

    def __init__(self,
                 scheduler: Scheduler,
                 voice_name: str = TTS_VOICE,
                 language_code: str = LANGUAGE_CODE,
                 poll_interval: float = POLL_INTERVAL,
                 client: Optional[texttospeech.TextToSpeechClient] = None):
        self.scheduler = scheduler
        self.voice_name = voice_name
        self.language_code = language_code
        self.poll_interval = poll_interval
        self._client = client
        self._player = shutil.which("afplay") or shutil.which("aplay")
        self._proc: Optional[subprocess.Popen] = None
        self._wav_path: Optional[str] = None
        self._utterance: Optional[Utterance] = None
        self._timer: Optional[TimerHandle] = None

    def get_voices(self) -> List[Voice]:
        try:
            response = self._get_client().list_voices(language_code=self.language_code)
        except GoogleAPICallError as e:
            logger.warning("Listing voices failed: %s", e)
            return [Voice(self.voice_name, self.language_code, default=True)]
        voices = [Voice(f"Google {v.name}", v.language_codes[0]) for v in response.voices if v.language_codes]
        # Put the configured voice first so it wins voice selection
        voices.sort(key=lambda v: v.name != f"Google {self.voice_name}")
        return voices

    def speak(self, utterance: Utterance) -> None:
        self.cancel()
        if self._player is None:
            raise RuntimeError("No audio player found (afplay/aplay)")

        voice = self.voice_name
        if utterance.voice and utterance.voice.name.startswith("Google "):
            voice = utterance.voice.name[len("Google "):]
        audio = synthesize_google(utterance.text, voice=voice, language_code=self.language_code,
                                  rate=utterance.rate, pitch=utterance.pitch, client=self._get_client())

        with tempfile.NamedTemporaryFile(suffix=".wav", delete=False) as tmp_file:
            tmp_file.write(audio)
            self._wav_path = tmp_file.name

        self._utterance = utterance
        self._proc = subprocess.Popen([self._player, self._wav_path],
                                      stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        self._timer = self.scheduler.call_every(self.poll_interval, self._poll)
        utterance.started()

    def cancel(self) -> None:
        utterance = self._utterance
        if self._proc is not None and self._proc.poll() is None:
            self._proc.terminate()
        self._cleanup()
        if utterance is not None:
            utterance.failed("interrupted")

    def pause(self) -> None:
        if self._proc is not None and self._proc.poll() is None:
            self._proc.send_signal(signal.SIGSTOP)

    def resume(self) -> None:
        if self._proc is not None and self._proc.poll() is None:
            self._proc.send_signal(signal.SIGCONT)

    def _poll(self) -> None:
        if self._proc is None:
            return
        returncode = self._proc.poll()
        if returncode is None:
            return
        utterance = self._utterance
        self._cleanup()
        if utterance is None:
            return
        if returncode == 0:
            utterance.ended()
        else:
            utterance.failed(f"audio player exited with status {returncode}")

    def _cleanup(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._wav_path:
            try:
                os.unlink(self._wav_path)
            except OSError as e:
                logger.debug("Could not remove %s: %s", self._wav_path, e)
        self._proc = None
        self._wav_path = None
        self._utterance = None

    def _get_client(self) -> texttospeech.TextToSpeechClient:
        if self._client is None:
            self._client = texttospeech.TextToSpeechClient()
        return self._client


class _KeyboardTrack(MediaTrack):

    def __init__(self):
        super().__init__(AUDIO, "keyboard")

    def _close(self) -> None:
        pass


class ConsoleMediaDevices(MediaDevices):
    """Text mode: the keyboard stands in for the microphone; there is no camera."""

    def get_user_media(self, video: bool, audio: bool) -> MediaStream:
        return MediaStream([_KeyboardTrack()] if audio else [])


class ConsoleRecognitionEngine(RecognitionEngine):
    """
    Every line typed on stdin is heard as one final result.

    Lines naming one of the commands (e.g. "/end") run the command instead.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, stream=None, language: str = LANGUAGE_CODE,
                 commands: Optional[Dict[str, Callable[[], None]]] = None):
        super().__init__(language=language, interim_results=False)
        self.loop = loop
        self.stream = stream or sys.stdin
        self.commands = dict(commands or {})
        self._running = False

    def start(self) -> None:
        if self._running:
            raise RuntimeError("recognition has already started")
        self._running = True
        self.loop.add_reader(self.stream.fileno(), self._read_line)

    def stop(self) -> None:
        if not self._running:
            return
        self._detach()
        self._emit_end()

    def abort(self) -> None:
        if not self._running:
            return
        self._detach()
        self._emit_error("aborted")
        self._emit_end()

    def _detach(self) -> None:
        self._running = False
        self.loop.remove_reader(self.stream.fileno())

    def _read_line(self) -> None:
        line = self.stream.readline()
        if line == "":
            # stdin closed
            self._detach()
            self._emit_error("audio-capture")
            self._emit_end()
            return
        text = line.strip()
        command = self.commands.get(text.lower())
        if command is not None:
            command()
        elif text:
            self._emit_result([RecognitionSegment(transcript=text, is_final=True)])


class ConsoleSynthesisEngine(SynthesisEngine):
    """Prints utterances instead of speaking them."""

    def __init__(self, scheduler: Scheduler, prefix: str = "🤖"):
        self.scheduler = scheduler
        self.prefix = prefix
        self._pending: Optional[TimerHandle] = None

    def get_voices(self) -> List[Voice]:
        return [Voice("console", "en-US", default=True)]

    def speak(self, utterance: Utterance) -> None:
        self.cancel()
        print(f"{self.prefix} {utterance.text}")
        utterance.started()
        self._pending = self.scheduler.call_later(0, utterance.ended)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def pause(self) -> None:
        pass

    def resume(self) -> None:
        pass
