"""
Interview Coach Configuration
=============================

This file contains ALL configuration for the interview coach.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (timing windows, scoring weights)
"""
import os
from dataclasses import dataclass
from typing import Dict, Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the coach
# =============================================================================

# REQUIRED: base URL of the hosted functions (interview-chat, analyze-speech, ...)
FUNCTIONS_URL = ""  # e.g. "https://<project>.supabase.co/functions/v1"
API_KEY = None  # Bearer token sent with every request

# Interview settings
DEFAULT_PERSONALITY = "professional"
WORKDIR = "./_sessions"
ENABLE_VIDEO = False
ENABLE_TTS = True

# Speech settings
LANGUAGE_CODE = "en-US"
TTS_VOICE = "en-US-Neural2-F"
TTS_RATE = 1.0
TTS_PITCH = 1.0
TTS_VOLUME = 1.0

# Reading test
DEFAULT_DIFFICULTY = "medium"
DEFAULT_SCROLL_SPEED = "medium"

# Logging
LOG_FILE = "./_sessions/interview_coach.log"
LOG_LEVEL = "INFO"


# =============================================================================
# PERSONALITY SYSTEM
# =============================================================================

@dataclass(frozen=True)
class PersonalityConfig:
    """An interviewer style the chat endpoint knows how to play."""
    key: str
    label: str
    description: str
    prompt: str


PERSONALITIES: Dict[str, PersonalityConfig] = {
    "friendly": PersonalityConfig(
        key="friendly",
        label="Friendly HR",
        description="Warm and encouraging",
        prompt=("You are a friendly and encouraging HR interviewer. You're warm, supportive, "
                "and put candidates at ease. You give positive reinforcement while still asking "
                "probing questions. Use conversational language and occasional humor."),
    ),
    "professional": PersonalityConfig(
        key="professional",
        label="HR Professional",
        description="Formal and structured",
        prompt=("You are a formal and structured HR professional. You maintain a courteous but "
                "businesslike demeanor. You follow interview best practices, ask standardized "
                "questions, and evaluate responses objectively."),
    ),
    "strict": PersonalityConfig(
        key="strict",
        label="Strict Manager",
        description="Demanding and direct",
        prompt=("You are a demanding hiring manager with high standards. You ask tough follow-up "
                "questions, challenge vague answers, and expect concrete examples with metrics. "
                "You're direct and don't accept surface-level responses."),
    ),
    "technical": PersonalityConfig(
        key="technical",
        label="Tech Expert",
        description="Deep technical focus",
        prompt=("You are a senior technical expert conducting a deep-dive interview. You ask "
                "detailed technical questions, probe for depth of understanding, and expect "
                "candidates to explain their thought process clearly."),
    ),
    "analytical": PersonalityConfig(
        key="analytical",
        label="Analytical AI",
        description="Data-driven approach",
        prompt=("You are an analytical AI interviewer focused on data and patterns. You evaluate "
                "responses for logical consistency, quantifiable achievements, and evidence-based "
                "claims. You ask for specifics and metrics."),
    ),
}


def get_personality(key: Optional[str]) -> PersonalityConfig:
    """Look up a personality, falling back to the default style for unknown keys."""
    return PERSONALITIES.get(key or DEFAULT_PERSONALITY, PERSONALITIES[DEFAULT_PERSONALITY])


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Turn-taking
SILENCE_SUBMIT_SECONDS = 2.5
MIN_AUTO_SUBMIT_CHARS = 10
QUESTION_WINDOW_SECONDS = 90
LISTEN_AFTER_SPEECH_DELAY = 0.5
RECOGNITION_RESTART_DELAY = 0.1
CLOCK_TICK_SECONDS = 1.0
BENIGN_RECOGNITION_ERRORS = ("aborted", "no-speech")
MOVE_ON_MESSAGE = "Let's move to the next question."
OPENING_MESSAGE = "Hello, I'm ready to begin the interview."

# Chat endpoint
CHAT_FUNCTION = "interview-chat"
SUMMARY_FUNCTION = "interview-summary"
ANALYZE_FUNCTION = "analyze-speech"
PASSAGE_FUNCTION = "generate-passage"
REQUEST_TIMEOUT = 60
STREAM_CHUNK_SIZE = 1024

# Transcript scoring
PARTIAL_CREDIT = 0.5
SIMILARITY_THRESHOLD = 0.7
MAX_DISPLAY_ERRORS = 20
SKIPPED_MARKER = "(skipped)"
PRONUNCIATION_BONUS = 10
SCORE_WEIGHTS = {
    "accuracy": 0.40,
    "pronunciation": 0.25,
    "fluency": 0.20,
    "clarity": 0.15,
}
# (low wpm, high wpm, score) in priority order; anything outside scores FLUENCY_FLOOR
FLUENCY_BANDS = (
    (100, 160, 90),
    (80, 180, 75),
    (60, 200, 60),
)
FLUENCY_FLOOR = 40
LLM_FEEDBACK_MIN_CHARS = 50

# Reading test
PASSAGE_WORD_COUNTS = {"easy": 150, "medium": 250, "hard": 400}
PASSAGE_DEFAULT_WORD_COUNT = 200
SCROLL_SPEEDS = {"slow": 30, "medium": 50, "fast": 80, "custom": 50}
SCROLL_TICKS_PER_SECOND = 60

# Audio capture
SAMPLE_RATE_CAPTURE = 48000
SAMPLE_RATE_TARGET = 16000
CHANNELS = 1
FRAME_MS = 30
TARGET_RMS = 0.06
POLL_INTERVAL = 0.1
VAD_SILENCE_THRESHOLD = 0.01
VAD_SILENCE_DURATION = 0.8
VAD_MIN_SPEECH_DURATION = 0.3
MAX_UTTERANCE_SECONDS = 30.0


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    functions_url: str
    api_key: Optional[str] = None
    personality: str = DEFAULT_PERSONALITY
    workdir: str = WORKDIR
    enable_video: bool = ENABLE_VIDEO
    enable_tts: bool = ENABLE_TTS
    language_code: str = LANGUAGE_CODE
    tts_voice: str = TTS_VOICE
    tts_rate: float = TTS_RATE
    tts_pitch: float = TTS_PITCH
    tts_volume: float = TTS_VOLUME
    difficulty: str = DEFAULT_DIFFICULTY
    scroll_speed: str = DEFAULT_SCROLL_SPEED
    request_timeout: int = REQUEST_TIMEOUT
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL


def get_config() -> Config:
    """Load configuration, letting environment variables override the settings above."""
    functions_url = os.getenv("INTERVIEW_COACH_FUNCTIONS_URL") or FUNCTIONS_URL
    api_key = os.getenv("INTERVIEW_COACH_API_KEY") or API_KEY

    if not functions_url:
        raise ValueError("Please set FUNCTIONS_URL in config.py or INTERVIEW_COACH_FUNCTIONS_URL")

    return Config(
        functions_url=functions_url,
        api_key=api_key,
        personality=os.getenv("INTERVIEW_COACH_PERSONALITY", DEFAULT_PERSONALITY),
        workdir=os.getenv("INTERVIEW_COACH_WORKDIR", WORKDIR),
        log_file=os.getenv("INTERVIEW_COACH_LOG_FILE", LOG_FILE),
        log_level=os.getenv("INTERVIEW_COACH_LOG_LEVEL", LOG_LEVEL),
    )
