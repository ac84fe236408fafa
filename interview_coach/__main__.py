#!/usr/bin/env python3
"""
Main entry point for the interview coach.
Allows running the package with: python -m interview_coach [interview|reading] [options]
"""
import sys
import asyncio
from typing import Dict, Optional

from .config import (
    Config, get_config, get_personality, PERSONALITIES, SCROLL_SPEEDS, PASSAGE_WORD_COUNTS,
    LOG_FILE, LOG_LEVEL, DEFAULT_DIFFICULTY, DEFAULT_SCROLL_SPEED
)
from .errors import MediaAccessError
from .utils import setup_logging, AsyncioScheduler
from .infrastructure.media import MediaCaptureSession, MediaDevices
from .infrastructure.audio.speech import (
    SpeechRecognizer, SpeechSynthesizer, RecognitionEngine, SynthesisEngine,
    GoogleRecognitionEngine, GoogleSynthesisEngine,
    ConsoleRecognitionEngine, ConsoleSynthesisEngine, ConsoleMediaDevices
)
from .infrastructure.llm import FunctionsClient, InterviewChatClient
from .interview import (
    InterviewOrchestrator, InterviewSummaryService, ConversationManager, InterviewSummary, EventType
)
from .reading import PassageService, ReadingAnalyzer, AnalysisClient, ReadingTestSession, ScoreReport

USAGE = """Usage:
  python -m interview_coach interview [--personality=NAME] [--resume=PATH] [--role=TEXT] [--text] [--video]
  python -m interview_coach reading [--difficulty=easy|medium|hard] [--topic=TEXT]
                                    [--speed=slow|medium|fast|custom] [--custom-speed=PX] [--text]

Text mode commands: /send, /next, /end (interview); /pause, /resume, /done (reading)
"""


def parse_options(argv) -> Dict[str, str]:
    """--key=value pairs and bare --flags (value "1")."""
    options = {}
    for arg in argv:
        if not arg.startswith("--"):
            continue
        key, _, value = arg[2:].partition("=")
        options[key] = value if value else "1"
    return options


def build_speech(config: Config, loop: asyncio.AbstractEventLoop, scheduler: AsyncioScheduler,
                 text_mode: bool, commands: Dict):
    """Media session, recognizer and synthesizer for the chosen mode."""
    devices: MediaDevices
    recognition: RecognitionEngine
    synthesis: SynthesisEngine

    if text_mode:
        devices = ConsoleMediaDevices()
        media = MediaCaptureSession(devices)
        recognition = ConsoleRecognitionEngine(loop, language=config.language_code, commands=commands)
    else:
        # PyAudio is only needed for the microphone path
        from .infrastructure.audio.processing import PyAudioMediaDevices
        devices = PyAudioMediaDevices()
        media = MediaCaptureSession(devices)
        recognition = GoogleRecognitionEngine(media, scheduler, language=config.language_code)

    if config.enable_tts and not text_mode:
        synthesis = GoogleSynthesisEngine(scheduler, voice_name=config.tts_voice,
                                          language_code=config.language_code)
    else:
        synthesis = ConsoleSynthesisEngine(scheduler)

    recognizer = SpeechRecognizer(recognition, scheduler)
    synthesizer = SpeechSynthesizer(synthesis, rate=config.tts_rate, pitch=config.tts_pitch,
                                    volume=config.tts_volume)
    return media, recognizer, synthesizer


def read_resume(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        print(f"❌ Could not read resume {path}: {e}")
        sys.exit(1)


def run_interview(config: Config, options: Dict[str, str]) -> None:
    personality = options.get("personality", config.personality)
    if personality not in PERSONALITIES:
        print(f"❌ Unknown personality {personality!r}. Choose from: {', '.join(PERSONALITIES)}")
        sys.exit(1)
    text_mode = "text" in options
    resume_text = read_resume(options.get("resume"))

    loop = asyncio.new_event_loop()
    scheduler = AsyncioScheduler(loop)
    functions = FunctionsClient.from_config(config)
    summary_service = InterviewSummaryService(functions)
    conversation_manager = ConversationManager(config.workdir)
    holder: Dict[str, InterviewOrchestrator] = {}

    commands = {
        "/send": lambda: holder["orchestrator"].send_response(),
        "/next": lambda: holder["orchestrator"].next_question(),
        "/end": lambda: holder["orchestrator"].end(),
    }
    media, recognizer, synthesizer = build_speech(config, loop, scheduler, text_mode, commands)

    def finalize(summary: InterviewSummary) -> None:
        print("\n📊 Analyzing your interview...")
        feedback = summary_service.summarize(summary)
        path = conversation_manager.save(summary, feedback)
        print("=" * 50)
        print(f"Overall score: {feedback.overall_score}/100")
        print(feedback.summary)
        print("\nStrengths:")
        for item in feedback.strengths:
            print(f"  ✅ {item}")
        print("Areas to improve:")
        for item in feedback.improvements:
            print(f"  🔧 {item}")
        print(f"\n💾 Saved to {path}")

    orchestrator = InterviewOrchestrator(
        media=media,
        recognizer=recognizer,
        synthesizer=synthesizer,
        chat=InterviewChatClient(functions),
        scheduler=scheduler,
        personality=personality,
        resume_text=resume_text,
        target_role=options.get("role"),
        enable_video="video" in options or config.enable_video,
        summary_handler=finalize,
    )
    holder["orchestrator"] = orchestrator

    bus = orchestrator.event_bus
    if not text_mode:
        bus.subscribe(EventType.QUESTION_ASKED, lambda e: print(f"🤖 {e.data['question']}"))
    bus.subscribe(EventType.LISTENING_STARTED, lambda e: print("🎧 Your turn (pause to submit)..."))
    bus.subscribe(EventType.RESPONSE_SUBMITTED, lambda e: print(f"💬 \"{e.data['text']}\""))
    bus.subscribe(EventType.NOTICE_RAISED, lambda e: print(f"⚠️  {e.data['message']}"))
    bus.subscribe(EventType.INTERVIEW_ENDED, lambda e: loop.call_soon(loop.stop))

    print(f"\n🎙️  Interview with {get_personality(personality).label} "
          f"({get_personality(personality).description})")
    print(f"📝 Detailed logs: {config.log_file}")
    if text_mode:
        print("📝 Text mode: type your answers; /send, /next or /end")
    print("=" * 50)

    def begin() -> None:
        try:
            orchestrator.begin()
        except MediaAccessError as e:
            print(f"❌ {e}")
            loop.stop()

    loop.call_soon(begin)
    try:
        loop.run_forever()
    except KeyboardInterrupt:
        print("\n⏹️  Ending interview...")
        orchestrator.end()
    finally:
        orchestrator.shutdown()
        recognizer.shutdown()
        synthesizer.shutdown()
        loop.close()


def print_report(report: ScoreReport) -> None:
    print("=" * 50)
    print(f"Overall:       {report.overall_score}/100")
    print(f"Accuracy:      {report.accuracy_percent}%")
    print(f"Pronunciation: {report.pronunciation_score}")
    print(f"Fluency:       {report.fluency_score} ({report.words_per_minute} wpm)")
    print(f"Clarity:       {report.clarity_score}")
    if report.word_errors:
        print("\nWords to practice:")
        for error in report.word_errors:
            print(f"  #{error.index + 1}: expected \"{error.expected}\", heard \"{error.spoken}\"")
    print(f"\n💡 {report.feedback}")


def run_reading(config: Optional[Config], options: Dict[str, str]) -> None:
    difficulty = options.get("difficulty", config.difficulty if config else DEFAULT_DIFFICULTY)
    if difficulty not in PASSAGE_WORD_COUNTS:
        print(f"❌ Unknown difficulty {difficulty!r}. Choose from: {', '.join(PASSAGE_WORD_COUNTS)}")
        sys.exit(1)
    speed = options.get("speed", config.scroll_speed if config else DEFAULT_SCROLL_SPEED)
    if speed not in SCROLL_SPEEDS:
        print(f"❌ Unknown speed {speed!r}. Choose from: {', '.join(SCROLL_SPEEDS)}")
        sys.exit(1)
    try:
        custom_speed = float(options["custom-speed"]) if "custom-speed" in options else None
    except ValueError:
        print("❌ Invalid custom speed. Use --custom-speed=PIXELS_PER_SECOND")
        sys.exit(1)
    text_mode = "text" in options

    functions = FunctionsClient.from_config(config) if config else None
    passage = PassageService(functions).generate(difficulty, options.get("topic"))
    analyzer = ReadingAnalyzer(client=AnalysisClient(functions) if functions else None)

    loop = asyncio.new_event_loop()
    scheduler = AsyncioScheduler(loop)
    holder: Dict[str, ReadingTestSession] = {}
    commands = {
        "/pause": lambda: holder["session"].pause(),
        "/resume": lambda: holder["session"].resume(),
        "/done": lambda: holder["session"].finish(),
    }
    settings = config or Config(functions_url="")
    media, recognizer, synthesizer = build_speech(settings, loop, scheduler, text_mode, commands)

    def complete(report: ScoreReport) -> None:
        print_report(report)
        loop.call_soon(loop.stop)

    session = ReadingTestSession(passage, recognizer, scheduler, analyzer=analyzer, media=media,
                                 scroll_speed=speed, custom_speed=custom_speed, on_complete=complete)
    holder["session"] = session

    print(f"\n📖 Reading test ({difficulty}, {speed} scroll)")
    if passage.is_fallback:
        print("   (using the built-in passage)")
    print("=" * 50)
    print(passage.text)
    print("=" * 50)
    print("Read the passage aloud. /done when finished." if not text_mode
          else "Type what you read, line by line. /done when finished.")

    def start() -> None:
        try:
            session.start()
        except MediaAccessError as e:
            print(f"❌ {e}")
            loop.stop()

    loop.call_soon(start)
    try:
        loop.run_forever()
    except KeyboardInterrupt:
        session.finish()
    finally:
        recognizer.shutdown()
        synthesizer.shutdown()
        loop.close()


def main():
    """Command-line interface for the interview coach."""
    args = sys.argv[1:]
    if "-h" in args or "--help" in args:
        print(USAGE)
        return
    commands = [a for a in args if not a.startswith("--")]
    mode = commands[0] if commands else "interview"
    options = parse_options(args)

    # Load configuration from environment
    try:
        config: Optional[Config] = get_config()
    except ValueError as e:
        if mode == "interview":
            print(f"❌ Configuration Error: {e}")
            sys.exit(1)
        # The reading test still works offline with the built-in passage
        config = None

    setup_logging(config.log_file if config else LOG_FILE, config.log_level if config else LOG_LEVEL)

    if mode == "interview":
        run_interview(config, options)
    elif mode == "reading":
        run_reading(config, options)
    else:
        print(USAGE)
        sys.exit(2)


if __name__ == "__main__":
    main()
