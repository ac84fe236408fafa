from interview_coach.infrastructure.audio.speech.tts import (
    ERROR_RAISED, SPEAKING_CHANGED, SpeechSynthesizer, Voice, select_voice
)
from interview_coach.interview.testing import FakeSynthesisEngine


def make_synthesizer(**kwargs):
    engine = FakeSynthesisEngine(**kwargs)
    synthesizer = SpeechSynthesizer(engine)
    events = []
    synthesizer.add_listener(events.append)
    return engine, synthesizer, events


def test_voice_preference():
    voices = [Voice("Alex", "en-US"), Voice("Google Deutsch", "de-DE"), Voice("Google UK English", "en-GB")]
    assert select_voice(voices).name == "Google UK English"
    assert select_voice([Voice("Alex", "en-US"), Voice("Anna", "de-DE")]).name == "Alex"
    assert select_voice([Voice("Anna", "de-DE")]) is None


def test_speak_then_finish():
    engine, synthesizer, events = make_synthesizer()

    synthesizer.speak("Tell me about yourself.")
    assert synthesizer.is_speaking
    assert engine.spoken[0].voice == Voice("Google US English", "en-US")

    engine.finish()
    assert not synthesizer.is_speaking
    assert events == [SPEAKING_CHANGED, SPEAKING_CHANGED]


def test_blank_text_is_ignored():
    engine, synthesizer, events = make_synthesizer()
    synthesizer.speak("   ")
    assert engine.spoken == []
    assert events == []


def test_new_utterance_interrupts_previous_without_error():
    engine, synthesizer, events = make_synthesizer()

    synthesizer.speak("first")
    synthesizer.speak("second")

    assert engine.texts == ["first", "second"]
    assert synthesizer.is_speaking
    assert synthesizer.error is None
    assert ERROR_RAISED not in events


def test_late_end_of_superseded_utterance_is_ignored():
    engine, synthesizer, _ = make_synthesizer()

    synthesizer.speak("first")
    first = engine.current
    synthesizer.speak("second")
    first.ended()

    assert synthesizer.is_speaking


def test_engine_error_is_reported():
    engine, synthesizer, events = make_synthesizer()

    synthesizer.speak("hello")
    engine.fail("audio-busy")

    assert not synthesizer.is_speaking
    assert synthesizer.error == "audio-busy"
    assert events[-1] == ERROR_RAISED


def test_stop_is_idempotent():
    engine, synthesizer, events = make_synthesizer()

    synthesizer.speak("hello")
    synthesizer.stop()
    synthesizer.stop()

    assert not synthesizer.is_speaking
    assert events == [SPEAKING_CHANGED, SPEAKING_CHANGED]
    assert synthesizer.error is None


def test_auto_finishing_engine():
    engine, synthesizer, events = make_synthesizer(auto_finish=True)
    synthesizer.speak("quick")
    assert not synthesizer.is_speaking
    assert events == [SPEAKING_CHANGED, SPEAKING_CHANGED]
