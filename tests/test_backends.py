from __future__ import annotations

import sys
import types
from types import SimpleNamespace

import pytest

from nav_voice.voice.interfaces import RecognitionAlternative, RecognitionConfig, SynthesisRequest, VoiceDescriptor
from nav_voice.voice.stt_speechrecognition import (
    SpeechRecognitionRecognizer,
    _MicrophoneSession,
    parse_google_alternatives,
)
from nav_voice.voice.tts_pyttsx3 import Pyttsx3SpeechSynthesizer, _voice_language


class FakeEngine:
    def __init__(self, voices) -> None:
        self.properties: dict[str, object] = {"voices": voices}
        self.said: list[str] = []
        self.fail = False
        self.stopped = 0

    def getProperty(self, name: str):
        return self.properties[name]

    def setProperty(self, name: str, value) -> None:
        self.properties[name] = value

    def say(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("driver crashed")
        self.said.append(text)

    def runAndWait(self) -> None:
        pass

    def stop(self) -> None:
        self.stopped += 1


@pytest.fixture
def engine(monkeypatch) -> FakeEngine:
    fake = FakeEngine(
        [
            SimpleNamespace(id="english", name="English", languages=[b"\x05en-us"]),
            SimpleNamespace(id=r"HKEY\TTS_MS_KO-KR_HEAMI_11.0", name="Heami", languages=[]),
        ]
    )
    module = types.ModuleType("pyttsx3")
    module.init = lambda driver_name=None: fake
    monkeypatch.setitem(sys.modules, "pyttsx3", module)
    return fake


class FakeRecognitionModule(types.ModuleType):
    class WaitTimeoutError(Exception):
        pass

    class UnknownValueError(Exception):
        pass

    class RequestError(Exception):
        pass

    class Microphone:
        def __init__(self, **kwargs) -> None:
            self.options = kwargs

        def __enter__(self):
            return self

        def __exit__(self, *exc_info) -> None:
            return None

    class Recognizer:
        def __init__(self) -> None:
            self.on_listen = lambda: None
            self.google_calls: list[str] = []

        def adjust_for_ambient_noise(self, source, duration: float) -> None:
            pass

        def listen(self, source, timeout=None, phrase_time_limit=None) -> bytes:
            self.on_listen()
            return b"audio"

        def recognize_google(self, audio, language: str, show_all: bool):
            self.google_calls.append(language)
            return {"alternative": [{"transcript": "네", "confidence": 0.9}]}

    def __init__(self) -> None:
        super().__init__("speech_recognition")


class RecordingListener:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def on_result(self, alternatives) -> None:
        self.events.append(("result", list(alternatives)))

    def on_error(self, code: str) -> None:
        self.events.append(("error", code))

    def on_end(self) -> None:
        self.events.append(("end", None))


@pytest.fixture
def recognition_module(monkeypatch) -> FakeRecognitionModule:
    module = FakeRecognitionModule()
    monkeypatch.setitem(sys.modules, "speech_recognition", module)
    return module


def test_voice_language_handles_espeak_bytes_and_sapi_ids() -> None:
    assert _voice_language(SimpleNamespace(id="x", languages=[b"\x05ko"])) == "ko"
    assert _voice_language(SimpleNamespace(id=r"HKEY\TTS_MS_EN-US_ZIRA_11.0", languages=[])) == "EN-US"
    assert _voice_language(SimpleNamespace(id="plain")) == ""


def test_pyttsx3_voices_are_described(scheduler, engine) -> None:
    synthesizer = Pyttsx3SpeechSynthesizer(scheduler)

    assert [voice.language for voice in synthesizer.voices()] == ["en-us", "KO-KR"]
    synthesizer.close()


def test_pyttsx3_run_applies_request_and_reports_end(scheduler, engine) -> None:
    synthesizer = Pyttsx3SpeechSynthesizer(scheduler, base_rate=180)
    ended: list[str] = []
    voice = VoiceDescriptor(id="english", name="English", language="en-us")

    synthesizer._run(SynthesisRequest("Turn left", voice=voice), lambda: ended.append("end"), ended.append)
    scheduler.advance(0)

    assert engine.said == ["Turn left"]
    assert engine.properties["voice"] == "english"
    assert engine.properties["rate"] == 180
    assert ended == ["end"]
    synthesizer.close()


def test_pyttsx3_failure_is_reported_through_on_error(scheduler, engine) -> None:
    synthesizer = Pyttsx3SpeechSynthesizer(scheduler)
    errors: list[str] = []
    engine.fail = True

    synthesizer._run(SynthesisRequest("hello"), lambda: errors.append("end"), errors.append)
    scheduler.advance(0)

    assert errors == ["RuntimeError: driver crashed"]
    synthesizer.cancel()
    assert engine.stopped == 1
    synthesizer.close()


def test_parse_google_alternatives_keeps_confidence_and_limit() -> None:
    payload = {
        "alternative": [
            {"transcript": "서울역", "confidence": 0.92},
            {"transcript": "서울 역"},
            {"transcript": "  "},
            {"transcript": "서울력"},
        ]
    }

    assert parse_google_alternatives(payload, 2) == [
        RecognitionAlternative("서울역", 0.92),
        RecognitionAlternative("서울 역", None),
    ]
    assert parse_google_alternatives([], 3) == []


@pytest.mark.parametrize(
    ("error_name", "code"),
    [
        ("WaitTimeoutError", "no-speech"),
        ("UnknownValueError", "no-speech"),
        ("RequestError", "network"),
    ],
)
def test_recognizer_maps_library_errors(scheduler, recognition_module, error_name, code) -> None:
    recognizer = SpeechRecognitionRecognizer(scheduler)
    listener = RecordingListener()
    session = SimpleNamespace(stopped=SimpleNamespace(is_set=lambda: False))

    def _raise(session, config):
        raise getattr(recognition_module, error_name)("boom")

    recognizer._capture_and_recognize = _raise
    recognizer._run(session, RecognitionConfig(), listener)
    scheduler.advance(0)

    assert listener.events == [("error", code), ("end", None)]
    recognizer.close()


def test_recognizer_reports_missing_microphone_as_audio_capture(scheduler, recognition_module) -> None:
    recognizer = SpeechRecognitionRecognizer(scheduler)
    listener = RecordingListener()
    session = SimpleNamespace(stopped=SimpleNamespace(is_set=lambda: False))

    def _raise(session, config):
        raise OSError("no default input device")

    recognizer._capture_and_recognize = _raise
    recognizer._run(session, RecognitionConfig(), listener)
    scheduler.advance(0)

    assert listener.events == [("error", "audio-capture"), ("end", None)]
    recognizer.close()


def test_recognizer_delivers_result_then_end(scheduler, recognition_module) -> None:
    recognizer = SpeechRecognitionRecognizer(scheduler)
    listener = RecordingListener()
    session = SimpleNamespace(stopped=SimpleNamespace(is_set=lambda: False))
    alternatives = [RecognitionAlternative("네", 0.8)]

    recognizer._capture_and_recognize = lambda session, config: alternatives
    recognizer._run(session, RecognitionConfig(), listener)
    scheduler.advance(0)

    assert listener.events == [("result", alternatives), ("end", None)]
    recognizer.close()


def test_stopped_session_reports_aborted(scheduler, recognition_module) -> None:
    recognizer = SpeechRecognitionRecognizer(scheduler)
    listener = RecordingListener()
    session = SimpleNamespace(stopped=SimpleNamespace(is_set=lambda: True))

    def _raise(session, config):
        raise recognition_module.WaitTimeoutError("stopped")

    recognizer._capture_and_recognize = _raise
    recognizer._run(session, RecognitionConfig(), listener)
    scheduler.advance(0)

    assert listener.events == [("error", "aborted"), ("end", None)]
    recognizer.close()


def test_capture_returns_google_alternatives(scheduler, recognition_module) -> None:
    recognizer = SpeechRecognitionRecognizer(scheduler, adjust_noise_seconds=0)
    listener = RecordingListener()

    recognizer._run(_MicrophoneSession(), RecognitionConfig(language="ko-KR"), listener)
    scheduler.advance(0)

    assert recognizer._recognizer.google_calls == ["ko-KR"]
    assert listener.events == [("result", [RecognitionAlternative("네", 0.9)]), ("end", None)]
    recognizer.close()


def test_session_stopped_during_capture_skips_google_request(scheduler, recognition_module) -> None:
    recognizer = SpeechRecognitionRecognizer(scheduler)
    listener = RecordingListener()
    session = _MicrophoneSession()
    recognizer._recognizer.on_listen = session.stop

    recognizer._run(session, RecognitionConfig(), listener)
    scheduler.advance(0)

    assert recognizer._recognizer.google_calls == []
    assert listener.events == [("error", "aborted"), ("end", None)]
    recognizer.close()
