from __future__ import annotations

from typing import Callable

import pytest

from nav_voice.voice.interfaces import RecognitionAlternative, RecognitionConfig, SynthesisRequest, VoiceDescriptor


class _Timer:
    def __init__(self, due: float, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic clock: timers only fire inside ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = 0
        self._timers: list[_Timer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Timer:
        self._seq += 1
        timer = _Timer(self.now + delay, self._seq, callback)
        self._timers.append(timer)
        return timer

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self.call_later(0.0, callback)

    def time(self) -> float:
        return self.now

    def active_delays(self) -> list[float]:
        return sorted(round(timer.due - self.now, 3) for timer in self._timers if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds + 1e-9
        while True:
            due = [timer for timer in self._timers if not timer.cancelled and timer.due <= target]
            if not due:
                break
            timer = min(due, key=lambda item: (item.due, item.seq))
            self._timers.remove(timer)
            self.now = max(self.now, timer.due)
            timer.callback()
        self.now = target
        self._timers = [timer for timer in self._timers if not timer.cancelled]


class StubSynthesizer:
    def __init__(self, voices: list[VoiceDescriptor] | None = None) -> None:
        self._voices = list(voices or [])
        self._listeners: list[Callable[[], None]] = []
        self.requests: list[SynthesisRequest] = []
        self.callbacks: list[tuple[Callable[[], None], Callable[[str], None]]] = []
        self.cancel_count = 0

    @property
    def spoken(self) -> list[str]:
        return [request.text for request in self.requests]

    def voices(self) -> list[VoiceDescriptor]:
        return list(self._voices)

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def set_voices(self, voices: list[VoiceDescriptor]) -> None:
        self._voices = list(voices)
        for callback in self._listeners:
            callback()

    def speak(self, request: SynthesisRequest, on_end: Callable[[], None], on_error: Callable[[str], None]) -> None:
        self.requests.append(request)
        self.callbacks.append((on_end, on_error))

    def cancel(self) -> None:
        self.cancel_count += 1

    def finish(self) -> None:
        self.callbacks[-1][0]()

    def fail(self, error: str = "synthesis-failed") -> None:
        self.callbacks[-1][1](error)


class StubSession:
    def __init__(self, config: RecognitionConfig, listener) -> None:
        self.config = config
        self.listener = listener
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True

    def answer(self, *alternatives: tuple[str, float | None]) -> None:
        self.listener.on_result([RecognitionAlternative(text, confidence) for text, confidence in alternatives])
        self.listener.on_end()

    def say(self, transcript: str) -> None:
        self.answer((transcript, 0.9))

    def error(self, code: str) -> None:
        self.listener.on_error(code)
        self.listener.on_end()


class StubRecognizer:
    def __init__(self) -> None:
        self.sessions: list[StubSession] = []
        self.fail_start = False

    @property
    def last(self) -> StubSession:
        return self.sessions[-1]

    def start_session(self, config: RecognitionConfig, listener) -> StubSession:
        if self.fail_start:
            raise RuntimeError("recognition already started")
        session = StubSession(config, listener)
        self.sessions.append(session)
        return session


class StubClipPlayer:
    def __init__(self) -> None:
        self.played: list[str] = []
        self.callbacks: list[tuple[Callable[[], None], Callable[[str], None]]] = []
        self.raise_on_play = False

    def play(self, clip_ref: str, on_ended: Callable[[], None], on_error: Callable[[str], None]) -> None:
        if self.raise_on_play:
            raise OSError(f"cannot open {clip_ref}")
        self.played.append(clip_ref)
        self.callbacks.append((on_ended, on_error))

    def finish(self) -> None:
        self.callbacks[-1][0]()

    def fail(self, error: str = "decode error") -> None:
        self.callbacks[-1][1](error)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def synthesizer() -> StubSynthesizer:
    return StubSynthesizer()


@pytest.fixture
def recognizer() -> StubRecognizer:
    return StubRecognizer()


@pytest.fixture
def clip_player() -> StubClipPlayer:
    return StubClipPlayer()
