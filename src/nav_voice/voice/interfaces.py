"""Contracts for speech recognition, synthesis and clip playback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence


@dataclass(frozen=True, slots=True)
class VoiceDescriptor:
    """A synthesis voice as reported by the platform engine."""

    id: str
    name: str
    language: str = ""


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    """One utterance handed to the synthesis engine."""

    text: str
    voice: VoiceDescriptor | None = None
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0


@dataclass(frozen=True, slots=True)
class RecognitionAlternative:
    """One transcript candidate with the engine's self-reported confidence."""

    transcript: str
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class RecognitionConfig:
    """Single-shot recognition session parameters."""

    language: str = "ko-KR"
    continuous: bool = False
    interim_results: bool = False
    max_alternatives: int = 3


class SpeechSynthesizer(Protocol):
    """Converts text into audible speech."""

    def voices(self) -> list[VoiceDescriptor]:
        """Return the currently available voices."""

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        """Register a callback fired whenever the voice set changes."""

    def speak(
        self,
        request: SynthesisRequest,
        on_end: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Start speaking; exactly one of ``on_end``/``on_error`` fires later."""

    def cancel(self) -> None:
        """Stop the utterance currently being spoken."""


class RecognitionListener(Protocol):
    """Receives events for one recognition session."""

    def on_result(self, alternatives: Sequence[RecognitionAlternative]) -> None: ...

    def on_error(self, code: str) -> None: ...

    def on_end(self) -> None: ...


class RecognitionSession(Protocol):
    """Handle for an active single-shot recognition session."""

    def stop(self) -> None:
        """Stop capturing; the session still reports ``on_end``."""


class SpeechRecognizer(Protocol):
    """Converts live microphone audio into ranked transcripts."""

    def start_session(self, config: RecognitionConfig, listener: RecognitionListener) -> RecognitionSession:
        """Begin a session; raise if the engine cannot start one right now."""


class ClipPlayer(Protocol):
    """Plays short audio clips."""

    def play(self, clip_ref: str, on_ended: Callable[[], None], on_error: Callable[[str], None]) -> None:
        """Start playing ``clip_ref``; exactly one callback fires later."""
