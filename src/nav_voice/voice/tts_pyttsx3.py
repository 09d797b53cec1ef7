"""Text-to-speech backend powered by ``pyttsx3``."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from nav_voice.scheduling import Scheduler

from .interfaces import SpeechSynthesizer, SynthesisRequest, VoiceDescriptor

_DEFAULT_WORDS_PER_MINUTE = 200
_SAPI_LOCALE = re.compile(r"_([A-Za-z]{2}-[A-Za-z]{2})_")


def _voice_language(voice) -> str:
    languages = getattr(voice, "languages", None) or []
    for language in languages:
        if isinstance(language, bytes):
            # espeak prefixes the tag with a priority byte, e.g. b"\x05ko".
            language = language.decode("utf-8", errors="ignore")
        cleaned = "".join(char for char in str(language) if char.isprintable()).strip()
        if cleaned:
            return cleaned
    # SAPI5 reports no languages but encodes the locale in the token id.
    match = _SAPI_LOCALE.search(str(getattr(voice, "id", "")))
    return match.group(1) if match else ""


class Pyttsx3SpeechSynthesizer(SpeechSynthesizer):
    """Speak through a local pyttsx3 engine on a single worker thread."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        driver_name: str | None = None,
        base_rate: int = _DEFAULT_WORDS_PER_MINUTE,
        logger: logging.Logger | None = None,
    ) -> None:
        try:
            import pyttsx3
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Voice TTS backend unavailable. Install extras with: pip install 'nav-voice[voice]'"
            ) from exc

        self._scheduler = scheduler
        self._engine = pyttsx3.init(driver_name)
        self._base_rate = base_rate
        self._logger = logger or logging.getLogger("nav_voice.tts_pyttsx3")
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pyttsx3")
        self._voice_listeners: list[Callable[[], None]] = []

    def voices(self) -> list[VoiceDescriptor]:
        return [
            VoiceDescriptor(id=str(voice.id), name=str(voice.name or voice.id), language=_voice_language(voice))
            for voice in self._engine.getProperty("voices") or []
        ]

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        self._voice_listeners.append(callback)

    def refresh_voices(self) -> None:
        """pyttsx3 has no change event; call this after installing new voices."""
        for callback in list(self._voice_listeners):
            self._scheduler.call_soon_threadsafe(callback)

    def speak(
        self,
        request: SynthesisRequest,
        on_end: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        self._executor.submit(self._run, request, on_end, on_error)

    def cancel(self) -> None:
        self._engine.stop()

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, request: SynthesisRequest, on_end: Callable[[], None], on_error: Callable[[str], None]) -> None:
        try:
            if request.voice is not None:
                self._engine.setProperty("voice", request.voice.id)
            self._engine.setProperty("rate", int(self._base_rate * request.rate))
            self._engine.setProperty("volume", max(0.0, min(1.0, request.volume)))
            # pyttsx3 exposes no pitch control; request.pitch is always 1.0 here.
            self._engine.say(request.text)
            self._engine.runAndWait()
        except Exception as exc:  # noqa: BLE001 - reported through on_error.
            self._logger.exception("pyttsx3_speak_failed")
            message = f"{type(exc).__name__}: {exc}"
            self._scheduler.call_soon_threadsafe(lambda: on_error(message))
            return
        self._scheduler.call_soon_threadsafe(on_end)
