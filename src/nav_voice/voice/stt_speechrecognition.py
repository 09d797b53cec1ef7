"""Speech-to-text backend powered by ``speech_recognition``."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from nav_voice.scheduling import Scheduler

from .interfaces import (
    RecognitionAlternative,
    RecognitionConfig,
    RecognitionListener,
    RecognitionSession,
    SpeechRecognizer,
)


def parse_google_alternatives(payload: object, limit: int) -> list[RecognitionAlternative]:
    """Convert a ``recognize_google(show_all=True)`` payload into alternatives."""
    if not isinstance(payload, dict):
        return []

    alternatives: list[RecognitionAlternative] = []
    for item in payload.get("alternative", []):
        transcript = str(item.get("transcript", "")).strip()
        if not transcript:
            continue
        confidence = item.get("confidence")
        alternatives.append(
            RecognitionAlternative(
                transcript=transcript,
                confidence=float(confidence) if confidence is not None else None,
            )
        )
    return alternatives[: max(1, limit)]


class _MicrophoneSession(RecognitionSession):
    def __init__(self) -> None:
        self.stopped = threading.Event()
        self.future: Future | None = None

    def stop(self) -> None:
        self.stopped.set()
        if self.future is not None:
            self.future.cancel()


class SpeechRecognitionRecognizer(SpeechRecognizer):
    """Single-shot microphone recognition using speech_recognition + Google."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        phrase_time_limit: float = 5.0,
        timeout: float | None = 5.0,
        sample_rate: int = 16_000,
        chunk_size: int = 1024,
        adjust_noise_seconds: float = 0.2,
        logger: logging.Logger | None = None,
    ) -> None:
        try:
            import speech_recognition as sr
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Voice STT backend unavailable. Install extras with: pip install 'nav-voice[voice]'"
            ) from exc
        self._sr = sr
        self._scheduler = scheduler
        self._recognizer = sr.Recognizer()
        self._phrase_time_limit = phrase_time_limit
        self._timeout = timeout
        self._sample_rate = sample_rate
        self._chunk_size = chunk_size
        self._adjust_noise_seconds = max(0.0, adjust_noise_seconds)
        self._logger = logger or logging.getLogger("nav_voice.stt_speechrecognition")
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="speech-recognition")

    def start_session(self, config: RecognitionConfig, listener: RecognitionListener) -> RecognitionSession:
        session = _MicrophoneSession()
        session.future = self._executor.submit(self._run, session, config, listener)
        return session

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, session: _MicrophoneSession, config: RecognitionConfig, listener: RecognitionListener) -> None:
        try:
            alternatives = self._capture_and_recognize(session, config)
        except self._sr.WaitTimeoutError:
            self._emit_error(session, listener, "no-speech")
        except self._sr.UnknownValueError:
            self._emit_error(session, listener, "no-speech")
        except self._sr.RequestError:
            self._logger.exception("speech_recognition_request_failed")
            self._emit_error(session, listener, "network")
        except (OSError, AttributeError):
            # speech_recognition raises AttributeError when PyAudio is missing.
            self._logger.exception("microphone_unavailable")
            self._emit_error(session, listener, "audio-capture")
        except Exception:  # noqa: BLE001 - every failure becomes an error event.
            self._logger.exception("speech_recognition_failed")
            self._emit_error(session, listener, "unknown")
        else:
            if not alternatives:
                self._emit_error(session, listener, "no-speech")
            elif not session.stopped.is_set():
                self._scheduler.call_soon_threadsafe(lambda: listener.on_result(alternatives))
        self._scheduler.call_soon_threadsafe(listener.on_end)

    def _capture_and_recognize(
        self, session: _MicrophoneSession, config: RecognitionConfig
    ) -> list[RecognitionAlternative]:
        with self._sr.Microphone(sample_rate=self._sample_rate, chunk_size=self._chunk_size) as source:
            if self._adjust_noise_seconds > 0:
                self._recognizer.adjust_for_ambient_noise(source, duration=self._adjust_noise_seconds)
            audio = self._recognizer.listen(
                source,
                timeout=self._timeout,
                phrase_time_limit=self._phrase_time_limit,
            )
        if session.stopped.is_set():
            return []
        payload = self._recognizer.recognize_google(audio, language=config.language, show_all=True)
        return parse_google_alternatives(payload, config.max_alternatives)

    def _emit_error(self, session: _MicrophoneSession, listener: RecognitionListener, code: str) -> None:
        if session.stopped.is_set():
            code = "aborted"
        self._scheduler.call_soon_threadsafe(lambda: listener.on_error(code))
