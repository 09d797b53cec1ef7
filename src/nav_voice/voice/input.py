"""Single-shot speech recognition with retry and auto-restart policy."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Sequence

from nav_voice.scheduling import Scheduler, TimerHandle

from .interfaces import RecognitionAlternative, RecognitionConfig, RecognitionSession, SpeechRecognizer
from .output import SpeechOutputQueue, SpeechPriority

AUTO_RESTART_DELAY_SECONDS = 0.5
ERROR_RETRY_DELAY_SECONDS = 2.0


class RecognitionState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"


class RecognitionErrorKind(str, Enum):
    """Canonical recognition failure causes, keyed by platform error code."""

    NO_SPEECH = "no-speech"
    ABORTED = "aborted"
    AUDIO_CAPTURE = "audio-capture"
    NETWORK = "network"
    NOT_ALLOWED = "not-allowed"
    SERVICE_NOT_ALLOWED = "service-not-allowed"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: str | None) -> RecognitionErrorKind:
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


ERROR_MESSAGES: dict[RecognitionErrorKind, str] = {
    RecognitionErrorKind.NO_SPEECH: "음성이 감지되지 않았습니다. 다시 말씀해주세요.",
    RecognitionErrorKind.ABORTED: "음성 인식이 중단되었습니다. 다시 시도해주세요.",
    RecognitionErrorKind.AUDIO_CAPTURE: "마이크를 찾을 수 없습니다. 마이크 연결을 확인해주세요.",
    RecognitionErrorKind.NETWORK: "네트워크 오류로 음성 인식이 실패했습니다. 인터넷 연결을 확인해주세요.",
    RecognitionErrorKind.NOT_ALLOWED: "마이크 사용 권한이 거부되었습니다. 설정에서 마이크 권한을 허용해주세요.",
    RecognitionErrorKind.SERVICE_NOT_ALLOWED: "음성 인식 서비스가 허용되지 않았습니다.",
    RecognitionErrorKind.UNKNOWN: "음성 인식 중 오류가 발생했습니다.",
}

RETRYABLE_ERRORS = frozenset({RecognitionErrorKind.NO_SPEECH, RecognitionErrorKind.ABORTED})


def select_best_transcript(alternatives: Sequence[RecognitionAlternative]) -> str | None:
    """Return the highest-confidence transcript; earlier alternatives win ties."""
    best: RecognitionAlternative | None = None
    best_confidence = 0.0
    for alternative in alternatives:
        confidence = alternative.confidence or 0.0
        if best is None or confidence > best_confidence:
            best = alternative
            best_confidence = confidence
    return best.transcript if best is not None else None


class _SessionListener:
    """Routes engine events for one session back to its controller."""

    def __init__(self, controller: RecognitionController, session_id: int) -> None:
        self._controller = controller
        self._session_id = session_id

    def on_result(self, alternatives: Sequence[RecognitionAlternative]) -> None:
        self._controller._handle_result(self._session_id, alternatives)

    def on_error(self, code: str) -> None:
        self._controller._handle_error(self._session_id, code)

    def on_end(self) -> None:
        self._controller._handle_end(self._session_id)


class RecognitionController:
    """Owns the single recognition session of one speech recognizer.

    Transitions: ``IDLE -> LISTENING`` on ``start_listening``,
    ``LISTENING -> PROCESSING`` when a result arrives, and back to ``IDLE`` on
    session end, error or ``stop_listening``. The winning transcript is handed
    to the callback once the session has ended, so the callback may start the
    next session right away.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer | None,
        scheduler: Scheduler,
        speech: SpeechOutputQueue,
        *,
        config: RecognitionConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._scheduler = scheduler
        self._speech = speech
        self._config = config or RecognitionConfig()
        self._logger = logger or logging.getLogger("nav_voice.recognition")

        self._on_transcript: Callable[[str], None] | None = None
        self._initialized = False
        self._state = RecognitionState.IDLE
        self._session: RecognitionSession | None = None
        self._session_id = 0
        self._pending_transcript: str | None = None
        self._auto_recognition = False
        self._restart_timer: TimerHandle | None = None
        self._retry_timer: TimerHandle | None = None

    @property
    def state(self) -> RecognitionState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state != RecognitionState.IDLE

    @property
    def available(self) -> bool:
        return self._recognizer is not None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def auto_recognition(self) -> bool:
        return self._auto_recognition

    @property
    def config(self) -> RecognitionConfig:
        return self._config

    def initialize(self, on_transcript: Callable[[str], None] | None) -> bool:
        """Install the transcript callback used by subsequent sessions."""
        if self._recognizer is None:
            self._logger.error("speech_recognition_unavailable")
            return False
        self._on_transcript = on_transcript
        self._initialized = True
        return True

    def start_listening(self) -> None:
        if not self._initialized:
            self._logger.error("speech_recognition_not_initialized")
            return
        if self.is_listening:
            self._logger.debug("speech_recognition_already_active", extra={"session_id": self._session_id})
            return

        self._session_id += 1
        session_id = self._session_id
        self._pending_transcript = None
        try:
            self._session = self._recognizer.start_session(self._config, _SessionListener(self, session_id))
        except Exception:  # noqa: BLE001 - a failed start leaves the controller idle.
            self._session = None
            self._logger.exception("speech_recognition_start_failed", extra={"session_id": session_id})
            return

        self._state = RecognitionState.LISTENING
        self._logger.info("speech_recognition_started", extra={"session_id": session_id})

    def stop_listening(self) -> None:
        """Stop the active session and any pending error retry or auto-restart."""
        self._cancel_retry()
        if self._restart_timer is not None:
            self._restart_timer.cancel()
            self._restart_timer = None
        if not self.is_listening:
            return

        session = self._session
        self._detach()
        self._logger.info("speech_recognition_stopped")
        if session is not None:
            try:
                session.stop()
            except Exception:  # noqa: BLE001
                self._logger.exception("speech_recognition_stop_failed")

    def enable_auto_recognition(self) -> None:
        self._auto_recognition = True
        if self._initialized and not self.is_listening:
            self.start_listening()

    def disable_auto_recognition(self) -> None:
        self._auto_recognition = False
        if self._restart_timer is not None:
            self._restart_timer.cancel()
            self._restart_timer = None

    def _cancel_retry(self) -> None:
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None

    def _detach(self) -> None:
        # Bumping the id turns any late events from the old session into no-ops.
        self._session_id += 1
        self._session = None
        self._pending_transcript = None
        self._state = RecognitionState.IDLE

    def _handle_result(self, session_id: int, alternatives: Sequence[RecognitionAlternative]) -> None:
        if session_id != self._session_id or self._state == RecognitionState.IDLE:
            return

        for index, alternative in enumerate(alternatives, start=1):
            self._logger.debug(
                "speech_recognition_alternative",
                extra={"rank": index, "transcript": alternative.transcript, "confidence": alternative.confidence},
            )
        transcript = select_best_transcript(alternatives)
        self._logger.info("speech_recognition_result", extra={"session_id": session_id, "transcript": transcript})
        self._pending_transcript = transcript
        self._state = RecognitionState.PROCESSING

    def _handle_error(self, session_id: int, code: str) -> None:
        if session_id != self._session_id or self._state == RecognitionState.IDLE:
            return

        kind = RecognitionErrorKind.from_code(code)
        self._session = None
        self._pending_transcript = None
        self._state = RecognitionState.IDLE
        self._logger.error("speech_recognition_error", extra={"session_id": session_id, "code": code})
        self._speech.speak(ERROR_MESSAGES[kind], SpeechPriority.HIGH)

        if kind in RETRYABLE_ERRORS:
            self._cancel_retry()
            self._retry_timer = self._scheduler.call_later(ERROR_RETRY_DELAY_SECONDS, self._retry_after_error)

    def _retry_after_error(self) -> None:
        self._retry_timer = None
        if self.is_listening:
            return
        self._logger.info("speech_recognition_retry")
        self.start_listening()

    def _handle_end(self, session_id: int) -> None:
        # An error already returned to IDLE; the trailing end event still counts
        # as the session ending for auto-restart purposes.
        if session_id != self._session_id:
            return

        transcript = self._pending_transcript
        self._session = None
        self._pending_transcript = None
        self._state = RecognitionState.IDLE
        self._session_id += 1
        self._logger.info("speech_recognition_ended", extra={"session_id": session_id})

        if transcript is not None and self._on_transcript is not None:
            try:
                self._on_transcript(transcript)
            except Exception:  # noqa: BLE001 - a faulty callback must not wedge recognition.
                self._logger.exception("speech_transcript_callback_failed", extra={"transcript": transcript})

        if self._auto_recognition:
            if self._restart_timer is not None:
                self._restart_timer.cancel()
            self._restart_timer = self._scheduler.call_later(AUTO_RESTART_DELAY_SECONDS, self._auto_restart)

    def _auto_restart(self) -> None:
        self._restart_timer = None
        if self._auto_recognition:
            self.start_listening()
