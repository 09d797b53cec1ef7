"""Turn-based yes/no confirmation over a ranked list of destinations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable

from .input import RecognitionController
from .intents import AnswerClassifier, AnswerKind
from .output import SpeechOutputQueue, SpeechPriority

MAX_CANDIDATES = 3

_PROMPT = "제안 {position}: {destination}. 이 목적지로 선택하시겠습니까? 네 또는 아니오로 대답해주세요."
_SELECTED = "선택되었습니다."
_CLARIFY = '"{answer}"로 인식되었습니다. 네 또는 아니오로 명확하게 대답해주세요.'
_NONE_SELECTED = "목적지가 선택되지 않았습니다."

ResolvedCallback = Callable[[str | None], None]


@dataclass(slots=True)
class ConfirmationSession:
    """Cursor over the candidates still being offered to the user."""

    candidates: tuple[str, ...]
    on_resolved: ResolvedCallback | None = None
    cursor: int = 0
    resolved: bool = False

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.candidates)

    @property
    def current(self) -> str:
        return self.candidates[self.cursor]

    def advance(self) -> None:
        self.cursor += 1


class ConfirmationDialog:
    """Asks about each candidate in order until one is accepted or all are rejected."""

    def __init__(
        self,
        speech: SpeechOutputQueue,
        recognition: RecognitionController,
        *,
        classifier: AnswerClassifier | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._speech = speech
        self._recognition = recognition
        self._classifier = classifier or AnswerClassifier()
        self._logger = logger or logging.getLogger("nav_voice.confirmation")
        self._session: ConfirmationSession | None = None

    @property
    def session(self) -> ConfirmationSession | None:
        return self._session

    @property
    def active(self) -> bool:
        return self._session is not None

    def confirm(self, candidates: Sequence[str], on_resolved: ResolvedCallback | None) -> None:
        if not isinstance(candidates, Sequence) or isinstance(candidates, (str, bytes)) or not candidates:
            self._logger.error("confirmation_input_invalid", extra={"candidates": repr(candidates)})
            self._notify(on_resolved, None)
            return

        if self._session is not None:
            self.cancel()

        if not self._recognition.available:
            self._logger.error("confirmation_recognition_unavailable")
            self._notify(on_resolved, None)
            return

        session = ConfirmationSession(
            candidates=tuple(str(candidate) for candidate in list(candidates)[:MAX_CANDIDATES]),
            on_resolved=on_resolved,
        )
        self._session = session
        self._logger.info("confirmation_started", extra={"candidates": list(session.candidates)})
        self._ask(session)

    def cancel(self) -> None:
        """End the active session without a selection."""
        session = self._session
        if session is None:
            return
        self._logger.info("confirmation_cancelled", extra={"cursor": session.cursor})
        self._recognition.stop_listening()
        self._resolve(session, None)

    def _ask(self, session: ConfirmationSession) -> None:
        if session.exhausted:
            self._speech.speak(_NONE_SELECTED, SpeechPriority.HIGH)
            self._resolve(session, None)
            return

        self._speech.speak(
            _PROMPT.format(position=session.cursor + 1, destination=session.current),
            SpeechPriority.NORMAL,
        )
        self._recognition.initialize(lambda transcript: self._on_answer(session, transcript))
        self._recognition.start_listening()

    def _on_answer(self, session: ConfirmationSession, transcript: str) -> None:
        if session is not self._session or session.resolved:
            self._logger.debug("confirmation_answer_ignored", extra={"transcript": transcript})
            return

        answer = self._classifier.normalize(transcript)
        kind = self._classifier.classify(answer)
        self._logger.info(
            "confirmation_answer",
            extra={"answer": answer, "kind": kind.value, "candidate": session.current},
        )

        if kind == AnswerKind.AFFIRMATIVE:
            self._speech.speak(_SELECTED, SpeechPriority.NORMAL)
            self._resolve(session, session.current)
        elif kind == AnswerKind.NEGATIVE:
            session.advance()
            self._ask(session)
        else:
            self._speech.speak(_CLARIFY.format(answer=answer), SpeechPriority.NORMAL)
            self._ask(session)

    def _resolve(self, session: ConfirmationSession, destination: str | None) -> None:
        if session.resolved:
            return
        session.resolved = True
        if self._session is session:
            self._session = None
        self._logger.info("confirmation_resolved", extra={"destination": destination})
        self._notify(session.on_resolved, destination)

    def _notify(self, callback: ResolvedCallback | None, destination: str | None) -> None:
        if callback is None:
            return
        try:
            callback(destination)
        except Exception:  # noqa: BLE001
            self._logger.exception("confirmation_callback_failed", extra={"destination": destination})
