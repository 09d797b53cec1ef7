"""Serialized text-to-speech output with priority preemption."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum

from nav_voice.scheduling import Scheduler, TimerHandle

from .interfaces import SpeechSynthesizer, SynthesisRequest
from .voices import VoiceSelector

INTER_UTTERANCE_DELAY_SECONDS = 0.1


class SpeechPriority(str, Enum):
    """Priority tiers for queued utterances."""

    NORMAL = "normal"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class Utterance:
    """A single text-to-speech request."""

    text: str
    priority: SpeechPriority = SpeechPriority.NORMAL


class SpeechOutputQueue:
    """Plays utterances one at a time through a speech synthesizer.

    Normal utterances are spoken in FIFO order with a short gap between them.
    A high-priority utterance arriving while something is speaking cancels the
    in-flight utterance and drops every queued normal one before it is queued.
    ``speak`` never raises; engine faults are logged and the queue moves on.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer | None,
        scheduler: Scheduler,
        *,
        voice_selector: VoiceSelector | None = None,
        enabled: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._scheduler = scheduler
        self._voice_selector = voice_selector
        self._enabled = enabled
        self._logger = logger or logging.getLogger("nav_voice.speech_output")

        self._queue: deque[Utterance] = deque()
        self._speaking = False
        self._current: Utterance | None = None
        self._generation = 0
        self._gap_timer: TimerHandle | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_speaking(self) -> bool:
        """True while an utterance is in flight or the queue is still draining."""
        return self._speaking

    @property
    def current(self) -> Utterance | None:
        return self._current

    @property
    def pending(self) -> tuple[Utterance, ...]:
        return tuple(self._queue)

    def speak(self, text: str, priority: SpeechPriority | str = SpeechPriority.NORMAL) -> None:
        """Schedule ``text`` for speech output."""
        if not self._enabled:
            self._logger.debug("speech_output_muted", extra={"text": text})
            return
        if self._synthesizer is None:
            self._logger.warning("speech_synthesis_unavailable", extra={"text": text})
            return

        try:
            priority = SpeechPriority(priority)
            normalized = " ".join(str(text).split())
            if not normalized:
                self._logger.debug("speech_request_blank")
                return

            self._logger.info("speech_requested", extra={"text": normalized, "priority": priority.value})
            if priority == SpeechPriority.HIGH and self._speaking:
                self._preempt()

            self._queue.append(Utterance(text=normalized, priority=priority))
            if not self._speaking:
                self._process_next()
        except Exception:  # noqa: BLE001 - speech output must never fail the caller.
            self._logger.exception("speech_request_failed", extra={"text": text})

    def set_enabled(self, enabled: bool) -> None:
        """Toggle speech output; disabling silences and clears everything."""
        self._enabled = enabled
        if enabled:
            return

        self._stop_all()
        self._speaking = False
        self._logger.info("speech_output_disabled")

    def _preempt(self) -> None:
        dropped = [utterance for utterance in self._queue if utterance.priority == SpeechPriority.NORMAL]
        kept = [utterance for utterance in self._queue if utterance.priority != SpeechPriority.NORMAL]
        interrupted = self._current
        self._stop_all()
        self._queue.extend(kept)
        self._logger.info(
            "speech_preempted",
            extra={"interrupted": interrupted.text if interrupted else None, "dropped": len(dropped)},
        )
        # Same settle gap after a cancel as after a normal end.
        self._schedule_next()

    def _stop_all(self) -> None:
        self._queue.clear()
        if self._gap_timer is not None:
            self._gap_timer.cancel()
            self._gap_timer = None
        if self._current is not None:
            self._current = None
            self._generation += 1
            try:
                self._synthesizer.cancel()
            except Exception:  # noqa: BLE001
                self._logger.exception("speech_cancel_failed")

    def _process_next(self) -> None:
        self._gap_timer = None
        if not self._queue:
            self._speaking = False
            self._current = None
            return

        self._speaking = True
        utterance = self._queue.popleft()
        self._generation += 1
        generation = self._generation
        self._current = utterance

        request = SynthesisRequest(
            text=utterance.text,
            voice=self._voice_selector.preferred if self._voice_selector else None,
            rate=1.0,
            pitch=1.0,
            volume=1.0,
        )
        self._logger.debug("speech_started", extra={"text": utterance.text, "priority": utterance.priority.value})
        try:
            self._synthesizer.speak(
                request,
                on_end=lambda: self._on_finished(generation),
                on_error=lambda error: self._on_failed(generation, error),
            )
        except Exception:  # noqa: BLE001 - treat a synchronous engine fault like an error event.
            self._logger.exception("speech_engine_failed", extra={"text": utterance.text})
            self._on_finished(generation)

    def _on_finished(self, generation: int) -> None:
        if generation != self._generation or self._current is None:
            return
        self._current = None
        self._schedule_next()

    def _on_failed(self, generation: int, error: str) -> None:
        if generation == self._generation and self._current is not None:
            self._logger.error("speech_engine_error", extra={"text": self._current.text, "error": error})
        self._on_finished(generation)

    def _schedule_next(self) -> None:
        self._speaking = True
        if self._gap_timer is not None:
            self._gap_timer.cancel()
        self._gap_timer = self._scheduler.call_later(INTER_UTTERANCE_DELAY_SECONDS, self._process_next)
