"""Deduplicating playback queue for short audio alert clips."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from nav_voice.scheduling import Scheduler, TimerHandle

from .interfaces import ClipPlayer

DEDUP_WINDOW_SECONDS = 2.0
RECENT_HISTORY_LIMIT = 10
INTER_CLIP_DELAY_SECONDS = 0.1


@dataclass(frozen=True, slots=True)
class AudioAlertEntry:
    clip_ref: str
    enqueued_at: float


class AudioAlertQueue:
    """Plays alert clips one at a time, never twice within the dedup window.

    A clip requested again less than ``DEDUP_WINDOW_SECONDS`` after its last
    accepted request is dropped. Entries that waited longer than the window
    are discarded instead of being played late.
    """

    def __init__(self, player: ClipPlayer | None, scheduler: Scheduler, *, logger: logging.Logger | None = None) -> None:
        self._player = player
        self._scheduler = scheduler
        self._logger = logger or logging.getLogger("nav_voice.audio_alerts")

        self._queue: deque[AudioAlertEntry] = deque()
        self._recent: deque[AudioAlertEntry] = deque(maxlen=RECENT_HISTORY_LIMIT)
        self._playing = False
        self._generation = 0
        self._next_timer: TimerHandle | None = None

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def pending(self) -> tuple[AudioAlertEntry, ...]:
        return tuple(self._queue)

    @property
    def recent(self) -> tuple[AudioAlertEntry, ...]:
        return tuple(self._recent)

    def enqueue_alert(self, clip_ref: str) -> None:
        if self._player is None:
            self._logger.warning("audio_playback_unavailable", extra={"clip_ref": clip_ref})
            return

        now = self._scheduler.time()
        if any(item.clip_ref == clip_ref and now - item.enqueued_at < DEDUP_WINDOW_SECONDS for item in self._recent):
            self._logger.debug("audio_alert_deduplicated", extra={"clip_ref": clip_ref})
            return

        entry = AudioAlertEntry(clip_ref=clip_ref, enqueued_at=now)
        self._recent.append(entry)
        self._queue.append(entry)
        self._play_next()

    def clear(self) -> None:
        """Drop queued clips and stop waiting for the next slot."""
        self._queue.clear()
        if self._next_timer is not None:
            self._next_timer.cancel()
            self._next_timer = None

    def _play_next(self) -> None:
        if self._playing or not self._queue:
            return

        now = self._scheduler.time()
        while self._queue and now - self._queue[0].enqueued_at > DEDUP_WINDOW_SECONDS:
            stale = self._queue.popleft()
            self._logger.info("audio_alert_expired", extra={"clip_ref": stale.clip_ref})

        if not self._queue:
            return

        entry = self._queue.popleft()
        self._playing = True
        self._generation += 1
        generation = self._generation
        self._logger.info("audio_alert_playing", extra={"clip_ref": entry.clip_ref})
        try:
            self._player.play(
                entry.clip_ref,
                on_ended=lambda: self._on_done(generation),
                on_error=lambda error: self._on_failed(generation, entry.clip_ref, error),
            )
        except Exception:  # noqa: BLE001 - a broken clip must not stall the queue.
            self._logger.exception("audio_alert_play_failed", extra={"clip_ref": entry.clip_ref})
            self._on_done(generation)

    def _on_failed(self, generation: int, clip_ref: str, error: str) -> None:
        self._logger.warning("audio_alert_play_failed", extra={"clip_ref": clip_ref, "error": error})
        self._on_done(generation)

    def _on_done(self, generation: int) -> None:
        if generation != self._generation or not self._playing:
            return
        self._playing = False
        self._next_timer = self._scheduler.call_later(INTER_CLIP_DELAY_SECONDS, self._resume)

    def _resume(self) -> None:
        self._next_timer = None
        self._play_next()
