"""Audio clip playback backend powered by ``soundfile`` + ``sounddevice``."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from nav_voice.scheduling import Scheduler

from .interfaces import ClipPlayer


class SoundDeviceClipPlayer(ClipPlayer):
    """Play clip files on the default output device, one at a time."""

    def __init__(self, scheduler: Scheduler, *, logger: logging.Logger | None = None) -> None:
        try:
            import sounddevice
            import soundfile
        except (ImportError, OSError) as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Audio playback backend unavailable. Install extras with: pip install 'nav-voice[voice]'"
            ) from exc
        self._sd = sounddevice
        self._sf = soundfile
        self._scheduler = scheduler
        self._logger = logger or logging.getLogger("nav_voice.playback")
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="clip-playback")

    def play(self, clip_ref: str, on_ended: Callable[[], None], on_error: Callable[[str], None]) -> None:
        self._executor.submit(self._run, clip_ref, on_ended, on_error)

    def close(self) -> None:
        self._sd.stop()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, clip_ref: str, on_ended: Callable[[], None], on_error: Callable[[str], None]) -> None:
        try:
            data, sample_rate = self._sf.read(clip_ref, dtype="float32")
            self._sd.play(data, samplerate=sample_rate)
            self._sd.wait()
        except Exception as exc:  # noqa: BLE001 - reported through on_error.
            self._logger.warning("clip_playback_failed", extra={"clip_ref": clip_ref}, exc_info=True)
            message = f"{type(exc).__name__}: {exc}"
            self._scheduler.call_soon_threadsafe(lambda: on_error(message))
            return
        self._scheduler.call_soon_threadsafe(on_ended)
