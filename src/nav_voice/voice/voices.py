"""Preferred synthesis voice selection."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from .interfaces import SpeechSynthesizer, VoiceDescriptor

_KOREAN = re.compile(r"(?:^|[^a-z])ko(?:[^a-z]|$)", re.IGNORECASE)
_ENGLISH = re.compile(r"(?:^|[^a-z])en(?:[^a-z]|$)", re.IGNORECASE)


def select_preferred(voices: Sequence[VoiceDescriptor]) -> VoiceDescriptor | None:
    """Pick the first Korean voice, else the first English one, else the first voice."""
    for pattern in (_KOREAN, _ENGLISH):
        for voice in voices:
            if pattern.search(voice.language or ""):
                return voice
    return voices[0] if voices else None


class VoiceSelector:
    """Keeps the preferred voice in sync with the engine's voice set."""

    def __init__(self, synthesizer: SpeechSynthesizer | None, *, logger: logging.Logger | None = None) -> None:
        self._synthesizer = synthesizer
        self._logger = logger or logging.getLogger("nav_voice.voices")
        self._preferred: VoiceDescriptor | None = None
        self._available: tuple[VoiceDescriptor, ...] = ()
        self._attached = False

    @property
    def preferred(self) -> VoiceDescriptor | None:
        return self._preferred

    @property
    def available(self) -> tuple[VoiceDescriptor, ...]:
        return self._available

    def attach(self) -> None:
        """Select a voice now and re-select whenever the engine reports a change."""
        if self._synthesizer is None or self._attached:
            return
        self._synthesizer.on_voices_changed(self.refresh)
        self._attached = True
        self.refresh()

    def refresh(self) -> VoiceDescriptor | None:
        if self._synthesizer is None:
            return None
        try:
            voices = list(self._synthesizer.voices())
        except Exception:  # noqa: BLE001 - fall back to the platform default voice.
            self._logger.exception("voice_list_failed")
            voices = []

        self._available = tuple(voices)
        self._preferred = select_preferred(voices)
        self._logger.info(
            "voice_selected",
            extra={
                "voice": self._preferred.name if self._preferred else None,
                "available": len(voices),
            },
        )
        return self._preferred
