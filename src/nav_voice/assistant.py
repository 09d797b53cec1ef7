from __future__ import annotations

import logging
from typing import Callable, Sequence

from .scheduling import Scheduler
from .voice.alerts import AudioAlertQueue
from .voice.dialogue import MAX_CANDIDATES, ConfirmationDialog, ResolvedCallback
from .voice.input import RecognitionController
from .voice.intents import AnswerClassifier
from .voice.interfaces import ClipPlayer, RecognitionConfig, SpeechRecognizer, SpeechSynthesizer
from .voice.output import SpeechOutputQueue, SpeechPriority
from .voice.voices import VoiceSelector


class NavigationVoiceAssistant:
    """Voice surface of the navigation app: speech out, speech in, confirmations and alerts."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        synthesizer: SpeechSynthesizer | None = None,
        recognizer: SpeechRecognizer | None = None,
        clip_player: ClipPlayer | None = None,
        classifier: AnswerClassifier | None = None,
        recognition_config: RecognitionConfig | None = None,
        voice_enabled: bool = True,
        logger: logging.Logger | None = None,
    ):
        self._logger = logger or logging.getLogger("nav_voice.assistant")
        self.voice_selector = VoiceSelector(synthesizer)
        self.speech = SpeechOutputQueue(
            synthesizer,
            scheduler,
            voice_selector=self.voice_selector,
            enabled=voice_enabled,
        )
        self.recognition = RecognitionController(recognizer, scheduler, self.speech, config=recognition_config)
        self.confirmation = ConfirmationDialog(self.speech, self.recognition, classifier=classifier)
        self.alerts = AudioAlertQueue(clip_player, scheduler)

    def start(self) -> None:
        self.voice_selector.attach()

    def stop(self) -> None:
        self.recognition.disable_auto_recognition()
        self.confirmation.cancel()
        self.recognition.stop_listening()
        self.alerts.clear()
        self.speech.set_enabled(False)

    def speak(self, text: str, priority: SpeechPriority | str = SpeechPriority.NORMAL) -> None:
        self.speech.speak(text, priority)

    def listen(self, on_transcript: Callable[[str], None]) -> None:
        """Start one recognition session delivering its best transcript to ``on_transcript``."""
        if self.recognition.initialize(on_transcript):
            self.recognition.start_listening()

    def stop_listening(self) -> None:
        self.recognition.stop_listening()

    def enable_auto_recognition(self) -> None:
        self.recognition.enable_auto_recognition()

    def disable_auto_recognition(self) -> None:
        self.recognition.disable_auto_recognition()

    def set_voice_enabled(self, enabled: bool) -> None:
        self.speech.set_enabled(enabled)

    def read_top_destinations(self, destinations: Sequence[str]) -> None:
        if not isinstance(destinations, (list, tuple)):
            self._logger.error("destinations_not_a_list", extra={"destinations": repr(destinations)})
            return

        parts = ["추천 목적지입니다."]
        for index, destination in enumerate(destinations[:MAX_CANDIDATES], start=1):
            parts.append(f"{index}번: {destination}.")
        self.speech.speak(" ".join(parts), SpeechPriority.NORMAL)

    def confirm_destinations(self, destinations: Sequence[str], on_selected: ResolvedCallback | None) -> None:
        self.confirmation.confirm(destinations, on_selected)

    def enqueue_alert(self, clip_ref: str) -> None:
        self.alerts.enqueue_alert(clip_ref)
