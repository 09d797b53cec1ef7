"""Voice input and output module boundaries."""

from .alerts import AudioAlertEntry, AudioAlertQueue
from .dialogue import ConfirmationDialog, ConfirmationSession
from .input import RecognitionController, RecognitionErrorKind, RecognitionState, select_best_transcript
from .intents import AnswerClassifier, AnswerKind, AnswerPatterns
from .interfaces import (
    ClipPlayer,
    RecognitionAlternative,
    RecognitionConfig,
    RecognitionListener,
    RecognitionSession,
    SpeechRecognizer,
    SpeechSynthesizer,
    SynthesisRequest,
    VoiceDescriptor,
)
from .output import SpeechOutputQueue, SpeechPriority, Utterance
from .voices import VoiceSelector, select_preferred

__all__ = [
    "AnswerClassifier",
    "AnswerKind",
    "AnswerPatterns",
    "AudioAlertEntry",
    "AudioAlertQueue",
    "ClipPlayer",
    "ConfirmationDialog",
    "ConfirmationSession",
    "RecognitionAlternative",
    "RecognitionConfig",
    "RecognitionController",
    "RecognitionErrorKind",
    "RecognitionListener",
    "RecognitionSession",
    "RecognitionState",
    "SpeechOutputQueue",
    "SpeechPriority",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "SynthesisRequest",
    "Utterance",
    "VoiceDescriptor",
    "VoiceSelector",
    "select_best_transcript",
    "select_preferred",
]
