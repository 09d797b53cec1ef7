"""Yes/no answer classification for spoken confirmations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

AFFIRMATIVE_PATTERNS: tuple[str, ...] = (
    "네", "예", "응", "좋아", "맞아", "맞아요", "맞습니다", "맞습니다요",
    "그래", "그래요", "그렇습니다", "그렇습니다요", "좋습니다", "좋습니다요",
    "확인", "확인해", "확인해요", "확인합니다", "확인합니다요",
    "선택", "선택해", "선택해요", "선택합니다", "선택합니다요",
    "설정", "설정해", "설정해요", "설정합니다", "설정합니다요",
    "진행", "진행해", "진행해요", "진행합니다", "진행합니다요",
    "시작", "시작해", "시작해요", "시작합니다", "시작합니다요",
    "go", "yes", "ok", "okay", "yep", "yeah", "sure", "right",
)  # fmt: skip

NEGATIVE_PATTERNS: tuple[str, ...] = (
    "아니", "아니오", "아냐", "아닙니다", "아닙니다요",
    "틀려", "틀렸", "틀렸어", "틀렸어요", "틀렸습니다", "틀렸습니다요",
    "다시", "다시해", "다시해요", "다시합니다", "다시합니다요",
    "취소", "취소해", "취소해요", "취소합니다", "취소합니다요",
    "no", "nope", "not", "wrong", "cancel", "stop",
)  # fmt: skip


class AnswerKind(str, Enum):
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    UNRECOGNIZED = "unrecognized"


@dataclass(slots=True)
class AnswerPatterns:
    """Regex sources for affirmative and negative answers.

    Patterns are searched anywhere in the normalized transcript, so ``"not"``
    also matches inside ``"nothing"``. Extend the lists through configuration
    rather than editing the classifier.
    """

    affirmative: tuple[str, ...] = AFFIRMATIVE_PATTERNS
    negative: tuple[str, ...] = NEGATIVE_PATTERNS

    @classmethod
    def from_lists(cls, affirmative: Iterable[str] | None = None, negative: Iterable[str] | None = None) -> AnswerPatterns:
        return cls(
            affirmative=tuple(affirmative) if affirmative is not None else AFFIRMATIVE_PATTERNS,
            negative=tuple(negative) if negative is not None else NEGATIVE_PATTERNS,
        )


class AnswerClassifier:
    """Maps a transcript to affirmative, negative or unrecognized."""

    def __init__(self, patterns: AnswerPatterns | None = None) -> None:
        self.patterns = patterns or AnswerPatterns()
        self._affirmative = tuple(re.compile(source) for source in self.patterns.affirmative)
        self._negative = tuple(re.compile(source) for source in self.patterns.negative)

    @staticmethod
    def normalize(transcript: str) -> str:
        return transcript.lower().strip()

    def classify(self, transcript: str) -> AnswerKind:
        # Affirmative wins when both sets match ("아니예요" contains "예").
        answer = self.normalize(transcript)
        if any(pattern.search(answer) for pattern in self._affirmative):
            return AnswerKind.AFFIRMATIVE
        if any(pattern.search(answer) for pattern in self._negative):
            return AnswerKind.NEGATIVE
        return AnswerKind.UNRECOGNIZED
