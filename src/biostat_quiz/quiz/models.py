"""Question and answer records shared by generation, sessions and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional


class Label(str, Enum):
    """The four option identifiers every question carries."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @classmethod
    def parse(cls, value: object) -> Optional["Label"]:
        """Return the label for ``value`` or ``None`` when it is not A-D."""
        if isinstance(value, Label):
            return value
        text = str(value or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            return None


LABELS = tuple(Label)


class QuestionKind(str, Enum):
    CALCULATION = "calculation"
    CONCEPTUAL = "conceptual"
    CHART_INTERPRETATION = "chart-interpretation"
    OUTPUT_INTERPRETATION = "output-interpretation"

    @classmethod
    def from_value(cls, value: object) -> "QuestionKind":
        normalized = (
            str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
        )
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown question kind '{value}'. Expected one of: {expected}."
        )


BASELINE_KINDS = (QuestionKind.CALCULATION, QuestionKind.CONCEPTUAL)
EXTENDED_KINDS = tuple(QuestionKind)


class QuizMode(str, Enum):
    """How the quiz composition is steered."""

    RANDOM = "random"
    TOPIC = "topic"
    HASHTAG = "hashtag"


@dataclass(frozen=True)
class Explanation:
    correct: str
    incorrect: Mapping[Label, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Question:
    """A single generated multiple-choice question.

    ``options`` always holds all four labels and ``correct_label`` is one of
    them. ``chart_markup`` is only set for chart-interpretation questions and
    ``statistical_output`` only for output-interpretation ones.
    """

    id: str
    prompt: str
    options: Mapping[Label, str]
    correct_label: Label
    explanation: Explanation
    topic: str
    kind: QuestionKind
    chart_markup: Optional[str] = None
    statistical_output: Optional[str] = None

    def incorrect_labels(self) -> Iterator[Label]:
        for label in LABELS:
            if label in self.options and label != self.correct_label:
                yield label

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "id": self.id,
            "question": self.prompt,
            "options": {
                label.value: text for label, text in self.options.items()
            },
            "answer": self.correct_label.value,
            "explanation": {
                "correct": self.explanation.correct,
                "incorrect": {
                    label.value: text
                    for label, text in self.explanation.incorrect.items()
                },
            },
            "topic": self.topic,
            "type": self.kind.value,
        }
        if self.chart_markup is not None:
            payload["svgChart"] = self.chart_markup
        if self.statistical_output is not None:
            payload["statisticalOutput"] = self.statistical_output
        return payload


@dataclass(frozen=True)
class UserAnswer:
    """The recorded response for one question of a session."""

    question_id: str
    chosen_label: Optional[Label] = None
    is_correct: Optional[bool] = None

    @property
    def answered(self) -> bool:
        return self.chosen_label is not None
