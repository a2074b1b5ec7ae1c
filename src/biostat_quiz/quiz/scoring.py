"""Score a finished session and render its plain-text transcript."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .models import QuizMode, Question, UserAnswer

TRANSCRIPT_TITLE = "Biostatistics Quiz Results"
TRANSCRIPT_PREFIX = "biostat_quiz_results"
_SEPARATOR = "-" * 33


@dataclass(frozen=True)
class ScoreReport:
    correct_count: int
    total: int
    percentage: float


class FeedbackTier(Enum):
    NEEDS_REVIEW = "Good start. Review the key concepts and try again."
    ON_TRACK = (
        "You are doing very well. Let's polish the finer statistical details."
    )
    MASTERY = "Excellent command! You are ready for more complex problems."

    @property
    def message(self) -> str:
        return self.value


@dataclass(frozen=True)
class TopicScore:
    topic: str
    asked: int
    correct: int

    @property
    def accuracy(self) -> float:
        if self.asked == 0:
            return 0.0
        return self.correct / self.asked


def score(
    questions: Sequence[Question], answers: Sequence[UserAnswer]
) -> ScoreReport:
    total = len(questions)
    correct = sum(1 for answer in answers if answer.is_correct)
    percentage = (correct / total * 100) if total > 0 else 0.0
    return ScoreReport(correct_count=correct, total=total, percentage=percentage)


def feedback_for(percentage: float) -> FeedbackTier:
    """Pick the feedback tier: up to 50, up to 80, then above 80."""
    if percentage <= 50:
        return FeedbackTier.NEEDS_REVIEW
    if percentage <= 80:
        return FeedbackTier.ON_TRACK
    return FeedbackTier.MASTERY


def format_elapsed(seconds: int) -> str:
    """``MM:SS`` with minutes left unbounded (3661 -> ``61:01``)."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


def topic_breakdown(
    questions: Sequence[Question], answers: Sequence[UserAnswer]
) -> List[TopicScore]:
    per_topic: Dict[str, Dict[str, int]] = defaultdict(
        lambda: {"asked": 0, "correct": 0}
    )
    for question, answer in zip(questions, answers):
        bucket = per_topic[question.topic]
        bucket["asked"] += 1
        if answer.is_correct:
            bucket["correct"] += 1
    return [
        TopicScore(topic=topic, asked=values["asked"], correct=values["correct"])
        for topic, values in per_topic.items()
    ]


def render_transcript(
    questions: Sequence[Question],
    answers: Sequence[UserAnswer],
    elapsed_seconds: int,
    mode: Optional[QuizMode],
    timestamp: datetime,
) -> str:
    report = score(questions, answers)
    lines = [
        TRANSCRIPT_TITLE,
        f"Date: {timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Mode: {mode.value if mode else 'N/A'}",
        f"Time taken: {format_elapsed(elapsed_seconds)}",
        f"Score: {report.correct_count}/{report.total} "
        f"({report.percentage:.1f}%)",
        "",
        "--- QUESTION DETAILS ---",
        "",
    ]
    for question, answer in zip(questions, answers):
        chosen = answer.chosen_label.value if answer.chosen_label else None
        lines.extend(
            [
                f"Question ID: {question.id}",
                f"Topic: {question.topic}",
                f"Question: {question.prompt}",
                f"Your answer: {chosen or 'Unanswered'}",
                f"Correct answer: {question.correct_label.value}",
                f"Result: {'Correct' if answer.is_correct else 'Incorrect'}",
                _SEPARATOR,
                "",
            ]
        )
    return "\n".join(lines)


def transcript_filename(day: date) -> str:
    return f"{TRANSCRIPT_PREFIX}_{day.isoformat()}.txt"


def write_transcript(
    directory: Path,
    questions: Sequence[Question],
    answers: Sequence[UserAnswer],
    elapsed_seconds: int,
    mode: Optional[QuizMode],
    timestamp: Optional[datetime] = None,
) -> Path:
    """Write the transcript to ``directory`` and return its path.

    A second export on the same day overwrites the first.
    """
    moment = timestamp or datetime.now()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / transcript_filename(moment.date())
    path.write_text(
        render_transcript(questions, answers, elapsed_seconds, mode, moment),
        encoding="utf-8",
    )
    return path
