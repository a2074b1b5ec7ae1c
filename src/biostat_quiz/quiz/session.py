"""Headless quiz session state machine.

A session moves ``NOT_STARTED -> IN_PROGRESS -> COMPLETED``. While in
progress it tracks the current position, one answer record per question and
the elapsed time. Invalid transitions (answering twice, stepping past either
end, finishing early) are rejected and reported through a ``False``/``None``
return value rather than an exception, because a host UI reaches them through
ordinary key presses.

The elapsed-time counter is a :class:`Ticker` owned by the session. It starts
on :meth:`QuizSession.initialize` and is stopped exactly once, by
:meth:`QuizSession.finish` or :meth:`QuizSession.restart`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .models import Label, Question, UserAnswer

__all__ = [
    "DisplayState",
    "IntervalTicker",
    "QuizSession",
    "SessionOutcome",
    "SessionState",
    "Ticker",
]

TICK_SECONDS = 1.0


class SessionState(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Ticker(Protocol):
    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


TickerFactory = Callable[[], Ticker]


class IntervalTicker:
    """Call ``callback`` every ``interval`` seconds on a daemon thread."""

    def __init__(self, interval: float = TICK_SECONDS) -> None:
        self.interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def start(self, callback: Callable[[], None]) -> None:
        if self._thread is not None:
            raise RuntimeError("ticker already started")
        self._thread = threading.Thread(
            target=self._run,
            args=(callback,),
            name="quiz-session-timer",
            daemon=True,
        )
        self._thread.start()

    def _run(self, callback: Callable[[], None]) -> None:
        while not self._stopped.wait(self.interval):
            callback()

    def stop(self) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)


@dataclass(frozen=True)
class DisplayState:
    """What a host should show for the current question.

    Rebuilt from the stored answer every time, so revisiting a question
    always renders the same selection and explanation.
    """

    index: int
    total: int
    question: Question
    selected: Optional[Label]
    show_explanation: bool

    @property
    def is_correct(self) -> Optional[bool]:
        if self.selected is None:
            return None
        return self.selected == self.question.correct_label


@dataclass(frozen=True)
class SessionOutcome:
    answers: Tuple[UserAnswer, ...]
    elapsed_seconds: int

    @property
    def correct_count(self) -> int:
        return sum(1 for answer in self.answers if answer.is_correct)


class QuizSession:
    """One quiz attempt over a fixed batch of questions."""

    def __init__(
        self,
        *,
        ticker_factory: TickerFactory = IntervalTicker,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._ticker_factory = ticker_factory
        self._ticker: Optional[Ticker] = None
        self._lock = threading.RLock()
        self.logger = logger or logging.getLogger(__name__)
        self._reset()

    def _reset(self) -> None:
        self._state = SessionState.NOT_STARTED
        self._questions: Tuple[Question, ...] = ()
        self._answers: List[UserAnswer] = []
        self._index = 0
        self._elapsed = 0

    # -- accessors -----------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    @property
    def answers(self) -> Tuple[UserAnswer, ...]:
        with self._lock:
            return tuple(self._answers)

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Optional[Question]:
        if not self._questions:
            return None
        return self._questions[self._index]

    @property
    def current_answer(self) -> Optional[UserAnswer]:
        if not self._answers:
            return None
        return self._answers[self._index]

    @property
    def answered_count(self) -> int:
        with self._lock:
            return sum(1 for answer in self._answers if answer.answered)

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    @property
    def is_last(self) -> bool:
        return bool(self._questions) and self._index == len(self._questions) - 1

    # -- transitions ---------------------------------------------------

    def initialize(self, questions: Sequence[Question]) -> bool:
        """Load a batch and start the clock. Only valid before the start."""
        with self._lock:
            if self._state is not SessionState.NOT_STARTED:
                self.logger.debug(
                    "Ignored initialize", extra={"state": self._state.value}
                )
                return False
            if not questions:
                raise ValueError("a quiz session needs at least one question")
            self._questions = tuple(questions)
            self._answers = [
                UserAnswer(question_id=question.id)
                for question in self._questions
            ]
            self._index = 0
            self._elapsed = 0
            self._state = SessionState.IN_PROGRESS
            self._ticker = self._ticker_factory()
            self._ticker.start(self.tick)
        self.logger.debug(
            "Session started", extra={"question_count": len(questions)}
        )
        return True

    def tick(self) -> None:
        """Advance the elapsed-time counter by one second."""
        with self._lock:
            if self._state is SessionState.IN_PROGRESS:
                self._elapsed += 1

    def select_option(self, label: object) -> bool:
        """Commit ``label`` for the current question, once.

        Returns ``False`` when the session is not running, the label is not an
        option, or the question already has an answer.
        """
        choice = Label.parse(label)
        with self._lock:
            if self._state is not SessionState.IN_PROGRESS:
                return False
            question = self._questions[self._index]
            if choice is None or choice not in question.options:
                return False
            if self._answers[self._index].answered:
                self.logger.debug(
                    "Ignored repeat selection",
                    extra={"question_id": question.id},
                )
                return False
            correct = choice == question.correct_label
            self._answers[self._index] = UserAnswer(
                question_id=question.id,
                chosen_label=choice,
                is_correct=correct,
            )
        self.logger.debug(
            "Recorded answer",
            extra={"question_id": question.id, "correct": correct},
        )
        return True

    def next(self) -> bool:
        with self._lock:
            if self._state is not SessionState.IN_PROGRESS:
                return False
            if self._index >= len(self._questions) - 1:
                return False
            self._index += 1
            return True

    def previous(self) -> bool:
        with self._lock:
            if self._state is not SessionState.IN_PROGRESS:
                return False
            if self._index <= 0:
                return False
            self._index -= 1
            return True

    def finish(self) -> Optional[SessionOutcome]:
        """Complete the session from the last question.

        Stops the clock and returns the answers with the elapsed seconds, or
        ``None`` when the session is not on its last question.
        """
        with self._lock:
            if self._state is not SessionState.IN_PROGRESS or not self.is_last:
                return None
            ticker = self._detach_timer()
            self._state = SessionState.COMPLETED
            outcome = SessionOutcome(
                answers=tuple(self._answers),
                elapsed_seconds=self._elapsed,
            )
        _stop(ticker)
        self.logger.debug(
            "Session finished",
            extra={
                "elapsed_seconds": outcome.elapsed_seconds,
                "answered": sum(1 for a in outcome.answers if a.answered),
            },
        )
        return outcome

    def restart(self) -> None:
        """Tear the session down so a new batch can be loaded."""
        with self._lock:
            ticker = self._detach_timer()
            self._reset()
        _stop(ticker)

    def _detach_timer(self) -> Optional[Ticker]:
        # Stopped outside the lock: the timer thread may be waiting on it.
        ticker, self._ticker = self._ticker, None
        return ticker

    # -- presentation support -----------------------------------------

    def display(self) -> Optional[DisplayState]:
        """Rebuild the view of the current question from its answer record."""
        with self._lock:
            if not self._questions:
                return None
            answer = self._answers[self._index]
            return DisplayState(
                index=self._index,
                total=len(self._questions),
                question=self._questions[self._index],
                selected=answer.chosen_label,
                show_explanation=answer.answered,
            )


def _stop(ticker: Optional[Ticker]) -> None:
    if ticker is not None:
        ticker.stop()
