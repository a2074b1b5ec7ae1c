from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from fixtures import AsyncOpenAIStub, ManualTicker, make_records
from biostat_quiz.quiz.builder import build_request
from biostat_quiz.quiz.generator import build_generator
from biostat_quiz.quiz.models import QuizMode
from biostat_quiz.quiz.scoring import FeedbackTier, feedback_for, score
from biostat_quiz.quiz.scoring import render_transcript
from biostat_quiz.quiz.session import QuizSession, SessionState


def test_random_quiz_from_request_to_score(
    openai_stub: AsyncOpenAIStub,
) -> None:
    request = build_request(QuizMode.RANDOM, 10)
    assert request.composition.num_calculation == 2
    assert request.composition.num_conceptual == 8

    answers = ["A", "B", "C", "D", "A", "B", "C", "D", "A", "B"]
    openai_stub.queue_questions(make_records(10, answers))
    generator = build_generator(openai_stub)
    questions = asyncio.run(generator.generate(QuizMode.RANDOM, 10))
    assert len(questions) == 10

    session = QuizSession(ticker_factory=ManualTicker)
    assert session.initialize(questions)
    picks = ["A", "B", "C", "A", "A", "C", "C", "D", "B", "B"]
    expected_correct = sum(1 for p, a in zip(picks, answers) if p == a)
    for index, pick in enumerate(picks):
        assert session.select_option(pick)
        if index < len(picks) - 1:
            assert session.next()
    ManualTicker.created[0].fire(125)

    outcome = session.finish()

    assert outcome is not None
    assert session.state is SessionState.COMPLETED
    report = score(questions, outcome.answers)
    assert report.correct_count == expected_correct == 7
    assert report.percentage == pytest.approx(70.0)
    assert feedback_for(report.percentage) is FeedbackTier.ON_TRACK

    transcript = render_transcript(
        questions,
        outcome.answers,
        outcome.elapsed_seconds,
        QuizMode.RANDOM,
        datetime(2024, 6, 1, 12, 0, 0),
    )
    assert "Score: 7/10 (70.0%)" in transcript
    assert "Time taken: 02:05" in transcript
