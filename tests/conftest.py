from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import (  # noqa: E402
    AsyncOpenAIStub,
    AsyncOpenAIStubFactory,
    ManualTicker,
)
from biostat_quiz.quiz.session import QuizSession  # noqa: E402


@pytest.fixture
def openai_stub() -> AsyncOpenAIStub:
    """A fresh async client stub to inject into providers."""

    return AsyncOpenAIStub()


@pytest.fixture
def openai_factory(monkeypatch: pytest.MonkeyPatch) -> AsyncOpenAIStubFactory:
    """Replace the ``AsyncOpenAI`` constructor used by ``load_client``."""

    from biostat_quiz.core import ai

    factory = AsyncOpenAIStubFactory()
    monkeypatch.setattr(ai, "AsyncOpenAI", factory)
    return factory


@pytest.fixture(autouse=True)
def _reset_tickers() -> Iterator[None]:
    ManualTicker.created.clear()
    yield
    ManualTicker.created.clear()


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Undo ``configure_logger`` so caplog sees records in later tests."""

    yield
    logger = logging.getLogger("biostat_quiz")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def session() -> QuizSession:
    """A session whose clock only moves when the test fires it."""

    return QuizSession(ticker_factory=ManualTicker)


@pytest.fixture
def workspace_env(tmp_path: Path) -> dict[str, str]:
    """Environment mapping pointing the workspace at a temp directory."""

    return {"BIOSTAT_QUIZ_HOME": str(tmp_path / "home")}
