"""Shared testing fixtures and stubs for the biostat_quiz test suite."""

from .openai import AsyncOpenAIStub, AsyncOpenAIStubFactory  # noqa: F401
from .questions import make_questions, make_record, make_records  # noqa: F401
from .ticker import ManualTicker  # noqa: F401

__all__ = [
    "AsyncOpenAIStub",
    "AsyncOpenAIStubFactory",
    "ManualTicker",
    "make_questions",
    "make_record",
    "make_records",
]
