from .builder import (
    Composition,
    GenerationRequest,
    QuizRequestOptions,
    build_request,
    compute_composition,
)
from .generator import (
    CompletionProvider,
    GenerationError,
    OpenAIProvider,
    QuizGenerator,
    build_generator,
)
from .models import (
    Explanation,
    Label,
    Question,
    QuestionKind,
    QuizMode,
    UserAnswer,
)
from .scoring import (
    FeedbackTier,
    ScoreReport,
    feedback_for,
    format_elapsed,
    render_transcript,
    score,
    write_transcript,
)
from .session import (
    DisplayState,
    IntervalTicker,
    QuizSession,
    SessionOutcome,
    SessionState,
)
from .topics import BIOSTATISTICS_TOPICS, resolve_topics

__all__ = [
    "Composition",
    "GenerationRequest",
    "QuizRequestOptions",
    "build_request",
    "compute_composition",
    "CompletionProvider",
    "GenerationError",
    "OpenAIProvider",
    "QuizGenerator",
    "build_generator",
    "Explanation",
    "Label",
    "Question",
    "QuestionKind",
    "QuizMode",
    "UserAnswer",
    "FeedbackTier",
    "ScoreReport",
    "feedback_for",
    "format_elapsed",
    "render_transcript",
    "score",
    "write_transcript",
    "DisplayState",
    "IntervalTicker",
    "QuizSession",
    "SessionOutcome",
    "SessionState",
    "BIOSTATISTICS_TOPICS",
    "resolve_topics",
]
