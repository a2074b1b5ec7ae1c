"""Call the completion provider and turn its payload into ``Question`` objects.

The provider is only trusted for shape, not for the explanation invariant:
every record's ``explanation.incorrect`` mapping is rebuilt from the options
so it holds exactly the wrong labels. Anything that cannot be repaired fails
the whole batch with a single :class:`GenerationError`.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .builder import GenerationRequest, QuizRequestOptions, build_request
from .models import (
    LABELS,
    Explanation,
    Label,
    Question,
    QuestionKind,
    QuizMode,
)

__all__ = [
    "CompletionProvider",
    "GenerationError",
    "OpenAIProvider",
    "QuizGenerator",
    "parse_question",
    "repair_incorrect_explanations",
]

DEFAULT_MODEL = "gpt-4o-mini"
SYSTEM_PROMPT = (
    "You write multiple-choice biostatistics questions and reply with JSON "
    "only."
)
_ENVELOPE_KEY = "questions"
_FENCE_RE = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL)


class GenerationError(RuntimeError):
    """Raised when a quiz batch could not be produced."""


class CompletionProvider(Protocol):
    """Anything that turns instructions plus a schema into structured data."""

    async def generate(
        self, instructions: str, schema: Mapping[str, Any]
    ) -> Any: ...


class OpenAIProvider:
    """``CompletionProvider`` backed by an injected ``AsyncOpenAI`` client.

    Structured output needs an object at the root, so the array schema is
    wrapped in ``{"questions": [...]}`` on the way out and unwrapped on the
    way back.
    """

    def __init__(
        self,
        client: Any,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_output_tokens: int = 16000,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate(
        self, instructions: str, schema: Mapping[str, Any]
    ) -> Any:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": instructions},
            ],
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "biostat_quiz",
                    "schema": {
                        "type": "object",
                        "properties": {_ENVELOPE_KEY: dict(schema)},
                        "required": [_ENVELOPE_KEY],
                    },
                },
            },
        )
        content = (response.choices[0].message.content or "").strip()
        return _decode_payload(content)


def _decode_payload(content: str) -> Any:
    # Plain JSON first: string values may carry their own fenced blocks.
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        fenced = _FENCE_RE.search(content)
        if fenced is None:
            raise
        data = json.loads(fenced.group(1))
    if isinstance(data, dict) and _ENVELOPE_KEY in data:
        return data[_ENVELOPE_KEY]
    return data


class QuizGenerator:
    """Produce a validated batch of questions for one quiz session."""

    def __init__(
        self,
        provider: CompletionProvider,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.logger = logger or logging.getLogger(__name__)

    async def generate(
        self,
        mode: QuizMode,
        count: int,
        options: Optional[QuizRequestOptions] = None,
    ) -> List[Question]:
        request = build_request(mode, count, options)
        self.logger.info(
            "Requesting quiz batch",
            extra={
                "mode": mode.value,
                "count": count,
                "extended": request.composition.extended,
            },
        )
        try:
            payload = await self.provider.generate(
                request.instructions, request.output_schema
            )
            questions = self._questions_from_payload(payload, request)
        except GenerationError:
            self.logger.exception("Quiz generation failed")
            raise
        except Exception as exc:
            self.logger.exception("Quiz generation failed")
            raise GenerationError(
                "Could not generate the quiz. Check your connection or the "
                "provider configuration."
            ) from exc
        self.logger.info(
            "Generated quiz batch",
            extra={
                "question_count": len(questions),
                "kinds": summarize_kinds(questions),
            },
        )
        return questions

    def _questions_from_payload(
        self, payload: Any, request: GenerationRequest
    ) -> List[Question]:
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        if not isinstance(payload, list) or not payload:
            raise GenerationError(
                "The provider response is not a non-empty array of questions."
            )
        questions = [
            parse_question(record, position=index, logger=self.logger)
            for index, record in enumerate(payload)
        ]
        if len(questions) != request.composition.count:
            self.logger.warning(
                "Provider returned a different number of questions",
                extra={
                    "requested": request.composition.count,
                    "received": len(questions),
                },
            )
        seen: set[str] = set()
        for question in questions:
            if question.id in seen:
                self.logger.warning(
                    "Duplicate question id in batch",
                    extra={"question_id": question.id},
                )
            seen.add(question.id)
        return questions


def repair_incorrect_explanations(
    options: Mapping[Label, str],
    correct_label: Label,
    raw_incorrect: Any,
) -> Dict[Label, str]:
    """Rebuild the incorrect-explanation mapping from the options.

    Keeps provider text for every option label other than the correct one
    and drops entries keyed by the correct label or by unknown labels.
    """
    supplied: Dict[Label, str] = {}
    if isinstance(raw_incorrect, Mapping):
        for key, value in raw_incorrect.items():
            label = Label.parse(key)
            if label is not None and value is not None:
                supplied[label] = str(value).strip()
    repaired: Dict[Label, str] = {}
    for label in LABELS:
        if label not in options or label == correct_label:
            continue
        repaired[label] = supplied.get(label, "")
    return repaired


def parse_question(
    record: Any,
    *,
    position: int = 0,
    logger: Optional[logging.Logger] = None,
) -> Question:
    """Validate one provider record and return it as a ``Question``."""
    log = logger or logging.getLogger(__name__)
    if not isinstance(record, Mapping):
        raise GenerationError(f"Question #{position + 1} is not an object.")

    identifier = _required_text(record, "id", position)
    prompt = _required_text(record, "question", position)
    topic = str(record.get("topic") or "").strip()

    raw_options = record.get("options")
    if not isinstance(raw_options, Mapping):
        raise GenerationError(f"Question {identifier} has no options.")
    options: Dict[Label, str] = {}
    for key, value in raw_options.items():
        label = Label.parse(key)
        if label is not None and value is not None and str(value).strip():
            options[label] = str(value).strip()
    missing = [label.value for label in LABELS if label not in options]
    if missing:
        raise GenerationError(
            f"Question {identifier} is missing options: {', '.join(missing)}."
        )
    options = {label: options[label] for label in LABELS}

    correct_label = Label.parse(record.get("answer"))
    if correct_label is None:
        raise GenerationError(
            f"Question {identifier} has an invalid answer "
            f"{record.get('answer')!r}."
        )

    try:
        kind = QuestionKind.from_value(record.get("type"))
    except ValueError as exc:
        raise GenerationError(f"Question {identifier}: {exc}") from exc

    raw_explanation = record.get("explanation")
    if not isinstance(raw_explanation, Mapping):
        raise GenerationError(f"Question {identifier} has no explanation.")
    raw_incorrect = raw_explanation.get("incorrect")
    incorrect = repair_incorrect_explanations(
        options, correct_label, raw_incorrect
    )
    if _needed_repair(raw_incorrect, incorrect):
        log.debug(
            "Repaired incorrect-option explanations",
            extra={"question_id": identifier},
        )

    chart_markup = _optional_text(record, "svgChart")
    statistical_output = _optional_text(record, "statisticalOutput")
    if kind is QuestionKind.CHART_INTERPRETATION and not chart_markup:
        raise GenerationError(f"Question {identifier} is missing its chart.")
    if kind is QuestionKind.OUTPUT_INTERPRETATION and not statistical_output:
        raise GenerationError(
            f"Question {identifier} is missing its statistical output."
        )
    if kind is not QuestionKind.CHART_INTERPRETATION:
        chart_markup = None
    if kind is not QuestionKind.OUTPUT_INTERPRETATION:
        statistical_output = None

    return Question(
        id=identifier,
        prompt=prompt,
        options=options,
        correct_label=correct_label,
        explanation=Explanation(
            correct=str(raw_explanation.get("correct") or "").strip(),
            incorrect=incorrect,
        ),
        topic=topic,
        kind=kind,
        chart_markup=chart_markup,
        statistical_output=statistical_output,
    )


def _required_text(record: Mapping[str, Any], key: str, position: int) -> str:
    value = str(record.get(key) or "").strip()
    if not value:
        raise GenerationError(f"Question #{position + 1} has no '{key}'.")
    return value


def _optional_text(record: Mapping[str, Any], key: str) -> Optional[str]:
    value = record.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _needed_repair(raw: Any, repaired: Mapping[Label, str]) -> bool:
    if not isinstance(raw, Mapping):
        return True
    return sorted(str(key) for key in raw) != sorted(
        label.value for label in repaired
    )


def build_generator(
    client: Any,
    *,
    model: str = DEFAULT_MODEL,
    temperature: float = 0.7,
    max_output_tokens: int = 16000,
    logger: Optional[logging.Logger] = None,
) -> QuizGenerator:
    """Wire an ``AsyncOpenAI`` client into a ready-to-use generator."""
    provider = OpenAIProvider(
        client,
        model=model,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
    )
    return QuizGenerator(provider, logger=logger)


def summarize_kinds(questions: Sequence[Question]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for question in questions:
        counts[question.kind.value] = counts.get(question.kind.value, 0) + 1
    return counts
