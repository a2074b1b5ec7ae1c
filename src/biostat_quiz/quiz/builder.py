"""Translate a quiz request into provider instructions plus an output schema.

The builder is pure: given a mode, a question count and mode options it
computes the composition (question kinds, per-topic cap, topic diversity
floor), renders those constraints into natural-language instructions and
pairs them with a JSON Schema describing exactly ``count`` question records.
Nothing here talks to the provider; see :mod:`biostat_quiz.quiz.generator`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import BASELINE_KINDS, EXTENDED_KINDS, LABELS, QuizMode

CALCULATION_SHARE = 0.2
MIN_PER_TOPIC_CAP = 3

# (minimum quiz length, distinct topics required), checked top-down.
_DIVERSITY_FLOORS: Tuple[Tuple[int, int], ...] = (
    (50, 15),
    (20, 10),
    (10, 6),
)


@dataclass(frozen=True)
class QuizRequestOptions:
    """Mode options. ``topics`` is required for topic mode, ``hashtag`` for
    hashtag mode; ``extended`` switches on the interpretation kinds."""

    topics: Sequence[str] = ()
    hashtag: Optional[str] = None
    extended: bool = False


@dataclass(frozen=True)
class Composition:
    count: int
    num_calculation: int
    num_conceptual: int
    per_topic_cap: int
    min_topics: Optional[int]
    num_chart: int = 0
    num_output: int = 0

    @property
    def extended(self) -> bool:
        return self.num_chart > 0 or self.num_output > 0


@dataclass(frozen=True)
class GenerationRequest:
    instructions: str
    output_schema: Dict[str, Any]
    composition: Composition
    mode: QuizMode
    options: QuizRequestOptions = field(default_factory=QuizRequestOptions)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def per_topic_cap(count: int) -> int:
    return max(MIN_PER_TOPIC_CAP, math.ceil(count / 4))


def min_distinct_topics(count: int) -> Optional[int]:
    """Return the topic diversity floor, or ``None`` for "as many as
    feasible"."""
    for threshold, topics in _DIVERSITY_FLOORS:
        if count >= threshold:
            return topics
    return None


def compute_composition(count: int, extended: bool = False) -> Composition:
    """Work out how many questions of each kind a quiz of ``count`` needs.

    The conceptual count is whatever remains after the rounded calculation
    share, so the kinds always add up to ``count``.
    """
    if count < 1:
        raise ValueError("count must be a positive integer")
    num_chart = num_output = count // 10 if extended else 0
    remainder = count - num_chart - num_output
    num_calculation = _round_half_up(remainder * CALCULATION_SHARE)
    return Composition(
        count=count,
        num_calculation=num_calculation,
        num_conceptual=remainder - num_calculation,
        per_topic_cap=per_topic_cap(count),
        min_topics=min_distinct_topics(count),
        num_chart=num_chart,
        num_output=num_output,
    )


def build_request(
    mode: QuizMode,
    count: int,
    options: Optional[QuizRequestOptions] = None,
) -> GenerationRequest:
    """Build the instructions and schema for one quiz batch."""
    options = _validated_options(mode, options or QuizRequestOptions())
    composition = compute_composition(count, extended=options.extended)
    instructions = render_instructions(mode, composition, options)
    schema = output_schema(count, extended=composition.extended)
    return GenerationRequest(
        instructions=instructions,
        output_schema=schema,
        composition=composition,
        mode=mode,
        options=options,
    )


def _validated_options(
    mode: QuizMode, options: QuizRequestOptions
) -> QuizRequestOptions:
    if mode is QuizMode.TOPIC:
        topics = tuple(t.strip() for t in options.topics if t and t.strip())
        if not topics:
            raise ValueError("topic mode requires at least one topic")
        return QuizRequestOptions(
            topics=topics, hashtag=None, extended=options.extended
        )
    if mode is QuizMode.HASHTAG:
        hashtag = (options.hashtag or "").strip()
        if not hashtag:
            raise ValueError("hashtag mode requires a non-empty hashtag")
        return QuizRequestOptions(hashtag=hashtag, extended=options.extended)
    return QuizRequestOptions(extended=options.extended)


def render_instructions(
    mode: QuizMode,
    composition: Composition,
    options: QuizRequestOptions,
) -> str:
    count = composition.count
    lines: List[str] = [
        "You are a biostatistics expert and an experienced educator for "
        "undergraduate and graduate health-science students.",
        f"Your task is to write a quiz of {count} biostatistics questions "
        "of easy to moderate difficulty.",
        "The quiz must be balanced with exactly this structure:",
        f'- {composition.num_calculation} questions of type "calculation" '
        "(simple calculations).",
        f'- {composition.num_conceptual} questions of type "conceptual" '
        "(concepts and reasoning).",
    ]
    if composition.extended:
        lines.extend(
            [
                f"- Exactly {composition.num_chart} questions of type "
                '"chart-interpretation".',
                f"- Exactly {composition.num_output} questions of type "
                '"output-interpretation".',
            ]
        )
    lines.append(f"- {_diversity_rule(composition.min_topics)}")
    lines.append(
        f"- No more than {composition.per_topic_cap} questions may share "
        "the same topic."
    )
    lines.extend(
        [
            "",
            "Every question must have:",
            "- A unique ID (for example BIO-101).",
            "- The question text.",
            "- 4 answer options (A, B, C, D) with exactly one correct.",
            "- The letter of the correct option.",
            "- A detailed explanation:",
            '  - "correct": 2-4 lines on why the answer is right, using a '
            "clinical or practical angle when possible.",
            '  - "incorrect": 1-2 lines for each of the other 3 options, '
            "clearing up common misunderstandings. Never include the "
            "correct letter here.",
            "- The biostatistics topic it belongs to.",
            f"- The question type: {_kind_list(composition.extended)}.",
        ]
    )
    if composition.extended:
        lines.extend(
            [
                "",
                "Structural rules for interpretation questions:",
                '- "chart-interpretation" questions must include "svgChart": '
                "a complete, self-contained <svg> document (inline styles, "
                "axes, labels, no external resources) that the question "
                "asks the student to read.",
                '- "output-interpretation" questions must include '
                '"statisticalOutput": a plain-text table formatted like '
                "statistical software output, aligned with spaces.",
                '- Only chart-interpretation questions carry "svgChart" and '
                'only output-interpretation questions carry '
                '"statisticalOutput"; omit both fields everywhere else.',
            ]
        )
    lines.append("")
    lines.append(_mode_rule(mode, options))
    lines.append(
        f"Return the result exclusively as JSON: an array of {count} "
        "elements matching the provided schema. Do not include any other "
        "explanation or text outside the JSON."
    )
    return "\n".join(lines)


def _diversity_rule(min_topics: Optional[int]) -> str:
    if min_topics is None:
        return "The questions should cover as many distinct topics as possible."
    return (
        f"The questions must cover at least {min_topics} distinct "
        "biostatistics topics."
    )


def _kind_list(extended: bool) -> str:
    kinds = EXTENDED_KINDS if extended else BASELINE_KINDS
    return " or ".join(f'"{kind.value}"' for kind in kinds)


def _mode_rule(mode: QuizMode, options: QuizRequestOptions) -> str:
    if mode is QuizMode.TOPIC:
        return (
            "Focus on the following topics while keeping the overall "
            f"balance: {', '.join(options.topics)}. If the strict balance "
            "cannot be kept with these topics, prioritise the topics and get "
            "as close to the balance as possible."
        )
    if mode is QuizMode.HASHTAG:
        return (
            "Filter the questions so they relate to the hashtag "
            f'"{options.hashtag}". Try to keep the balance of types and '
            "topics within this restriction; relax it if it cannot be met."
        )
    return "Write a random quiz that satisfies every balance rule above."


def output_schema(count: int, *, extended: bool = False) -> Dict[str, Any]:
    """JSON Schema for an array of exactly ``count`` question records."""
    labels = [label.value for label in LABELS]
    kinds = EXTENDED_KINDS if extended else BASELINE_KINDS
    item_properties: Dict[str, Any] = {
        "id": {
            "type": "string",
            "description": "Unique question ID, e.g. BIO-101.",
        },
        "question": {"type": "string", "description": "The question text."},
        "options": {
            "type": "object",
            "properties": {label: {"type": "string"} for label in labels},
            "required": labels,
        },
        "answer": {
            "type": "string",
            "enum": labels,
            "description": "Letter of the correct option.",
        },
        "explanation": {
            "type": "object",
            "properties": {
                "correct": {
                    "type": "string",
                    "description": "Why the answer is correct.",
                },
                "incorrect": {
                    "type": "object",
                    "properties": {
                        label: {
                            "type": "string",
                            "description": f"Why {label} is wrong.",
                        }
                        for label in labels
                    },
                },
            },
            "required": ["correct", "incorrect"],
        },
        "topic": {
            "type": "string",
            "description": "The biostatistics topic.",
        },
        "type": {
            "type": "string",
            "enum": [kind.value for kind in kinds],
            "description": "Question type.",
        },
    }
    if extended:
        item_properties["svgChart"] = {
            "type": "string",
            "description": "Self-contained SVG markup for "
            "chart-interpretation questions only.",
        }
        item_properties["statisticalOutput"] = {
            "type": "string",
            "description": "Plain-text statistical software output for "
            "output-interpretation questions only.",
        }
    return {
        "type": "array",
        "minItems": count,
        "maxItems": count,
        "items": {
            "type": "object",
            "properties": item_properties,
            "required": [
                "id",
                "question",
                "options",
                "answer",
                "explanation",
                "topic",
                "type",
            ],
        },
    }
