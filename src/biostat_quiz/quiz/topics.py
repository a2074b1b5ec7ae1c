"""Fixed catalog of biostatistics topics the quizzes draw from."""

from __future__ import annotations

from typing import Iterable, List, Tuple, Union

BIOSTATISTICS_TOPICS: Tuple[str, ...] = (
    "Definition of biostatistics and basic concepts",
    "Descriptive statistics",
    "Probability and probability distributions",
    "Sampling and the central limit theorem",
    "Estimation and confidence intervals",
    "Hypothesis testing (inference)",
    "Comparing two means (t-test)",
    "Analysis of variance (ANOVA)",
    "Pearson correlation",
    "Simple linear regression",
    "Multiple linear regression",
    "Chi-square test",
    "Logistic regression",
    "Survival analysis",
    "Epidemiological study design",
)


def resolve_topics(selection: Iterable[Union[str, int]]) -> List[str]:
    """Map user picks to catalog entries.

    Accepts exact entries (case-insensitive) or 1-based catalog numbers,
    either as ints or digit strings. Order is preserved and duplicates are
    dropped. Unknown picks raise ``ValueError``.
    """
    by_name = {topic.lower(): topic for topic in BIOSTATISTICS_TOPICS}
    resolved: List[str] = []
    for raw in selection:
        text = str(raw).strip()
        if text.isdigit():
            number = int(text)
            if not 1 <= number <= len(BIOSTATISTICS_TOPICS):
                raise ValueError(
                    f"Topic number {number} is out of range "
                    f"(1-{len(BIOSTATISTICS_TOPICS)})."
                )
            topic = BIOSTATISTICS_TOPICS[number - 1]
        else:
            topic = by_name.get(text.lower())
            if topic is None:
                raise ValueError(f"Unknown topic: {text!r}")
        if topic not in resolved:
            resolved.append(topic)
    return resolved
