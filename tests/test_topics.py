from __future__ import annotations

import pytest

from biostat_quiz.quiz.topics import BIOSTATISTICS_TOPICS, resolve_topics


def test_catalog_is_fixed_and_unique() -> None:
    assert len(BIOSTATISTICS_TOPICS) == 15
    assert len(set(BIOSTATISTICS_TOPICS)) == 15
    assert BIOSTATISTICS_TOPICS[0].startswith("Definition of biostatistics")
    assert BIOSTATISTICS_TOPICS[-1] == "Epidemiological study design"


def test_resolve_topics_accepts_names_and_numbers() -> None:
    resolved = resolve_topics(["chi-square test", "10", 2, "Chi-Square Test"])
    assert resolved == [
        "Chi-square test",
        "Simple linear regression",
        "Descriptive statistics",
    ]


def test_resolve_topics_rejects_unknown_entries() -> None:
    with pytest.raises(ValueError, match="Unknown topic"):
        resolve_topics(["Bayesian networks"])
    with pytest.raises(ValueError, match="out of range"):
        resolve_topics(["16"])
    with pytest.raises(ValueError, match="out of range"):
        resolve_topics([0])
