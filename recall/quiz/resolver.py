"""
Answer-correctness resolution.

A question's correct answer may be expressed in several shapes:

- an explicit `correct` flag on an option
- a numeric index (zero-based, or one-based as a fallback)
- an option id
- free text matching an option's label, value or text
- a structured object wrapping any of the above

Resolution tries an ordered list of strategies and stops at the first one
that lands on exactly one valid option. Ambiguous or malformed data resolves
to None and the question is shown ungraded.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Protocol

from loguru import logger

from recall.core.models import Option, Question
from recall.quiz.normalize import CANDIDATE_FIELDS, collapse_whitespace

# Keys tried, in order, inside a structured correctness object
STRUCTURED_KEYS: tuple[str, ...] = ("index", "id", "label", "text", "value", "answer")


def normalize_text(value: str) -> str:
    """Case-insensitive, whitespace-normalized form used for matching."""
    return collapse_whitespace(value).casefold()


def _as_integer(value: Any) -> int | None:
    """Integer interpretation of a raw value, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("+-").isdigit():
            return int(stripped)
    return None


def _single_match(options: tuple[Option, ...], predicate) -> int | None:
    matches = [idx for idx, opt in enumerate(options) if predicate(opt)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        logger.debug(f"Ambiguous correctness match across options {matches}")
    return None


class CandidateStrategy(Protocol):
    """Resolves one raw candidate value to an option index."""

    def resolve(self, value: Any, options: tuple[Option, ...]) -> int | None:
        ...


class ByExplicitFlag:
    """Options carrying `correct=True` win over every candidate field."""

    def applies(self, question: Question) -> bool:
        return any(opt.is_correct for opt in question.options)

    def resolve_question(self, question: Question) -> int | None:
        return _single_match(question.options, lambda opt: opt.is_correct)


class ByNumericIndex:
    """Zero-based index if in range, otherwise one-based (value - 1)."""

    def resolve(self, value: Any, options: tuple[Option, ...]) -> int | None:
        number = _as_integer(value)
        if number is None:
            return None
        if 0 <= number < len(options):
            return number
        if 0 <= number - 1 < len(options):
            return number - 1
        return None


class ById:
    """Exact (normalized) match against option ids."""

    def resolve(self, value: Any, options: tuple[Option, ...]) -> int | None:
        if not isinstance(value, str) or not value.strip():
            return None
        target = normalize_text(value)
        return _single_match(options, lambda opt: normalize_text(opt.id) == target)


class ByText:
    """Match against option label, then raw value, then plain text."""

    def resolve(self, value: Any, options: tuple[Option, ...]) -> int | None:
        if not isinstance(value, str) or not value.strip():
            return None
        target = normalize_text(value)
        for attr in ("label", "value", "text"):
            idx = _single_match(
                options,
                lambda opt, attr=attr: bool(getattr(opt, attr))
                and normalize_text(getattr(opt, attr)) == target,
            )
            if idx is not None:
                return idx
        return None


class ByStructuredObject:
    """
    Unwrap a dict or single-element list and resolve its contents.

    Multi-element lists describe several correct answers, which a
    single-answer quiz cannot grade.
    """

    def __init__(self, inner: list[CandidateStrategy]):
        self.inner = inner

    def resolve(self, value: Any, options: tuple[Option, ...]) -> int | None:
        if isinstance(value, list):
            if len(value) != 1:
                return None
            return resolve_candidate(value[0], options, self.inner)
        if isinstance(value, dict):
            for key in STRUCTURED_KEYS:
                if value.get(key) is None:
                    continue
                idx = resolve_candidate(value[key], options, self.inner)
                if idx is not None:
                    return idx
        return None


SCALAR_STRATEGIES: list[CandidateStrategy] = [ByNumericIndex(), ById(), ByText()]
CANDIDATE_STRATEGIES: list[CandidateStrategy] = [
    *SCALAR_STRATEGIES,
    ByStructuredObject(SCALAR_STRATEGIES),
]


def resolve_candidate(
    value: Any,
    options: tuple[Option, ...],
    strategies: list[CandidateStrategy] | None = None,
) -> int | None:
    """Resolve a single raw candidate value to an option index."""
    for strategy in strategies or CANDIDATE_STRATEGIES:
        idx = strategy.resolve(value, options)
        if idx is not None:
            return idx
    return None


def resolve_correct_index(question: Question) -> int | None:
    """Index of the correct option, or None when it cannot be determined."""
    if not question.options:
        return None

    explicit = ByExplicitFlag()
    if explicit.applies(question):
        return explicit.resolve_question(question)

    for name in CANDIDATE_FIELDS:
        if name not in question.candidates:
            continue
        idx = resolve_candidate(question.candidates[name], question.options)
        if idx is not None:
            logger.debug(f"Question {question.id}: '{name}' resolved to option {idx}")
            return idx

    return None


def resolve_correct_option(question: Question) -> str | None:
    """Id of the correct option, or None when the question is ungraded."""
    idx = resolve_correct_index(question)
    return question.options[idx].id if idx is not None else None


def mark_correct_option(question: Question) -> Question:
    """
    Return a copy of the question with `correct` set on every option.

    At most one option ends up True; with no resolvable answer all are False.
    """
    idx = resolve_correct_index(question)
    options = tuple(replace(opt, correct=(i == idx)) for i, opt in enumerate(question.options))
    return question.with_options(options)
