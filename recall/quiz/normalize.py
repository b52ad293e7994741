"""
Question payload normalization.

Backend question payloads are loosely shaped: options may be plain strings
or objects with rich-text blocks, the explanation may be a JSON-encoded list
of per-option explanations or a single string, and the correct answer lives
in one of a dozen differently named fields. This module turns them into
Question records. It does not decide which option is correct; that is the
resolver's job.
"""

from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger

from recall.core.models import Option, Question, option_label

# Raw correctness fields, in resolution priority order
CANDIDATE_FIELDS: tuple[str, ...] = (
    "correctIndex",
    "correct_index",
    "answerIndex",
    "answer_index",
    "correctOption",
    "correct_option",
    "correctAnswer",
    "correct_answer",
    "answer",
    "solution",
    "correct",
)

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_plain_text(block: Any) -> str:
    """
    Flatten a rich-text block to plain text.

    Collects `text` and `value` strings through nested `children` and
    `content` lists.
    """
    if not block:
        return ""
    if isinstance(block, str):
        return collapse_whitespace(block)

    def collect(value: Any) -> str:
        if not value:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, list):
            return " ".join(collect(v) for v in value)
        if isinstance(value, dict):
            text = ""
            if isinstance(value.get("text"), str):
                text += f" {value['text']}"
            if isinstance(value.get("value"), str):
                text += f" {value['value']}"
            if value.get("children"):
                text += f" {collect(value['children'])}"
            if value.get("content"):
                text += f" {collect(value['content'])}"
            return text
        return ""

    source = block.get("content", block) if isinstance(block, dict) else block
    return collapse_whitespace(collect(source))


def _parse_option_explanations(raw: Any) -> tuple[list[Any], str | None]:
    """
    Split a question explanation into per-option and question-level parts.

    Returns (per_option_explanations, question_explanation).
    """
    if isinstance(raw, list):
        return raw, None
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return [], raw
        if isinstance(parsed, list):
            return parsed, None
        # Valid JSON but not a list (e.g. a quoted string): use it verbatim
        return [], raw
    return [], None


def _explanation_text(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw or None
    text = extract_plain_text(raw)
    return text or None


def normalize_option(raw: Any, index: int, explanation: Any = None) -> Option:
    """Normalize a string or object option payload."""
    if isinstance(raw, str):
        return Option(
            id=str(index),
            text=collapse_whitespace(raw),
            label=option_label(index),
            value=raw,
            explanation=_explanation_text(explanation),
        )

    if not isinstance(raw, dict):
        raw = {"value": str(raw)} if raw is not None else {}

    block = raw.get("block")
    if block is None and raw.get("content") is not None:
        block = {"content": raw["content"]}
    text = extract_plain_text(block) if block is not None else ""

    value = raw.get("value", raw.get("text"))
    value = value if isinstance(value, str) else None
    if not text and value:
        text = collapse_whitespace(value)

    correct = raw.get("correct")
    return Option(
        id=str(raw["id"]) if raw.get("id") is not None else str(index),
        text=text,
        label=raw.get("label") or option_label(index),
        value=value,
        correct=correct if isinstance(correct, bool) else None,
        explanation=_explanation_text(explanation if explanation is not None else raw.get("explanation")),
    )


def normalize_question(raw: dict[str, Any], index: int = 0) -> Question:
    """Normalize one question payload."""
    per_option, question_explanation = _parse_option_explanations(raw.get("explanation"))

    raw_options = raw.get("options") if isinstance(raw.get("options"), list) else []
    options = tuple(
        normalize_option(opt, idx, per_option[idx] if idx < len(per_option) else None)
        for idx, opt in enumerate(raw_options)
    )

    prompt_source = raw.get("question", raw.get("prompt", raw.get("block")))
    prompt = extract_plain_text(prompt_source) if prompt_source is not None else ""

    candidates = {name: raw[name] for name in CANDIDATE_FIELDS if raw.get(name) is not None}

    return Question(
        id=str(raw["id"]) if raw.get("id") is not None else str(index),
        prompt=prompt,
        options=options,
        explanation=question_explanation,
        candidates=candidates,
    )


def normalize_questions(raw_questions: list[Any]) -> list[Question]:
    """Normalize a list of payloads, skipping entries that are not objects."""
    questions = []
    for idx, raw in enumerate(raw_questions or []):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping question payload #{idx}: expected object, got {type(raw).__name__}")
            continue
        questions.append(normalize_question(raw, idx))
    return questions
