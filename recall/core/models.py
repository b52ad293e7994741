"""
Shared records for quiz content.

Question and Option arrive from the content source and are treated as
read-only; every transformation (marking the correct option, shuffling)
returns new instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


def option_label(index: int) -> str:
    """Letter label for a display position (0 -> A, 1 -> B, ...); numbered past Z."""
    if index < 26:
        return chr(ord("A") + index)
    return str(index + 1)


@dataclass(frozen=True)
class Option:
    """A single answer option."""

    id: str
    text: str
    label: str = ""
    value: str | None = None
    correct: bool | None = None  # None = no explicit flag in the payload
    explanation: str | None = None
    original_index: int | None = None  # Set on shuffled copies only

    @property
    def is_correct(self) -> bool:
        return self.correct is True


@dataclass(frozen=True)
class Question:
    """A multiple-choice question and its raw correctness candidates."""

    id: str
    prompt: str
    options: tuple[Option, ...] = ()
    explanation: str | None = None
    candidates: dict[str, Any] = field(default_factory=dict, compare=False)

    def option_by_id(self, option_id: str) -> Option | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def index_of(self, option_id: str) -> int | None:
        for idx, option in enumerate(self.options):
            if option.id == option_id:
                return idx
        return None

    @property
    def correct_option(self) -> Option | None:
        """The option flagged correct, if exactly one is."""
        flagged = [o for o in self.options if o.is_correct]
        return flagged[0] if len(flagged) == 1 else None

    def with_options(self, options: tuple[Option, ...]) -> Question:
        return replace(self, options=tuple(options))


@dataclass(frozen=True)
class ShuffleMapping:
    """
    Bijection between original option positions and displayed positions.

    to_original[shuffled_pos] -> original_pos
    to_shuffled[original_pos] -> shuffled_pos
    """

    to_original: tuple[int, ...]
    to_shuffled: tuple[int, ...]

    @classmethod
    def from_order(cls, order: list[int] | tuple[int, ...]) -> ShuffleMapping:
        """Build from the list of original indices in displayed order."""
        to_shuffled = [0] * len(order)
        for shuffled_pos, original_pos in enumerate(order):
            to_shuffled[original_pos] = shuffled_pos
        return cls(to_original=tuple(order), to_shuffled=tuple(to_shuffled))

    @classmethod
    def identity(cls, size: int) -> ShuffleMapping:
        return cls.from_order(list(range(size)))

    def __len__(self) -> int:
        return len(self.to_original)

    def original_index(self, shuffled_pos: int) -> int:
        return self.to_original[shuffled_pos]

    def shuffled_index(self, original_pos: int) -> int:
        return self.to_shuffled[original_pos]
