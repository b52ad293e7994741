"""
Deterministic option shuffling.

Options are permuted per (question, course, lesson) so the displayed order is
unpredictable to the learner but identical across re-renders and restarts of
the same attempt. The seed string is hashed with a 31-multiplier rolling hash
and drives a mulberry32 generator feeding a Fisher-Yates shuffle.

All arithmetic is done modulo 2**32 to reproduce the 32-bit integer
behaviour of the browser implementation bit for bit.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from recall.core.models import Option, ShuffleMapping, option_label

MASK_32 = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    value &= MASK_32
    return value - 0x100000000 if value & 0x80000000 else value


def build_seed(question_id: str, course_id: str | None = None, lesson_id: str | None = None) -> str:
    """Seed string for a question within a course lesson."""
    return f"{question_id}-{course_id or ''}-{lesson_id or ''}"


def string_to_seed(text: str) -> int:
    """
    Hash a string to a non-negative 32-bit seed.

    hash = hash * 31 + code_unit, truncated to a signed 32-bit integer after
    every step; the absolute value of the result is the seed. Code units are
    UTF-16, matching JavaScript's charCodeAt.
    """
    value = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = _to_int32(value * 31 + code_unit)
    return abs(value)


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK_32


class Mulberry32:
    """mulberry32 PRNG: 32-bit state, floats in [0, 1)."""

    def __init__(self, seed: int):
        self.state = seed & MASK_32

    def next_uint32(self) -> int:
        self.state = (self.state + 0x6D2B79F5) & MASK_32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t = (t + _imul(t ^ (t >> 7), t | 61)) & MASK_32 ^ t
        return (t ^ (t >> 14)) & MASK_32

    def random(self) -> float:
        return self.next_uint32() / 4294967296


def shuffled_order(size: int, seed: int) -> list[int]:
    """Fisher-Yates permutation of range(size) driven by mulberry32."""
    order = list(range(size))
    rng = Mulberry32(seed)
    for i in range(size - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        order[i], order[j] = order[j], order[i]
    return order


@dataclass(frozen=True)
class ShuffleResult:
    """Shuffled options plus the mapping back to original positions."""

    shuffled_options: tuple[Option, ...]
    mapping: ShuffleMapping

    @property
    def to_original_index(self) -> tuple[int, ...]:
        return self.mapping.to_original

    @property
    def to_shuffled_index(self) -> tuple[int, ...]:
        return self.mapping.to_shuffled


def shuffle_options(options: Sequence[Option], seed_string: str) -> ShuffleResult:
    """
    Shuffle options deterministically for a seed string.

    Returned options are relabelled A, B, C... by displayed position and carry
    their original_index. The input sequence is not modified.
    """
    order = shuffled_order(len(options), string_to_seed(seed_string))
    shuffled = tuple(
        replace(options[original], label=option_label(pos), original_index=original)
        for pos, original in enumerate(order)
    )
    return ShuffleResult(shuffled_options=shuffled, mapping=ShuffleMapping.from_order(order))
