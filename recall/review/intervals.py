"""
Spaced-repetition interval calculator.

Flashcard intervals are a fixed fraction of the time left before the
course's target completion, with a hard floor per confidence tier:

    tier   fraction   floor (min)
    again  0.001      1
    hard   0.01       5
    good   0.10       30
    easy   0.25       60

interval = max(floor, round(minutes_remaining * fraction)) where
minutes_remaining = max(seconds_remaining / 60, 60).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

MIN_MINUTES_REMAINING = 60


class InvalidTierError(ValueError):
    """Raised for a confidence tier outside again/hard/good/easy."""


class ReviewTier(str, Enum):
    """Self-rated recall confidence."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: str | ReviewTier) -> ReviewTier:
        if isinstance(value, ReviewTier):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidTierError(
            f"Unknown review tier {value!r}; expected one of {[t.value for t in cls]}"
        )


@dataclass(frozen=True)
class TierRule:
    fraction: float
    floor_minutes: int


TIER_RULES: dict[ReviewTier, TierRule] = {
    ReviewTier.AGAIN: TierRule(fraction=0.001, floor_minutes=1),
    ReviewTier.HARD: TierRule(fraction=0.01, floor_minutes=5),
    ReviewTier.GOOD: TierRule(fraction=0.10, floor_minutes=30),
    ReviewTier.EASY: TierRule(fraction=0.25, floor_minutes=60),
}


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def minutes_remaining(seconds_remaining: float) -> float:
    """Remaining minutes, never below one hour."""
    if seconds_remaining is None or isinstance(seconds_remaining, bool):
        raise TypeError("seconds_remaining must be a number")
    if math.isnan(seconds_remaining):
        raise ValueError("seconds_remaining must not be NaN")
    if math.isinf(seconds_remaining):
        raise ValueError("seconds_remaining must be finite")
    return max(seconds_remaining / 60, MIN_MINUTES_REMAINING)


def compute_review_interval(seconds_remaining: float, tier: str | ReviewTier) -> int:
    """Minutes until a flashcard rated `tier` should resurface."""
    rule = TIER_RULES[ReviewTier.parse(tier)]
    return max(rule.floor_minutes, _round_half_up(minutes_remaining(seconds_remaining) * rule.fraction))


def confidence_intervals(seconds_remaining: float) -> dict[ReviewTier, int]:
    """Intervals for every tier, in tier order."""
    return {tier: compute_review_interval(seconds_remaining, tier) for tier in ReviewTier}


def format_interval(minutes: int) -> str:
    """Human-readable interval: minutes, hours or days."""
    if minutes < 60:
        return f"{minutes} min"
    if minutes < 1440:
        return f"{_round_half_up(minutes / 60)} hr"
    return f"{_round_half_up(minutes / 1440)} day"


def next_show_timestamp(interval_minutes: int, now: datetime | None = None) -> datetime:
    """UTC timestamp `interval_minutes` after `now`."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now + timedelta(minutes=interval_minutes)).astimezone(timezone.utc)
