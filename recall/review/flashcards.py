"""
Flashcard review sessions.

A session walks through the cards that are due, lets the learner rate each
one, and schedules the card's next appearance with the interval calculator.
Schedule writes go through a ReviewStateStore; a failed write is logged and
the session still moves on to the next card.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from loguru import logger

from recall.core.store import ReviewStateStore, ReviewStoreError
from recall.review.intervals import (
    ReviewTier,
    compute_review_interval,
    confidence_intervals,
    next_show_timestamp,
)

DEFAULT_SECONDS_TO_COMPLETE = 3600


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp (trailing Z allowed) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Ignoring unparseable timestamp: {value!r}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass
class Flashcard:
    """A flashcard and its review schedule."""

    id: str
    front: str
    back: str
    explanation: str = ""
    difficulty: str = "medium"
    lesson_id: str | None = None
    uploaded: bool = False
    next_show_timestamp: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Flashcard:
        """Parse a flashcard payload from the platform API."""
        return cls(
            id=str(data.get("id", "")),
            front=data.get("front") or data.get("question") or "",
            back=data.get("back") or data.get("answer") or "",
            explanation=data.get("explanation") or "",
            difficulty=data.get("difficulty") or "medium",
            lesson_id=data.get("lesson_id") or data.get("lessonId"),
            uploaded=bool(data.get("uploaded", data.get("is_uploaded", False))),
            next_show_timestamp=parse_timestamp(data.get("next_show_timestamp")),
        )

    def is_due(self, now: datetime) -> bool:
        if self.next_show_timestamp is None:
            return True
        return self.next_show_timestamp <= parse_timestamp(now)


def filter_due(cards: list[Flashcard], now: datetime) -> list[Flashcard]:
    """Cards with no schedule yet or scheduled at or before `now`."""
    return [card for card in cards if card.is_due(now)]


@dataclass
class RatingOutcome:
    """Result of rating one flashcard."""

    card_id: str
    tier: ReviewTier
    interval_minutes: int
    next_show_timestamp: datetime
    persisted: bool


@dataclass
class FlashcardReviewSession:
    """
    Walks through due flashcards and schedules each by confidence.

    Args:
        cards: Cards to review, in presentation order
        seconds_remaining: Time left before the course target completion
        course_id: Course the cards belong to (needed for persistence)
        store: Optional review-state store for schedule writes
        clock: Returns "now"; injectable for tests
    """

    cards: list[Flashcard]
    seconds_remaining: float = DEFAULT_SECONDS_TO_COMPLETE
    course_id: str | None = None
    store: ReviewStateStore | None = None
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))

    current_index: int = 0
    is_flipped: bool = False
    outcomes: list[RatingOutcome] = field(default_factory=list)

    @property
    def intervals(self) -> dict[ReviewTier, int]:
        return confidence_intervals(self.seconds_remaining)

    @property
    def current(self) -> Flashcard | None:
        if self.current_index < len(self.cards):
            return self.cards[self.current_index]
        return None

    @property
    def is_finished(self) -> bool:
        return self.current is None

    @property
    def remaining(self) -> int:
        return max(0, len(self.cards) - self.current_index)

    def flip(self) -> bool:
        self.is_flipped = not self.is_flipped
        return self.is_flipped

    async def rate(self, tier: str | ReviewTier) -> RatingOutcome:
        """
        Rate the current card, persist its schedule, and advance.

        Raises:
            InvalidTierError: unknown tier (nothing is persisted or advanced)
            IndexError: no card left to rate
        """
        card = self.current
        if card is None:
            raise IndexError("No flashcard left to rate")

        tier = ReviewTier.parse(tier)
        minutes = compute_review_interval(self.seconds_remaining, tier)
        next_show = next_show_timestamp(minutes, self.clock())
        card.next_show_timestamp = next_show

        persisted = False
        if self.store is not None and self.course_id:
            try:
                await self.store.update_flashcard_schedule(self.course_id, card.id, next_show)
                persisted = True
            except (ReviewStoreError, httpx.HTTPError) as e:
                logger.error(f"Error updating flashcard {card.id}: {e}")

        outcome = RatingOutcome(
            card_id=card.id,
            tier=tier,
            interval_minutes=minutes,
            next_show_timestamp=next_show,
            persisted=persisted,
        )
        self.outcomes.append(outcome)
        self.current_index += 1
        self.is_flipped = False
        logger.debug(f"Card {card.id} rated {tier.value}: next in {minutes} min")
        return outcome


async def load_flashcard_session(
    store: ReviewStateStore,
    course_id: str,
    lessons: list[str] | None = None,
    include_uploaded: bool = False,
    uploaded_only: bool = False,
    default_seconds: int = DEFAULT_SECONDS_TO_COMPLETE,
    clock: Callable[[], datetime] | None = None,
) -> FlashcardReviewSession:
    """Fetch due cards and course time remaining, and build a session."""
    clock = clock or (lambda: datetime.now(timezone.utc))
    now = clock()

    cards = await store.fetch_due_flashcards(
        course_id,
        now,
        lessons=None if uploaded_only else lessons,
        include_uploaded=include_uploaded or uploaded_only,
        uploaded_only=uploaded_only,
    )
    seconds = await store.get_seconds_to_complete(course_id)
    if seconds is None:
        seconds = default_seconds

    # Stores filter as well; re-check against the aware "now"
    due = filter_due(cards, now)
    logger.info(f"Loaded {len(due)} due flashcards for course {course_id}")
    return FlashcardReviewSession(
        cards=due,
        seconds_remaining=seconds,
        course_id=course_id,
        store=store,
        clock=clock,
    )
