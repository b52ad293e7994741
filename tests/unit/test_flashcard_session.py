"""
Unit tests for flashcard review sessions.
"""

from datetime import datetime, timedelta, timezone

import pytest

from recall.review.flashcards import (
    Flashcard,
    FlashcardReviewSession,
    filter_due,
    format_timestamp,
    load_flashcard_session,
    parse_timestamp,
)
from recall.review.intervals import InvalidTierError, ReviewTier

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _clock():
    return NOW


@pytest.fixture
def cards():
    return [
        Flashcard(id="f1", front="What does DNS resolve?", back="Names to addresses"),
        Flashcard(id="f2", front="Default HTTPS port?", back="443"),
    ]


class TestTimestamps:
    def test_parse_z_suffix(self):
        assert parse_timestamp("2024-03-01T09:00:00.000Z") == NOW

    def test_parse_naive_is_utc(self):
        assert parse_timestamp("2024-03-01T09:00:00") == NOW

    def test_parse_invalid(self):
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None

    def test_format(self):
        assert format_timestamp(NOW + timedelta(milliseconds=5)) == "2024-03-01T09:00:00.005Z"


class TestFlashcard:
    def test_from_dict_api_shape(self):
        card = Flashcard.from_dict(
            {
                "id": 7,
                "question": "Q",
                "answer": "A",
                "lessonId": "l1",
                "is_uploaded": True,
                "next_show_timestamp": "2024-03-02T00:00:00Z",
            }
        )
        assert card.id == "7"
        assert card.front == "Q"
        assert card.back == "A"
        assert card.lesson_id == "l1"
        assert card.uploaded is True
        assert card.next_show_timestamp == datetime(2024, 3, 2, tzinfo=timezone.utc)

    def test_filter_due(self):
        never = Flashcard(id="a", front="", back="")
        past = Flashcard(id="b", front="", back="", next_show_timestamp=NOW - timedelta(minutes=1))
        exact = Flashcard(id="c", front="", back="", next_show_timestamp=NOW)
        future = Flashcard(id="d", front="", back="", next_show_timestamp=NOW + timedelta(minutes=1))

        assert [c.id for c in filter_due([never, past, exact, future], NOW)] == ["a", "b", "c"]


class TestFlashcardReviewSession:
    def test_intervals_follow_time_remaining(self, cards):
        session = FlashcardReviewSession(cards, seconds_remaining=360000)
        assert session.intervals[ReviewTier.EASY] == 1500

    def test_flip(self, cards):
        session = FlashcardReviewSession(cards)
        assert session.flip() is True
        assert session.flip() is False

    @pytest.mark.asyncio
    async def test_rate_schedules_and_persists(self, cards, recording_store):
        session = FlashcardReviewSession(
            cards, seconds_remaining=360000, course_id="c1", store=recording_store, clock=_clock
        )
        session.flip()
        outcome = await session.rate("good")

        assert outcome.interval_minutes == 600
        assert outcome.next_show_timestamp == NOW + timedelta(minutes=600)
        assert outcome.persisted is True
        assert recording_store.schedule_updates == [("c1", "f1", NOW + timedelta(minutes=600))]
        assert cards[0].next_show_timestamp == NOW + timedelta(minutes=600)
        assert session.current.id == "f2"
        assert session.is_flipped is False

    @pytest.mark.asyncio
    async def test_store_failure_still_advances(self, cards, failing_store):
        session = FlashcardReviewSession(cards, course_id="c1", store=failing_store, clock=_clock)
        outcome = await session.rate(ReviewTier.AGAIN)

        assert outcome.persisted is False
        assert session.current.id == "f2"

    @pytest.mark.asyncio
    async def test_invalid_tier_changes_nothing(self, cards, recording_store):
        session = FlashcardReviewSession(cards, course_id="c1", store=recording_store, clock=_clock)
        with pytest.raises(InvalidTierError):
            await session.rate("meh")

        assert session.current_index == 0
        assert recording_store.schedule_updates == []
        assert cards[0].next_show_timestamp is None

    @pytest.mark.asyncio
    async def test_finishes(self, cards):
        session = FlashcardReviewSession(cards, clock=_clock)
        await session.rate("easy")
        await session.rate("hard")

        assert session.is_finished
        assert session.remaining == 0
        assert [o.tier for o in session.outcomes] == [ReviewTier.EASY, ReviewTier.HARD]
        with pytest.raises(IndexError):
            await session.rate("good")


class TestLoadFlashcardSession:
    @pytest.mark.asyncio
    async def test_loads_due_cards_and_time_remaining(self, make_store):
        future = Flashcard(id="later", front="", back="", next_show_timestamp=NOW + timedelta(days=1))
        due = Flashcard(id="now", front="", back="")
        store = make_store(cards=[future, due], seconds_to_complete=7200)

        session = await load_flashcard_session(store, "c1", clock=_clock)

        assert [c.id for c in session.cards] == ["now"]
        assert session.seconds_remaining == 7200
        assert session.course_id == "c1"

    @pytest.mark.asyncio
    async def test_default_seconds_when_unknown(self, make_store):
        session = await load_flashcard_session(make_store(), "c1", default_seconds=1234, clock=_clock)
        assert session.seconds_remaining == 1234
        assert session.is_finished
