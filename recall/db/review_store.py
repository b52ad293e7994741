"""
Offline review-state store backed by SQLAlchemy (SQLite by default).

Implements the same interface as PlatformClient so review sessions can run
without the platform API. Rows are keyed by (course_id, id), so the same
question or flashcard id may appear in several courses.

Seeding (used by `recall load`) goes through a sync engine; the async
ReviewStateStore methods use an async engine on the same database
(aiosqlite for SQLite URLs).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from recall.core.store import QuestionStatus, QuestionStatusUpdate, ReviewStoreError
from recall.db.database import (
    async_session_scope,
    init_db,
    make_async_engine,
    make_async_session_factory,
    make_engine,
    session_scope,
)
from recall.db.models import CourseSchedule, FlashcardSchedule, QuestionReview
from recall.review.flashcards import Flashcard, filter_due


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_naive_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _key(course_id: str, row_id: str) -> dict[str, str]:
    return {"course_id": course_id, "id": row_id}


def _to_flashcard(row: FlashcardSchedule) -> Flashcard:
    return Flashcard(
        id=row.id,
        front=row.front,
        back=row.back,
        explanation=row.explanation,
        difficulty=row.difficulty,
        lesson_id=row.lesson_id,
        uploaded=row.uploaded,
        next_show_timestamp=_from_naive_utc(row.next_show_timestamp),
    )


class SqlReviewStore:
    """
    Review-state store over a SQLAlchemy database.

    Args:
        database_url: Sync SQLAlchemy URL; the async URL is derived from it
        echo: Log SQL statements
        create_tables: Create missing tables on startup
    """

    def __init__(self, database_url: str, echo: bool = False, create_tables: bool = True):
        self.engine = make_engine(database_url, echo=echo)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.async_engine = make_async_engine(database_url, echo=echo)
        self.AsyncSessionLocal = make_async_session_factory(self.async_engine)
        if create_tables:
            init_db(self.engine)

    def close(self) -> None:
        """Dispose the sync engine (seeding only)."""
        self.engine.dispose()

    async def aclose(self) -> None:
        """Dispose both engines."""
        self.close()
        await self.async_engine.dispose()

    # =========================================================================
    # Seeding (local content import)
    # =========================================================================

    def add_flashcards(self, course_id: str, cards: list[Flashcard]) -> int:
        """Insert or replace flashcards for a course."""
        try:
            with session_scope(self.SessionLocal) as session:
                for card in cards:
                    session.merge(
                        FlashcardSchedule(
                            course_id=course_id,
                            id=card.id,
                            lesson_id=card.lesson_id,
                            front=card.front,
                            back=card.back,
                            explanation=card.explanation,
                            difficulty=card.difficulty,
                            uploaded=card.uploaded,
                            next_show_timestamp=_to_naive_utc(card.next_show_timestamp)
                            if card.next_show_timestamp
                            else None,
                        )
                    )
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to store flashcards: {e}") from e
        return len(cards)

    def add_questions(self, course_id: str, payloads: list[dict[str, Any]]) -> int:
        """Insert or replace raw question payloads; ids default to position."""
        try:
            with session_scope(self.SessionLocal) as session:
                for idx, payload in enumerate(payloads):
                    session.merge(
                        QuestionReview(
                            course_id=course_id,
                            id=str(payload.get("id", idx)),
                            payload=payload,
                        )
                    )
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to store questions: {e}") from e
        return len(payloads)

    def set_seconds_to_complete(self, course_id: str, seconds: int | None) -> None:
        try:
            with session_scope(self.SessionLocal) as session:
                session.merge(CourseSchedule(course_id=course_id, seconds_to_complete=seconds))
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to store course schedule: {e}") from e

    # =========================================================================
    # ReviewStateStore
    # =========================================================================

    async def fetch_due_flashcards(
        self,
        course_id: str,
        now: datetime,
        lessons: list[str] | None = None,
        include_uploaded: bool = False,
        uploaded_only: bool = False,
    ) -> list[Flashcard]:
        stmt = select(FlashcardSchedule).where(FlashcardSchedule.course_id == course_id)
        if uploaded_only:
            stmt = stmt.where(FlashcardSchedule.uploaded.is_(True))
        else:
            lesson_filter = FlashcardSchedule.lesson_id.in_(lessons) if lessons else None
            if include_uploaded and lesson_filter is not None:
                stmt = stmt.where(lesson_filter | FlashcardSchedule.uploaded.is_(True))
            elif lesson_filter is not None:
                stmt = stmt.where(lesson_filter, FlashcardSchedule.uploaded.is_(False))
            elif not include_uploaded:
                stmt = stmt.where(FlashcardSchedule.uploaded.is_(False))
        stmt = stmt.order_by(FlashcardSchedule.id)

        try:
            async with async_session_scope(self.AsyncSessionLocal) as session:
                rows = await session.scalars(stmt)
                cards = [_to_flashcard(row) for row in rows]
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to fetch flashcards: {e}") from e
        return filter_due(cards, now)

    async def update_flashcard_schedule(
        self, course_id: str, card_id: str, next_show_timestamp: datetime
    ) -> None:
        try:
            async with async_session_scope(self.AsyncSessionLocal) as session:
                row = await session.get(FlashcardSchedule, _key(course_id, card_id))
                if row is None:
                    raise ReviewStoreError(f"Flashcard {card_id} not found in course {course_id}")
                row.next_show_timestamp = _to_naive_utc(next_show_timestamp)
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to update flashcard {card_id}: {e}") from e
        logger.debug(f"Flashcard {card_id} next show at {next_show_timestamp.isoformat()}")

    async def fetch_review_questions(self, course_id: str) -> list[dict[str, Any]]:
        stmt = (
            select(QuestionReview)
            .where(QuestionReview.course_id == course_id)
            .where(
                QuestionReview.status.is_(None)
                | (QuestionReview.status == QuestionStatus.INCORRECT.value)
            )
            .order_by(QuestionReview.id)
        )
        try:
            async with async_session_scope(self.AsyncSessionLocal) as session:
                rows = await session.scalars(stmt)
                return [dict(row.payload) for row in rows]
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to fetch questions: {e}") from e

    async def update_question_status(
        self, course_id: str, updates: list[QuestionStatusUpdate]
    ) -> None:
        try:
            async with async_session_scope(self.AsyncSessionLocal) as session:
                for update in updates:
                    row = await session.get(QuestionReview, _key(course_id, update.id))
                    if row is None:
                        row = QuestionReview(course_id=course_id, id=update.id, payload={})
                        session.add(row)
                    row.status = update.status.value
                    row.selected_answer = update.selected_answer
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to update question status: {e}") from e

    async def get_seconds_to_complete(self, course_id: str) -> int | None:
        try:
            async with async_session_scope(self.AsyncSessionLocal) as session:
                row = await session.get(CourseSchedule, course_id)
                return row.seconds_to_complete if row else None
        except SQLAlchemyError as e:
            raise ReviewStoreError(f"Failed to read course schedule: {e}") from e
