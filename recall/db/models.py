"""
SQLAlchemy models for the offline review-state store.

Tables:
- flashcard_schedules: flashcard content and next_show_timestamp
- question_reviews: raw question payloads and their review status
- course_schedules: seconds remaining until each course's target completion

Flashcard and question rows are keyed by (course_id, id).
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class FlashcardSchedule(Base):
    """A flashcard and when it should next be shown."""

    __tablename__ = "flashcard_schedules"

    course_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    lesson_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    front: Mapped[str] = mapped_column(Text, default="")
    back: Mapped[str] = mapped_column(Text, default="")
    explanation: Mapped[str] = mapped_column(Text, default="")
    difficulty: Mapped[str] = mapped_column(String(16), default="medium")
    uploaded: Mapped[bool] = mapped_column(Boolean, default=False)
    # Stored as naive UTC
    next_show_timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime)
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())


class QuestionReview(Base):
    """A quiz question and the learner's review status."""

    __tablename__ = "question_reviews"

    course_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # NULL or "incorrect" = needs review; "correct" / "correct/flag" = done
    status: Mapped[Optional[str]] = mapped_column(String(16))
    selected_answer: Mapped[Optional[int]] = mapped_column(Integer)
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())


class CourseSchedule(Base):
    """Time remaining before a course's target completion."""

    __tablename__ = "course_schedules"

    course_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    seconds_to_complete: Mapped[Optional[int]] = mapped_column(Integer)
