"""
Review-state store interface.

The quiz and flashcard sessions never talk to a backend directly; they go
through a ReviewStateStore. Two implementations ship with the package:

- PlatformClient (recall.core.platform_client): the platform HTTP API
- SqlReviewStore (recall.db.review_store): local SQLite/SQLAlchemy
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from recall.review.flashcards import Flashcard


class ReviewStoreError(Exception):
    """Raised when review state cannot be read or written."""


class QuestionStatus(str, Enum):
    """Review status persisted for a question."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    CORRECT_FLAGGED = "correct/flag"


@dataclass(frozen=True)
class QuestionStatusUpdate:
    """One question status write."""

    id: str
    status: QuestionStatus
    selected_answer: int | None = None  # Original (unshuffled) option index

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "status": self.status.value}
        if self.selected_answer is not None:
            payload["selectedAnswer"] = self.selected_answer
        return payload


class ReviewStateStore(Protocol):
    """Protocol for review-state backends."""

    async def fetch_due_flashcards(
        self,
        course_id: str,
        now: datetime,
        lessons: list[str] | None = None,
        include_uploaded: bool = False,
        uploaded_only: bool = False,
    ) -> list[Flashcard]:
        """Flashcards whose next_show_timestamp is unset or not after `now`."""
        ...

    async def update_flashcard_schedule(
        self, course_id: str, card_id: str, next_show_timestamp: datetime
    ) -> None:
        """Persist the next time a flashcard should resurface."""
        ...

    async def fetch_review_questions(self, course_id: str) -> list[dict[str, Any]]:
        """Raw question payloads that still need review."""
        ...

    async def update_question_status(
        self, course_id: str, updates: list[QuestionStatusUpdate]
    ) -> None:
        """Persist question review statuses."""
        ...

    async def get_seconds_to_complete(self, course_id: str) -> int | None:
        """Seconds until the course's target completion, if known."""
        ...
