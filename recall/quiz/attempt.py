"""
Lesson quiz attempts.

A lesson quiz is submitted all at once: while the attempt is in progress the
learner sees each question's options in shuffled order and may change any
answer; on submission every question is revealed simultaneously, options
return to their original order, and each stored selection is graded against
the resolved correct option.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import httpx
from loguru import logger

from recall.core.models import Option, Question, option_label
from recall.core.store import (
    QuestionStatus,
    QuestionStatusUpdate,
    ReviewStateStore,
    ReviewStoreError,
)
from recall.quiz.prepared import PreparedQuestion, QuizStateError, prepare_question


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class QuestionResult:
    """Grading of one question after submission."""

    question_id: str
    selected_option_id: str | None
    selected_original_index: int | None
    correct_option_id: str | None
    is_correct: bool | None  # None = ungraded (no resolvable answer)


@dataclass(frozen=True)
class SubmissionResult:
    results: tuple[QuestionResult, ...]

    @property
    def graded(self) -> list[QuestionResult]:
        return [r for r in self.results if r.is_correct is not None]

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.is_correct)

    @property
    def score(self) -> float:
        """Fraction of graded questions answered correctly."""
        graded = self.graded
        return self.correct_count / len(graded) if graded else 0.0


class QuizAttempt:
    """
    One learner's attempt at a lesson quiz.

    Args:
        questions: Questions in quiz order
        course_id: Course id (part of the shuffle seed)
        lesson_id: Lesson id (part of the shuffle seed)
    """

    def __init__(
        self,
        questions: list[Question],
        course_id: str | None = None,
        lesson_id: str | None = None,
    ):
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.status = AttemptStatus.IN_PROGRESS
        self._prepared: dict[str, PreparedQuestion] = {}
        self._order: list[str] = []
        for question in questions:
            if question.id in self._prepared:
                raise ValueError(f"Duplicate question id {question.id!r}")
            self._prepared[question.id] = prepare_question(question, course_id, lesson_id)
            self._order.append(question.id)
        self._selections: dict[str, str] = {}
        self._result: SubmissionResult | None = None

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def question_ids(self) -> list[str]:
        return list(self._order)

    @property
    def is_submitted(self) -> bool:
        return self.status == AttemptStatus.SUBMITTED

    @property
    def answered_count(self) -> int:
        return len(self._selections)

    @property
    def progress(self) -> float:
        """Fraction of questions with a selection."""
        return self.answered_count / len(self._order) if self._order else 0.0

    @property
    def result(self) -> SubmissionResult | None:
        return self._result

    def prepared(self, question_id: str) -> PreparedQuestion:
        try:
            return self._prepared[question_id]
        except KeyError:
            raise QuizStateError(f"Unknown question {question_id!r}") from None

    def selection(self, question_id: str) -> str | None:
        return self._selections.get(question_id)

    def display_options(self, question_id: str) -> tuple[Option, ...]:
        """
        Options as the learner should see them.

        Shuffled while in progress; original order (relabelled A, B, ...)
        once submitted.
        """
        prepared = self.prepared(question_id)
        if not self.is_submitted:
            return prepared.shuffled_options
        return tuple(
            Option(
                id=opt.id,
                text=opt.text,
                label=option_label(idx),
                value=opt.value,
                correct=opt.correct,
                explanation=opt.explanation,
            )
            for idx, opt in enumerate(prepared.question.options)
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def _require_in_progress(self) -> None:
        if self.is_submitted:
            raise QuizStateError("Quiz attempt already submitted")

    def select(self, question_id: str, option_id: str) -> None:
        """Store (or replace) the selection for a question."""
        self._require_in_progress()
        prepared = self.prepared(question_id)
        prepared.require_option(option_id)
        self._selections[question_id] = option_id

    def select_position(self, question_id: str, shuffled_pos: int) -> str:
        """Select by displayed position; returns the selected option id."""
        self._require_in_progress()
        option = self.prepared(question_id).option_at(shuffled_pos)
        self._selections[question_id] = option.id
        return option.id

    def clear(self, question_id: str) -> None:
        self._require_in_progress()
        self.prepared(question_id)
        self._selections.pop(question_id, None)

    def submit(self) -> SubmissionResult:
        """Grade every question at once and reveal the answers."""
        self._require_in_progress()
        results = []
        for question_id in self._order:
            prepared = self._prepared[question_id]
            selected = self._selections.get(question_id)
            correct_id = prepared.correct_option_id
            if correct_id is None:
                is_correct = None
            else:
                is_correct = selected == correct_id
            results.append(
                QuestionResult(
                    question_id=question_id,
                    selected_option_id=selected,
                    selected_original_index=prepared.question.index_of(selected) if selected else None,
                    correct_option_id=correct_id,
                    is_correct=is_correct,
                )
            )
        self._result = SubmissionResult(results=tuple(results))
        self.status = AttemptStatus.SUBMITTED
        logger.debug(
            f"Quiz submitted: {self._result.correct_count}/{len(self._result.graded)} correct"
        )
        return self._result

    async def record_submission(self, store: ReviewStateStore) -> bool:
        """
        Persist graded answers after submission.

        Ungraded and unanswered questions are not written. Store failures
        are logged; the attempt stays submitted either way.

        Returns:
            True if the write succeeded (or there was nothing to write)
        """
        if self._result is None:
            raise QuizStateError("Submit the attempt before recording it")
        if not self.course_id:
            logger.warning("Quiz attempt has no course id; skipping persistence")
            return False

        updates = [
            QuestionStatusUpdate(
                id=r.question_id,
                status=QuestionStatus.CORRECT if r.is_correct else QuestionStatus.INCORRECT,
                selected_answer=r.selected_original_index,
            )
            for r in self._result.results
            if r.is_correct is not None and r.selected_option_id is not None
        ]
        if not updates:
            return True

        try:
            await store.update_question_status(self.course_id, updates)
            return True
        except (ReviewStoreError, httpx.HTTPError) as e:
            logger.error(f"Error recording quiz submission for course {self.course_id}: {e}")
            return False
