"""
Review-mode quiz sessions.

Questions a learner previously missed are replayed one at a time with
immediate feedback:

- selecting an option moves the question to SELECTED
- checking moves it to CORRECT (terminal; may be flagged for later) or
  INCORRECT, which records the rejected option so it cannot be picked again
- "try again" returns an incorrect question to the selection phase without
  revealing the answer
- continuing marks the question completed and moves to the next one

Correct answers are persisted through a ReviewStateStore. The local
transition happens first; a failed write is logged and does not undo it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import httpx
from loguru import logger

from recall.core.models import Option, Question
from recall.core.store import (
    QuestionStatus,
    QuestionStatusUpdate,
    ReviewStateStore,
    ReviewStoreError,
)
from recall.quiz.prepared import PreparedQuestion, QuizStateError, prepare_question


class AnswerState(str, Enum):
    UNANSWERED = "unanswered"
    SELECTED = "selected"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass
class QuestionProgress:
    """Per-question review state."""

    question_id: str
    state: AnswerState = AnswerState.UNANSWERED
    selected_id: str | None = None
    rejected: set[str] = field(default_factory=set)
    attempts: int = 0
    flagged: bool = False
    completed: bool = False


@dataclass(frozen=True)
class CheckOutcome:
    """Result of checking the selected option."""

    question_id: str
    option_id: str
    original_index: int
    correct: bool
    attempts: int
    explanation: str | None = None


@dataclass(frozen=True)
class ReviewSummary:
    total_questions: int
    flagged_count: int
    attempts: dict[str, int]


class ReviewQuizSession:
    """
    Review-mode quiz over a list of questions.

    Questions without a resolvable correct option are left out and listed
    in `skipped_question_ids`.

    Args:
        questions: Questions to review, in order
        course_id: Course id (shuffle seed and persistence)
        lesson_id: Lesson id (shuffle seed)
        store: Optional review-state store for status writes
    """

    def __init__(
        self,
        questions: list[Question],
        course_id: str | None = None,
        lesson_id: str | None = None,
        store: ReviewStateStore | None = None,
    ):
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.store = store
        prepared = [prepare_question(q, course_id, lesson_id) for q in questions]
        # Ungraded questions can never reach CORRECT, so they are not replayed
        self.questions: list[PreparedQuestion] = [p for p in prepared if p.is_graded]
        self.skipped_question_ids: list[str] = [p.id for p in prepared if not p.is_graded]
        if self.skipped_question_ids:
            logger.warning(
                f"Skipping {len(self.skipped_question_ids)} ungraded question(s): "
                f"{', '.join(self.skipped_question_ids)}"
            )
        self.progress: dict[str, QuestionProgress] = {
            p.id: QuestionProgress(question_id=p.id) for p in self.questions
        }
        self.current_index = 0
        self.finished = False

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> PreparedQuestion | None:
        if self.finished or not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def current_progress(self) -> QuestionProgress:
        question = self._require_current()
        return self.progress[question.id]

    @property
    def completed_count(self) -> int:
        return sum(1 for p in self.progress.values() if p.completed)

    def available_options(self) -> tuple[Option, ...]:
        """Shuffled options for the current question minus rejected ones."""
        question = self._require_current()
        rejected = self.progress[question.id].rejected
        return tuple(opt for opt in question.shuffled_options if opt.id not in rejected)

    def summary(self) -> ReviewSummary:
        return ReviewSummary(
            total_questions=self.question_count,
            flagged_count=sum(1 for p in self.progress.values() if p.flagged),
            attempts={qid: p.attempts for qid, p in self.progress.items()},
        )

    def _require_current(self) -> PreparedQuestion:
        question = self.current
        if question is None:
            raise QuizStateError("No question in progress")
        return question

    # =========================================================================
    # Transitions
    # =========================================================================

    def select(self, option_id: str) -> None:
        question = self._require_current()
        progress = self.progress[question.id]
        if progress.completed or progress.state == AnswerState.CORRECT:
            raise QuizStateError(f"Question {question.id} is already answered correctly")
        question.require_option(option_id)
        if option_id in progress.rejected:
            raise QuizStateError(f"Option {option_id!r} was already rejected")
        progress.selected_id = option_id
        progress.state = AnswerState.SELECTED

    def check_answer(self) -> CheckOutcome:
        """
        Check the selected option against the resolved correct option.

        Re-checking an option that was already rejected returns the same
        outcome without counting another attempt.
        """
        question = self._require_current()
        progress = self.progress[question.id]
        if progress.selected_id is None:
            raise QuizStateError(f"No option selected for question {question.id}")

        option = question.require_option(progress.selected_id)
        original_index = question.question.index_of(option.id)

        # Already checked: CORRECT is terminal, INCORRECT still holds the rejected option
        if progress.state == AnswerState.SELECTED:
            progress.attempts += 1
            if option.is_correct:
                progress.state = AnswerState.CORRECT
            else:
                progress.state = AnswerState.INCORRECT
                progress.rejected.add(option.id)
            logger.debug(
                f"Question {question.id} attempt {progress.attempts}: {progress.state.value}"
            )

        return CheckOutcome(
            question_id=question.id,
            option_id=option.id,
            original_index=original_index,
            correct=option.is_correct,
            attempts=progress.attempts,
            explanation=option.explanation,
        )

    def try_again(self) -> None:
        question = self._require_current()
        progress = self.progress[question.id]
        if progress.state != AnswerState.INCORRECT:
            raise QuizStateError("Try again is only available after an incorrect answer")
        progress.selected_id = None
        progress.state = AnswerState.UNANSWERED

    def toggle_flag(self) -> bool:
        """Flag or unflag a correctly answered question; returns the new flag."""
        question = self._require_current()
        progress = self.progress[question.id]
        if progress.state != AnswerState.CORRECT:
            raise QuizStateError("Only correctly answered questions can be flagged")
        progress.flagged = not progress.flagged
        return progress.flagged

    def advance(self) -> bool:
        """
        Complete the current question and move on.

        Returns:
            True when every question has been completed
        """
        question = self._require_current()
        progress = self.progress[question.id]
        if progress.state != AnswerState.CORRECT:
            raise QuizStateError(f"Question {question.id} has not been answered correctly")
        progress.completed = True
        if self.current_index < self.question_count - 1:
            self.current_index += 1
        else:
            self.finished = True
            logger.info(
                f"Review complete: {self.question_count} questions, "
                f"{self.summary().flagged_count} flagged"
            )
        return self.finished

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _persist(self, update: QuestionStatusUpdate) -> bool:
        if self.store is None or not self.course_id:
            return False
        try:
            await self.store.update_question_status(self.course_id, [update])
            return True
        except (ReviewStoreError, httpx.HTTPError) as e:
            logger.error(f"Error updating question status for {update.id}: {e}")
            return False

    async def check_and_record(self) -> CheckOutcome:
        """Check the answer and persist it when correct."""
        already_correct = self.current_progress.state == AnswerState.CORRECT
        outcome = self.check_answer()
        if outcome.correct and not already_correct:
            await self._persist(
                QuestionStatusUpdate(
                    id=outcome.question_id,
                    status=QuestionStatus.CORRECT,
                    selected_answer=outcome.original_index,
                )
            )
        return outcome

    async def toggle_flag_and_record(self) -> bool:
        """Toggle the flag and persist the flagged/unflagged status."""
        flagged = self.toggle_flag()
        progress = self.current_progress
        question = self._require_current()
        await self._persist(
            QuestionStatusUpdate(
                id=question.id,
                status=QuestionStatus.CORRECT_FLAGGED if flagged else QuestionStatus.CORRECT,
                selected_answer=question.question.index_of(progress.selected_id)
                if progress.selected_id
                else None,
            )
        )
        return flagged
