"""
Questions prepared for display: correctness resolved, options shuffled.
"""

from __future__ import annotations

from dataclasses import dataclass

from recall.core.models import Option, Question, ShuffleMapping
from recall.quiz.resolver import mark_correct_option
from recall.quiz.shuffler import build_seed, shuffle_options


class QuizStateError(RuntimeError):
    """Raised for a transition the quiz state machine does not allow."""


@dataclass(frozen=True)
class PreparedQuestion:
    """A question with its correct option marked and its display order fixed."""

    question: Question
    shuffled_options: tuple[Option, ...]
    mapping: ShuffleMapping

    @property
    def id(self) -> str:
        return self.question.id

    @property
    def correct_option_id(self) -> str | None:
        option = self.question.correct_option
        return option.id if option else None

    @property
    def is_graded(self) -> bool:
        return self.correct_option_id is not None

    def option_at(self, shuffled_pos: int) -> Option:
        """Option shown at a display position."""
        if not 0 <= shuffled_pos < len(self.shuffled_options):
            raise QuizStateError(
                f"Position {shuffled_pos} out of range for question {self.id} "
                f"({len(self.shuffled_options)} options)"
            )
        return self.question.options[self.mapping.original_index(shuffled_pos)]

    def require_option(self, option_id: str) -> Option:
        option = self.question.option_by_id(option_id)
        if option is None:
            raise QuizStateError(f"Question {self.id} has no option {option_id!r}")
        return option


def prepare_question(
    question: Question,
    course_id: str | None = None,
    lesson_id: str | None = None,
) -> PreparedQuestion:
    """Resolve the correct option and shuffle with the question's seed."""
    marked = mark_correct_option(question)
    result = shuffle_options(marked.options, build_seed(marked.id, course_id, lesson_id))
    return PreparedQuestion(
        question=marked,
        shuffled_options=result.shuffled_options,
        mapping=result.mapping,
    )
