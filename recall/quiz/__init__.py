"""
Quiz Module - correctness resolution, shuffling and quiz state machines.

Components:
- normalize: raw question payloads -> Question records
- resolver: which option is correct (ordered strategy chain)
- shuffler: seeded, reproducible option order (mulberry32 + Fisher-Yates)
- attempt: lesson quiz, submitted all at once
- session: review quiz, per-question checking with retries
"""

from recall.quiz.attempt import AttemptStatus, QuestionResult, QuizAttempt, SubmissionResult
from recall.quiz.normalize import normalize_question, normalize_questions
from recall.quiz.prepared import PreparedQuestion, QuizStateError, prepare_question
from recall.quiz.resolver import mark_correct_option, resolve_correct_option
from recall.quiz.session import AnswerState, CheckOutcome, ReviewQuizSession, ReviewSummary
from recall.quiz.shuffler import ShuffleResult, build_seed, shuffle_options, string_to_seed

__all__ = [
    "AnswerState",
    "AttemptStatus",
    "CheckOutcome",
    "PreparedQuestion",
    "QuestionResult",
    "QuizAttempt",
    "QuizStateError",
    "ReviewQuizSession",
    "ReviewSummary",
    "ShuffleResult",
    "SubmissionResult",
    "build_seed",
    "mark_correct_option",
    "normalize_question",
    "normalize_questions",
    "prepare_question",
    "resolve_correct_option",
    "shuffle_options",
    "string_to_seed",
]
