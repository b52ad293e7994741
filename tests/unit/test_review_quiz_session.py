"""
Unit tests for review-mode quiz sessions.

Wrong options are eliminated one at a time until the learner finds the
correct one; correct answers are persisted through the review-state store.
"""

import pytest

from recall.core.store import QuestionStatus
from recall.quiz.normalize import normalize_question, normalize_questions
from recall.quiz.prepared import QuizStateError
from recall.quiz.session import AnswerState, ReviewQuizSession


@pytest.fixture
def questions(question_payloads):
    return normalize_questions(question_payloads)


@pytest.fixture
def session(questions):
    return ReviewQuizSession(questions, course_id="c1", lesson_id="l1")


class TestCheckAnswer:
    def test_incorrect_rejects_option(self, session):
        session.select("1")
        outcome = session.check_answer()

        assert outcome.correct is False
        assert outcome.attempts == 1
        assert session.current_progress.state == AnswerState.INCORRECT
        assert "1" in session.current_progress.rejected

    def test_recheck_does_not_count_attempt(self, session):
        session.select("1")
        first = session.check_answer()
        second = session.check_answer()

        assert first == second
        assert session.current_progress.attempts == 1

    def test_correct_is_terminal(self, session):
        session.select("0")
        assert session.check_answer().correct is True
        assert session.current_progress.state == AnswerState.CORRECT

        with pytest.raises(QuizStateError):
            session.select("1")

    def test_check_without_selection(self, session):
        with pytest.raises(QuizStateError):
            session.check_answer()

    def test_incorrect_outcome_carries_option_explanation(self, questions):
        session = ReviewQuizSession([questions[1]])
        session.select("a")
        outcome = session.check_answer()
        assert outcome.explanation == "Class A mask"
        assert outcome.original_index == 0


class TestTryAgain:
    def test_returns_to_unanswered(self, session):
        session.select("2")
        session.check_answer()
        session.try_again()

        progress = session.current_progress
        assert progress.state == AnswerState.UNANSWERED
        assert progress.selected_id is None
        assert progress.rejected == {"2"}

    def test_rejected_option_cannot_be_reselected(self, session):
        session.select("2")
        session.check_answer()
        session.try_again()

        with pytest.raises(QuizStateError):
            session.select("2")

    def test_rejected_option_hidden(self, session):
        session.select("2")
        session.check_answer()
        session.try_again()

        remaining = session.available_options()
        assert len(remaining) == 3
        assert "2" not in {o.id for o in remaining}

    def test_only_after_incorrect(self, session):
        with pytest.raises(QuizStateError):
            session.try_again()

    def test_attempts_accumulate(self, session):
        for wrong in ("3", "1"):
            session.select(wrong)
            session.check_answer()
            session.try_again()
        session.select("0")
        outcome = session.check_answer()

        assert outcome.correct is True
        assert outcome.attempts == 3


class TestFlagAndAdvance:
    def test_flag_requires_correct(self, session):
        with pytest.raises(QuizStateError):
            session.toggle_flag()

    def test_toggle_flag(self, session):
        session.select("0")
        session.check_answer()
        assert session.toggle_flag() is True
        assert session.toggle_flag() is False

    def test_advance_requires_correct(self, session):
        session.select("1")
        session.check_answer()
        with pytest.raises(QuizStateError):
            session.advance()

    def test_full_walkthrough(self, session):
        session.select("0")
        session.check_answer()
        session.toggle_flag()
        assert session.advance() is False
        assert session.current.id == "q2"

        session.select("c")
        session.check_answer()
        assert session.advance() is True

        assert session.current is None
        assert session.completed_count == 2
        summary = session.summary()
        assert summary.total_questions == 2
        assert summary.flagged_count == 1
        assert summary.attempts == {"q1": 1, "q2": 1}

    def test_no_question_after_finish(self, session):
        for option_id in ("0", "c"):
            session.select(option_id)
            session.check_answer()
            session.advance()
        with pytest.raises(QuizStateError):
            session.available_options()

    def test_empty_session(self):
        session = ReviewQuizSession([])
        assert session.current is None
        assert session.question_count == 0


class TestUngradedQuestions:
    @pytest.fixture
    def opinion_question(self):
        return normalize_question({"id": "poll", "question": "Opinion?", "options": ["Yes", "No"]})

    def test_ungraded_question_left_out(self, questions, opinion_question):
        session = ReviewQuizSession([opinion_question, questions[0]], course_id="c1")

        assert session.question_count == 1
        assert session.skipped_question_ids == ["poll"]
        assert session.current.id == "q1"
        assert "poll" not in session.progress

    def test_session_completes_around_ungraded_question(self, questions, opinion_question):
        session = ReviewQuizSession([questions[0], opinion_question], course_id="c1")
        session.select("0")
        session.check_answer()

        assert session.advance() is True
        assert session.current is None
        assert session.summary().total_questions == 1

    def test_only_ungraded_questions(self, opinion_question):
        session = ReviewQuizSession([opinion_question])

        assert session.current is None
        assert session.question_count == 0
        assert session.skipped_question_ids == ["poll"]


class TestPersistence:
    @pytest.mark.asyncio
    async def test_correct_answer_recorded_with_original_index(self, questions, recording_store):
        session = ReviewQuizSession(questions, course_id="c1", lesson_id="l1", store=recording_store)
        session.select("0")
        await session.check_and_record()

        course_id, updates = recording_store.status_updates[0]
        assert course_id == "c1"
        assert updates[0].to_dict() == {"id": "q1", "status": "correct", "selectedAnswer": 0}

    @pytest.mark.asyncio
    async def test_incorrect_answer_not_recorded(self, questions, recording_store):
        session = ReviewQuizSession(questions, course_id="c1", store=recording_store)
        session.select("1")
        await session.check_and_record()
        assert recording_store.status_updates == []

    @pytest.mark.asyncio
    async def test_recheck_records_once(self, questions, recording_store):
        session = ReviewQuizSession(questions, course_id="c1", store=recording_store)
        session.select("0")
        await session.check_and_record()
        await session.check_and_record()
        assert len(recording_store.status_updates) == 1

    @pytest.mark.asyncio
    async def test_flag_recorded(self, questions, recording_store):
        session = ReviewQuizSession(questions, course_id="c1", store=recording_store)
        session.select("0")
        await session.check_and_record()
        await session.toggle_flag_and_record()

        _, updates = recording_store.status_updates[-1]
        assert updates[0].status == QuestionStatus.CORRECT_FLAGGED

    @pytest.mark.asyncio
    async def test_store_failure_keeps_local_state(self, questions, failing_store):
        session = ReviewQuizSession(questions, course_id="c1", store=failing_store)
        session.select("0")
        outcome = await session.check_and_record()

        assert outcome.correct is True
        assert session.current_progress.state == AnswerState.CORRECT
        assert session.advance() is False
