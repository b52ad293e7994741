"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from recall.core.store import ReviewStoreError  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def capital_question_payload():
    """Question payload with string options and a zero-based correct index."""
    return {
        "id": "q1",
        "question": "What is the capital of France?",
        "options": ["Paris", "London", "Berlin", "Madrid"],
        "correct_index": 0,
        "explanation": "Paris has been the capital since 987.",
    }


@pytest.fixture
def subnet_question_payload():
    """Question payload with object options and per-option explanations."""
    return {
        "id": "q2",
        "question": "What is the default subnet mask for a Class C network?",
        "options": [
            {"id": "a", "text": "255.0.0.0"},
            {"id": "b", "text": "255.255.0.0"},
            {"id": "c", "text": "255.255.255.0"},
            {"id": "d", "text": "255.255.255.255"},
        ],
        "correctAnswer": "255.255.255.0",
        "explanation": '["Class A mask", "Class B mask", "Correct", "Host mask"]',
    }


@pytest.fixture
def question_payloads(capital_question_payload, subnet_question_payload):
    return [capital_question_payload, subnet_question_payload]


class RecordingStore:
    """In-memory review-state store that records every write."""

    def __init__(self, cards=None, questions=None, seconds_to_complete=None, fail_writes=False):
        self.cards = list(cards or [])
        self.questions = list(questions or [])
        self.seconds_to_complete = seconds_to_complete
        self.fail_writes = fail_writes
        self.schedule_updates = []
        self.status_updates = []

    async def fetch_due_flashcards(
        self, course_id, now, lessons=None, include_uploaded=False, uploaded_only=False
    ):
        return list(self.cards)

    async def update_flashcard_schedule(self, course_id, card_id, next_show_timestamp):
        if self.fail_writes:
            raise ReviewStoreError("backend unavailable")
        self.schedule_updates.append((course_id, card_id, next_show_timestamp))

    async def fetch_review_questions(self, course_id):
        return list(self.questions)

    async def update_question_status(self, course_id, updates):
        if self.fail_writes:
            raise ReviewStoreError("backend unavailable")
        self.status_updates.append((course_id, list(updates)))

    async def get_seconds_to_complete(self, course_id):
        return self.seconds_to_complete


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def failing_store():
    return RecordingStore(fail_writes=True)


@pytest.fixture
def make_store():
    """Factory for RecordingStore instances with custom contents."""
    return RecordingStore
