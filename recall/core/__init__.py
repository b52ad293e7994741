"""
Core Module - Shared records and the review-state store interface.

Components:
- models: Question, Option, ShuffleMapping
- store: ReviewStateStore protocol, QuestionStatusUpdate, ReviewStoreError
- platform_client: HTTP implementation of the store

Design Principle:
quiz/ and review/ import records from here rather than defining their own.
"""

from recall.core.models import Option, Question, ShuffleMapping, option_label
from recall.core.store import (
    QuestionStatus,
    QuestionStatusUpdate,
    ReviewStateStore,
    ReviewStoreError,
)

__all__ = [
    # Records
    "Option",
    "Question",
    "ShuffleMapping",
    "option_label",
    # Store
    "QuestionStatus",
    "QuestionStatusUpdate",
    "ReviewStateStore",
    "ReviewStoreError",
]
