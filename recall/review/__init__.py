"""
Review Module - spaced-repetition scheduling for flashcards.
"""

from recall.review.flashcards import (
    Flashcard,
    FlashcardReviewSession,
    RatingOutcome,
    filter_due,
    load_flashcard_session,
)
from recall.review.intervals import (
    InvalidTierError,
    ReviewTier,
    compute_review_interval,
    confidence_intervals,
    format_interval,
    next_show_timestamp,
)

__all__ = [
    "Flashcard",
    "FlashcardReviewSession",
    "InvalidTierError",
    "RatingOutcome",
    "ReviewTier",
    "compute_review_interval",
    "confidence_intervals",
    "filter_due",
    "format_interval",
    "load_flashcard_session",
    "next_show_timestamp",
]
