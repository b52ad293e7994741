"""
recall-core - quiz answer resolution, seeded option shuffling and
spaced-repetition scheduling for course review.

Subpackages:
- core: shared records (Question, Option, ShuffleMapping) and the review-state store
- quiz: correctness resolver, option shuffler, quiz/review state machines
- review: interval calculator and flashcard review sessions
- db: local SQLAlchemy-backed review-state store
- cli: the `recall` terminal front end
"""

__version__ = "1.0.0"
