from recall.db.review_store import SqlReviewStore

__all__ = ["SqlReviewStore"]
