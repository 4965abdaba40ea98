"""
Review delivery: scheduling, queue building, and review sessions.

Components:
- SM2Scheduler: Spaced repetition algorithm
- review_queue: Cross-category review queue with daily cap and urgency
- ReviewSessionController: Session state machine over a queue batch
- cli: Developer terminal interface
"""

from .review_queue import (
    QueueEntry,
    ReviewQueue,
    UrgencyLevel,
    build_category_queue,
    build_review_queue,
    next_review_batch,
)
from .scheduler import InvalidQualityError, SM2Scheduler, advance
from .session import (
    ReviewSessionController,
    SessionCompleteError,
    SessionState,
    SessionStats,
    SessionStatus,
    SubmitResult,
)

__all__ = [
    # Scheduling
    "SM2Scheduler",
    "InvalidQualityError",
    "advance",
    # Queue
    "QueueEntry",
    "ReviewQueue",
    "UrgencyLevel",
    "build_review_queue",
    "build_category_queue",
    "next_review_batch",
    # Sessions
    "ReviewSessionController",
    "SessionCompleteError",
    "SessionState",
    "SessionStats",
    "SessionStatus",
    "SubmitResult",
]
