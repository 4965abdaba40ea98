"""
Review Sessions.

Runs a fixed batch of queue entries one at a time:
- start() snapshots the batch and zeroes the counters
- submit() rates the current entry, reschedules it, and advances
- stats() projects accuracy, timing, and per-category results

A session is either IN_PROGRESS or COMPLETE. States are immutable;
submit() returns the next state instead of mutating the old one.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, NamedTuple

from loguru import logger

from review_engine.config import DEFAULT_SRS_SETTINGS, SRSSettings
from review_engine.core.records import (
    MAX_QUALITY,
    MIN_QUALITY,
    PASSING_QUALITY,
    SchedulingRecord,
    as_utc,
    to_epoch_ms,
)
from review_engine.delivery.review_queue import QueueEntry
from review_engine.delivery.scheduler import SM2Scheduler, validate_quality


class SessionCompleteError(RuntimeError):
    """Raised when submitting to a session with no current entry."""

    pass


class SessionStatus(Enum):
    """Lifecycle of a review session."""

    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class CompletedReview:
    """A reviewed entry with the record it was rescheduled to."""

    entry: QueueEntry
    record: SchedulingRecord
    quality: int
    response_ms: int


@dataclass(frozen=True)
class SessionState:
    """Snapshot of a review session."""

    session_id: str
    items: tuple[QueueEntry, ...]
    started_at: datetime
    current_index: int = 0
    completed: tuple[CompletedReview, ...] = ()
    correct: int = 0
    incorrect: int = 0
    total_time_ms: int = 0

    @property
    def status(self) -> SessionStatus:
        if self.current_index >= len(self.items):
            return SessionStatus.COMPLETE
        return SessionStatus.IN_PROGRESS

    @property
    def is_complete(self) -> bool:
        return self.status == SessionStatus.COMPLETE

    @property
    def current_entry(self) -> QueueEntry | None:
        """The entry awaiting a rating, or None once complete."""
        if self.is_complete:
            return None
        return self.items[self.current_index]

    @property
    def remaining(self) -> int:
        return max(0, len(self.items) - self.current_index)


class SubmitResult(NamedTuple):
    """Outcome of rating one entry."""

    session: SessionState
    record: SchedulingRecord
    is_complete: bool


@dataclass
class CategoryTally:
    """Reviewed/correct counts for one category."""

    reviewed: int = 0
    correct: int = 0


@dataclass
class SessionStats:
    """Summary statistics for a review session."""

    accuracy: float
    avg_response_ms: float
    total_items: int
    correct: int
    incorrect: int
    duration: timedelta
    category_breakdown: dict[str, CategoryTally] = field(default_factory=dict)
    grade_distribution: dict[int, int] = field(default_factory=dict)
    meets_required_accuracy: bool = False

    @property
    def duration_minutes(self) -> float:
        return self.duration.total_seconds() / 60

    def to_dict(self) -> dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "avg_response_ms": self.avg_response_ms,
            "total_items": self.total_items,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "duration_seconds": self.duration.total_seconds(),
            "category_breakdown": {
                name: {"reviewed": tally.reviewed, "correct": tally.correct}
                for name, tally in self.category_breakdown.items()
            },
            "grade_distribution": dict(self.grade_distribution),
            "meets_required_accuracy": self.meets_required_accuracy,
        }


def _new_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:12]}"


# =============================================================================
# Session Controller
# =============================================================================


class ReviewSessionController:
    """
    Drives review sessions over batches from the review queue.

    The controller holds no session state of its own. Callers keep the
    SessionState they receive and pass it back on every call.
    """

    def __init__(
        self,
        settings: SRSSettings | None = None,
        scheduler: SM2Scheduler | None = None,
    ):
        """
        Initialize the controller.

        Args:
            settings: User settings (uses defaults if None)
            scheduler: SM2Scheduler (built from settings if None)
        """
        self.settings = settings or DEFAULT_SRS_SETTINGS
        self.scheduler = scheduler or SM2Scheduler(self.settings)

    def start(
        self,
        batch: Sequence[QueueEntry],
        max_batch_size: int | None = None,
        now: datetime | None = None,
    ) -> SessionState:
        """
        Start a new review session.

        The batch must already be filtered and ordered; only the first
        ``max_batch_size`` entries are taken.

        Raises:
            ValueError: If max_batch_size is not positive
        """
        size = self.settings.session_batch_size if max_batch_size is None else max_batch_size
        if size <= 0:
            raise ValueError(f"Batch size must be positive, got {size}")

        session = SessionState(
            session_id=_new_session_id(),
            items=tuple(batch[:size]),
            started_at=as_utc(now),
        )

        logger.info(f"Session {session.session_id} started with {len(session.items)} items")
        return session

    def submit(
        self,
        session: SessionState,
        quality: int,
        response_time_ms: int,
        now: datetime | None = None,
    ) -> SubmitResult:
        """
        Rate the current entry and advance the session.

        Args:
            session: Current session state
            quality: Recall quality (0-5)
            response_time_ms: Time the user took to answer
            now: Review timestamp (defaults to current UTC time)

        Returns:
            SubmitResult with the next state, the updated record to persist,
            and whether the session is now complete

        Raises:
            SessionCompleteError: If the session has no current entry
            InvalidQualityError: If quality is outside 0..5
        """
        entry = session.current_entry
        if entry is None:
            raise SessionCompleteError(
                f"Session {session.session_id} is complete; nothing to submit"
            )
        validate_quality(quality)

        record = self.scheduler.advance(entry.record, quality, now=now)
        is_correct = quality >= PASSING_QUALITY

        next_session = replace(
            session,
            current_index=session.current_index + 1,
            completed=session.completed
            + (CompletedReview(entry, record, quality, response_time_ms),),
            correct=session.correct + (1 if is_correct else 0),
            incorrect=session.incorrect + (0 if is_correct else 1),
            total_time_ms=session.total_time_ms + response_time_ms,
        )

        if next_session.is_complete:
            logger.info(
                f"Session {session.session_id} complete: "
                f"{next_session.correct}/{len(next_session.completed)} correct"
            )

        return SubmitResult(next_session, record, next_session.is_complete)

    def stats(self, session: SessionState, now: datetime | None = None) -> SessionStats:
        """
        Calculate session statistics.

        Per-category correctness is taken from the last quality recorded on
        each updated record.
        """
        now = as_utc(now)
        total = len(session.completed)

        accuracy = session.correct / total if total > 0 else 0.0
        avg_response_ms = session.total_time_ms / total if total > 0 else 0.0

        breakdown: dict[str, CategoryTally] = {}
        for entry in session.items:
            breakdown.setdefault(entry.category, CategoryTally())

        distribution = {q: 0 for q in range(MIN_QUALITY, MAX_QUALITY + 1)}

        for review in session.completed:
            tally = breakdown.setdefault(review.entry.category, CategoryTally())
            tally.reviewed += 1
            last_quality = review.record.last_quality
            if last_quality is not None and last_quality >= PASSING_QUALITY:
                tally.correct += 1
            distribution[review.quality] += 1

        return SessionStats(
            accuracy=accuracy,
            avg_response_ms=avg_response_ms,
            total_items=total,
            correct=session.correct,
            incorrect=session.incorrect,
            duration=now - session.started_at,
            category_breakdown=breakdown,
            grade_distribution=distribution,
            meets_required_accuracy=total > 0
            and accuracy >= self.settings.required_accuracy,
        )

    def summarize(self, session: SessionState, now: datetime | None = None) -> dict[str, Any]:
        """
        Build the per-session analytics record in its stored shape.

        ``completedAt`` is only set once the session is complete.
        """
        now = as_utc(now)
        stats = self.stats(session, now)
        return {
            "sessionId": session.session_id,
            "startedAt": to_epoch_ms(session.started_at),
            "completedAt": to_epoch_ms(now) if session.is_complete else None,
            "itemsReviewed": stats.total_items,
            "accuracy": stats.accuracy,
            "moduleBreakdown": {
                name: {"reviewed": tally.reviewed, "correct": tally.correct}
                for name, tally in stats.category_breakdown.items()
            },
        }


# =============================================================================
# Convenience Functions
# =============================================================================


def start_session(
    batch: Sequence[QueueEntry],
    max_batch_size: int = 20,
    now: datetime | None = None,
) -> SessionState:
    """Start a session with default settings."""
    return ReviewSessionController().start(batch, max_batch_size, now=now)


def submit_answer(
    session: SessionState,
    quality: int,
    response_time_ms: int,
    settings: SRSSettings | None = None,
    now: datetime | None = None,
) -> SubmitResult:
    """Submit a rating with a controller built from ``settings``."""
    return ReviewSessionController(settings).submit(session, quality, response_time_ms, now=now)


def session_stats(session: SessionState, now: datetime | None = None) -> SessionStats:
    """Calculate session statistics with default settings."""
    return ReviewSessionController().stats(session, now)
