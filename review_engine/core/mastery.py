"""
Core Mastery Module.

Derives due-ness, queue priority, and a coarse mastery tier from a
scheduling record relative to "now". Everything here is a pure function
of its inputs; nothing touches storage or the clock unless ``now`` is
omitted.

Design:
- MasteryTier: Enum for categorizing an item's progress
- is_due / overdue_days / priority: ordering signals for the review queue
- mastery_tier: tier from repetition count and recent quality history
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from review_engine.core.records import PASSING_QUALITY, SchedulingRecord, as_utc

SECONDS_PER_DAY = 86_400

# Weight of each overdue day relative to the repetition deficit
OVERDUE_WEIGHT = 2.0
# Repetitions at which the "less mastered" bonus reaches zero
REPETITION_CEILING = 5

LEARNING_MAX_REPETITIONS = 2
REVIEW_MAX_REPETITIONS = 6
MASTERY_WINDOW = 3  # Recent qualities that must all pass to count as mastered


class MasteryTier(str, Enum):
    """
    Mastery tier categorization.

    Coarse stages of an item's life in the review cycle.
    """

    NEW = "new"  # Never reviewed, or lapsed back to zero
    LEARNING = "learning"  # 1-2 consecutive successes
    REVIEW = "review"  # 3-6 consecutive successes
    MASTERED = "mastered"  # 7+ with a clean recent history

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.title()

    @property
    def emoji(self) -> str:
        """Status emoji for CLI/UI display."""
        return {
            MasteryTier.NEW: "○",
            MasteryTier.LEARNING: "◔",
            MasteryTier.REVIEW: "◑",
            MasteryTier.MASTERED: "●",
        }[self]

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryTier.NEW: "dim",
            MasteryTier.LEARNING: "yellow",
            MasteryTier.REVIEW: "cyan",
            MasteryTier.MASTERED: "green",
        }[self]


# ============================================================================
# Due-ness and Priority
# ============================================================================


def is_due(record: SchedulingRecord | None, now: datetime | None = None) -> bool:
    """
    Check whether an item should be reviewed.

    Items without a record have never been scheduled and are never due;
    they enter the queue only once a record exists.
    """
    if record is None:
        return False
    now = as_utc(now)
    return record.next_due_at <= now


def overdue_days(record: SchedulingRecord | None, now: datetime | None = None) -> float:
    """
    Days elapsed past the scheduled due time.

    Returns:
        Fractional days overdue, 0.0 if not yet due or no record
    """
    if record is None:
        return 0.0
    now = as_utc(now)
    elapsed = (now - record.next_due_at).total_seconds() / SECONDS_PER_DAY
    return max(0.0, elapsed)


def priority(record: SchedulingRecord | None, now: datetime | None = None) -> float:
    """
    Calculate queue priority for an item.

    Formula: priority = overdue_days * 2 + max(0, 5 - repetitions)

    Severely overdue and less-practised items sort first. Items without a
    record get the lowest priority (0).
    """
    if record is None:
        return 0.0
    deficit = max(0, REPETITION_CEILING - record.repetitions)
    return overdue_days(record, now) * OVERDUE_WEIGHT + deficit


# ============================================================================
# Mastery Tier
# ============================================================================


def mastery_tier(record: SchedulingRecord | None) -> MasteryTier:
    """
    Classify an item into a mastery tier.

    Args:
        record: Scheduling record, or None for never-reviewed items

    Returns:
        NEW for 0 repetitions, LEARNING for 1-2, REVIEW for 3-6, and
        MASTERED for 7+ when the last three qualities all passed
    """
    if record is None or record.repetitions == 0:
        return MasteryTier.NEW
    if record.repetitions <= LEARNING_MAX_REPETITIONS:
        return MasteryTier.LEARNING
    if record.repetitions <= REVIEW_MAX_REPETITIONS:
        return MasteryTier.REVIEW

    recent = record.quality_history[-MASTERY_WINDOW:]
    if all(q >= PASSING_QUALITY for q in recent):
        return MasteryTier.MASTERED

    # Imported records can carry a streak that disagrees with their history
    return MasteryTier.REVIEW
