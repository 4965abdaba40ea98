"""
Review queue builder across content categories.

Builds the unified review queue by:
1. Collecting learned items that have a scheduling record and are due
2. Scoring each with a priority and mastery tier
3. Sorting by priority (stable, earlier due date wins ties)
4. Applying the daily review cap
5. Summarizing urgency and estimated time
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from loguru import logger

from review_engine.config import DEFAULT_SRS_SETTINGS, SRSSettings
from review_engine.core.mastery import MasteryTier, is_due, mastery_tier, priority
from review_engine.core.records import DEFAULT_CATEGORIES, SchedulingRecord, as_utc

# Average time per review item in seconds
AVG_SECONDS_PER_ITEM = 8

OVERDUE_AFTER = timedelta(hours=24)
UPCOMING_WITHIN = timedelta(hours=72)

DEFAULT_BATCH_SIZE = 20

# (item_id, record or None) as supplied by the content catalog
CategoryItems = Iterable[tuple[str, SchedulingRecord | None]]


class UrgencyLevel(str, Enum):
    """How pressing the current due set is."""

    OVERDUE = "overdue"  # Something has waited more than a day
    DUE = "due"
    UPCOMING = "upcoming"  # Due within three days
    NONE = "none"


@dataclass(frozen=True)
class QueueEntry:
    """A due item with its ordering signals. Derived, never persisted."""

    item_id: str
    category: str
    record: SchedulingRecord | None
    priority: float
    due_at: datetime | None
    mastery_tier: MasteryTier


@dataclass
class ReviewQueue:
    """A built review queue."""

    total: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    urgency: UrgencyLevel = UrgencyLevel.NONE
    estimated_minutes: int = 0
    items: list[QueueEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain mapping for the presentation layer."""
        return {
            "total": self.total,
            "by_category": dict(self.by_category),
            "urgency": self.urgency.value,
            "estimated_minutes": self.estimated_minutes,
            "items": [
                {
                    "id": entry.item_id,
                    "category": entry.category,
                    "priority": entry.priority,
                    "due_at": entry.due_at.isoformat() if entry.due_at else None,
                    "mastery_tier": entry.mastery_tier.value,
                }
                for entry in self.items
            ],
        }


# =============================================================================
# Entry Construction
# =============================================================================


def build_entry(
    item_id: str,
    category: str,
    record: SchedulingRecord | None,
    now: datetime | None = None,
) -> QueueEntry:
    """Build a queue entry with its computed priority and mastery tier."""
    now = as_utc(now)
    return QueueEntry(
        item_id=item_id,
        category=category,
        record=record,
        priority=priority(record, now),
        due_at=record.next_due_at if record else None,
        mastery_tier=mastery_tier(record),
    )


def items_from_learned(
    learned_ids: Iterable[str],
    reviews: Mapping[str, SchedulingRecord | dict[str, Any]] | None = None,
) -> list[tuple[str, SchedulingRecord | None]]:
    """
    Pair learned item IDs with their records.

    Accepts records either as SchedulingRecord objects or in their stored
    dict shape. Learned items without a record pair with None.
    """
    reviews = reviews or {}
    pairs: list[tuple[str, SchedulingRecord | None]] = []
    for item_id in learned_ids:
        raw = reviews.get(item_id)
        if raw is None or isinstance(raw, SchedulingRecord):
            pairs.append((item_id, raw))
        else:
            pairs.append((item_id, SchedulingRecord.from_dict(raw)))
    return pairs


def _collect_due(
    category: str,
    items: CategoryItems,
    now: datetime,
) -> list[QueueEntry]:
    due: list[QueueEntry] = []
    for item_id, record in items:
        if record is None:
            logger.debug(f"Skipping {category}/{item_id}: learned but no scheduling record")
            continue
        if is_due(record, now):
            due.append(build_entry(item_id, category, record, now))
    return due


def _sort_and_cap(entries: list[QueueEntry], settings: SRSSettings) -> list[QueueEntry]:
    # Stable sort: highest priority first, earlier due date first on ties
    ordered = sorted(entries, key=lambda e: (-e.priority, e.due_at))
    limit = settings.daily_review_limit
    if limit > 0:
        return ordered[:limit]
    return ordered


# =============================================================================
# Summaries
# =============================================================================


def estimate_review_minutes(item_count: int) -> int:
    """Estimated time to complete ``item_count`` reviews, in whole minutes."""
    return math.ceil(item_count * AVG_SECONDS_PER_ITEM / 60)


def classify_urgency(
    entries: Sequence[QueueEntry],
    now: datetime | None = None,
) -> UrgencyLevel:
    """
    Get urgency level based on overdue status.

    OVERDUE if anything has waited more than 24h, DUE if anything is due
    now, UPCOMING if anything is due within 72h, otherwise NONE.
    """
    if not entries:
        return UrgencyLevel.NONE

    now = as_utc(now)
    due_dates = [e.due_at for e in entries if e.due_at is not None]

    if any(d < now - OVERDUE_AFTER for d in due_dates):
        return UrgencyLevel.OVERDUE
    if any(d <= now for d in due_dates):
        return UrgencyLevel.DUE
    if any(d <= now + UPCOMING_WITHIN for d in due_dates):
        return UrgencyLevel.UPCOMING
    return UrgencyLevel.NONE


def _make_queue(
    entries: list[QueueEntry],
    by_category: dict[str, int],
    now: datetime,
) -> ReviewQueue:
    return ReviewQueue(
        total=len(entries),
        by_category=by_category,
        urgency=classify_urgency(entries, now),
        estimated_minutes=estimate_review_minutes(len(entries)),
        items=entries,
    )


# =============================================================================
# Queue Builders
# =============================================================================


def build_review_queue(
    items_by_category: Mapping[str, CategoryItems],
    now: datetime | None = None,
    settings: SRSSettings | None = None,
) -> ReviewQueue:
    """
    Get all items due for review across all categories.

    Args:
        items_by_category: Category -> (item_id, record or None) pairs
        now: Reference time (defaults to current UTC time)
        settings: User settings (uses defaults if None)

    Returns:
        ReviewQueue sorted by priority and capped at the daily limit.
        ``by_category`` counts due items before the cap is applied.
    """
    now = as_utc(now)
    settings = settings or DEFAULT_SRS_SETTINGS

    entries: list[QueueEntry] = []
    by_category: dict[str, int] = {}

    for category, items in items_by_category.items():
        due = _collect_due(category, items, now)
        by_category[category] = len(due)
        entries.extend(due)

    limited = _sort_and_cap(entries, settings)
    queue = _make_queue(limited, by_category, now)

    logger.info(
        f"Review queue built: {len(entries)} due, {queue.total} queued "
        f"(urgency={queue.urgency.value}, ~{queue.estimated_minutes} min)"
    )
    return queue


def build_category_queue(
    category: str,
    items: CategoryItems | None,
    now: datetime | None = None,
    settings: SRSSettings | None = None,
    categories: Iterable[str] = DEFAULT_CATEGORIES,
) -> ReviewQueue:
    """
    Get the review queue for a single category.

    Counts are reported after the daily cap, with zero for every other
    category in ``categories``.
    """
    now = as_utc(now)
    settings = settings or DEFAULT_SRS_SETTINGS

    by_category = {name: 0 for name in categories}
    by_category.setdefault(category, 0)

    if items is None:
        return ReviewQueue(by_category=by_category)

    limited = _sort_and_cap(_collect_due(category, items, now), settings)
    by_category[category] = len(limited)

    logger.debug(f"Category queue built for {category}: {len(limited)} queued")
    return _make_queue(limited, by_category, now)


# =============================================================================
# Selection Helpers
# =============================================================================


def filter_by_category(
    entries: Iterable[QueueEntry],
    categories: Iterable[str],
) -> list[QueueEntry]:
    """Keep entries whose category is selected, preserving order."""
    selected = set(categories)
    return [entry for entry in entries if entry.category in selected]


def next_review_batch(
    queue: ReviewQueue,
    batch_size: int = DEFAULT_BATCH_SIZE,
    categories: Iterable[str] | None = None,
) -> list[QueueEntry]:
    """
    Get the next batch of entries for a review session.

    Args:
        queue: A built review queue
        batch_size: Maximum entries to return
        categories: Optional category filter (None or empty = all)

    Returns:
        Up to ``batch_size`` entries in queue order
    """
    items = queue.items
    if categories:
        items = filter_by_category(items, categories)
    return list(items[:batch_size])


def count_by_mastery(entries: Iterable[QueueEntry]) -> dict[MasteryTier, int]:
    """Get entry counts per mastery tier (every tier present)."""
    counts = {tier: 0 for tier in MasteryTier}
    for entry in entries:
        counts[entry.mastery_tier] += 1
    return counts


def should_remind(queue: ReviewQueue, settings: SRSSettings | None = None) -> bool:
    """Check if the user should be reminded about reviews."""
    settings = settings or DEFAULT_SRS_SETTINGS
    if not settings.review_reminders:
        return False
    if queue.total < settings.reminder_threshold:
        return False
    return queue.urgency != UrgencyLevel.NONE


def select_new_items(
    candidate_ids: Sequence[str],
    introduced_today: int = 0,
    settings: SRSSettings | None = None,
) -> list[str]:
    """
    Pick new items to introduce within today's remaining quota.

    Args:
        candidate_ids: Unlearned item IDs in presentation order
        introduced_today: New items already introduced today
        settings: User settings (uses defaults if None)

    Returns:
        The first candidates that fit under ``daily_new_items_limit``
    """
    settings = settings or DEFAULT_SRS_SETTINGS
    remaining = max(0, settings.daily_new_items_limit - introduced_today)
    return list(candidate_ids[:remaining])
