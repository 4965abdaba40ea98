"""
Core Module - Shared scheduling data and classification.

Components:
- records: SchedulingRecord and SM-2 constants
- mastery: Due-ness, priority, and mastery tiers (MasteryTier)

Design Principle:
Nothing in core/ performs I/O or depends on the scheduler; delivery/
modules import from core/ rather than reimplementing these concepts.
"""

from review_engine.core.mastery import (
    MasteryTier,
    is_due,
    mastery_tier,
    overdue_days,
    priority,
)
from review_engine.core.records import (
    DEFAULT_CATEGORIES,
    INITIAL_EASE_FACTOR,
    MINIMUM_EASE_FACTOR,
    PASSING_QUALITY,
    SchedulingRecord,
)

__all__ = [
    # Records
    "SchedulingRecord",
    "DEFAULT_CATEGORIES",
    "INITIAL_EASE_FACTOR",
    "MINIMUM_EASE_FACTOR",
    "PASSING_QUALITY",
    # Classification
    "MasteryTier",
    "is_due",
    "mastery_tier",
    "overdue_days",
    "priority",
]
