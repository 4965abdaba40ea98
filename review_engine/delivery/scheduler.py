"""
SM-2 Spaced Repetition Scheduler.

Implements:
- SM-2 algorithm for review intervals
- Per-user ease bonus, interval multiplier, and lapse interval policy

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall

On a lapse the ease factor is left unchanged and only the interval
shrinks, by ``lapse_new_interval``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from loguru import logger

from review_engine.config import DEFAULT_SRS_SETTINGS, SRSSettings
from review_engine.core.records import (
    INITIAL_EASE_FACTOR,
    MAX_QUALITY,
    MIN_QUALITY,
    MINIMUM_EASE_FACTOR,
    PASSING_QUALITY,
    SchedulingRecord,
    as_utc,
)


class InvalidQualityError(ValueError):
    """Raised when a quality rating is not an integer in 0..5."""

    pass


def validate_quality(quality: int) -> int:
    """
    Check a quality rating before it reaches the scheduler.

    Raises:
        InvalidQualityError: If quality is not an int in 0..5
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(f"Quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(
            f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return quality


def round_days(value: float) -> int:
    """Round to whole days, halves rounding up (2.5 -> 3)."""
    return math.floor(value + 0.5)


# =============================================================================
# SM-2 Algorithm
# =============================================================================


@dataclass
class SM2Config:
    """Fixed SM-2 constants. User-tunable values come from SRSSettings."""

    initial_easiness: float = INITIAL_EASE_FACTOR
    minimum_easiness: float = MINIMUM_EASE_FACTOR
    first_interval: int = 1  # Days for first review
    second_interval: int = 6  # Days for second review
    failed_first_interval: int = 0  # Same-day retry for a failed first exposure


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    The SuperMemo 2 algorithm calculates review intervals based on
    performance history. Each item has:
    - Easiness Factor (EF): How easy the item is (2.5 default, min 1.3)
    - Interval: Days until next review
    - Repetitions: Consecutive correct recalls
    """

    def __init__(
        self,
        settings: SRSSettings | None = None,
        config: SM2Config | None = None,
    ):
        """
        Initialize SM-2 scheduler.

        Args:
            settings: User settings (uses defaults if None)
            config: Custom SM-2 constants (uses defaults if None)
        """
        self.settings = settings or DEFAULT_SRS_SETTINGS
        self.config = config or SM2Config()

    def advance(
        self,
        record: SchedulingRecord | None,
        quality: int,
        now: datetime | None = None,
    ) -> SchedulingRecord:
        """
        Calculate the next scheduling state for an item.

        Args:
            record: Current record, or None on first exposure
            quality: Recall quality (0-5)
            now: Review timestamp (defaults to current UTC time)

        Returns:
            New SchedulingRecord; the input record is never modified

        Raises:
            InvalidQualityError: If quality is outside 0..5
        """
        validate_quality(quality)
        now = as_utc(now)

        if record is None:
            updated = self._first_exposure(quality, now)
        elif quality < PASSING_QUALITY:
            updated = self._lapse(record, quality, now)
        else:
            updated = self._success(record, quality, now)

        logger.debug(
            f"Advanced record: quality={quality}, reps={updated.repetitions}, "
            f"ef={updated.ease_factor:.2f}, interval={updated.interval_days}d"
        )
        return updated

    def _first_exposure(self, quality: int, now: datetime) -> SchedulingRecord:
        passed = quality >= PASSING_QUALITY
        return SchedulingRecord(
            interval_days=(
                self.config.first_interval if passed else self.config.failed_first_interval
            ),
            ease_factor=self.config.initial_easiness,
            repetitions=1 if passed else 0,
            quality_history=(quality,),
            last_reviewed_at=now,
        )

    def _lapse(
        self, record: SchedulingRecord, quality: int, now: datetime
    ) -> SchedulingRecord:
        new_interval = max(
            1, round_days(record.interval_days * self.settings.lapse_new_interval)
        )
        return SchedulingRecord(
            interval_days=new_interval,
            ease_factor=record.ease_factor,
            repetitions=0,
            quality_history=record.quality_history + (quality,),
            last_reviewed_at=now,
        )

    def _success(
        self, record: SchedulingRecord, quality: int, now: datetime
    ) -> SchedulingRecord:
        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)) + bonus
        ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        new_ef = max(
            self.config.minimum_easiness,
            record.ease_factor + ef_delta + self.settings.ease_bonus,
        )

        new_repetitions = record.repetitions + 1
        if new_repetitions == 1:
            base_interval = self.config.first_interval
        elif new_repetitions == 2:
            base_interval = self.config.second_interval
        else:
            base_interval = record.interval_days * new_ef

        new_interval = max(
            1, round_days(base_interval * self.settings.interval_multiplier)
        )

        return SchedulingRecord(
            interval_days=new_interval,
            ease_factor=new_ef,
            repetitions=new_repetitions,
            quality_history=record.quality_history + (quality,),
            last_reviewed_at=now,
        )


def advance(
    record: SchedulingRecord | None,
    quality: int,
    settings: SRSSettings | None = None,
    now: datetime | None = None,
) -> SchedulingRecord:
    """Advance a record with a one-off scheduler built from ``settings``."""
    return SM2Scheduler(settings).advance(record, quality, now=now)
