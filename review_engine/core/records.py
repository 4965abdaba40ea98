"""
Scheduling records for the review engine.

A SchedulingRecord is the only persisted scheduling state per learned item.
The engine returns new records and never mutates existing ones; storage
lives with the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

# =============================================================================
# SM-2 Constants
# =============================================================================

INITIAL_EASE_FACTOR = 2.5
MINIMUM_EASE_FACTOR = 1.3

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3  # quality >= 3 counts as a successful recall

# Categories the product ships with. The engine accepts any string.
DEFAULT_CATEGORIES: tuple[str, ...] = (
    "vocabulary",
    "kanji",
    "grammar",
    "reading",
    "listening",
)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime | None = None) -> datetime:
    """
    Normalize a reference time to aware UTC.

    None means "now"; naive datetimes are taken to already be UTC.
    """
    if value is None:
        return utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: Any) -> datetime:
    """Parse epoch milliseconds, ISO strings, or datetimes into aware UTC."""
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, str):
        return as_utc(datetime.fromisoformat(value))
    raise TypeError(f"Unsupported timestamp value: {value!r}")


def to_epoch_ms(value: datetime) -> int:
    """Epoch milliseconds, the timestamp unit of the stored shape."""
    return int(round(value.timestamp() * 1000))


@dataclass(frozen=True)
class SchedulingRecord:
    """SM-2 scheduling state for a single item, for a single user."""

    interval_days: float
    last_reviewed_at: datetime
    ease_factor: float = INITIAL_EASE_FACTOR
    repetitions: int = 0  # Consecutive successes since the last lapse
    quality_history: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """
        Enforce record invariants.

        Raises:
            ValueError: If any field is outside its valid range
        """
        if self.interval_days < 0:
            raise ValueError(f"interval_days must be >= 0, got {self.interval_days}")
        if self.ease_factor < MINIMUM_EASE_FACTOR:
            raise ValueError(
                f"ease_factor must be >= {MINIMUM_EASE_FACTOR}, got {self.ease_factor}"
            )
        if self.repetitions < 0:
            raise ValueError(f"repetitions must be >= 0, got {self.repetitions}")

        history = tuple(self.quality_history)
        for quality in history:
            if not MIN_QUALITY <= quality <= MAX_QUALITY:
                raise ValueError(
                    f"quality_history values must be in {MIN_QUALITY}..{MAX_QUALITY}, "
                    f"got {quality}"
                )

        # Frozen: normalize through object.__setattr__
        object.__setattr__(self, "quality_history", history)
        object.__setattr__(self, "last_reviewed_at", as_utc(self.last_reviewed_at))

    @property
    def next_due_at(self) -> datetime:
        """When the item is next due. Always derived, never stored independently."""
        return self.last_reviewed_at + timedelta(days=self.interval_days)

    @property
    def last_quality(self) -> int | None:
        """Most recent recorded quality, if any."""
        if not self.quality_history:
            return None
        return self.quality_history[-1]

    @property
    def review_count(self) -> int:
        return len(self.quality_history)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the persisted storage shape.

        Timestamps are epoch milliseconds; ``nextReview`` is included for
        readers that query on it but is ignored by ``from_dict``.
        """
        return {
            "interval": self.interval_days,
            "easeFactor": self.ease_factor,
            "repetitions": self.repetitions,
            "quality": list(self.quality_history),
            "lastReview": to_epoch_ms(self.last_reviewed_at),
            "nextReview": to_epoch_ms(self.next_due_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchedulingRecord:
        """Create from the persisted storage shape (camelCase or snake_case keys)."""
        last_review = data.get("lastReview", data.get("last_reviewed_at"))
        if last_review is None:
            raise ValueError("Scheduling record is missing its last review timestamp")

        return cls(
            interval_days=float(data.get("interval", data.get("interval_days", 0))),
            ease_factor=float(
                data.get("easeFactor", data.get("ease_factor", INITIAL_EASE_FACTOR))
            ),
            repetitions=int(data.get("repetitions", 0)),
            quality_history=tuple(
                int(q) for q in data.get("quality", data.get("quality_history", ()))
            ),
            last_reviewed_at=parse_timestamp(last_review),
        )
