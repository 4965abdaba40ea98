"""Unit tests for SchedulingRecord and its storage shape."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from review_engine.core.records import SchedulingRecord, as_utc, parse_timestamp, to_epoch_ms


class TestSchedulingRecord:
    def test_next_due_is_derived(self, now):
        record = SchedulingRecord(interval_days=6, last_reviewed_at=now)

        assert record.next_due_at == now + timedelta(days=6)
        assert record.ease_factor == 2.5
        assert record.repetitions == 0

    def test_zero_interval_is_due_at_review_time(self, now):
        assert SchedulingRecord(interval_days=0, last_reviewed_at=now).next_due_at == now

    def test_last_quality(self, now):
        assert SchedulingRecord(interval_days=1, last_reviewed_at=now).last_quality is None
        record = SchedulingRecord(interval_days=1, last_reviewed_at=now, quality_history=(2, 5))
        assert record.last_quality == 5
        assert record.review_count == 2

    def test_records_are_immutable(self, now):
        record = SchedulingRecord(interval_days=1, last_reviewed_at=now)

        with pytest.raises(AttributeError):
            record.interval_days = 3


class TestStorageShape:
    def test_to_dict_uses_epoch_milliseconds(self, now):
        record = SchedulingRecord(
            interval_days=1,
            last_reviewed_at=now,
            repetitions=1,
            quality_history=(4,),
        )

        data = record.to_dict()

        assert data["lastReview"] == int(now.timestamp() * 1000)
        assert data["nextReview"] - data["lastReview"] == 86_400_000
        assert data["quality"] == [4]
        assert data["easeFactor"] == 2.5

    def test_from_dict_ignores_stored_next_review(self, now):
        data = {
            "interval": 6,
            "easeFactor": 2.4,
            "repetitions": 2,
            "quality": [4, 5],
            "lastReview": int(now.timestamp() * 1000),
            "nextReview": 0,
        }

        record = SchedulingRecord.from_dict(data)

        assert record.next_due_at == now + timedelta(days=6)
        assert record.quality_history == (4, 5)
        assert record.ease_factor == 2.4

    def test_from_dict_accepts_snake_case_and_iso(self):
        record = SchedulingRecord.from_dict(
            {
                "interval_days": 3,
                "repetitions": 1,
                "last_reviewed_at": "2024-06-01T12:00:00+00:00",
            }
        )

        assert record.last_reviewed_at == datetime(2024, 6, 1, 12, tzinfo=UTC)
        assert record.ease_factor == 2.5
        assert record.quality_history == ()

    def test_from_dict_requires_last_review(self):
        with pytest.raises(ValueError):
            SchedulingRecord.from_dict({"interval": 1, "repetitions": 1})

    def test_round_trip_preserves_schedule(self, make_record):
        record = make_record(overdue_days=2, interval_days=6, repetitions=2)

        restored = SchedulingRecord.from_dict(record.to_dict())

        assert restored.next_due_at == record.next_due_at
        assert restored.repetitions == record.repetitions


class TestParseTimestamp:
    def test_naive_values_are_treated_as_utc(self):
        assert parse_timestamp(datetime(2024, 1, 1)).tzinfo is UTC
        assert parse_timestamp("2024-01-01T00:00:00").tzinfo is UTC

    def test_epoch_milliseconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=UTC)

    def test_unsupported_value(self):
        with pytest.raises(TypeError):
            parse_timestamp([2024])


class TestInvariants:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"interval_days": -3},
            {"ease_factor": 1.0},
            {"repetitions": -1},
            {"quality_history": (4, 6)},
            {"quality_history": (-1,)},
        ],
    )
    def test_out_of_range_fields_rejected(self, now, overrides):
        fields = {"interval_days": 1, "last_reviewed_at": now, **overrides}

        with pytest.raises(ValueError):
            SchedulingRecord(**fields)

    def test_minimum_values_accepted(self, now):
        record = SchedulingRecord(
            interval_days=0,
            last_reviewed_at=now,
            ease_factor=1.3,
            repetitions=0,
            quality_history=(0, 5),
        )

        assert record.ease_factor == 1.3

    def test_from_dict_rejects_corrupt_ease(self, now):
        data = {
            "interval": 10,
            "easeFactor": 1.0,
            "repetitions": 3,
            "quality": [4, 4, 4],
            "lastReview": int(now.timestamp() * 1000),
        }

        with pytest.raises(ValueError):
            SchedulingRecord.from_dict(data)

    def test_naive_review_time_is_normalized_to_utc(self):
        record = SchedulingRecord(interval_days=1, last_reviewed_at=datetime(2024, 6, 1, 12))

        assert record.last_reviewed_at == datetime(2024, 6, 1, 12, tzinfo=UTC)
        assert record.next_due_at.tzinfo is not None

    def test_history_list_is_stored_as_tuple(self, now):
        record = SchedulingRecord(interval_days=1, last_reviewed_at=now, quality_history=[3, 4])

        assert record.quality_history == (3, 4)


class TestTimeHelpers:
    def test_as_utc_handles_naive_and_offset_values(self):
        naive = datetime(2024, 6, 1, 12)
        tokyo = datetime(2024, 6, 1, 21, tzinfo=timezone(timedelta(hours=9)))

        assert as_utc(naive) == datetime(2024, 6, 1, 12, tzinfo=UTC)
        assert as_utc(tokyo) == datetime(2024, 6, 1, 12, tzinfo=UTC)
        assert as_utc(None).tzinfo is not None

    def test_to_epoch_ms_rounds(self):
        value = datetime(1970, 1, 1, 0, 0, 1, 999_600, tzinfo=UTC)

        assert to_epoch_ms(value) == 2000
