"""
Tests for the slot generator.
"""

from datetime import time

import pytest

from shopslots.domain.models import ShopHours, labels
from shopslots.domain.slot_generator import SlotGenerator, generate_slots, normalize_busy_starts


def _minutes(label: str) -> int:
    hour, minute = label.split(":")
    return int(hour) * 60 + int(minute)


class TestGenerateSlots:
    """Tests for the generate_slots contract."""

    def test_full_day_hourly_slots(self):
        """Test a 09:00-18:00 day with hourly service and no bookings."""
        slots = generate_slots("09:00", "18:00", 60, set())

        assert labels(slots) == [
            "09:00", "10:00", "11:00", "12:00", "13:00",
            "14:00", "15:00", "16:00", "17:00",
        ]

    def test_busy_start_is_excluded(self):
        """Test that a confirmed booking start removes that slot."""
        slots = generate_slots("09:00", "18:00", 60, {"11:00"})

        assert "11:00" not in labels(slots)
        assert len(slots) == 8

    def test_opening_minutes_are_ignored(self):
        """Test that a 09:30 opening still starts generating at 09:00."""
        slots = generate_slots("09:30", "18:00", 60, set())

        assert slots[0].label == "09:00"
        assert len(slots) == 9

    def test_slot_overrunning_closing_hour_is_rejected(self):
        """Test that 09:45 + 45 min = 10:30 is rejected for a 10:00 closing."""
        slots = generate_slots("09:00", "10:00", 45, set())

        assert labels(slots) == ["09:00"]

    def test_half_hour_slots_end_exactly_at_closing(self):
        """Test that a slot ending exactly at closing time is kept."""
        slots = generate_slots("09:00", "11:00", 30, set())

        assert labels(slots) == ["09:00", "09:30", "10:00", "10:30"]

    def test_closing_minutes_bound_by_hour(self):
        """Test that a 17:30 closing only admits slots ending by 17:00."""
        slots = generate_slots("09:00", "17:30", 60, set())

        assert labels(slots)[-1] == "16:00"
        assert len(slots) == 8

    def test_duration_longer_than_an_hour(self):
        """Test durations above 60 minutes only produce on-the-hour starts."""
        slots = generate_slots("09:00", "12:00", 75, set())

        assert labels(slots) == ["09:00", "10:00"]

    def test_ninety_minute_service(self):
        """Test that 17:00 + 90 min is rejected for an 18:00 closing."""
        slots = generate_slots("09:00", "18:00", 90, set())

        assert labels(slots) == [
            "09:00", "10:00", "11:00", "12:00",
            "13:00", "14:00", "15:00", "16:00",
        ]

    def test_opening_equals_closing_is_empty(self):
        """Test that an empty business day yields no slots."""
        assert generate_slots("09:00", "09:00", 30, set()) == []

    def test_closing_before_opening_is_empty(self):
        """Test that inverted hours yield no slots."""
        assert generate_slots("18:00", "09:00", 30, set()) == []

    def test_same_hour_window_is_empty(self):
        """Test that a window inside one hour yields no slots."""
        assert generate_slots("09:00", "09:45", 15, set()) == []

    def test_all_slots_busy(self):
        """Test that every start being busy yields no slots."""
        busy = {"09:00", "10:00"}

        assert generate_slots("09:00", "11:00", 60, busy) == []

    def test_busy_starts_with_seconds_and_time_values(self):
        """Test that busy values are truncated to HH:MM before matching."""
        slots = generate_slots("09:00", "13:00", 60, ["10:00:00", time(12, 0, 30)])

        assert labels(slots) == ["09:00", "11:00"]

    def test_busy_start_off_grid_does_not_block(self):
        """Test that only exact start matches are excluded."""
        slots = generate_slots("09:00", "12:00", 60, {"09:30"})

        assert labels(slots) == ["09:00", "10:00", "11:00"]

    def test_accepts_time_objects(self):
        """Test opening and closing given as time values."""
        slots = generate_slots(time(14, 0), time(16, 0), 60)

        assert labels(slots) == ["14:00", "15:00"]

    def test_zero_duration_is_rejected_by_range(self):
        """Test that a zero duration is not silently looped."""
        with pytest.raises(ValueError):
            generate_slots("09:00", "18:00", 0, set())

    def test_negative_duration_yields_nothing(self):
        """Test that a negative duration produces an empty result."""
        assert generate_slots("09:00", "18:00", -30, set()) == []

    @pytest.mark.parametrize("duration", [10, 15, 20, 30, 45, 60, 90, 120])
    def test_result_properties(self, duration):
        """Test ordering, uniqueness, closing bound and busy exclusion."""
        busy = {"10:00", "12:30", "15:45"}
        slots = generate_slots("08:00", "17:00", duration, busy)
        slot_labels = labels(slots)

        assert slot_labels == sorted(slot_labels)
        assert len(set(slot_labels)) == len(slot_labels)
        assert slots == sorted(slots)
        for label in slot_labels:
            assert _minutes(label) + duration <= _minutes("17:00")
            assert label not in busy

    @pytest.mark.parametrize("duration", [10, 15, 20, 30, 60])
    def test_slot_count_for_even_divisions(self, duration):
        """Test the count when the day divides evenly into the duration."""
        slots = generate_slots("09:00", "17:00", duration, set())

        assert len(slots) == (17 - 9) * 60 // duration

    def test_deterministic(self):
        """Test that repeated calls give identical results."""
        first = generate_slots("09:00", "18:00", 45, {"10:30"})
        second = generate_slots("09:00", "18:00", 45, {"10:30"})

        assert first == second


class TestSlotGenerator:
    """Tests for the SlotGenerator class."""

    def test_generator_reuses_shop_hours(self):
        """Test generating slots for different services of the same shop."""
        generator = SlotGenerator(ShopHours.from_strings("09:00:00", "12:00:00"))

        assert labels(generator.generate_slots(60)) == ["09:00", "10:00", "11:00"]
        assert labels(generator.generate_slots(90, ["10:00"])) == ["09:00"]

    def test_normalize_busy_starts(self):
        """Test busy start normalisation."""
        assert normalize_busy_starts(["09:00:00", "09:30", time(11, 15)]) == {
            "09:00", "09:30", "11:15",
        }
