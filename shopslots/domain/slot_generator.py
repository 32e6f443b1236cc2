"""
Core business logic for generating bookable appointment start times.

Pure domain logic: no API calls, no database, no I/O. The caller supplies
the shop hours, the service duration and the start times of confirmed
bookings already fetched for the target date.
"""

from datetime import time
from typing import Iterable, List, Set

from .models import CandidateSlot, ShopHours, parse_time_of_day, truncate_to_minute


def normalize_busy_starts(busy_starts: Iterable["str | time"]) -> Set[str]:
    """Truncate busy start values to ``HH:MM`` labels."""
    return {truncate_to_minute(value) for value in busy_starts}


class SlotGenerator:
    """
    Generates the candidate start times for one shop day.

    Algorithm:
    1. Step hours from the opening hour up to (excluding) the closing hour
    2. Within each hour, step minutes from 0 by the service duration
    3. Keep a candidate only if its end does not pass closing time
       (ending exactly on a closing hour is allowed)
    4. Drop candidates whose start equals a busy start

    The minute components of opening and closing are not consulted by the
    hour loop, so a 09:30 opening still yields a 09:00 candidate.
    Busy bookings block only their own start instant.
    """

    def __init__(self, shop_hours: ShopHours):
        self.shop_hours = shop_hours

    def generate_slots(
        self,
        duration_minutes: int,
        busy_starts: Iterable["str | time"] = ()
    ) -> List[CandidateSlot]:
        """
        Generate ascending bookable start times.

        Args:
            duration_minutes: Service duration; also the spacing of candidates
            busy_starts: Start times of confirmed bookings on the same date

        Returns:
            List of CandidateSlot objects, ascending and without duplicates
        """
        busy = normalize_busy_starts(busy_starts)
        open_hour = self.shop_hours.open_hour
        close_hour = self.shop_hours.close_hour

        slots: List[CandidateSlot] = []

        for hour in range(open_hour, close_hour):
            for minute in range(0, 60, duration_minutes):
                if not self._ends_by_closing(hour, minute, duration_minutes, close_hour):
                    continue

                candidate = CandidateSlot(hour=hour, minute=minute)
                if candidate.label in busy:
                    continue

                slots.append(candidate)

        return slots

    @staticmethod
    def _ends_by_closing(
        hour: int,
        minute: int,
        duration_minutes: int,
        close_hour: int
    ) -> bool:
        """Check that [start, start + duration) ends no later than the closing hour."""
        end_minute = minute + duration_minutes
        end_hour = hour + end_minute // 60
        end_minute = end_minute % 60

        return end_hour < close_hour or (end_hour == close_hour and end_minute == 0)


def generate_slots(
    opening_time: "str | time",
    closing_time: "str | time",
    duration_minutes: int,
    busy_starts: Iterable["str | time"] = ()
) -> List[CandidateSlot]:
    """
    Compute bookable start times for a shop day.

    ``opening_time`` and ``closing_time`` accept ``time`` values or
    ``HH:MM[:SS]`` strings. A zero duration is rejected by ``range`` with
    ``ValueError`` and a negative one yields nothing; callers are expected
    to guard against both.
    """
    shop_hours = ShopHours(
        opening=parse_time_of_day(opening_time),
        closing=parse_time_of_day(closing_time),
    )
    return SlotGenerator(shop_hours).generate_slots(duration_minutes, busy_starts)
