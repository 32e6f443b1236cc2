"""
Domain models for shop hours, bookable slots and backend records.
"""

from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import Date


def parse_time_of_day(value: "str | time") -> time:
    """
    Parse a wall-clock value such as ``09:00`` or ``09:00:00``.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return value
    return time.fromisoformat(value.strip())


def format_time_of_day(value: time) -> str:
    """Format a time as ``HH:MM`` (seconds are dropped)."""
    return f"{value.hour:02d}:{value.minute:02d}"


def truncate_to_minute(value: "str | time") -> str:
    """Truncate a backend time value (``10:30:00``) to ``HH:MM``."""
    return format_time_of_day(parse_time_of_day(value))


def parse_booking_date(value: "str | Date") -> Date:
    """Parse a ``YYYY-MM-DD`` booking date."""
    if isinstance(value, Date):
        return value
    return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class ShopStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class ShopHours:
    """
    Opening and closing wall-clock times for one business day.

    Closing is assumed to be on the same day as opening. Only the hour
    components bound slot generation.
    """
    opening: time
    closing: time

    @property
    def open_hour(self) -> int:
        return self.opening.hour

    @property
    def close_hour(self) -> int:
        return self.closing.hour

    @classmethod
    def from_strings(cls, opening: str, closing: str) -> "ShopHours":
        return cls(opening=parse_time_of_day(opening), closing=parse_time_of_day(closing))

    def __str__(self) -> str:
        return f"{format_time_of_day(self.opening)} - {format_time_of_day(self.closing)}"


@dataclass(frozen=True, order=True)
class CandidateSlot:
    """
    A bookable start time.

    Ordering follows (hour, minute), which is also the generation order.
    """
    hour: int
    minute: int

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    @property
    def start_time(self) -> time:
        return time(hour=self.hour, minute=self.minute)

    def end_label(self, duration_minutes: int) -> str:
        """
        Return the end of a ``duration_minutes`` appointment as ``HH:MM:SS``.

        Hours are not wrapped at midnight.
        """
        end_minute = self.minute + duration_minutes
        end_hour = self.hour + end_minute // 60
        return f"{end_hour:02d}:{end_minute % 60:02d}:00"

    def __str__(self) -> str:
        return self.label


@dataclass
class Shop:
    """Shop record as stored by the backend."""
    id: str
    name: str
    address: str = ""
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    status: ShopStatus = ShopStatus.PENDING

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Shop":
        return cls(
            id=str(record["id"]),
            name=record.get("name", ""),
            address=record.get("address") or "",
            opening_time=record.get("opening_time"),
            closing_time=record.get("closing_time"),
            status=ShopStatus(record.get("status") or ShopStatus.PENDING.value),
        )

    @property
    def is_bookable(self) -> bool:
        """Only approved shops take bookings."""
        return self.status is ShopStatus.APPROVED

    def get_hours(self, defaults: ShopHours) -> ShopHours:
        """
        Resolve the shop's hours. Each of opening and closing falls back to
        ``defaults`` when the shop has none configured.
        """
        opening = parse_time_of_day(self.opening_time) if self.opening_time else defaults.opening
        closing = parse_time_of_day(self.closing_time) if self.closing_time else defaults.closing
        return ShopHours(opening=opening, closing=closing)


@dataclass
class Service:
    """Bookable service offered by a shop."""
    id: str
    shop_id: str
    name: str
    duration_minutes: int
    price: float = 0.0
    is_active: bool = True
    description: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Service":
        return cls(
            id=str(record["id"]),
            shop_id=str(record["shop_id"]),
            name=record.get("name", ""),
            duration_minutes=int(record["duration_minutes"]),
            price=float(record.get("price") or 0),
            is_active=bool(record.get("is_active", True)),
            description=record.get("description"),
        )


@dataclass
class Booking:
    """Booking record as stored by the backend."""
    id: str
    shop_id: str
    service_id: str
    booking_date: Date
    start_time: str
    end_time: str
    status: BookingStatus = BookingStatus.CONFIRMED
    user_id: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Booking":
        return cls(
            id=str(record["id"]),
            shop_id=str(record["shop_id"]),
            service_id=str(record["service_id"]),
            booking_date=parse_booking_date(record["booking_date"]),
            start_time=record["start_time"],
            end_time=record["end_time"],
            status=BookingStatus(record.get("status") or BookingStatus.CONFIRMED.value),
            user_id=record.get("user_id"),
            notes=record.get("notes"),
            cancellation_reason=record.get("cancellation_reason"),
        )

    def format_display(self) -> str:
        """
        Format the booking for display.
        Format: Weekday, DD.MM.YYYY | HH:MM - HH:MM (status)
        """
        weekday = self.booking_date.format("dddd", locale="en")
        date_str = self.booking_date.format("DD.MM.YYYY")
        start = truncate_to_minute(self.start_time)
        end = truncate_to_minute(self.end_time)
        return f"{weekday}, {date_str} | {start} - {end} ({self.status.value})"


def labels(slots: List[CandidateSlot]) -> List[str]:
    """Return the ``HH:MM`` labels of a slot sequence."""
    return [slot.label for slot in slots]
