"""
Application service for the customer booking flow.

The service fetches shop hours, service durations and busy booking starts
through a backend client and delegates the availability computation to the
domain-level ``SlotGenerator``. The backend dependency is expressed as a
protocol so the real REST adapter, the mock adapter or a test stub can be
plugged in.
"""

from __future__ import annotations

import logging
from datetime import time
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence

import pendulum
from pendulum import Date

from ..config import DefaultsConfig
from ..domain.exceptions import InvalidBookingRequestError, SlotUnavailableError
from ..domain.models import (
    Booking,
    BookingStatus,
    CandidateSlot,
    Service,
    Shop,
    ShopHours,
    truncate_to_minute,
)
from ..domain.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Cancelled by customer"


class BookingView(str, Enum):
    """Which bookings a listing shows."""
    UPCOMING = "upcoming"
    PAST = "past"
    CANCELLED = "cancelled"
    ALL = "all"


class BackendClientProtocol(Protocol):
    """Protocol describing the backend behaviour needed by the service."""

    def get_shop(self, shop_id: str) -> Shop:
        """Return a shop or raise NotFoundError."""

    def get_service(self, service_id: str) -> Service:
        """Return a service or raise NotFoundError."""

    def list_active_services(self, shop_id: str) -> List[Service]:
        """Return the active services of a shop."""

    def get_busy_starts(self, shop_id: str, booking_date: Date) -> List[str]:
        """Return ``HH:MM`` starts of confirmed bookings on a date."""

    def list_bookings(
        self,
        *,
        shop_id: Optional[str] = None,
        user_id: Optional[str] = None,
        statuses: Optional[Sequence[BookingStatus]] = None,
        from_date: Optional[Date] = None,
        before_date: Optional[Date] = None,
        descending: bool = False,
    ) -> List[Booking]:
        """Return bookings matching all given filters, ordered by date and start."""

    def create_booking(self, payload: Dict[str, Any]) -> Booking:
        """Insert a booking and return it."""

    def update_booking(self, booking_id: str, changes: Dict[str, Any]) -> Booking:
        """Update a booking and return it."""


class BookingFlowService:
    """
    Orchestrates data retrieval, slot generation and booking writes.

    Slots are recomputed from fresh backend data on every call.
    """

    def __init__(
        self,
        backend: BackendClientProtocol,
        defaults: Optional[DefaultsConfig] = None,
        timezone: str = "Europe/Berlin",
        today: Optional[Callable[[], Date]] = None,
    ) -> None:
        self._backend = backend
        self._defaults = defaults or DefaultsConfig()
        self._timezone = timezone
        self._today = today or (lambda: pendulum.today(self._timezone).date())

    def list_services(self, shop_id: str) -> List[Service]:
        """Active services offered by a shop."""
        return self._backend.list_active_services(shop_id)

    def get_shop_hours(self, shop: Shop) -> ShopHours:
        """Shop hours, falling back to the configured defaults."""
        return shop.get_hours(self._defaults.get_shop_hours())

    def available_slots(
        self,
        *,
        shop_id: str,
        service_id: str,
        booking_date: Date,
    ) -> List[CandidateSlot]:
        """
        Retrieve shop, service and busy data, then compute bookable starts.
        """
        shop = self._resolve_shop(shop_id)
        service = self._resolve_service(shop_id, service_id)
        busy_starts = self.fetch_busy_starts(shop_id=shop_id, booking_date=booking_date)

        return self.calculate_slots(
            shop_hours=self.get_shop_hours(shop),
            duration_minutes=service.duration_minutes,
            busy_starts=busy_starts,
        )

    def fetch_busy_starts(self, *, shop_id: str, booking_date: Date) -> List[str]:
        """Fetch the confirmed booking starts of a shop on a date."""
        return self._backend.get_busy_starts(shop_id, booking_date)

    def calculate_slots(
        self,
        *,
        shop_hours: ShopHours,
        duration_minutes: int,
        busy_starts: Iterable["str | time"],
    ) -> List[CandidateSlot]:
        """
        Guard the inputs and run the slot generator.

        Raises:
            InvalidBookingRequestError: If the duration is not positive or the
                shop closes before it opens
        """
        if duration_minutes <= 0:
            raise InvalidBookingRequestError(
                f"Service duration must be greater than zero, got {duration_minutes}"
            )
        if shop_hours.closing <= shop_hours.opening:
            raise InvalidBookingRequestError(
                f"Shop hours {shop_hours} close before they open"
            )

        return SlotGenerator(shop_hours).generate_slots(duration_minutes, busy_starts)

    def validate_booking_date(self, booking_date: Date) -> None:
        """
        Ensure the date lies between today and the end of the booking window.

        Raises:
            InvalidBookingRequestError: If the date is outside the window
        """
        today = self._today()
        last_day = today.add(days=self._defaults.booking_window_days)

        if booking_date < today:
            raise InvalidBookingRequestError(
                f"Cannot book in the past: {booking_date.to_date_string()}"
            )
        if booking_date > last_day:
            raise InvalidBookingRequestError(
                f"Bookings open at most {self._defaults.booking_window_days} days ahead "
                f"(until {last_day.to_date_string()})"
            )

    def book_slot(
        self,
        *,
        shop_id: str,
        service_id: str,
        booking_date: Date,
        start: "str | time",
        user_id: str,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Book ``start`` for a customer if it is currently one of the
        available slots.

        Raises:
            InvalidBookingRequestError: If the customer is missing, or the
                date, shop or service is not bookable
            SlotUnavailableError: If the start time is not available
        """
        if not user_id or not user_id.strip():
            raise InvalidBookingRequestError("A customer user id is required to book")
        self.validate_booking_date(booking_date)

        shop = self._resolve_shop(shop_id)
        service = self._resolve_service(shop_id, service_id)
        start_label = truncate_to_minute(start)
        slots = self.calculate_slots(
            shop_hours=self.get_shop_hours(shop),
            duration_minutes=service.duration_minutes,
            busy_starts=self.fetch_busy_starts(shop_id=shop_id, booking_date=booking_date),
        )

        slot = next((s for s in slots if s.label == start_label), None)
        if slot is None:
            raise SlotUnavailableError(
                f"{start_label} on {booking_date.to_date_string()} is not available"
            )

        payload = {
            "user_id": user_id.strip(),
            "shop_id": shop_id,
            "service_id": service.id,
            "booking_date": booking_date.to_date_string(),
            "start_time": f"{slot.label}:00",
            "end_time": slot.end_label(service.duration_minutes),
            "status": BookingStatus.CONFIRMED.value,
            "notes": notes or None,
        }

        booking = self._backend.create_booking(payload)
        logger.info(
            "Booked %s at %s on %s (booking %s)",
            service.name, slot.label, payload["booking_date"], booking.id,
        )
        return booking

    def cancel_booking(
        self,
        booking_id: str,
        reason: str = DEFAULT_CANCELLATION_REASON,
    ) -> Booking:
        """Mark a booking as cancelled with a reason."""
        booking = self._backend.update_booking(
            booking_id,
            {
                "status": BookingStatus.CANCELLED.value,
                "cancellation_reason": reason,
            },
        )
        logger.info("Cancelled booking %s: %s", booking_id, reason)
        return booking

    def list_bookings(
        self,
        *,
        user_id: Optional[str] = None,
        shop_id: Optional[str] = None,
        view: BookingView = BookingView.UPCOMING,
    ) -> List[Booking]:
        """
        List a customer's or a shop's bookings.

        Views:
            upcoming: confirmed bookings from today on, soonest first
            past: completed bookings before today, latest first
            cancelled: cancelled bookings, latest first
            all: every booking, latest first

        Raises:
            InvalidBookingRequestError: If neither a user nor a shop is given
        """
        if not user_id and not shop_id:
            raise InvalidBookingRequestError("Listing bookings needs a user or a shop")

        today = self._today()
        filters: Dict[str, Any] = {"user_id": user_id or None, "shop_id": shop_id or None}

        if view is BookingView.UPCOMING:
            filters.update(statuses=[BookingStatus.CONFIRMED], from_date=today)
        elif view is BookingView.PAST:
            filters.update(statuses=[BookingStatus.COMPLETED], before_date=today, descending=True)
        elif view is BookingView.CANCELLED:
            filters.update(statuses=[BookingStatus.CANCELLED], descending=True)
        else:
            filters.update(descending=True)

        bookings = self._backend.list_bookings(**filters)
        logger.debug("Listed %d %s booking(s)", len(bookings), view.value)
        return bookings

    def _resolve_shop(self, shop_id: str) -> Shop:
        shop = self._backend.get_shop(shop_id)

        if not shop.is_bookable:
            raise InvalidBookingRequestError(
                f"Shop {shop.name or shop_id} is not open for bookings ({shop.status.value})"
            )

        return shop

    def _resolve_service(self, shop_id: str, service_id: str) -> Service:
        service = self._backend.get_service(service_id)

        if service.shop_id != shop_id:
            raise InvalidBookingRequestError(
                f"Service {service_id} is not offered by shop {shop_id}"
            )
        if not service.is_active:
            raise InvalidBookingRequestError(f"Service {service.name} is not active")

        return service
