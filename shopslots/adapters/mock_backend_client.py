"""
Mock backend client for running without a hosted backend.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pendulum import Date

from ..domain.exceptions import NotFoundError
from ..domain.models import Booking, BookingStatus, Service, Shop, truncate_to_minute

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_backend_data.json"


class MockBackendClient:
    """
    Mock client that simulates the backend's table API.

    Rows are loaded from ``mock_backend_data.json`` (or a given file) and
    kept in memory; created and updated bookings are not written back.
    """

    def __init__(self, data_file: Optional[Path] = None, data: Optional[Dict[str, Any]] = None):
        """
        Initialize the mock client.

        Args:
            data_file: Optional JSON file with ``shops``, ``services`` and ``bookings`` lists
            data: Optional in-memory data, takes precedence over ``data_file``
        """
        if data is not None:
            tables = copy.deepcopy(data)
        else:
            tables = self._load_data(data_file or DEFAULT_DATA_FILE)

        self.shops: List[Dict[str, Any]] = tables.get("shops", [])
        self.services: List[Dict[str, Any]] = tables.get("services", [])
        self.bookings: List[Dict[str, Any]] = tables.get("bookings", [])
        self._next_id = len(self.bookings) + 1

    @staticmethod
    def _load_data(data_file: Path) -> Dict[str, Any]:
        """Load mock tables from JSON file."""
        if not data_file.exists():
            logger.warning("Mock data file %s not found, starting empty", data_file)
            return {}

        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_shop(self, shop_id: str) -> Shop:
        for row in self.shops:
            if str(row.get("id")) == shop_id:
                return Shop.from_record(row)
        raise NotFoundError(f"Shop not found: {shop_id}")

    def get_service(self, service_id: str) -> Service:
        for row in self.services:
            if str(row.get("id")) == service_id:
                return Service.from_record(row)
        raise NotFoundError(f"Service not found: {service_id}")

    def list_active_services(self, shop_id: str) -> List[Service]:
        services = [
            Service.from_record(row)
            for row in self.services
            if str(row.get("shop_id")) == shop_id and row.get("is_active", True)
        ]
        return sorted(services, key=lambda s: s.name)

    def get_busy_starts(self, shop_id: str, booking_date: Date) -> List[str]:
        """Start times (``HH:MM``) of confirmed bookings of a shop on a date."""
        return [
            truncate_to_minute(booking.start_time)
            for booking in self._bookings_for(shop_id, booking_date)
            if booking.status == BookingStatus.CONFIRMED
        ]

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
        bookings = [
            b for b in self._parsed_bookings()
            if (shop_id is None or b.shop_id == shop_id)
            and (user_id is None or b.user_id == user_id)
            and (not statuses or b.status in statuses)
            and (from_date is None or b.booking_date >= from_date)
            and (before_date is None or b.booking_date < before_date)
        ]
        return sorted(bookings, key=lambda b: (b.booking_date, b.start_time), reverse=descending)

    def create_booking(self, payload: Dict[str, Any]) -> Booking:
        row = dict(payload)
        row.setdefault("id", f"mock-booking-{self._next_id}")
        self._next_id += 1
        self.bookings.append(row)
        return Booking.from_record(row)

    def update_booking(self, booking_id: str, changes: Dict[str, Any]) -> Booking:
        for row in self.bookings:
            if str(row.get("id")) == booking_id:
                row.update(changes)
                return Booking.from_record(row)
        raise NotFoundError(f"Booking not found: {booking_id}")

    def test_connection(self) -> Dict[str, Any]:
        """Mock connection test."""
        return {"url": "mock://backend", "shops_visible": len(self.shops)}

    def _parsed_bookings(self) -> List[Booking]:
        """Parse the booking rows, skipping malformed ones."""
        bookings: List[Booking] = []
        for row in self.bookings:
            try:
                bookings.append(Booking.from_record(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping mock booking row that could not be parsed: %s", e)
        return bookings

    def _bookings_for(self, shop_id: str, booking_date: Date) -> List[Booking]:
        return [
            b for b in self._parsed_bookings()
            if b.shop_id == shop_id and b.booking_date == booking_date
        ]
