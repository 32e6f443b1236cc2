"""
REST client for the hosted booking backend (PostgREST conventions).
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from pendulum import Date

from ..config import BackendConfig
from ..domain.exceptions import AuthenticationError, BackendAPIError, NotFoundError
from ..domain.models import Booking, BookingStatus, Service, Shop, truncate_to_minute

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Client for the backend's table API.

    Every table is exposed under ``/rest/v1/<table>``; rows are filtered with
    query parameters such as ``shop_id=eq.<id>``.
    """

    REST_PATH = "/rest/v1"

    def __init__(self, config: BackendConfig, session: Optional[requests.Session] = None):
        """
        Initialize the backend client.

        Args:
            config: Endpoint URL, credential and timeout
            session: Optional requests session (a new one is created otherwise)
        """
        self.config = config
        self.base_url = f"{config.url}{self.REST_PATH}"
        self.session = session or requests.Session()
        self.headers = {
            "apikey": config.anon_key,
            "Authorization": f"Bearer {config.anon_key}",
            "Content-Type": "application/json",
        }

    def get_shop(self, shop_id: str) -> Shop:
        """
        Fetch a single shop.

        Raises:
            NotFoundError: If no shop has this id
            BackendAPIError: If the API call fails
        """
        rows = self._request(
            "GET",
            "shops",
            params={"select": "*", "id": f"eq.{shop_id}"},
        )
        if not rows:
            raise NotFoundError(f"Shop not found: {shop_id}")
        return Shop.from_record(rows[0])

    def get_service(self, service_id: str) -> Service:
        """Fetch a single service by id."""
        rows = self._request(
            "GET",
            "services",
            params={"select": "*", "id": f"eq.{service_id}"},
        )
        if not rows:
            raise NotFoundError(f"Service not found: {service_id}")
        return Service.from_record(rows[0])

    def list_active_services(self, shop_id: str) -> List[Service]:
        """Fetch the active services offered by a shop."""
        rows = self._request(
            "GET",
            "services",
            params={
                "select": "*",
                "shop_id": f"eq.{shop_id}",
                "is_active": "eq.true",
                "order": "name.asc",
            },
        )
        return self._parse_rows(rows, Service.from_record, "service")

    def get_busy_starts(self, shop_id: str, booking_date: Date) -> List[str]:
        """
        Get the start times (``HH:MM``) of confirmed bookings on a date.

        Args:
            shop_id: Shop identifier
            booking_date: Target date

        Returns:
            Busy start labels in backend order
        """
        rows = self._request(
            "GET",
            "bookings",
            params={
                "select": "start_time,end_time",
                "shop_id": f"eq.{shop_id}",
                "booking_date": f"eq.{booking_date.to_date_string()}",
                "status": f"in.({BookingStatus.CONFIRMED.value})",
            },
        )

        busy_starts: List[str] = []
        for row in rows:
            try:
                busy_starts.append(truncate_to_minute(row["start_time"]))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping booking row with invalid start_time: %s", e)
        return busy_starts

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
        """
        List bookings matching all given filters.

        Args:
            shop_id: Only bookings of this shop
            user_id: Only bookings of this customer
            statuses: Only bookings in one of these states
            from_date: Only bookings on or after this date
            before_date: Only bookings before this date
            descending: Latest first instead of soonest first
        """
        direction = "desc" if descending else "asc"
        params = {
            "select": "*",
            "order": f"booking_date.{direction},start_time.{direction}",
        }
        if shop_id is not None:
            params["shop_id"] = f"eq.{shop_id}"
        if user_id is not None:
            params["user_id"] = f"eq.{user_id}"
        if statuses:
            params["status"] = f"in.({','.join(s.value for s in statuses)})"

        # A column can appear only once per query string, so a date range
        # goes through the "and" operator.
        if from_date is not None and before_date is not None:
            params["and"] = (
                f"(booking_date.gte.{from_date.to_date_string()},"
                f"booking_date.lt.{before_date.to_date_string()})"
            )
        elif from_date is not None:
            params["booking_date"] = f"gte.{from_date.to_date_string()}"
        elif before_date is not None:
            params["booking_date"] = f"lt.{before_date.to_date_string()}"

        rows = self._request("GET", "bookings", params=params)
        return self._parse_rows(rows, Booking.from_record, "booking")

    def create_booking(self, payload: Dict[str, Any]) -> Booking:
        """Insert a booking row and return the stored record."""
        rows = self._request(
            "POST",
            "bookings",
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise BackendAPIError("Backend did not return the created booking")
        return Booking.from_record(rows[0])

    def update_booking(self, booking_id: str, changes: Dict[str, Any]) -> Booking:
        """Patch a booking row and return the updated record."""
        rows = self._request(
            "PATCH",
            "bookings",
            params={"id": f"eq.{booking_id}"},
            json=changes,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise NotFoundError(f"Booking not found: {booking_id}")
        return Booking.from_record(rows[0])

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and credential with a minimal query.

        Returns:
            Summary with the endpoint and the number of rows seen
        """
        rows = self._request("GET", "shops", params={"select": "id", "limit": "1"})
        return {"url": self.config.url, "shops_visible": len(rows)}

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{table}"
        request_headers = dict(self.headers)
        if headers:
            request_headers.update(headers)

        logger.debug("%s %s params=%s", method, url, params)

        try:
            response = self.session.request(
                method,
                url,
                headers=request_headers,
                params=params,
                json=json,
                timeout=self.config.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise BackendAPIError(f"Request to backend failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Backend rejected the credential ({response.status_code}) for {method} {table}"
            )

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise BackendAPIError(f"Backend returned an error for {method} {table}: {e}") from e

        if response.status_code == 204 or not response.content:
            return []

        try:
            data = response.json()
        except ValueError as e:
            raise BackendAPIError(f"Backend returned invalid JSON for {method} {table}") from e

        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise BackendAPIError(f"Unexpected response shape for {method} {table}")
        return data

    @staticmethod
    def _parse_rows(rows, parser, kind: str) -> list:
        parsed = []
        for row in rows:
            try:
                parsed.append(parser(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping %s row that could not be parsed: %s", kind, e)
        return parsed
