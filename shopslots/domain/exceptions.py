"""
Domain-specific exception hierarchy for the shopslots application.
"""


class ShopSlotsError(Exception):
    """Base class for all application-level errors."""


class BackendAPIError(ShopSlotsError):
    """Raised when backend data cannot be fetched, written or parsed."""


class AuthenticationError(BackendAPIError):
    """Raised when the backend rejects the configured credential."""


class NotFoundError(ShopSlotsError):
    """Raised when a shop, service or booking does not exist."""


class InvalidBookingRequestError(ShopSlotsError):
    """Raised when a slot or booking request fails the caller-side guards."""


class SlotUnavailableError(ShopSlotsError):
    """Raised when the requested start time is not a bookable slot."""
