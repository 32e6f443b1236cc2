"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import Booking, BookingStatus, CandidateSlot, Service, Shop, ShopHours
from .slot_generator import SlotGenerator, generate_slots

__all__ = [
    "Booking",
    "BookingStatus",
    "CandidateSlot",
    "Service",
    "Shop",
    "ShopHours",
    "SlotGenerator",
    "generate_slots",
]
