"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_flow import BackendClientProtocol, BookingFlowService

__all__ = ["BackendClientProtocol", "BookingFlowService"]
