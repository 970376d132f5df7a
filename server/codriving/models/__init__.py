"""Models module exporting all database models."""

from .booking import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus
from .car import Car
from .trip import Trip, TripStatus
from .user import User

__all__ = [
    # Collaborator entities
    "User",
    "Car",
    "Trip",
    "TripStatus",

    # Booking entity
    "Booking",
    "BookingStatus",
    "ACTIVE_BOOKING_STATUSES",
]
