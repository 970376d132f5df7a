"""Service layer package."""

from .booking_service import BookingService
from .car_service import CarService
from .search_service import SearchService
from .trip_search_service import TripSearchService
from .trip_service import TripService
from .user_service import UserService

__all__ = [
    "BookingService",
    "CarService",
    "SearchService",
    "TripSearchService",
    "TripService",
    "UserService",
]
