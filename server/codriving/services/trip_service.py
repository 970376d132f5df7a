"""Trip service: the seat-count collaborator of the booking lifecycle."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.exceptions import InvalidRequestError, NotFoundError
from ..models.trip import Trip
from ..schemas.trip import CreateTripRequest
from .car_service import CarService
from .user_service import UserService

logger = logging.getLogger(__name__)


class TripService:
    """Service for trip lookups and seat-count updates."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)
        self.car_service = CarService(db)

    async def create_trip(self, request: CreateTripRequest) -> Trip:
        """
        Publish a new trip.

        Args:
            request: Trip creation request

        Returns:
            Created trip entity

        Raises:
            NotFoundError: If the driver or the car does not exist
        """
        await self.user_service.get_user_by_id_or_raise(request.driver_id)

        if request.car_id is not None and not await self.car_service.get_car_by_id(request.car_id):
            raise NotFoundError(resource_type="car", resource_id=str(request.car_id))

        trip = Trip(**request.model_dump())

        self.db.add(trip)
        await self.db.commit()
        await self.db.refresh(trip)

        logger.info(
            "Trip created successfully",
            extra={
                "trip_id": str(trip.id),
                "driver_id": str(trip.driver_id),
                "departure_city": trip.departure_city,
                "arrival_city": trip.arrival_city,
                "departure_date": trip.departure_date.isoformat(),
                "seats_available": trip.seats_available
            }
        )

        return trip

    async def find_one(self, trip_id: UUID, for_update: bool = False) -> Optional[Trip]:
        """
        Get trip by ID with its driver and car loaded.

        Args:
            trip_id: Trip ID to search for
            for_update: Lock the row and reload it from the database

        Returns:
            Trip if found, None otherwise
        """
        stmt = (
            select(Trip)
            .options(selectinload(Trip.driver), selectinload(Trip.car))
            .where(Trip.id == trip_id)
        )
        if for_update:
            stmt = stmt.with_for_update(of=Trip).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_trip_by_id_or_raise(self, trip_id: UUID) -> Trip:
        trip = await self.find_one(trip_id)
        if not trip:
            logger.warning("Trip not found", extra={"trip_id": str(trip_id)})
            raise NotFoundError(resource_type="trip", resource_id=str(trip_id))
        return trip

    async def update_seats(self, trip_id: UUID, seats: int, commit: bool = True) -> Optional[Trip]:
        """
        Set a trip's available seat count.

        Args:
            trip_id: Trip whose seat count changes
            seats: New count, never negative
            commit: Commit immediately; the booking lifecycle passes False

        Returns:
            Updated trip, or None if the trip does not exist
        """
        if seats < 0:
            raise InvalidRequestError(
                detail=f"Seat count cannot become negative ({seats})",
                code="NEGATIVE_SEATS"
            )

        trip = await self.find_one(trip_id)
        if not trip:
            return None

        previous = trip.seats_available
        trip.seats_available = seats
        self.db.add(trip)

        if commit:
            await self.db.commit()
            await self.db.refresh(trip)

        logger.debug(
            "Trip seats updated",
            extra={"trip_id": str(trip_id), "previous": previous, "seats_available": seats}
        )

        return trip
