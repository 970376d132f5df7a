"""Trip search service for multi-criteria search and trip projections."""

import base64
import logging
from datetime import date, datetime, time, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import settings
from ..core.observability import metrics_collector
from ..models.car import Car
from ..models.trip import Trip, TripStatus
from ..schemas.trip import (
    CarSummary,
    DriverSummary,
    TripBooking,
    TripDetails,
    TripSearchRequest,
    TripSummary,
)

logger = logging.getLogger(__name__)


def combine_datetime(day: date, hour: time) -> datetime:
    """Merge a calendar date and a time of day into one instant."""
    return datetime.combine(day, hour)


def compute_duration_minutes(departure: datetime, arrival: datetime, stored: Optional[int] = None) -> int:
    """Stored duration when present, else the whole minutes between the two instants."""
    if stored is not None:
        return stored
    return int(abs((arrival - departure).total_seconds()) // 60)


def is_ecological(energy: Optional[str]) -> bool:
    # Exact, case-sensitive match
    return energy == settings.ecological_energy


def encode_picture(picture: Optional[bytes]) -> Optional[str]:
    if not picture:
        return None
    return base64.b64encode(picture).decode("ascii")


def to_trip_summary(trip: Trip) -> TripSummary:
    """
    Project a trip with its driver and car loaded into a search result.

    Args:
        trip: Trip entity; driver and car must already be loaded

    Returns:
        TripSummary with the computed datetime, duration and ecological fields
    """
    departure = combine_datetime(trip.departure_date, trip.departure_hour)
    arrival = combine_datetime(trip.arrival_date, trip.arrival_hour)
    car = trip.car

    return TripSummary(
        id=trip.id,
        departure_city=trip.departure_city,
        arrival_city=trip.arrival_city,
        departure_datetime=departure,
        arrival_datetime=arrival,
        price=float(trip.price),
        seats_available=trip.seats_available,
        is_ecological=is_ecological(car.energy if car else None),
        duration_minutes=compute_duration_minutes(departure, arrival, trip.duration_minutes),
        driver=DriverSummary(
            id=trip.driver.id,
            pseudo=trip.driver.pseudo,
            profile_picture=encode_picture(trip.driver.profile_picture),
            rating=settings.default_driver_rating,
        ),
        car=CarSummary.model_validate(car) if car else None,
    )


def to_trip_details(trip: Trip) -> TripDetails:
    summary = to_trip_summary(trip)
    return TripDetails(
        **summary.model_dump(),
        departure_location=trip.departure_location,
        arrival_location=trip.arrival_location,
        status=trip.status,
        bookings=[TripBooking.model_validate(booking) for booking in trip.bookings],
    )


class TripSearchService:
    """Service for searching trips."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _bookable(self, departure_city: str, arrival_city: str) -> Select:
        """Base query: available trips with a seat, matching both cities."""
        return (
            select(Trip)
            .options(selectinload(Trip.driver), selectinload(Trip.car))
            .where(
                Trip.status == TripStatus.AVAILABLE,
                Trip.seats_available > 0,
                Trip.departure_city.icontains(departure_city, autoescape=True),
                Trip.arrival_city.icontains(arrival_city, autoescape=True),
            )
        )

    async def search_trips(self, request: TripSearchRequest) -> list[TripSummary]:
        """
        Search bookable trips on an exact departure date.

        Cities match as case-insensitive substrings. Each optional filter is
        applied only when it is set. Results are ordered by departure date,
        then departure time.

        Args:
            request: Search criteria

        Returns:
            Projected trip summaries
        """
        stmt = self._bookable(request.departure_city, request.arrival_city).where(
            Trip.departure_date == request.departure_date
        )

        if request.max_price is not None:
            stmt = stmt.where(Trip.price <= request.max_price)

        if request.max_duration is not None:
            stmt = stmt.where(Trip.duration_minutes <= request.max_duration)

        if request.ecological_only:
            stmt = stmt.join(Trip.car).where(Car.energy == settings.ecological_energy)

        if request.min_seats is not None:
            stmt = stmt.where(Trip.seats_available >= request.min_seats)

        stmt = stmt.order_by(Trip.departure_date.asc(), Trip.departure_hour.asc())

        result = await self.db.execute(stmt)
        trips = result.scalars().all()

        metrics_collector.record_trip_search("exact", len(trips))

        logger.info(
            "Trip search executed",
            extra={
                "departure_city": request.departure_city,
                "arrival_city": request.arrival_city,
                "departure_date": request.departure_date.isoformat(),
                "result_count": len(trips)
            }
        )

        return [to_trip_summary(trip) for trip in trips]

    async def find_alternative_trips(
        self,
        departure_city: str,
        arrival_city: str,
        requested_date: date
    ) -> list[TripSummary]:
        """
        Find bookable trips on the day before or the day after a date.

        Args:
            departure_city: Departure city (partial match)
            arrival_city: Arrival city (partial match)
            requested_date: Date that had no exact match

        Returns:
            At most settings.alternative_trips_limit summaries, by date then time
        """
        neighbours = [requested_date - timedelta(days=1), requested_date + timedelta(days=1)]

        stmt = (
            self._bookable(departure_city, arrival_city)
            .where(Trip.departure_date.in_(neighbours))
            .order_by(Trip.departure_date.asc(), Trip.departure_hour.asc())
            .limit(settings.alternative_trips_limit)
        )

        result = await self.db.execute(stmt)
        trips = result.scalars().all()

        metrics_collector.record_trip_search("alternative", len(trips))

        logger.info(
            "Alternative trip search executed",
            extra={
                "departure_city": departure_city,
                "arrival_city": arrival_city,
                "requested_date": requested_date.isoformat(),
                "result_count": len(trips)
            }
        )

        return [to_trip_summary(trip) for trip in trips]

    async def get_trip_details(self, trip_id: UUID) -> Optional[TripDetails]:
        """Get one trip with driver, car and bookings; None when it does not exist."""
        stmt = (
            select(Trip)
            .options(
                selectinload(Trip.driver),
                selectinload(Trip.car),
                selectinload(Trip.bookings),
            )
            .where(Trip.id == trip_id)
            .execution_options(populate_existing=True)
        )

        result = await self.db.execute(stmt)
        trip = result.scalar_one_or_none()

        if not trip:
            return None

        return to_trip_details(trip)
