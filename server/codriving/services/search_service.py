"""Keyword search across users, cars and trips."""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.car import Car
from ..models.trip import Trip, TripStatus
from ..models.user import User
from ..schemas.search import SearchResult, SearchResultType

logger = logging.getLogger(__name__)


class SearchService:
    """Service for case-insensitive keyword search over the main entities."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _search_users(self, query: str) -> list[SearchResult]:
        stmt = (
            select(User)
            .where(
                or_(
                    User.pseudo.icontains(query, autoescape=True),
                    User.firstname.icontains(query, autoescape=True),
                    User.lastname.icontains(query, autoescape=True),
                )
            )
            .order_by(User.pseudo)
        )
        result = await self.db.execute(stmt)

        return [
            SearchResult(
                type=SearchResultType.USER,
                id=user.id,
                title=f"{user.firstname} {user.lastname} ({user.pseudo})",
                description=user.mail,
            )
            for user in result.scalars()
        ]

    async def _search_cars(self, query: str) -> list[SearchResult]:
        stmt = (
            select(Car)
            .where(
                or_(
                    Car.model.icontains(query, autoescape=True),
                    Car.license_plate.icontains(query, autoescape=True),
                    Car.energy.icontains(query, autoescape=True),
                )
            )
            .order_by(Car.model, Car.license_plate)
        )
        result = await self.db.execute(stmt)

        return [
            SearchResult(
                type=SearchResultType.CAR,
                id=car.id,
                title=f"{car.model} ({car.license_plate})",
                description=f"{car.energy} - {car.color}",
            )
            for car in result.scalars()
        ]

    async def _search_trips(self, query: str) -> list[SearchResult]:
        conditions = [
            Trip.departure_location.icontains(query, autoescape=True),
            Trip.arrival_location.icontains(query, autoescape=True),
        ]
        # Status is a closed enum; match its values here rather than in SQL
        statuses = [status for status in TripStatus if query.lower() in status.value.lower()]
        if statuses:
            conditions.append(Trip.status.in_(statuses))

        stmt = (
            select(Trip)
            .where(or_(*conditions))
            .order_by(Trip.departure_date, Trip.departure_hour)
        )
        result = await self.db.execute(stmt)

        return [
            SearchResult(
                type=SearchResultType.TRIP,
                id=trip.id,
                title=f"{trip.departure_location} → {trip.arrival_location}",
                description=f"{trip.status.value} - {trip.seats_available} seats - €{trip.price}",
            )
            for trip in result.scalars()
        ]

    async def search_all(self, query: str) -> list[SearchResult]:
        """
        Search users, cars and trips for a keyword.

        Args:
            query: Case-insensitive substring; a blank query matches nothing

        Returns:
            User results, then car results, then trip results
        """
        query = query.strip()
        if not query:
            return []

        results = await self._search_users(query)
        results.extend(await self._search_cars(query))
        results.extend(await self._search_trips(query))

        logger.info("Keyword search executed", extra={"query": query, "result_count": len(results)})

        return results

    async def search_by_type(self, query: str, result_type: Optional[SearchResultType]) -> list[SearchResult]:
        """Search a single entity type, or all of them when result_type is None."""
        if result_type is None:
            return await self.search_all(query)

        query = query.strip()
        if not query:
            return []

        searchers = {
            SearchResultType.USER: self._search_users,
            SearchResultType.CAR: self._search_cars,
            SearchResultType.TRIP: self._search_trips,
        }
        return await searchers[result_type](query)
