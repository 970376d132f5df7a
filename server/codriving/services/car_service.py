"""Car service for vehicle registration and lookups."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidRequestError
from ..models.car import Car
from ..schemas.user import CreateCarRequest

logger = logging.getLogger(__name__)


class CarService:
    """Service for car-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_car(self, request: CreateCarRequest, owner_id: UUID | None = None) -> Car:
        """Register a car, optionally owned by a user."""
        car = Car(
            owner_id=owner_id,
            model=request.model,
            license_plate=request.license_plate,
            energy=request.energy,
            color=request.color,
        )

        try:
            self.db.add(car)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise InvalidRequestError(
                detail=f"A car with license plate '{request.license_plate}' already exists",
                code="CAR_EXISTS"
            )

        await self.db.refresh(car)

        logger.info(
            "Car registered",
            extra={"car_id": str(car.id), "model": car.model, "energy": car.energy}
        )

        return car

    async def get_car_by_id(self, car_id: UUID) -> Optional[Car]:
        stmt = select(Car).where(Car.id == car_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
