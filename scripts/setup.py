#!/usr/bin/env python3
"""Setup script for the co-driving booking API: migrate, then seed sample data."""

import asyncio
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from codriving.core.database import async_session_factory, close_db
from codriving.models import User
from codriving.schemas.trip import CreateTripRequest
from codriving.schemas.user import CreateCarRequest, CreateUserRequest
from codriving.services import CarService, TripService, UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

server_dir = Path(__file__).parent.parent / "server"

SAMPLE_USERS = [
    {"pseudo": "camille", "firstname": "Camille", "lastname": "Martin", "mail": "camille@example.com", "credits": 40},
    {"pseudo": "jules", "firstname": "Jules", "lastname": "Bernard", "mail": "jules@example.com", "credits": 20},
    {"pseudo": "ines", "firstname": "Ines", "lastname": "Petit", "mail": "ines@example.com", "credits": 5},
]

SAMPLE_ROUTES = [
    ("Paris", "Porte Maillot", "Lyon", "Part-Dieu", 270),
    ("Lyon", "Perrache", "Marseille", "Saint-Charles", 200),
    ("Bordeaux", "Saint-Jean", "Toulouse", "Matabiau", None),
]


def setup_database():
    """Run Alembic migrations up to head."""
    logger.info("Running database migrations...")
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create sample users, cars and a week of trips through the services."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        existing_users = await db.execute(select(func.count()).select_from(User))
        if existing_users.scalar_one() > 0:
            logger.info("Sample data already exists, skipping...")
            await close_db()
            return

        user_service = UserService(db)
        car_service = CarService(db)
        trip_service = TripService(db)

        users = [await user_service.create_user(CreateUserRequest(**data)) for data in SAMPLE_USERS]
        driver_id = users[0].id

        cars = [
            await car_service.create_car(
                CreateCarRequest(model="Renault Zoe", license_plate="EV-101-ZO", energy="Electric", color="White"),
                owner_id=driver_id,
            ),
            await car_service.create_car(
                CreateCarRequest(model="Peugeot 308", license_plate="GA-202-PG", energy="Gasoline", color="Grey"),
                owner_id=driver_id,
            ),
        ]

        start = date.today() + timedelta(days=1)
        for day in range(7):
            for index, (dep_city, dep_location, arr_city, arr_location, duration) in enumerate(SAMPLE_ROUTES):
                departure = datetime.combine(start + timedelta(days=day), datetime.min.time()) + timedelta(
                    hours=8 + 3 * index
                )
                arrival = departure + timedelta(minutes=duration or 150)
                await trip_service.create_trip(CreateTripRequest(
                    driver_id=driver_id,
                    car_id=cars[index % len(cars)].id,
                    departure_date=departure.date(),
                    departure_hour=departure.time(),
                    departure_location=dep_location,
                    departure_city=dep_city,
                    arrival_date=arrival.date(),
                    arrival_hour=arrival.time(),
                    arrival_location=arr_location,
                    arrival_city=arr_city,
                    seats_available=3,
                    price=Decimal("12.50") + index * 5,
                    duration_minutes=duration,
                ))

        logger.info("Sample data created successfully!")

    await close_db()


def main():
    """Main setup function."""
    logger.info("Starting co-driving booking API setup...")

    setup_database()
    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: uvicorn codriving.main:app --reload")


if __name__ == "__main__":
    main()
