"""Test configuration and fixtures."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from codriving.core.config import settings
from codriving.core.database import Base, get_db
from codriving.models import *  # noqa: F403 - Import all models
from codriving.schemas.trip import CreateTripRequest
from codriving.schemas.user import CreateCarRequest, CreateUserRequest
from codriving.services.car_service import CarService
from codriving.services.trip_service import TripService
from codriving.services.user_service import UserService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create the application with the database dependency pointed at the test session."""
    from codriving.main import create_app

    app = create_app()

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user id and optional roles."""

    def _headers(user_id, roles=()):
        token = jwt.encode(
            {"sub": str(user_id), "roles": list(roles)},
            settings.bearer_token_secret,
            algorithm=settings.jwt_algorithm,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def sample_trip_data():
    """Sample trip data for testing, without driver or car."""
    return {
        "departure_date": date(2025, 7, 20),
        "departure_hour": time(9, 0),
        "departure_location": "Gare de Lyon",
        "departure_city": "Paris",
        "arrival_date": date(2025, 7, 20),
        "arrival_hour": time(13, 30),
        "arrival_location": "Part-Dieu",
        "arrival_city": "Lyon",
        "seats_available": 3,
        "price": Decimal("15.00"),
    }


@pytest_asyncio.fixture
async def make_user(test_session):
    """Factory creating users with unique pseudos."""
    service = UserService(test_session)
    counter = {"n": 0}

    async def _make(credits=20, pseudo=None, **overrides):
        counter["n"] += 1
        pseudo = pseudo or f"user{counter['n']}"
        data = {
            "pseudo": pseudo,
            "firstname": f"First{counter['n']}",
            "lastname": f"Last{counter['n']}",
            "mail": f"{pseudo}@example.com",
            "credits": credits,
        }
        data.update(overrides)
        return await service.create_user(CreateUserRequest(**data))

    return _make


@pytest_asyncio.fixture
async def make_car(test_session):
    service = CarService(test_session)
    counter = {"n": 0}

    async def _make(energy="Gasoline", owner_id=None, **overrides):
        counter["n"] += 1
        data = {
            "model": "Zoe" if energy == "Electric" else "Clio",
            "license_plate": f"AB-{counter['n']:03d}-CD",
            "energy": energy,
            "color": "Blue",
        }
        data.update(overrides)
        return await service.create_car(CreateCarRequest(**data), owner_id=owner_id)

    return _make


@pytest_asyncio.fixture
async def make_trip(test_session, sample_trip_data):
    """Factory creating trips from sample_trip_data with overrides."""
    service = TripService(test_session)

    async def _make(driver, car=None, **overrides):
        data = {**sample_trip_data, **overrides}
        if "arrival_date" not in overrides and "arrival_hour" not in overrides:
            # Four and a half hours after departure unless told otherwise
            arrival = datetime.combine(data["departure_date"], data["departure_hour"]) + timedelta(
                hours=4, minutes=30
            )
            data["arrival_date"], data["arrival_hour"] = arrival.date(), arrival.time()
        return await service.create_trip(
            CreateTripRequest(driver_id=driver.id, car_id=car.id if car else None, **data)
        )

    return _make


@pytest_asyncio.fixture
async def driver(make_user):
    return await make_user(credits=20, pseudo="driver")


@pytest_asyncio.fixture
async def passenger(make_user):
    return await make_user(credits=10, pseudo="passenger")


@pytest_asyncio.fixture
async def electric_car(make_car, driver):
    return await make_car(energy="Electric", owner_id=driver.id)


@pytest_asyncio.fixture
async def trip(make_trip, driver, electric_car):
    """A Paris to Lyon trip with 3 seats at 15.00."""
    return await make_trip(driver, electric_car)
