"""Trip (co-driving ride) model definition."""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, Time, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base, utcnow

if TYPE_CHECKING:
    from .booking import Booking
    from .car import Car
    from .user import User


class TripStatus(str, Enum):
    """Trip status enumeration."""
    AVAILABLE = "AVAILABLE"
    FULL = "FULL"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Trip(Base):
    """A scheduled ride offered by a driver with a number of bookable seats."""

    __tablename__ = "trips"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Departure
    departure_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    departure_hour: Mapped[time] = mapped_column(Time, nullable=False)
    departure_location: Mapped[str] = mapped_column(String(100), nullable=False)
    departure_city: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # Arrival
    arrival_date: Mapped[date] = mapped_column(Date, nullable=False)
    arrival_hour: Mapped[time] = mapped_column(Time, nullable=False)
    arrival_location: Mapped[str] = mapped_column(String(100), nullable=False)
    arrival_city: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    status: Mapped[TripStatus] = mapped_column(
        SAEnum(TripStatus, native_enum=False, length=20, name="trip_status"),
        nullable=False,
        default=TripStatus.AVAILABLE,
        index=True
    )

    # Seats are only written by the booking lifecycle
    seats_available: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Foreign keys
    driver_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    car_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("cars.id", ondelete="SET NULL"),
        nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("seats_available >= 0", name="ck_trip_seats_available_non_negative"),
        CheckConstraint("price >= 0", name="ck_trip_price_non_negative"),
        CheckConstraint(
            "duration_minutes IS NULL OR duration_minutes >= 0",
            name="ck_trip_duration_non_negative"
        ),
    )

    # Relationships
    driver: Mapped["User"] = relationship("User", back_populates="driven_trips")
    car: Mapped["Car | None"] = relationship("Car")
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="trip",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return (
            f"<Trip(id={self.id}, {self.departure_city}->{self.arrival_city}, "
            f"departure={self.departure_date} {self.departure_hour}, seats={self.seats_available})>"
        )
