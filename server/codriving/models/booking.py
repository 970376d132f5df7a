"""Booking model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, Uuid, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base, utcnow

if TYPE_CHECKING:
    from .trip import Trip
    from .user import User


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class Booking(Base):
    """A passenger's claim on one seat of a trip, paid for in credits."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign keys
    passenger_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    trip_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Booking details
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, native_enum=False, length=20, name="booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )
    # Fixed at creation; refunds use this exact amount
    credits_used: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

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
        CheckConstraint("credits_used > 0", name="ck_booking_credits_used_positive"),
        # At most one CONFIRMED booking per passenger and trip
        Index(
            "uq_booking_confirmed_passenger_trip",
            "passenger_id",
            "trip_id",
            unique=True,
            postgresql_where=text("status = 'CONFIRMED'"),
            sqlite_where=text("status = 'CONFIRMED'"),
        ),
    )

    # Relationships
    passenger: Mapped["User"] = relationship("User", back_populates="bookings")
    trip: Mapped["Trip"] = relationship("Trip", back_populates="bookings")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, passenger_id={self.passenger_id}, trip_id={self.trip_id}, "
            f"status={self.status}, credits_used={self.credits_used})>"
        )
