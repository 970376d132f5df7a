"""User model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, Integer, LargeBinary, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base, utcnow

if TYPE_CHECKING:
    from .booking import Booking
    from .car import Car
    from .trip import Trip


class User(Base):
    """User entity holding the credit balance spent on bookings."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Identity
    pseudo: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    firstname: Mapped[str] = mapped_column(String(100), nullable=False)
    lastname: Mapped[str] = mapped_column(String(100), nullable=False)
    mail: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    profile_picture: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    # Credit balance
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=20)

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
        CheckConstraint("credits >= 0", name="ck_user_credits_non_negative"),
        CheckConstraint("length(pseudo) > 0", name="ck_user_pseudo_not_empty"),
    )

    # Relationships
    cars: Mapped[list["Car"]] = relationship("Car", back_populates="owner")
    driven_trips: Mapped[list["Trip"]] = relationship("Trip", back_populates="driver")
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="passenger")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, pseudo='{self.pseudo}', credits={self.credits})>"
