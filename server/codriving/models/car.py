"""Car model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base, utcnow

if TYPE_CHECKING:
    from .user import User


class Car(Base):
    """Vehicle assigned to trips; its energy decides whether a trip is ecological."""

    __tablename__ = "cars"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    owner_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    model: Mapped[str] = mapped_column(String(100), nullable=False)
    license_plate: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    # Electric, Hybrid, Gasoline or Diesel; compared case-sensitively
    energy: Mapped[str] = mapped_column(String(20), nullable=False, default="Gasoline")
    color: Mapped[str] = mapped_column(String(50), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )

    owner: Mapped["User | None"] = relationship("User", back_populates="cars")

    def __repr__(self) -> str:
        return f"<Car(id={self.id}, model='{self.model}', energy='{self.energy}')>"
