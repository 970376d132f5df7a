"""Booking-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.booking import BookingStatus


class CreateBookingRequest(BaseModel):
    """Request schema for booking a seat on a trip."""

    trip_id: UUID = Field(..., description="Trip to book a seat on")
    credits_used: int = Field(..., ge=1, description="Credits to spend on this booking")
    notes: str | None = Field(None, max_length=1000, description="Notes from the passenger")


class BookingIdRequest(BaseModel):
    """Request schema for operations addressing a single booking."""

    booking_id: UUID = Field(..., description="Booking to act on")


class GetBookingRequest(BookingIdRequest):
    """Request schema for getting a booking."""


class CancelBookingRequest(BookingIdRequest):
    """Request schema for cancelling a booking."""


class ConfirmBookingRequest(BookingIdRequest):
    """Request schema for confirming a booking (trip driver only)."""


class CompleteBookingRequest(BookingIdRequest):
    """Request schema for completing a booking (trip driver only)."""


class DeleteBookingRequest(BookingIdRequest):
    """Request schema for administratively removing a booking."""


class UpdateBookingRequest(BookingIdRequest):
    """
    Request schema for patching a booking.

    Only notes can change here. A status is accepted for compatibility but
    must equal the current one; transitions go through confirm/complete/cancel.
    """

    notes: str | None = Field(None, max_length=1000, description="Replacement notes")
    status: BookingStatus | None = Field(None, description="Expected current status")


class ListTripBookingsRequest(BaseModel):
    """Request schema for listing the bookings of one trip."""

    trip_id: UUID = Field(..., description="Trip whose bookings to list")


class Booking(BaseModel):
    """Booking response schema."""

    id: UUID = Field(..., description="Unique booking ID")
    passenger_id: UUID = Field(..., description="Passenger user ID")
    trip_id: UUID = Field(..., description="Booked trip ID")
    status: BookingStatus = Field(..., description="Booking status")
    credits_used: int = Field(..., ge=1, description="Credits spent on this booking")
    notes: str | None = Field(None, description="Passenger notes")
    created_at: datetime = Field(..., description="Booking creation time (ISO 8601)")
    updated_at: datetime = Field(..., description="Last update time (ISO 8601)")

    model_config = ConfigDict(from_attributes=True)


class BookingList(BaseModel):
    """List of bookings."""

    items: list[Booking] = Field(default_factory=list, description="Bookings, newest first")


class DeleteBookingResponse(BaseModel):
    """Response schema for administrative removal."""

    booking_id: UUID
    deleted: bool
