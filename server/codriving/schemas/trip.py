"""Trip-related Pydantic schemas."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.booking import BookingStatus
from ..models.trip import TripStatus


class CreateTripRequest(BaseModel):
    """Request schema for publishing a trip."""

    driver_id: UUID = Field(..., description="Driving user")
    car_id: UUID | None = Field(None, description="Car used for the trip")
    departure_date: date = Field(..., description="Departure date")
    departure_hour: time = Field(..., description="Departure time of day")
    departure_location: str = Field(..., min_length=1, max_length=100)
    departure_city: str = Field(..., min_length=1, max_length=50)
    arrival_date: date = Field(..., description="Arrival date")
    arrival_hour: time = Field(..., description="Arrival time of day")
    arrival_location: str = Field(..., min_length=1, max_length=100)
    arrival_city: str = Field(..., min_length=1, max_length=50)
    seats_available: int = Field(..., ge=0, le=8, description="Bookable seats")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Price per seat")
    duration_minutes: int | None = Field(None, ge=0, description="Explicit trip duration")
    status: TripStatus = Field(TripStatus.AVAILABLE, description="Initial trip status")

    @model_validator(mode="after")
    def validate_arrival_after_departure(self) -> "CreateTripRequest":
        if datetime.combine(self.arrival_date, self.arrival_hour) < datetime.combine(
            self.departure_date, self.departure_hour
        ):
            raise ValueError("arrival must not be before departure")
        return self


class TripSearchRequest(BaseModel):
    """Request schema for searching trips. Optional filters apply only when set."""

    departure_city: str = Field(..., min_length=1, max_length=50, description="Departure city (partial match)")
    arrival_city: str = Field(..., min_length=1, max_length=50, description="Arrival city (partial match)")
    departure_date: date = Field(..., description="Exact departure date")
    max_price: Decimal | None = Field(None, ge=0, description="Maximum price per seat")
    max_duration: int | None = Field(None, ge=0, description="Maximum duration in minutes")
    ecological_only: bool = Field(False, description="Only trips in electric cars")
    min_seats: int | None = Field(None, ge=1, description="Minimum seats available")


class AlternativeTripsRequest(BaseModel):
    """Request schema for trips on the days around a requested date."""

    departure_city: str = Field(..., min_length=1, max_length=50)
    arrival_city: str = Field(..., min_length=1, max_length=50)
    departure_date: date = Field(..., description="Date that had no match")


class GetTripRequest(BaseModel):
    """Request schema for getting a trip's details."""

    trip_id: UUID = Field(..., description="Trip to retrieve")


class DriverSummary(BaseModel):
    id: UUID
    pseudo: str
    profile_picture: str | None = Field(None, description="Base64-encoded profile picture")
    rating: float


class CarSummary(BaseModel):
    id: UUID
    model: str
    energy: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class TripSummary(BaseModel):
    """Trip search result projection."""

    id: UUID = Field(..., description="Trip ID")
    departure_city: str
    arrival_city: str
    departure_datetime: datetime = Field(..., description="Departure date and time")
    arrival_datetime: datetime = Field(..., description="Arrival date and time")
    price: float = Field(..., description="Price per seat")
    seats_available: int
    is_ecological: bool = Field(..., description="Whether the car is electric")
    duration_minutes: int = Field(..., description="Stored or computed duration")
    driver: DriverSummary
    car: CarSummary | None = None


class TripBooking(BaseModel):
    """Booking as listed on a trip's details."""

    id: UUID
    passenger_id: UUID
    status: BookingStatus

    model_config = ConfigDict(from_attributes=True)


class TripDetails(TripSummary):
    """Single trip with locations, status and bookings."""

    departure_location: str
    arrival_location: str
    status: TripStatus
    bookings: list[TripBooking] = Field(default_factory=list)


class TripSearchResponse(BaseModel):
    """Response schema for trip search."""

    items: list[TripSummary] = Field(..., description="Trips matching every filter")
    alternatives: list[TripSummary] = Field(
        default_factory=list,
        description="Trips on the previous or next day, filled only when items is empty"
    )


class AlternativeTripsResponse(BaseModel):
    items: list[TripSummary]
