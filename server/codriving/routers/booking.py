"""Booking router for booking lifecycle operations."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import ADMINISTRATOR_ROLE, AdministratorAuth, RequiredAuth
from ..core.exceptions import AuthorizationError, InternalServerError, NotFoundError, ProblemDetailsException
from ..schemas.booking import (
    Booking,
    BookingList,
    CancelBookingRequest,
    CompleteBookingRequest,
    ConfirmBookingRequest,
    CreateBookingRequest,
    DeleteBookingRequest,
    DeleteBookingResponse,
    GetBookingRequest,
    ListTripBookingsRequest,
    UpdateBookingRequest,
)
from ..schemas.common import Problem
from ..services.booking_service import BookingService
from ..services.trip_service import TripService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/booking",
    tags=["booking"],
    responses={
        400: {"model": Problem},
        401: {"model": Problem},
        403: {"model": Problem},
        404: {"model": Problem},
        422: {"model": Problem},
    },
)

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)


def _json(response_data: BaseModel) -> JSONResponse:
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


def _owner_scope(current_user: dict) -> Optional[UUID]:
    """Administrators see every booking; everyone else only their own."""
    if ADMINISTRATOR_ROLE in current_user["roles"]:
        return None
    return current_user["user_id"]


def _unexpected(operation: str, error: Exception, **extra) -> InternalServerError:
    logger.error(
        f"Unexpected error in booking {operation}",
        extra={**extra, "error": str(error)},
        exc_info=True
    )
    return InternalServerError()


@router.post("/create", response_model=Booking)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """
    Book a seat on a trip for the authenticated user.

    Debits credits_used from the user's balance and takes one seat.
    """
    booking_service = BookingService(db)

    try:
        booking = await booking_service.create(request, current_user["user_id"])
        return _json(Booking.model_validate(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected(
            "creation", e,
            trip_id=str(request.trip_id),
            passenger_id=str(current_user["user_id"])
        ) from e


@router.post("/get", response_model=Booking)
async def get_booking(
    request: GetBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """Get one of the authenticated user's bookings."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.find_one(request.booking_id, _owner_scope(current_user))
        return _json(Booking.model_validate(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("retrieval", e, booking_id=str(request.booking_id)) from e


@router.post("/list", response_model=BookingList)
async def list_bookings(
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """List the authenticated user's bookings, newest first."""
    booking_service = BookingService(db)

    try:
        bookings = await booking_service.find_all_for_user(current_user["user_id"])
        return _json(BookingList(items=[Booking.model_validate(b) for b in bookings]))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("listing", e, user_id=str(current_user["user_id"])) from e


@router.post("/by-trip", response_model=BookingList)
async def list_trip_bookings(
    request: ListTripBookingsRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """
    List the bookings of a trip.

    Only the trip's driver may list them.
    """
    booking_service = BookingService(db)
    trip_service = TripService(db)

    try:
        trip = await trip_service.get_trip_by_id_or_raise(request.trip_id)

        if trip.driver_id != current_user["user_id"]:
            raise AuthorizationError(detail="Only the driver of the trip can list its bookings")

        bookings = await booking_service.find_by_trip(request.trip_id)
        return _json(BookingList(items=[Booking.model_validate(b) for b in bookings]))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("listing by trip", e, trip_id=str(request.trip_id)) from e


@router.post("/update", response_model=Booking)
async def update_booking(
    request: UpdateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """
    Patch a booking's notes.

    Status changes go through /confirm, /complete and /cancel.
    """
    booking_service = BookingService(db)

    try:
        booking = await booking_service.update(request.booking_id, request, _owner_scope(current_user))
        return _json(Booking.model_validate(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("update", e, booking_id=str(request.booking_id)) from e


@router.post("/cancel", response_model=Booking)
async def cancel_booking(
    request: CancelBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """
    Cancel one of the authenticated user's bookings.

    Refunds the credits and releases the seat.
    """
    booking_service = BookingService(db)

    try:
        booking = await booking_service.cancel(request.booking_id, current_user["user_id"])
        return _json(Booking.model_validate(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("cancellation", e, booking_id=str(request.booking_id)) from e


@router.post("/confirm", response_model=Booking)
async def confirm_booking(
    request: ConfirmBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """Confirm a pending booking as the trip's driver."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.confirm(request.booking_id, current_user["user_id"])
        return _json(Booking.model_validate(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("confirmation", e, booking_id=str(request.booking_id)) from e


@router.post("/complete", response_model=Booking)
async def complete_booking(
    request: CompleteBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = RequiredAuth
) -> JSONResponse:
    """Complete a confirmed booking as the trip's driver."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.complete(request.booking_id, current_user["user_id"])
        return _json(Booking.model_validate(booking))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("completion", e, booking_id=str(request.booking_id)) from e


@router.post("/delete", response_model=DeleteBookingResponse)
async def delete_booking(
    request: DeleteBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: dict = AdministratorAuth
) -> JSONResponse:
    """
    Remove a booking. Administrators only.

    An active booking is refunded and its seat released before removal.
    """
    booking_service = BookingService(db)

    try:
        deleted = await booking_service.delete(request.booking_id)
        if not deleted:
            raise NotFoundError(resource_type="booking", resource_id=str(request.booking_id))

        logger.info(
            "Booking deleted by administrator",
            extra={"booking_id": str(request.booking_id), "administrator_id": str(current_user["user_id"])}
        )

        return _json(DeleteBookingResponse(booking_id=request.booking_id, deleted=True))

    except ProblemDetailsException:
        raise

    except Exception as e:
        raise _unexpected("deletion", e, booking_id=str(request.booking_id)) from e
