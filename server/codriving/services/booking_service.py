"""Booking service: the booking lifecycle and credit/seat reconciliation."""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.exceptions import InvalidRequestError, NotFoundError
from ..core.observability import metrics_collector
from ..models.booking import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus
from ..models.trip import Trip
from ..schemas.booking import CreateBookingRequest, UpdateBookingRequest
from .trip_service import TripService
from .user_service import UserService

logger = logging.getLogger(__name__)


class InsufficientCreditsError(InvalidRequestError):
    """Exception when a passenger cannot pay for a booking."""

    def __init__(self, user_id: str, requested_credits: int, available_credits: int):
        super().__init__(
            detail=f"Insufficient credits. Requested: {requested_credits}, Available: {available_credits}",
            code="INSUFFICIENT_CREDITS",
            extensions={
                "user_id": user_id,
                "requested_credits": requested_credits,
                "available_credits": available_credits
            }
        )


class NoSeatsAvailableError(InvalidRequestError):
    """Exception when a trip has no seat left."""

    def __init__(self, trip_id: str):
        super().__init__(
            detail=f"Trip {trip_id} has no seats available",
            code="NO_SEATS_AVAILABLE",
            extensions={"trip_id": trip_id}
        )


class AlreadyBookedError(InvalidRequestError):
    """Exception when the passenger already holds a confirmed booking on the trip."""

    def __init__(self, trip_id: str, booking_id: str):
        super().__init__(
            detail=f"Trip {trip_id} is already booked by this passenger",
            code="ALREADY_BOOKED",
            extensions={"trip_id": trip_id, "booking_id": booking_id}
        )


class AlreadyCancelledError(InvalidRequestError):
    def __init__(self, booking_id: str):
        super().__init__(
            detail=f"Booking {booking_id} is already cancelled",
            code="ALREADY_CANCELLED",
            extensions={"booking_id": booking_id}
        )


class NotTripDriverError(InvalidRequestError):
    """Exception when someone other than the trip driver confirms or completes."""

    def __init__(self, booking_id: str, action: str):
        super().__init__(
            detail=f"Only the driver of the trip can {action} booking {booking_id}",
            code="NOT_TRIP_DRIVER",
            extensions={"booking_id": booking_id, "action": action}
        )


class InvalidTransitionError(InvalidRequestError):
    """Exception when a booking is not in a state that allows the transition."""

    def __init__(self, booking_id: str, current_status: BookingStatus, target_status: BookingStatus):
        super().__init__(
            detail=(
                f"Booking {booking_id} cannot move from {current_status.value} "
                f"to {target_status.value}"
            ),
            code="INVALID_TRANSITION",
            extensions={
                "booking_id": booking_id,
                "current_status": current_status.value,
                "target_status": target_status.value
            }
        )


class BookingService:
    """
    Service for the booking lifecycle.

    Every transition runs in a single transaction: the rows it reads are
    locked in the order booking, user, trip; all checks run before any write;
    the writes are committed together. Only this service changes user credits
    and trip seat counts.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)
        self.trip_service = TripService(db)

    def _reject(self, error: InvalidRequestError, message: str, **extra: Any) -> InvalidRequestError:
        logger.warning(message, extra={"code": error.code, **extra})
        metrics_collector.record_booking_rejected(error.code)
        return error

    async def _lock_booking(
        self,
        booking_id: UUID,
        passenger_id: Optional[UUID] = None,
        with_trip: bool = False
    ) -> Optional[Booking]:
        stmt = select(Booking).where(Booking.id == booking_id)
        if passenger_id is not None:
            stmt = stmt.where(Booking.passenger_id == passenger_id)
        if with_trip:
            stmt = stmt.options(selectinload(Booking.trip).selectinload(Trip.driver))
        stmt = stmt.with_for_update(of=Booking).execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, request: CreateBookingRequest, passenger_id: UUID) -> Booking:
        """
        Book one seat on a trip for a passenger.

        Preconditions are checked in order and the first failure is raised:
        passenger exists, passenger can pay, trip exists, trip has a seat,
        passenger has no confirmed booking on the trip.

        Args:
            request: Booking creation request
            passenger_id: Acting user

        Returns:
            Created booking in PENDING status

        Raises:
            NotFoundError: If the passenger or the trip does not exist
            InsufficientCreditsError: If the balance is below credits_used
            NoSeatsAvailableError: If the trip is full
            AlreadyBookedError: If a confirmed booking already exists
        """
        passenger = await self.user_service.find_by_id(passenger_id, for_update=True)
        if not passenger:
            logger.warning(
                "Booking creation failed - passenger not found",
                extra={"passenger_id": str(passenger_id), "trip_id": str(request.trip_id)}
            )
            raise NotFoundError(resource_type="user", resource_id=str(passenger_id))

        if passenger.credits < request.credits_used:
            raise self._reject(
                InsufficientCreditsError(str(passenger_id), request.credits_used, passenger.credits),
                "Booking creation failed - insufficient credits",
                passenger_id=str(passenger_id),
                requested_credits=request.credits_used,
                available_credits=passenger.credits
            )

        trip = await self.trip_service.find_one(request.trip_id, for_update=True)
        if not trip:
            logger.warning(
                "Booking creation failed - trip not found",
                extra={"passenger_id": str(passenger_id), "trip_id": str(request.trip_id)}
            )
            raise NotFoundError(resource_type="trip", resource_id=str(request.trip_id))

        if trip.seats_available <= 0:
            raise self._reject(
                NoSeatsAvailableError(str(trip.id)),
                "Booking creation failed - no seats available",
                passenger_id=str(passenger_id),
                trip_id=str(trip.id)
            )

        existing_id = await self._confirmed_booking_id(passenger_id, trip.id)
        if existing_id is not None:
            raise self._reject(
                AlreadyBookedError(str(trip.id), str(existing_id)),
                "Booking creation failed - already booked",
                passenger_id=str(passenger_id),
                trip_id=str(trip.id),
                booking_id=str(existing_id)
            )

        # Counters move only after every check passed
        booking = Booking(
            passenger_id=passenger_id,
            trip_id=trip.id,
            status=BookingStatus.PENDING,
            credits_used=request.credits_used,
            notes=request.notes
        )
        self.db.add(booking)
        await self.user_service.update_credits(
            passenger_id, passenger.credits - request.credits_used, commit=False
        )
        await self.trip_service.update_seats(trip.id, trip.seats_available - 1, commit=False)

        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_created(booking.credits_used)

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "passenger_id": str(passenger_id),
                "trip_id": str(trip.id),
                "credits_used": booking.credits_used,
                "remaining_credits": passenger.credits,
                "remaining_seats": trip.seats_available
            }
        )

        return booking

    async def find_one(self, booking_id: UUID, requester_id: Optional[UUID] = None) -> Booking:
        """
        Get a booking by ID.

        When requester_id is given only the requester's own bookings are
        visible; anything else reports as not found.

        Raises:
            NotFoundError: If the booking does not exist or is not visible
        """
        stmt = select(Booking).where(Booking.id == booking_id)
        if requester_id is not None:
            stmt = stmt.where(Booking.passenger_id == requester_id)

        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()

        if not booking:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        return booking

    async def find_all_for_user(self, user_id: UUID) -> list[Booking]:
        """List the bookings a user made as a passenger, newest first."""
        return await self.find_by_passenger(user_id)

    async def find_by_passenger(
        self,
        passenger_id: UUID,
        statuses: Optional[tuple[BookingStatus, ...]] = None
    ) -> list[Booking]:
        stmt = select(Booking).where(Booking.passenger_id == passenger_id)
        if statuses:
            stmt = stmt.where(Booking.status.in_(statuses))
        stmt = stmt.order_by(Booking.created_at.desc(), Booking.id)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_trip(
        self,
        trip_id: UUID,
        statuses: Optional[tuple[BookingStatus, ...]] = None
    ) -> list[Booking]:
        stmt = select(Booking).where(Booking.trip_id == trip_id)
        if statuses:
            stmt = stmt.where(Booking.status.in_(statuses))
        stmt = stmt.order_by(Booking.created_at.desc(), Booking.id)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update(
        self,
        booking_id: UUID,
        request: UpdateBookingRequest,
        requester_id: Optional[UUID] = None
    ) -> Booking:
        """
        Patch the notes of a booking.

        Status changes only go through confirm, complete and cancel; a status
        in the patch must equal the current one.

        Raises:
            NotFoundError: If the booking does not exist or is not owned
            InvalidTransitionError: If the patch asks for a different status
        """
        booking = await self._lock_booking(booking_id, passenger_id=requester_id)
        if not booking:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        if request.status is not None and request.status != booking.status:
            raise self._reject(
                InvalidTransitionError(str(booking_id), booking.status, request.status),
                "Booking update failed - status changes require a lifecycle operation",
                booking_id=str(booking_id),
                current_status=booking.status.value,
                requested_status=request.status.value
            )

        if "notes" in request.model_fields_set:
            booking.notes = request.notes

        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)

        logger.info("Booking updated", extra={"booking_id": str(booking_id)})

        return booking

    async def _release(self, booking: Booking) -> None:
        """Refund the passenger and give the seat back, without committing."""
        passenger = await self.user_service.find_by_id(booking.passenger_id, for_update=True)
        if not passenger:
            raise NotFoundError(resource_type="user", resource_id=str(booking.passenger_id))

        trip = await self.trip_service.find_one(booking.trip_id, for_update=True)
        if not trip:
            raise NotFoundError(resource_type="trip", resource_id=str(booking.trip_id))

        await self.user_service.update_credits(
            passenger.id, passenger.credits + booking.credits_used, commit=False
        )
        await self.trip_service.update_seats(trip.id, trip.seats_available + 1, commit=False)

    async def cancel(self, booking_id: UUID, requester_id: UUID) -> Booking:
        """
        Cancel an owned booking, refunding its credits and releasing its seat.

        Raises:
            NotFoundError: If the booking does not exist or is not owned
            AlreadyCancelledError: If the booking is already cancelled
            InvalidTransitionError: If the booking is completed
        """
        booking = await self._lock_booking(booking_id, passenger_id=requester_id)
        if not booking:
            logger.warning(
                "Booking cancellation failed - booking not found",
                extra={"booking_id": str(booking_id), "requester_id": str(requester_id)}
            )
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        if booking.status == BookingStatus.CANCELLED:
            raise self._reject(
                AlreadyCancelledError(str(booking_id)),
                "Booking cancellation failed - already cancelled",
                booking_id=str(booking_id)
            )

        if booking.status == BookingStatus.COMPLETED:
            raise self._reject(
                InvalidTransitionError(str(booking_id), booking.status, BookingStatus.CANCELLED),
                "Booking cancellation failed - booking is completed",
                booking_id=str(booking_id)
            )

        previous_status = booking.status
        await self._release(booking)
        booking.status = BookingStatus.CANCELLED
        self.db.add(booking)

        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_transition(BookingStatus.CANCELLED.value)
        metrics_collector.record_refund(booking.credits_used)

        logger.info(
            "Booking cancelled successfully",
            extra={
                "booking_id": str(booking_id),
                "previous_status": previous_status.value,
                "refunded_credits": booking.credits_used
            }
        )

        return booking

    async def _confirmed_booking_id(
        self, passenger_id: UUID, trip_id: UUID, exclude_id: Optional[UUID] = None
    ) -> Optional[UUID]:
        """Id of the passenger's CONFIRMED booking on the trip, if any."""
        stmt = select(Booking.id).where(
            Booking.passenger_id == passenger_id,
            Booking.trip_id == trip_id,
            Booking.status == BookingStatus.CONFIRMED
        )
        if exclude_id is not None:
            stmt = stmt.where(Booking.id != exclude_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def _driver_transition(
        self,
        booking_id: UUID,
        driver_id: UUID,
        action: str,
        required_status: BookingStatus,
        target_status: BookingStatus
    ) -> Booking:
        booking = await self._lock_booking(booking_id, with_trip=True)
        if not booking:
            logger.warning(
                f"Booking {action} failed - booking not found",
                extra={"booking_id": str(booking_id), "driver_id": str(driver_id)}
            )
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        if booking.trip.driver_id != driver_id:
            raise self._reject(
                NotTripDriverError(str(booking_id), action),
                f"Booking {action} failed - actor is not the trip driver",
                booking_id=str(booking_id),
                driver_id=str(driver_id),
                trip_driver_id=str(booking.trip.driver_id)
            )

        if booking.status != required_status:
            raise self._reject(
                InvalidTransitionError(str(booking_id), booking.status, target_status),
                f"Booking {action} failed - booking is not {required_status.value}",
                booking_id=str(booking_id),
                current_status=booking.status.value
            )

        if target_status == BookingStatus.CONFIRMED:
            existing_id = await self._confirmed_booking_id(
                booking.passenger_id, booking.trip_id, exclude_id=booking.id
            )
            if existing_id is not None:
                raise self._reject(
                    AlreadyBookedError(str(booking.trip_id), str(existing_id)),
                    f"Booking {action} failed - passenger already holds a confirmed booking",
                    booking_id=str(booking_id),
                    passenger_id=str(booking.passenger_id),
                    existing_booking_id=str(existing_id)
                )

        booking.status = target_status
        self.db.add(booking)

        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_transition(target_status.value)

        logger.info(
            f"Booking {target_status.value.lower()} successfully",
            extra={"booking_id": str(booking_id), "driver_id": str(driver_id)}
        )

        return booking

    async def confirm(self, booking_id: UUID, driver_id: UUID) -> Booking:
        """
        Confirm a pending booking. Only the trip's driver may confirm.

        Raises:
            NotFoundError: If the booking does not exist
            NotTripDriverError: If driver_id is not the trip's driver
            InvalidTransitionError: If the booking is not PENDING
            AlreadyBookedError: If the passenger already holds a confirmed booking on the trip
        """
        return await self._driver_transition(
            booking_id, driver_id, "confirm", BookingStatus.PENDING, BookingStatus.CONFIRMED
        )

    async def complete(self, booking_id: UUID, driver_id: UUID) -> Booking:
        """
        Complete a confirmed booking. Only the trip's driver may complete.

        Raises:
            NotFoundError: If the booking does not exist
            NotTripDriverError: If driver_id is not the trip's driver
            InvalidTransitionError: If the booking is not CONFIRMED
        """
        return await self._driver_transition(
            booking_id, driver_id, "complete", BookingStatus.CONFIRMED, BookingStatus.COMPLETED
        )

    async def delete(self, booking_id: UUID) -> bool:
        """
        Remove a booking administratively.

        An active booking is released first, with the same refund and seat
        release as a cancellation, inside the same transaction.

        Returns:
            True if the booking was removed, False if it did not exist
        """
        booking = await self._lock_booking(booking_id)
        if not booking:
            logger.info("Booking deletion skipped - not found", extra={"booking_id": str(booking_id)})
            return False

        released = booking.status in ACTIVE_BOOKING_STATUSES
        if released:
            await self._release(booking)

        await self.db.delete(booking)
        await self.db.commit()

        metrics_collector.record_booking_deleted()
        if released:
            metrics_collector.record_refund(booking.credits_used)

        logger.info(
            "Booking deleted",
            extra={
                "booking_id": str(booking_id),
                "status": booking.status.value,
                "released": released
            }
        )

        return True
