"""Trip router for trip search operations."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import InternalServerError, NotFoundError, ProblemDetailsException
from ..schemas.common import Problem
from ..schemas.trip import (
    AlternativeTripsRequest,
    AlternativeTripsResponse,
    GetTripRequest,
    TripDetails,
    TripSearchRequest,
    TripSearchResponse,
)
from ..services.trip_search_service import TripSearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/trip", tags=["trip"], responses={404: {"model": Problem}, 422: {"model": Problem}})


@router.post("/search", response_model=TripSearchResponse)
async def search_trips(
    request: TripSearchRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """
    Search bookable trips.

    When nothing departs on the requested date, trips from the day before
    and the day after are returned in ``alternatives``.
    """
    search_service = TripSearchService(db)

    try:
        items = await search_service.search_trips(request)

        alternatives = []
        if not items:
            alternatives = await search_service.find_alternative_trips(
                request.departure_city,
                request.arrival_city,
                request.departure_date
            )

        response_data = TripSearchResponse(items=items, alternatives=alternatives)

        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in trip search",
            extra={
                "departure_city": request.departure_city,
                "arrival_city": request.arrival_city,
                "error": str(e)
            },
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/alternatives", response_model=AlternativeTripsResponse)
async def find_alternative_trips(
    request: AlternativeTripsRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """Trips on the day before or after the requested date."""
    search_service = TripSearchService(db)

    try:
        items = await search_service.find_alternative_trips(
            request.departure_city,
            request.arrival_city,
            request.departure_date
        )

        return JSONResponse(
            status_code=200,
            content=AlternativeTripsResponse(items=items).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in alternative trip search",
            extra={"error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.post("/get", response_model=TripDetails)
async def get_trip(
    request: GetTripRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """Get a trip with its driver, car and bookings."""
    search_service = TripSearchService(db)

    try:
        details = await search_service.get_trip_details(request.trip_id)
        if details is None:
            raise NotFoundError(resource_type="trip", resource_id=str(request.trip_id))

        return JSONResponse(
            status_code=200,
            content=details.model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in trip retrieval",
            extra={"trip_id": str(request.trip_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
