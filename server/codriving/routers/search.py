"""Keyword search router."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..schemas.search import SearchRequest, SearchResponse
from ..services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/search", tags=["search"])


@router.post("/all", response_model=SearchResponse)
async def search_all(
    request: SearchRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """Search users, cars and trips, optionally restricted to one type."""
    search_service = SearchService(db)

    try:
        results = await search_service.search_by_type(request.query, request.type)

        return JSONResponse(
            status_code=200,
            content=SearchResponse(items=results).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in keyword search",
            extra={"query": request.query, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
