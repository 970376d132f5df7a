"""Application factory for the co-driving booking API."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from .core.config import settings
from .core.database import close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    request_validation_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import booking, health, metrics, search, trip

setup_structured_logging()

# Services log through the stdlib logger with ``extra=`` payloads
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Wire tracing and metrics, create missing tables, dispose the engine on shutdown."""
    logger.info("Starting co-driving booking API", extra={"environment": settings.environment})

    try:
        setup_tracing()
        setup_metrics()
        instrument_sqlalchemy(engine)
        await init_db()
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    logger.info("Co-driving booking API ready")

    yield

    try:
        await close_db()
    except SQLAlchemyError as e:
        logger.error(f"Error while disposing the database engine: {e}")

    logger.info("Co-driving booking API stopped")


def create_app() -> FastAPI:
    """
    Build the FastAPI application.

    Routers, in registration order: unversioned probes, ``/v1/health``,
    ``/v1/booking``, ``/v1/trip``, ``/v1/search`` and ``/metrics``.
    """
    app = FastAPI(
        title="Co-driving Booking API",
        description="RPC-over-HTTP API for credit-paid seat bookings on shared rides and trip search",
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", "traceparent", "tracestate"],
        expose_headers=["X-Request-ID", "traceparent", "tracestate"],
    )

    setup_middleware(app, enable_logging=True)
    instrument_fastapi(app)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.probes_router)
    app.include_router(health.router)
    app.include_router(booking.router)
    app.include_router(trip.router)
    app.include_router(search.router)
    app.include_router(metrics.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "codriving.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
