"""FastAPI routers package."""

from .booking import router as booking_router
from .health import probes_router
from .health import router as health_router
from .metrics import router as metrics_router
from .search import router as search_router
from .trip import router as trip_router

__all__ = [
    "booking_router",
    "health_router",
    "metrics_router",
    "probes_router",
    "search_router",
    "trip_router",
]
