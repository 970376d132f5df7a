"""Pydantic schemas for request/response validation."""

from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .health import *  # noqa: F403
from .search import *  # noqa: F403
from .trip import *  # noqa: F403
from .user import *  # noqa: F403
