"""Keyword search Pydantic schemas."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class SearchResultType(str, Enum):
    USER = "user"
    CAR = "car"
    TRIP = "trip"


class SearchRequest(BaseModel):
    """Request schema for keyword search across users, cars and trips."""

    query: str = Field(..., max_length=100, description="Case-insensitive substring")
    type: SearchResultType | None = Field(None, description="Restrict results to one entity type")


class SearchResult(BaseModel):
    type: SearchResultType
    id: UUID
    title: str
    description: str | None = None


class SearchResponse(BaseModel):
    items: list[SearchResult] = Field(default_factory=list)
