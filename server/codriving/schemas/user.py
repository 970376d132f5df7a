"""User and car Pydantic schemas used by the collaborator services."""

from pydantic import BaseModel, Field


class CreateUserRequest(BaseModel):
    """Request schema for creating a user."""

    pseudo: str = Field(..., min_length=1, max_length=100, description="Public pseudonym")
    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    mail: str = Field(..., min_length=3, max_length=150, pattern=r"^[^@\s]+@[^@\s]+$")
    credits: int = Field(20, ge=0, description="Initial credit balance")
    profile_picture: bytes | None = Field(None, description="Raw profile picture bytes")


class CreateCarRequest(BaseModel):
    """Request schema for registering a car."""

    model: str = Field(..., min_length=1, max_length=100)
    license_plate: str = Field(..., min_length=1, max_length=20)
    energy: str = Field("Gasoline", pattern=r"^(Electric|Hybrid|Gasoline|Diesel)$")
    color: str = Field(..., min_length=1, max_length=50)
