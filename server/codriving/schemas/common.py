"""Problem document schemas, used to document error responses."""

from typing import List, Optional

from pydantic import BaseModel, Field


class Violation(BaseModel):
    path: str = Field(..., description="Dotted location of the offending field, e.g. body.credits_used")
    message: str = Field(..., description="Why the value was rejected")


class Problem(BaseModel):
    """RFC 9457 problem document as returned by every failing endpoint."""

    type: str = Field(..., description="Problem type URI")
    title: str = Field(..., description="Summary of the problem type")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Explanation of this occurrence")
    instance: Optional[str] = Field(None, description="Request path the problem occurred on")
    code: Optional[str] = Field(None, description="Business-rule code such as NO_SEATS_AVAILABLE")
    resource_type: Optional[str] = Field(None, description="Kind of resource that was not found")
    resource_id: Optional[str] = Field(None, description="Identifier that matched nothing")
    required_roles: Optional[List[str]] = Field(None, description="Roles the operation needs")
    error_id: Optional[str] = Field(None, description="Log correlation id of an internal error")
    violations: Optional[List[Violation]] = Field(None, description="Rejected request fields")
