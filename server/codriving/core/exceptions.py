"""Problem Details (RFC 9457) errors raised by the co-driving API."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"
PROBLEM_TYPE_BASE = "https://codriving.example/problems"


def problem_type(slug: str) -> str:
    return f"{PROBLEM_TYPE_BASE}/{slug}"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ProblemDetailsException(HTTPException):
    """
    Base class for every error the API reports to clients.

    The exception carries the full problem document in ``problem_details``;
    ``detail``, ``instance`` and any extension members are only emitted when
    present. See https://www.rfc-editor.org/rfc/rfc9457.
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Build the problem document.

        Args:
            status_code: HTTP status code
            title: Short summary shared by every occurrence of the problem type
            detail: Explanation of this particular occurrence
            type_uri: Problem type URI, ``about:blank`` fragment when omitted
            instance: Request path or URL the problem occurred on
            extensions: Extra members merged into the document
            headers: Response headers
        """
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = dict(extensions or {})

        document: Dict[str, Any] = {"type": self.type_uri, "title": title, "status": status_code}
        if detail:
            document["detail"] = detail
        if instance:
            document["instance"] = instance
        document.update(self.extensions)
        self.problem_details = document

        super().__init__(status_code=status_code, detail=document, headers=headers)

    @property
    def code(self) -> Optional[str]:
        """Machine-readable error code, set on business-rule rejections."""
        return self.problem_details.get("code")


class ValidationError(ProblemDetailsException):
    """Malformed request body (422)."""

    def __init__(
        self,
        detail: str = "The request body failed validation",
        violations: Optional[List[Dict[str, str]]] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=422,
            title="Validation Error",
            detail=detail,
            type_uri=problem_type("validation-error"),
            instance=instance,
            extensions={"violations": violations} if violations else None,
        )


class AuthenticationError(ProblemDetailsException):
    """Missing, expired or otherwise unusable bearer token (401)."""

    def __init__(self, detail: str = "A valid bearer token is required", instance: Optional[str] = None):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri=problem_type("authentication-required"),
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Authenticated caller lacking the role or ownership an operation needs (403)."""

    def __init__(
        self,
        detail: str = "You are not allowed to perform this operation",
        required_roles: Optional[List[str]] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=403,
            title="Forbidden",
            detail=detail,
            type_uri=problem_type("forbidden"),
            instance=instance,
            extensions={"required_roles": required_roles} if required_roles else None,
        )


class NotFoundError(ProblemDetailsException):
    """Unknown user, car, trip or booking (404)."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"resource_type": resource_type}
        if resource_id:
            extensions["resource_id"] = resource_id

        if not detail:
            detail = (
                f"No {resource_type} found with ID '{resource_id}'"
                if resource_id
                else f"No such {resource_type}"
            )

        super().__init__(
            status_code=404,
            title="Not Found",
            detail=detail,
            type_uri=problem_type("not-found"),
            instance=instance,
            extensions=extensions,
        )


class InvalidRequestError(ProblemDetailsException):
    """Well-formed request refused by a business rule (400), identified by ``code``."""

    def __init__(
        self,
        detail: str = "The request violates a business rule",
        code: str = "INVALID_REQUEST",
        extensions: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=400,
            title="Invalid Request",
            detail=detail,
            type_uri=problem_type(code.lower().replace("_", "-")),
            instance=instance,
            extensions={"code": code, **(extensions or {})},
        )


class InternalServerError(ProblemDetailsException):
    """Unexpected failure (500); ``error_id`` correlates the response with the logs."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri=problem_type("internal-error"),
            instance=instance,
            extensions={"error_id": error_id or str(uuid.uuid4()), "timestamp": _utc_timestamp()},
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """Render a ProblemDetailsException as ``application/problem+json``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type=PROBLEM_JSON,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return await problem_details_handler(request, ValidationError(violations=violations, instance=request.url.path))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last-resort handler for exceptions no router converted.

    Logs the traceback under a fresh ``error_id`` and answers with a 500
    problem document carrying the same id.
    """
    problem = InternalServerError(instance=request.url.path)

    logger.error(
        "Unhandled exception",
        extra={"error_id": problem.problem_details["error_id"], "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    return await problem_details_handler(request, problem)
