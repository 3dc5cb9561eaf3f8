"""Booking error taxonomy and exception handlers with request_id in responses."""

from typing import Any
from uuid import UUID

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.staffing.core.logging import get_logger
from src.staffing.models.enums import BookingStatus

logger = get_logger(__name__)


class BookingError(Exception):
    """Base class for every failure surfaced by the booking core.

    Each subclass carries a stable ``code`` so that callers (and the HTTP
    boundary) can tell failure kinds apart without parsing messages.
    """

    code: str = "booking_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        *,
        assignment_id: UUID | None = None,
        current: BookingStatus | None = None,
        requested: BookingStatus | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.assignment_id = assignment_id
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "code": self.code,
            "assignment_id": str(self.assignment_id) if self.assignment_id else None,
            "current_status": self.current.value if self.current else None,
            "requested_status": self.requested.value if self.requested else None,
        }


class InvalidTransition(BookingError):
    """Requested (from, to) pair is not a legal edge, or its precondition failed."""

    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        current: BookingStatus,
        requested: BookingStatus,
        reason: str | None = None,
        *,
        assignment_id: UUID | None = None,
    ):
        message = f"Illegal transition {current.value} -> {requested.value}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message, assignment_id=assignment_id, current=current, requested=requested
        )
        self.reason = reason


class AlreadyResolved(BookingError):
    """Optimistic precondition failed: another actor already resolved the slot."""

    code = "already_resolved"
    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        current: BookingStatus,
        requested: BookingStatus,
        *,
        assignment_id: UUID | None = None,
    ):
        super().__init__(
            "This mission is no longer available",
            assignment_id=assignment_id,
            current=current,
            requested=requested,
        )


class NotAuthorized(BookingError):
    """Candidate does not hold the current offer on the assignment."""

    code = "not_authorized"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        candidate_id: UUID,
        *,
        assignment_id: UUID | None = None,
        current: BookingStatus | None = None,
        requested: BookingStatus | None = None,
    ):
        super().__init__(
            "You are not allowed to act on this mission",
            assignment_id=assignment_id,
            current=current,
            requested=requested,
        )
        self.candidate_id = candidate_id


class TransientPersistenceError(BookingError):
    """Storage failed for infrastructure reasons. Safe to retry with backoff."""

    code = "transient_persistence_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class AssignmentNotFound(BookingError):
    code = "assignment_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, assignment_id: UUID):
        super().__init__(f"Assignment {assignment_id} not found", assignment_id=assignment_id)


class ProjectNotFound(BookingError):
    code = "project_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, project_id: UUID):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class RequirementsIncomplete(BookingError):
    """Assignment cannot be opened for matching until profile and seniority are set."""

    code = "requirements_incomplete"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ProjectNotReady(BookingError):
    """Project lifecycle action rejected (e.g. start before fully staffed)."""

    code = "project_not_ready"
    status_code = status.HTTP_409_CONFLICT


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        content = exc.to_dict()
        content["request_id"] = correlation_id.get()
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
