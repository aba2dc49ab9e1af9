"""
Custom exception hierarchy for EcoPledge.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Oracle failures never appear here: they are absorbed by the services and replaced
with deterministic fallbacks (see ecopledge/services/oracle.py).
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class EcoPledgeException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class AuthenticationRequiredError(EcoPledgeException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_REQUIRED"

    def __init__(self, message: str = "Not authenticated."):
        super().__init__(message=message)


class AuthorizationDeniedError(EcoPledgeException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "AUTHORIZATION_DENIED"

    def __init__(self, action: str, resource: str, resource_id: int | None = None):
        details: dict[str, Any] = {"resource": resource}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(
            message=f"Not authorized to {action} this {resource}.",
            details=details,
        )


class NotFoundError(EcoPledgeException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: int | None = None):
        details: dict[str, Any] = {"resource": resource}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(message=f"{resource.capitalize()} not found.", details=details)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int):
        super().__init__(resource="user", resource_id=user_id)


class InvalidStatusTransitionError(EcoPledgeException):
    http_status = status.HTTP_409_CONFLICT
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot move commitment from '{current}' to '{requested}'.",
            details={"current": current, "requested": requested},
        )


class InsufficientRoleError(EcoPledgeException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "INSUFFICIENT_ROLE"

    def __init__(self, required: tuple[str, ...]):
        super().__init__(
            message="Insufficient permissions.",
            details={"required_roles": list(required)},
        )


class AlreadyJoinedError(EcoPledgeException):
    http_status = status.HTTP_409_CONFLICT
    code = "ALREADY_JOINED"

    def __init__(self, challenge_id: int):
        super().__init__(
            message="Already joined this challenge.",
            details={"id": challenge_id},
        )


class FlagAlreadyResolvedError(EcoPledgeException):
    http_status = status.HTTP_409_CONFLICT
    code = "FLAG_ALREADY_RESOLVED"

    def __init__(self, flag_id: int):
        super().__init__(
            message="Flag is already resolved.",
            details={"id": flag_id},
        )


class CommitmentCreationError(EcoPledgeException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "COMMITMENT_CREATION_FAILED"

    def __init__(self):
        super().__init__(message="Failed to create commitment.")


class ProgressRecordingError(EcoPledgeException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PROGRESS_RECORDING_FAILED"

    def __init__(self):
        super().__init__(message="Failed to add progress update.")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def ecopledge_exception_handler(request: Request, exc: EcoPledgeException) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.http_status == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
        headers=headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
