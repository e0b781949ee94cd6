from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from classmint.utils import flash

log = logging.getLogger(__name__)


class ClassMintError(Exception):
    """Base class for every failure a workflow can surface to the user."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ClassMintError):
    """Required input is missing or invalid. Raised before any store call."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ClassMintError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "No authenticated user found"):
        super().__init__(message)


class PermissionDeniedError(ClassMintError):
    code = "PERMISSION_DENIED"
    status_code = status.HTTP_403_FORBIDDEN


class PreconditionError(ClassMintError):
    """A referenced row (student, wallet, seat, classroom) does not exist."""

    code = "PRECONDITION_FAILED"
    status_code = status.HTTP_404_NOT_FOUND


class RpcError(ClassMintError):
    """The store rejected or failed a call: connectivity, constraint violations, etc."""

    code = "BACKEND_ERROR"
    status_code = status.HTTP_502_BAD_GATEWAY


async def classmint_error_handler(request: Request, exc: ClassMintError) -> JSONResponse:
    if isinstance(exc, RpcError):
        log.error("Backend call failed on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        log.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    if "session" in request.scope:
        flash(request, exc.message, "danger")
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": {"code": exc.code, "message": exc.message}},
    )
