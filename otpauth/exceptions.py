import logging
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for every failure raised by the OTP auth core."""

    status_code: int = 500
    public_message: str = "Internal server error"


class ConfigurationError(ValueError):
    """Raised at construction time when a required capability is missing."""


class NotFound(AuthError):
    status_code = 404
    public_message = "Not found"


class InvalidCode(AuthError):
    status_code = 422
    public_message = "Otp Code Is Wrong"


class ExpiredCode(AuthError):
    # Same public surface as InvalidCode so callers cannot tell them apart
    status_code = 422
    public_message = "Otp Code Is Wrong"


class Unauthenticated(AuthError):
    status_code = 401
    public_message = "Unauthorized"


class InvalidToken(AuthError):
    status_code = 401
    public_message = "Unauthorized"


class Forbidden(AuthError):
    status_code = 403
    public_message = "User already registered"


class StorageError(AuthError):
    pass


class DeliveryError(AuthError):
    public_message = "Failed to send OTP"


class SigningError(AuthError):
    pass


class RegistrationError(AuthError):
    status_code = 422
    public_message = "Something went wrong"


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }


def create_success_response(data) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map core errors that escaped a handler onto their generic HTTP form"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.public_message, exc.status_code),
    )
