"""Exception handlers rendering JSON error bodies."""

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinicbook.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def _error_body(error: str, message: object, request: Request) -> dict:
    return {"error": error, "message": message, "path": str(request.url)}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle application exceptions, including converted core errors.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response with the exception's status code
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.__class__.__name__, exc.message, request),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions raised by FastAPI and the dependencies."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTPException", exc.detail, request),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle request validation errors.

    Returns:
        422 response listing the failing fields
    """
    body = _error_body("ValidationError", "Request validation failed", request)
    body["details"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=422, content=body)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking their details."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("InternalServerError", "An unexpected error occurred", request),
    )
