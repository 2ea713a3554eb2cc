import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from clipbridge.errors import AccessDeniedError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"error": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def request_validation_handler(_: Request, exc: Exception) -> Response:
    """Malformed request bodies are client errors (400), not 422."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    logger.debug("Request validation failed: %s", errors)
    return create_json_error_response(status_code=400, message="Invalid request data", error_type="validation_error")


async def http_exception_handler(_: Request, exc: Exception) -> Response:
    if isinstance(exc, StarletteHTTPException) and exc.status_code == 404:
        return create_json_error_response(status_code=404, message="Route not found", error_type="not_found")
    status_code = exc.status_code if isinstance(exc, StarletteHTTPException) else 500
    detail = exc.detail if isinstance(exc, StarletteHTTPException) else "Internal server error"
    return create_json_error_response(status_code=status_code, message=str(detail))


async def resource_exhausted_handler(_: Request, exc: Exception) -> Response:
    logger.error("Resource exhausted: %s", exc)
    return create_json_error_response(
        status_code=500, message="Internal server error", error_type="resource_exhausted"
    )


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="Internal server error", error_type="internal_server_error"
    )
