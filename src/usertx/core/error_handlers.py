import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from usertx.core.errors import (
    ConstraintError,
    DatabaseConnectionError,
    InvalidStateError,
    OperationTimeoutError,
    RepositoryError,
)

logger = logging.getLogger(__name__)

# most specific first
STATUS_BY_ERROR: list[tuple[type[RepositoryError], int]] = [
    (OperationTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (DatabaseConnectionError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ConstraintError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
]


def status_for(exc: RepositoryError) -> int:
    """HTTP status code reported for a repository error."""
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(include_url=False)},
    )


async def repository_exception_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Handle errors raised by the user repository."""
    status_code = status_for(exc)
    logger.error(f"Repository error ({type(exc).__name__}) on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions."""
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"},
    )
