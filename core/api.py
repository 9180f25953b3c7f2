"""API utilities for FastAPI route handling."""

import functools
import logging
from collections.abc import Callable
from typing import Any

from fastapi import HTTPException, status

from core.exceptions import (
    DuplicateResourceException,
    InternalException,
    ResourceNotFoundException,
    TripDeskException,
    ValidationException,
)


def api_response(
    message: str,
    data: Any = None,
    *,
    status_code: int = status.HTTP_200_OK,
) -> dict[str, Any]:
    """Wrap a successful result in the standard response envelope."""
    return {
        "success": True,
        "statusCode": status_code,
        "message": message,
        "data": data,
    }


def _error_detail(status_code: int, message: str) -> dict[str, Any]:
    return {
        "success": False,
        "statusCode": status_code,
        "message": message,
    }


def api_route(logger: logging.Logger):
    """
    Decorator for FastAPI endpoints that provides standardized error handling.

    Wraps async endpoint functions with try/except to:
    - Re-raise HTTPException instances as-is
    - Map custom exceptions to appropriate HTTP status codes
    - Log and convert other exceptions to 500 HTTPException

    Usage:
        @router.get("/api/example")
        @api_route(logger)
        async def my_endpoint():
            # ... business logic ...
            return result
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except ValidationException as e:
                logger.warning("Validation error in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=_error_detail(status.HTTP_400_BAD_REQUEST, e.message),
                ) from e
            except ResourceNotFoundException as e:
                logger.info("Resource not found in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=_error_detail(status.HTTP_404_NOT_FOUND, e.message),
                ) from e
            except DuplicateResourceException as e:
                logger.warning("Duplicate resource in %s: %s", func.__name__, e.message)
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=_error_detail(status.HTTP_409_CONFLICT, e.message),
                ) from e
            except InternalException as e:
                logger.error(
                    "Store failure in %s: %s (%s)",
                    func.__name__,
                    e.message,
                    e.details.get("error"),
                )
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=_error_detail(
                        status.HTTP_500_INTERNAL_SERVER_ERROR,
                        e.message,
                    ),
                ) from e
            except TripDeskException as e:
                logger.exception(
                    "Application error in %s: %s",
                    func.__name__,
                    e.message,
                )
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=_error_detail(
                        status.HTTP_500_INTERNAL_SERVER_ERROR,
                        e.message,
                    ),
                ) from e
            except Exception as e:
                logger.exception("Unexpected error in %s", func.__name__)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=_error_detail(
                        status.HTTP_500_INTERNAL_SERVER_ERROR,
                        str(e),
                    ),
                ) from e

        return wrapper

    return decorator
