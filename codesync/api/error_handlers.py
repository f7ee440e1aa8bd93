# codesync/api/error_handlers.py
"""
API error handling utilities.

A decorator that maps codesync exceptions to HTTP status codes so routes
stay free of try/except boilerplate.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

from fastapi import HTTPException

from codesync.core.exceptions import (
    FatalConfigError,
    InvalidSignatureError,
    SyncInProgressError,
    ValidationError,
)
from codesync.logging.logger import get_logger
from codesync.logging.tags import API

logger = get_logger(__name__)

T = TypeVar("T")


def handle_api_errors(fn: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator for standardized API error handling.

    Maps exceptions to HTTP status codes:
    - InvalidSignatureError -> 401 Unauthorized
    - ValidationError, ValueError -> 400 Bad Request
    - KeyError -> 404 Not Found
    - SyncInProgressError -> 409 Conflict
    - FatalConfigError -> 422 Unprocessable Entity
    - HTTPException -> Re-raised as-is
    - Exception -> 500 Internal Server Error
    """

    @wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except HTTPException:
            raise
        except InvalidSignatureError as e:
            logger.warning(f"{API} Rejected webhook: {e}")
            raise HTTPException(status_code=401, detail=str(e))
        except (ValidationError, ValueError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        except KeyError as e:
            detail = str(e).strip("'\"") if str(e) else "Resource not found"
            raise HTTPException(status_code=404, detail=detail)
        except SyncInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except FatalConfigError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except Exception as e:
            logger.exception(f"{API} Unexpected error in {fn.__name__}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    return wrapper


__all__ = ["handle_api_errors"]
