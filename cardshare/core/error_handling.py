import logging
from functools import wraps
from typing import Callable, Dict, Optional, ParamSpec, Type, TypeVar

from fastapi import HTTPException

from .exceptions.base import AppError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

ErrorMapping = Dict[Type[Exception], tuple[int, str]]

DEFAULT_ERROR_MAPPING: ErrorMapping = {
    AppError: (500, "Internal application error"),
    ValueError: (400, "Invalid input"),
    KeyError: (404, "Resource not found"),
    Exception: (500, "Internal server error"),
}


def _lookup(error: Exception, mapping: ErrorMapping) -> tuple[int, str]:
    # Most specific class in the MRO wins; Exception is always mapped
    for exc_type in type(error).__mro__:
        if exc_type in mapping:
            return mapping[exc_type]
    return mapping[Exception]


def handle_exceptions(
    error_mapping: Optional[ErrorMapping] = None,
    log_level: int = logging.ERROR,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Exception handler with error mapping and logging

    Args:
        error_mapping: Custom mapping of exceptions to (status_code, message)
        log_level: Logging level for errors

    Usage:
        @handle_exceptions({
            ValidationError: (400, "Invalid input"),
            CardNotFoundError: (404, "Card not found"),
            CorruptStoreError: (500, "Card document is corrupt")
        })
        async def my_route():
            ...
    """
    combined_mapping = {**DEFAULT_ERROR_MAPPING, **(error_mapping or {})}

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                status_code, message = _lookup(e, combined_mapping)
                log_data = {
                    "function_name": func.__name__,
                    "function_module": func.__module__,
                    "exception_type": type(e).__name__,
                }

                if isinstance(e, AppError):
                    log_data.update({"error_code": e.error_code, "details": e.details})
                    # The specific message is the useful part for callers
                    error_response = {"message": e.message, "error_code": e.error_code, "details": e.details}
                    logger.log(log_level, e.message, extra=log_data)
                else:
                    error_response = {"message": message}
                    logger.log(log_level, str(e), extra=log_data, exc_info=True)

                raise HTTPException(status_code=status_code, detail=error_response)

        return wrapper

    return decorator
