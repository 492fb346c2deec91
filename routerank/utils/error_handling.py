"""
Error Handling Utilities

Exception types raised by the ranking core, plus a decorator that logs
failures with context before propagating them.
"""

import logging
import traceback
from functools import wraps
from typing import Callable, Tuple, Type

logger = logging.getLogger(__name__)


class RankingError(Exception):
    """Base class for ranking failures."""
    pass


class IncompatibleMergeError(RankingError, ValueError):
    """Raised when merging results computed with different grid configurations."""

    def __init__(self, message: str, left: Tuple[int, int], right: Tuple[int, int]):
        self.message = message
        self.left = left
        self.right = right
        super().__init__(self.message)


def handle_specific_exceptions(
    exceptions: Tuple[Type[Exception], ...],
    error_context: str = "",
    log_level: int = logging.ERROR,
) -> Callable:
    """
    Decorator that logs specific exceptions with context and re-raises them.

    Args:
        exceptions: Tuple of exception types to catch
        error_context: Context string for error messages
        log_level: Logging level for errors

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                context = f"{error_context}: " if error_context else ""
                logger.log(log_level, f"{context}{type(e).__name__}: {e}")
                logger.debug(f"Error details for {func.__name__}: {traceback.format_exc()}")
                raise
        return wrapper
    return decorator
