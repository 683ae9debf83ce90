# Airrelay: fetch and re-serve Taiwan air quality open data
# Copyright (C) 2025 Ruaraidh Dobson, South London Scientific

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.

# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Function decorators for cross-cutting concerns.

This module provides decorators that add logging and failure containment
to functions without modifying their core logic. Upstream calls are never
retried.
"""

import logging
from functools import wraps
from typing import Any, Callable, TypeVar

# Type variable for generic function signatures
F = TypeVar("F", bound=Callable)

# Get logger for this module
logger = logging.getLogger(__name__)


def with_logging(logger_name: str | None = None) -> Callable[[F], F]:
    """
    Decorator to add logging to function entry and exit.

    Logs calls at INFO level with the argument count and keyword names
    (never their values, which may include API keys). Errors are logged
    at ERROR level before being re-raised.

    Args:
        logger_name: Name of logger to use. If None, uses the module name.

    Returns:
        Callable: Decorated function with logging
    """

    def decorator(func: F) -> F:
        func_logger = logging.getLogger(logger_name or func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            func_logger.info(
                f"Calling {func.__name__}",
                extra={
                    "function": func.__name__,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )

            try:
                result = func(*args, **kwargs)
                func_logger.info(
                    f"Completed {func.__name__}", extra={"function": func.__name__}
                )
                return result
            except Exception as e:
                func_logger.error(
                    f"Error in {func.__name__}: {e}",
                    extra={
                        "function": func.__name__,
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                raise

        return wrapper

    return decorator


def ignore_exceptions(
    *exception_types: type[Exception],
    default_factory: Callable[[], Any] | None = None,
    level: int = logging.WARNING,
) -> Callable[[F], F]:
    """
    Decorator to catch specific exceptions and return a default value.

    Used where one failure must not spoil a larger result, such as a single
    hour in a batched window. The exception is logged, never re-raised.

    Args:
        *exception_types: Exception types to catch
        default_factory: Called to build the value returned on failure
            (default: return None).
        level: Logging level for the caught exception

    Returns:
        Callable: Decorated function that catches exceptions

    Example:
        >>> @ignore_exceptions(requests.RequestException, default_factory=list)
        ... def fetch_hour(monitor_date):
        ...     ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exception_types as e:
                logger.log(
                    level,
                    f"Ignored exception in {func.__name__}: {e}",
                    extra={
                        "function": func.__name__,
                        "exception_type": type(e).__name__,
                    },
                )
                return default_factory() if default_factory is not None else None

        return wrapper

    return decorator
