"""
Base service class.

Provides common functionality for all service classes including
logging with bound service context and helper decorators.
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Logging with bound service context
    """

    def __init__(self) -> None:
        """Initialize base service."""
        self.logger = logger.bind(service=self.__class__.__name__)


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Logs:
    - Method entry
    - Method exit with duration
    - Exceptions if any

    Usage:
        @log_operation
        async def my_service_method(self, wallet_address: str):
            # Your code here
            pass

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.debug(f"Starting {func.__name__}")

        try:
            result = await func(self, *args, **kwargs)
            duration = time.time() - start_time

            self.logger.debug(
                f"Completed {func.__name__} in {duration:.3f}s",
            )

            return result

        except Exception as e:
            duration = time.time() - start_time

            self.logger.error(
                f"Failed {func.__name__} after {duration:.3f}s: {e}",
            )

            raise

    return wrapper
