"""
Centralized error handling decorators.

Provides reusable decorators for common error handling patterns:
- Exception suppression with logging
- Error logging with context

Both decorators accept plain functions and coroutine functions. Event
handlers of the orchestrator are coroutines, so the async path is the one
that keeps one failing handler from blocking later events.
"""
from typing import Callable, TypeVar, ParamSpec, Any, Optional
from functools import wraps
import inspect
from core.logging.logger import get_logger

P = ParamSpec('P')
T = TypeVar('T')

logger = get_logger(__name__)


def _log_failure(logger_instance: Optional[Any], log_level: str, text: str) -> None:
    log = logger_instance or logger
    log_method = getattr(log, log_level, log.error)
    log_method(text, exc_info=True)


def suppress_exceptions(
    logger_instance: Optional[Any] = None,
    message: str = "Operation failed",
    return_value: Any = None,
    log_level: str = "error"
) -> Callable[[Callable[P, T]], Callable[P, Optional[T]]]:
    """
    Decorator to suppress exceptions and log them.

    Args:
        logger_instance: Logger to use (defaults to module logger)
        message: Error message prefix
        return_value: Value to return on exception
        log_level: Logging level ('debug', 'info', 'warning', 'error')

    Returns:
        Decorated function that suppresses exceptions

    Example:
        @suppress_exceptions(logger, "Menu click handler failed")
        async def on_menu_clicked(self, node_id: str) -> None:
            ...
    """
    def decorator(func: Callable[P, T]) -> Callable[P, Optional[T]]:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    _log_failure(logger_instance, log_level, f"{message}: {e}")
                    return return_value
            return async_wrapper

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _log_failure(logger_instance, log_level, f"{message}: {e}")
                return return_value
        return wrapper
    return decorator


def log_errors(
    logger_instance: Optional[Any] = None,
    message: str = "Error in {func_name}",
    log_level: str = "error",
    reraise: bool = True
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to log errors with context before optionally re-raising.

    Args:
        logger_instance: Logger to use (defaults to module logger)
        message: Error message template (can use {func_name} placeholder)
        log_level: Logging level ('debug', 'info', 'warning', 'error')
        reraise: Whether to re-raise the exception after logging
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        error_msg = message.format(func_name=func.__name__)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    _log_failure(logger_instance, log_level, f"{error_msg}: {e}")
                    if reraise:
                        raise
                    return None
            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _log_failure(logger_instance, log_level, f"{error_msg}: {e}")
                if reraise:
                    raise
                return None  # type: ignore
        return wrapper
    return decorator
