import asyncio
import functools
import inspect
import time
import logging
from typing import Callable, Optional

from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

from app.core.config import settings
from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)

TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


def translate_storage_errors(func: Callable) -> Callable:
    """Re-raise transient database failures as ``StorageError``."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TRANSIENT_DB_ERRORS as exc:
            db = kwargs.get("db") or next((arg for arg in args if hasattr(arg, "rollback")), None)
            if db is not None:
                db.rollback()
            logger.warning(f"Transient storage failure in {func.__name__}: {exc}")
            raise StorageError("The data store is temporarily unavailable.", details={"operation": func.__name__}) from exc
    return wrapper


def retry_on_storage_error(attempts: Optional[int] = None, backoff: Optional[float] = None):
    """Retry on ``StorageError`` with exponential backoff; anything else propagates untouched.

    Coroutine functions back off with ``asyncio.sleep`` so the event loop keeps
    running countdown ticks while a write is retried.
    """
    def decorator(func: Callable) -> Callable:
        def _policy():
            max_attempts = attempts or settings.STORAGE_RETRY_ATTEMPTS
            delay = settings.STORAGE_RETRY_BACKOFF_SECONDS if backoff is None else backoff
            return max_attempts, delay

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            max_attempts, delay = _policy()
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except StorageError:
                    if attempt == max_attempts:
                        raise
                    logger.info(f"Retrying {func.__name__} after storage error ({attempt}/{max_attempts})")
                    await asyncio.sleep(delay * (2 ** (attempt - 1)))

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            max_attempts, delay = _policy()
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except StorageError:
                    if attempt == max_attempts:
                        raise
                    logger.info(f"Retrying {func.__name__} after storage error ({attempt}/{max_attempts})")
                    time.sleep(delay * (2 ** (attempt - 1)))

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper
    return decorator
