"""Base task class and decorator for async Celery tasks."""

import asyncio
import functools
import logging
from typing import Any, Callable, TypeVar

from celery import Task
from sqlalchemy.exc import OperationalError

from app.core.celery_app import celery_app

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableTask(Task):
    """Task retried with exponential backoff when the database is unreachable."""

    abstract = True
    autoretry_for = (OperationalError, ConnectionError)
    retry_backoff = True
    retry_backoff_max = 600  # Max 10 minutes
    retry_jitter = True
    max_retries = 3

    def on_failure(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task failure."""
        logger.error(
            "Task %s failed after %d retries",
            self.name,
            self.request.retries,
            exc_info=exc,
            extra={"task_id": task_id, "task_name": self.name},
        )

    def on_retry(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task retry."""
        logger.warning(
            "Task %s retrying (attempt %d/%d)",
            self.name,
            self.request.retries + 1,
            self.max_retries,
            extra={"task_id": task_id, "exception": str(exc)},
        )


def run_async(coro: Any) -> Any:
    """Run a coroutine on the worker's event loop."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def async_task(
    *args: Any,
    bind: bool = True,
    base: type[Task] = RetryableTask,
    **kwargs: Any,
) -> Callable:
    """Decorator for async Celery tasks.

    Wraps async functions to run in Celery's sync context. The worker
    keeps one event loop so pooled database connections stay usable.

    @param bind - Bind task instance to first argument
    @param base - Base task class to use
    @returns Decorated task function

    Example:
        @async_task(queue="swaps")
        async def expire_stale_swaps(self) -> dict:
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @celery_app.task(*args, bind=bind, base=base, **kwargs)
        @functools.wraps(func)
        def wrapper(*task_args: Any, **task_kwargs: Any) -> T:
            return run_async(func(*task_args, **task_kwargs))

        return wrapper

    return decorator
