"""Deadline and fault classification for store calls.

Repository methods decorated with :func:`store_operation` run under the
repository's ``timeout`` and surface infrastructure faults as
``StoreTimeoutError`` / ``StoreUnavailableError`` instead of raw driver
exceptions. Integrity errors pass through untouched; repositories that give
them a domain meaning handle them locally.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from finance_tracker.domain.common.exceptions import StoreTimeoutError, StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def guard_store_call(awaitable: Awaitable[T], *, operation: str, timeout: float | None) -> T:
    try:
        if timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        logger.error("store call %s exceeded %.2fs deadline", operation, timeout, extra={"error_code": "store_timeout"})
        raise StoreTimeoutError(f"Store operation timed out: {operation}", operation) from None
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        logger.error("store call %s failed: %s", operation, exc, extra={"error_code": "store_unavailable"})
        raise StoreUnavailableError(f"Store operation failed: {operation}", operation) from exc


def store_operation(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            return await guard_store_call(
                func(self, *args, **kwargs),
                operation=operation,
                timeout=getattr(self, "timeout", None),
            )

        return wrapper

    return decorator


@asynccontextmanager
async def guarded_savepoint(
    session: AsyncSession,
    *,
    operation: str,
    timeout: float | None,
) -> AsyncIterator[AsyncSessionTransaction]:
    """SAVEPOINT whose begin, release and rollback run under :func:`guard_store_call`.

    The block's exception is re-raised after the rollback; a failed rollback
    surfaces as ``StoreUnavailableError`` chained to it.
    """
    nested = session.begin_nested()
    await guard_store_call(nested.start(), operation=f"{operation}.begin", timeout=timeout)
    try:
        yield nested
    except Exception:
        if nested.is_active:
            await guard_store_call(nested.rollback(), operation=f"{operation}.rollback", timeout=timeout)
        raise
    if nested.is_active:
        await guard_store_call(nested.commit(), operation=f"{operation}.release", timeout=timeout)
