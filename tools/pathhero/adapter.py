"""Normalize blocking driver calls into awaitable results.

The Mongo driver and bcrypt are synchronous. Every call made by the stores
goes through one of the two helpers below, which run the call in a worker
thread and turn library failures into the project's own error kinds:

    doc = await resolve(collection.find_one, {"userid": userid})
    ok = await resolve_hash(bcrypt.checkpw, password, secret)

A successful call resolves to the driver's return value; a failed call
raises with the original exception chained as ``__cause__``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

from pymongo.errors import PyMongoError

from .errors import HashError, StoreError

T = TypeVar("T")


async def _settle(
    call: Callable[..., T],
    args: tuple,
    kwargs: dict[str, Any],
    catch: tuple[type[BaseException], ...],
    raise_as: type[Exception],
) -> T:
    try:
        return await asyncio.to_thread(call, *args, **kwargs)
    except catch as exc:
        raise raise_as(str(exc) or exc.__class__.__name__) from exc


async def resolve(call: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a storage call off the event loop.

    Raises:
        StoreError: if the driver raises any ``PyMongoError``.
    """
    return await _settle(call, args, kwargs, (PyMongoError,), StoreError)


async def resolve_hash(call: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a hashing call off the event loop.

    Raises:
        HashError: if the algorithm rejects its input.
    """
    return await _settle(call, args, kwargs, (ValueError, TypeError), HashError)
