"""Run one operation concurrently against every source of a batch."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, TypeVar

from ..errors import FanOutTimeoutError, NoSourcesError
from ..models import FanOutResult, SourceDescriptor, SourceFailure, SourceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Extra time the joint wait allows on top of the per-source budget, so that
# per-source timeouts are reported as source failures first.
_JOIN_GRACE_SECONDS = 0.5


async def _run_one(
    source: SourceDescriptor,
    operation: Callable[[SourceDescriptor], Awaitable[T]],
    timeout: float,
) -> SourceResult[T] | SourceFailure:
    try:
        value = await asyncio.wait_for(operation(source), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Source %s timed out after %.1fs", source, timeout)
        return SourceFailure(
            source=source,
            error=TimeoutError(f"{source} timed out after {timeout:.1f}s"),
        )
    except Exception as e:
        logger.warning("Source %s failed: %s", source, e)
        return SourceFailure(source=source, error=e)
    return SourceResult(source=source, value=value)


async def execute_on_all_sources(
    sources: Iterable[SourceDescriptor],
    operation: Callable[[SourceDescriptor], Awaitable[T]],
    timeout: float,
    batch_timeout: float | None = None,
) -> FanOutResult[T]:
    """Call ``operation(source)`` for every source concurrently.

    Per-source failures and timeouts land in ``errors`` and never discard
    the other results. ``results`` follow completion order; each one carries
    its source.

    Raises:
        NoSourcesError: ``sources`` is empty.
        FanOutTimeoutError: the joint wait exceeded ``batch_timeout``.
    """
    sources = list(sources)
    if not sources:
        raise NoSourcesError("No sources configured")

    if batch_timeout is None:
        batch_timeout = timeout + _JOIN_GRACE_SECONDS

    tasks = [
        asyncio.ensure_future(_run_one(source, operation, timeout))
        for source in sources
    ]

    results: list[SourceResult[T]] = []
    errors: list[SourceFailure] = []
    try:
        for finished in asyncio.as_completed(tasks, timeout=batch_timeout):
            outcome = await finished
            if isinstance(outcome, SourceFailure):
                errors.append(outcome)
            else:
                results.append(outcome)
    except asyncio.TimeoutError:
        for task in tasks:
            task.cancel()
        logger.error(
            "Fan-out over %d sources exceeded %.1fs", len(sources), batch_timeout
        )
        raise FanOutTimeoutError(
            f"Fan-out over {len(sources)} sources exceeded {batch_timeout:.1f}s"
        ) from None

    logger.debug(
        "Fan-out finished: %d succeeded, %d failed", len(results), len(errors)
    )
    return FanOutResult(results=tuple(results), errors=tuple(errors))
