"""Bounded-concurrency batch runner.

:func:`run_batches` walks an input sequence in fixed-size chunks.  Every job
in a chunk runs concurrently; the next chunk starts only once the whole
chunk has finished, so at most ``max_concurrent`` jobs are ever in flight.
Results come back flattened and in input order, whatever order the jobs
actually completed in.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Sequence

from harvester.errors import BatchError

logger = logging.getLogger(__name__)

Transform = Callable[..., Awaitable[Any]]


async def _invoke(transform: Transform, item: Any) -> Any:
    # Tuples are argument lists: (name, version) -> transform(name, version).
    if isinstance(item, tuple):
        return await transform(*item)
    return await transform(item)


def _flatten_into(results: List[Any], values: Iterable[Any]) -> None:
    for value in values:
        if isinstance(value, list):
            results.extend(value)
        else:
            results.append(value)


async def _run_chunk(chunk: Sequence[Any], transform: Transform) -> List[Any]:
    """Run one chunk to completion, cancelling the rest on the first failure."""
    tasks = [asyncio.create_task(_invoke(transform, item)) for item in chunk]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    for item, task in zip(chunk, tasks):
        if task.done() and not task.cancelled() and task.exception() is not None:
            pending = [t for t in tasks if not t.done()]
            for other in pending:
                other.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            error = task.exception()
            raise BatchError(item, error) from error

    return [task.result() for task in tasks]


async def run_batches(
    items: Sequence[Any],
    transform: Transform,
    max_concurrent: int | None = 1,
) -> List[Any]:
    """Apply *transform* to every item, ``max_concurrent`` at a time.

    Args:
        items: Inputs, processed in order.  Never mutated.  A tuple item is
            spread positionally into *transform*.
        transform: Async callable.  A ``list`` result is flattened into the
            output; anything else is appended as one element.
        max_concurrent: Chunk size.  ``None`` or anything below 1 means 1.

    Returns:
        The flattened results of every call, in input order.

    Raises:
        BatchError: Wrapping the first exception raised by any job.  No
            partial results are returned.
    """
    if not max_concurrent or max_concurrent < 1:
        max_concurrent = 1

    snapshot = tuple(items)
    results: List[Any] = []
    cursor = 0
    while cursor < len(snapshot):
        chunk = snapshot[cursor:cursor + max_concurrent]
        logger.debug(
            "[BATCH] items %d-%d of %d", cursor + 1, cursor + len(chunk), len(snapshot)
        )
        _flatten_into(results, await _run_chunk(chunk, transform))
        cursor += len(chunk)

    return results
