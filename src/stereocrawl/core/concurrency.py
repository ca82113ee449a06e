"""
Bounded Concurrent Execution

Runs blocking per-post work on worker threads with a concurrency limit and a
per-item timeout. Outcomes come back in input order regardless of completion
order, and a failing or hung item never affects its siblings.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from stereocrawl.core.exceptions import StereoCrawlError, ErrorCode


T = TypeVar('T')
R = TypeVar('R')
logger = logging.getLogger(__name__)


class ItemTimeoutError(StereoCrawlError):
    """Raised in place of a result when one item's work exceeds its time limit."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Timed out after {timeout:g}s",
            error_code=ErrorCode.OPERATION_TIMEOUT
        )
        self.timeout = timeout


@dataclass
class ItemOutcome(Generic[T, R]):
    """Result or error of one item's work."""
    item: T
    result: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

async def run_bounded(
    items: Sequence[T],
    worker: Callable[[T], R],
    max_workers: int = 1,
    timeout: Optional[float] = None
) -> List[ItemOutcome]:
    """
    Apply a blocking ``worker`` to every item with at most ``max_workers`` in flight.

    Calls run on a thread pool owned by this batch and are bounded by
    ``asyncio.wait_for``. A timed-out call frees its slot immediately and the
    next item gets a fresh thread. The pool is shut down without waiting once
    every item has an outcome, so a hung call never delays the caller; its
    thread finishes in the background and its result is discarded.

    Args:
        items: Items to process
        worker: Blocking callable applied to each item
        max_workers: Maximum number of concurrent calls (1 = sequential)
        timeout: Per-item time limit in seconds, or None for no limit

    Returns:
        One ItemOutcome per item, in input order
    """
    if max_workers < 1:
        raise ValueError("max_workers must be at least 1")
    if not items:
        return []

    loop = asyncio.get_running_loop()
    semaphore = asyncio.Semaphore(max_workers)
    # Sized for the whole batch: threads left behind by timed-out calls
    # must not starve the items after them.
    pool = ThreadPoolExecutor(max_workers=len(items), thread_name_prefix="stereocrawl-worker")

    async def run_one(item: T) -> ItemOutcome:
        async with semaphore:
            try:
                result = await asyncio.wait_for(loop.run_in_executor(pool, worker, item), timeout)
            except asyncio.TimeoutError:
                logger.debug(f"Item timed out after {timeout}s: {item!r}")
                return ItemOutcome(item=item, error=ItemTimeoutError(timeout))
            except Exception as e:
                return ItemOutcome(item=item, error=e)
            return ItemOutcome(item=item, result=result)

    try:
        return list(await asyncio.gather(*(run_one(item) for item in items)))
    finally:
        pool.shutdown(wait=False, cancel_futures=True)
