import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

# Shared thread pool for blocking filesystem calls, created on first use
_executor: Optional[ThreadPoolExecutor] = None

T = TypeVar('T')
R = TypeVar('R')


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=4,
            thread_name_prefix="launcher_io"
        )
    return _executor


async def run_in_executor(func: Callable[..., T], *args, **kwargs) -> T:
    """
    Run a blocking/synchronous function in the shared thread pool.

    Usage:
        entries = await run_in_executor(os.listdir, "/Applications")

    Exceptions raised by ``func`` propagate to the awaiting caller.
    """
    loop = asyncio.get_running_loop()
    if kwargs:
        return await loop.run_in_executor(_get_executor(), lambda: func(*args, **kwargs))
    return await loop.run_in_executor(_get_executor(), func, *args)


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[Optional[R]]],
    batch_size: int,
    label: str = "batch",
) -> List[R]:
    """
    Process ``items`` in fixed-size batches.

    Items inside one batch run concurrently; batches run one after another,
    which caps the number of simultaneous external processes at
    ``batch_size``.  Results keep input order.  ``None`` results are
    dropped, and an item that raises is logged and skipped without
    affecting the rest of its batch.
    """
    size = max(1, batch_size)
    results: List[R] = []
    for start in range(0, len(items), size):
        batch = items[start:start + size]
        outcomes = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning("[%s] skipped %s: %s", label, item, outcome)
                continue
            if outcome is not None:
                results.append(outcome)
    return results


def cleanup_executor():
    """
    Shut down the shared thread pool.
    Call this when shutting down the application; the next
    ``run_in_executor`` call starts a fresh pool.
    """
    global _executor
    if _executor:
        logger.info("Shutting down async executor...")
        _executor.shutdown(wait=True)
        _executor = None
        logger.info("Executor shutdown complete")
