"""
CommandCache — single-slot TTL cache for the command catalog.

Lifecycle of the slot:

    empty ──build──▶ snapshot(t) ──ttl elapses──▶ rebuild ──▶ snapshot(t')
      ▲                   │
      └────invalidate─────┘

The slot is only ever replaced as a whole.  Concurrent callers that miss
while a rebuild is running await that same rebuild instead of starting
another.  ``invalidate()`` during a rebuild detaches it: its result is
returned to whoever already awaits it, but it is not stored.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional, Tuple

from launcher_core.schemas import CommandEntry

logger = logging.getLogger(__name__)

CatalogBuilder = Callable[[], Awaitable[List[CommandEntry]]]


class CommandCache:

    def __init__(self, ttl_seconds: float = 120.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Optional[Tuple[CommandEntry, ...]] = None
        self._stamp: Optional[float] = None
        self._generation = 0
        self._inflight: Optional[asyncio.Future] = None

    def is_fresh(self) -> bool:
        if self._entries is None or self._stamp is None:
            return False
        return self._clock() - self._stamp < self._ttl

    async def get(self, build: CatalogBuilder) -> List[CommandEntry]:
        if self.is_fresh():
            return list(self._entries)  # type: ignore[arg-type]

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._rebuild(build, self._generation))
        # shield: one caller being cancelled must not cancel the shared rebuild
        entries = await asyncio.shield(self._inflight)
        return list(entries)

    def invalidate(self) -> None:
        self._generation += 1
        self._entries = None
        self._stamp = None
        self._inflight = None
        logger.info("[CommandCache] invalidated")

    async def close(self) -> None:
        """Cancel a running rebuild and wait for it to unwind; the slot is left empty."""
        inflight = self._inflight
        self.invalidate()
        if inflight is not None and not inflight.done():
            inflight.cancel()
            await asyncio.gather(inflight, return_exceptions=True)

    async def _rebuild(self, build: CatalogBuilder, generation: int) -> Tuple[CommandEntry, ...]:
        t0 = time.perf_counter()
        try:
            entries = tuple(await build())
        finally:
            if generation == self._generation:
                self._inflight = None

        if generation == self._generation:
            self._entries = entries
            self._stamp = self._clock()
            logger.info("[CommandCache] stored %d command(s) in %.0f ms",
                        len(entries), (time.perf_counter() - t0) * 1000)
        else:
            logger.info("[CommandCache] discarded rebuild started before invalidation")
        return entries
