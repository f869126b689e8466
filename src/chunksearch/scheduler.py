from __future__ import annotations
import asyncio
import time
from typing import List, Protocol


class Scheduler(Protocol):
    def now(self) -> float: ...
    async def sleep(self, seconds: float) -> None: ...


class AsyncioScheduler:
    """Real clock + asyncio timers."""

    def now(self) -> float:
        return time.perf_counter()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))


class ImmediateScheduler:
    """
    Zero-delay scheduler: sleeps only yield to the event loop, the virtual
    clock jumps forward instead. Every requested delay is recorded in `sleeps`.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._now += max(0.0, seconds)
        await asyncio.sleep(0)
