from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from . import config as CFG
from .models import RevealState, ScoredMatch
from .scheduler import AsyncioScheduler, Scheduler
from .sink import PresentationSink

log = logging.getLogger(__name__)


def page_bounds(page: int, page_size: int, total: int) -> tuple[int, int]:
    """[start, end) slice of a page, clipped to the result set."""
    start = min(total, page * page_size)
    end = min(total, (page + 1) * page_size)
    return start, end


def batch_bounds(start: int, end: int, batch_size: int) -> List[tuple[int, int]]:
    """Split [start, end) into consecutive batch-sized sub-slices (last may be short)."""
    return [(i, min(i + batch_size, end)) for i in range(start, end, batch_size)]


class ResultPager:
    """
    Reveals a ranked result set page by page.

    Each reveal_next() call walks one page in batches: rows of a batch are
    handed to the sink immediately (with a per-row stagger offset for the
    sink's animation), then the pager pauses `batch_interval` before the
    next batch. `state.revealed_count` grows by one per handed-off row.
    """

    def __init__(
        self,
        sink: PresentationSink,
        *,
        state: Optional[RevealState] = None,
        scheduler: Optional[Scheduler] = None,
        page_size: int = CFG.RESULTS_PER_PAGE,
        batch_size: int = CFG.BATCH_SIZE,
        batch_interval: float = CFG.BATCH_INTERVAL,
        stagger_step: float = CFG.STAGGER_STEP,
    ) -> None:
        if page_size < 1 or batch_size < 1:
            raise ValueError("page_size and batch_size must be >= 1")
        self.sink = sink
        self.state = state if state is not None else RevealState()
        self.scheduler = scheduler or AsyncioScheduler()
        self.page_size = int(page_size)
        self.batch_size = int(batch_size)
        self.batch_interval = batch_interval
        self.stagger_step = stagger_step
        self._results: Sequence[ScoredMatch] = ()
        self._generation = 0            # bumped by publish()
        self._revealing: Optional[int] = None   # generation of the running reveal

    # ---- state ----

    def publish(self, results: Sequence[ScoredMatch]) -> None:
        """Install a new ranked result set and rewind the reveal cursor."""
        self._results = tuple(results)
        self._generation += 1
        self.state.reset()

    @property
    def total(self) -> int:
        return len(self._results)

    @property
    def revealed_count(self) -> int:
        return self.state.revealed_count

    @property
    def has_more(self) -> bool:
        return self.state.revealed_count < self.total

    @property
    def busy(self) -> bool:
        """A reveal of the current result set is in progress."""
        return self._revealing == self._generation

    def status_line(self) -> str:
        return f"Showing {self.state.revealed_count} of {self.total:,} results"

    # ---- reveal ----

    async def reveal_next(self) -> int:
        """Reveal the next page; returns how many rows were handed to the sink."""
        if self.busy:
            log.info("reveal_next ignored: a reveal is already running")
            return 0

        if self.total == 0:
            self.sink.status("No results found.")
            self.sink.more_available(False)
            return 0

        start, end = page_bounds(self.state.page, self.page_size, self.total)
        if start >= end:
            return 0

        generation = self._generation
        results = self._results
        self._revealing = generation
        shown = 0
        try:
            batches = batch_bounds(start, end, self.batch_size)
            for n, (b_start, b_end) in enumerate(batches):
                for i, match in enumerate(results[b_start:b_end]):
                    self.sink.reveal(match.row, i * self.stagger_step)
                    self.state.revealed_count += 1
                    shown += 1
                if n < len(batches) - 1:
                    await self.scheduler.sleep(self.batch_interval)
                    # A publish() during the pause supersedes this page
                    if generation != self._generation:
                        log.info("reveal_next abandoned: results were replaced")
                        return shown
            self.state.page += 1
        finally:
            if self._revealing == generation:
                self._revealing = None

        self.sink.status(self.status_line())
        self.sink.more_available(self.has_more)
        return shown
