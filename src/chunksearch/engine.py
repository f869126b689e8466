# chunksearch/engine.py
from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence

from . import config as CFG
from .models import ChunkDescriptor, ScoredMatch, SessionState
from .normalize import normalize_query
from .pager import ResultPager
from .resolver import ChunkResolver, ProbeResolver, StaticRangeResolver, ids_in_order
from .scheduler import AsyncioScheduler, Scheduler
from .search import rank, scan_rows
from .sink import PresentationSink, RecordingSink
from .store import ChunkStore
from .transport.api import ChunkTransport, make_transport

log = logging.getLogger(__name__)

# Status lines shown to the user
MSG_READY = "Database ready."
MSG_INDEX_MISSING = "Error: Database index missing."
MSG_TOO_SHORT = "Please enter at least {n} characters"
MSG_LOCATING = "Locating data chunks..."
MSG_NO_CHUNKS = "No results found in the database."
MSG_SEARCHING = "Searching {chunk}..."
MSG_FOUND_SO_FAR = "Found {n:,} matches so far"


class Engine:
    """
    Single controller for one search session. Glues together:
      - a ChunkResolver (static range table or probed id range),
      - a ChunkStore (transport + FIFO cache of parsed chunks),
      - scoring/ranking (search.scan_rows / search.rank),
      - a ResultPager that reveals pages to a PresentationSink.

    Public API (used by CLI/Flask):
      * initialize():  make the resolver ready (probe discovery runs here, once)
      * search(query): collect + rank + reveal the first page
      * reveal_more(): reveal the next page
      * shutdown():    close the transport, drop the cache

    All per-query state lives in `self.session`; nothing is module-global.
    """

    # ------------- lifecycle -------------

    def __init__(
        self,
        resolver: ChunkResolver,
        store: ChunkStore,
        *,
        sink: Optional[PresentationSink] = None,
        scheduler: Optional[Scheduler] = None,
        page_size: int = CFG.RESULTS_PER_PAGE,
        batch_size: int = CFG.BATCH_SIZE,
        batch_interval: float = CFG.BATCH_INTERVAL,
        stagger_step: float = CFG.STAGGER_STEP,
        min_loading_time: float = CFG.MIN_LOADING_TIME,
        min_query_length: int = CFG.MIN_QUERY_LENGTH,
        search_field: str = CFG.SEARCH_FIELD,
    ) -> None:
        self.resolver = resolver
        self.store = store
        self.sink: PresentationSink = sink if sink is not None else RecordingSink()
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self.min_loading_time = max(0.0, float(min_loading_time))
        self.min_query_length = int(min_query_length)
        self.search_field = search_field
        self.session = SessionState()
        self.pager = ResultPager(
            self.sink,
            state=self.session.reveal,
            scheduler=self.scheduler,
            page_size=page_size,
            batch_size=batch_size,
            batch_interval=batch_interval,
            stagger_step=stagger_step,
        )
        self._initialized = False

    # /* ~~~ Build an engine from a source DSN and a resolution strategy ~~~ */
    @classmethod
    def create(
        cls,
        source: str = CFG.DEFAULT_SOURCE,
        *,
        range_map: Optional[str] = None,
        table: Optional[Sequence[ChunkDescriptor]] = None,
        probe: Optional[tuple[int, int]] = None,
        transport: Optional[ChunkTransport] = None,
        cache_size: int = CFG.MAX_CACHE_SIZE,
        fetch_timeout: Optional[float] = CFG.FETCH_TIMEOUT,
        name_template: str = CFG.CHUNK_NAME_TEMPLATE,
        verbose: bool = False,
        **engine_kwargs,
    ) -> "Engine":
        """
        Strategy selection (exactly one):
          - range_map: path to a JSON range map  -> StaticRangeResolver
          - table:     descriptors given in code -> StaticRangeResolver
          - probe:     (min_id, max_id)          -> ProbeResolver
        """
        if verbose or CFG.VERBOSE:
            logging.basicConfig(level=logging.INFO)
            os.environ["CHUNKSEARCH_VERBOSE"] = "1"

        chosen = [x is not None for x in (range_map, table, probe)]
        if sum(chosen) != 1:
            raise ValueError("create(): pass exactly one of range_map, table or probe")

        if transport is None:
            transport = make_transport(source, timeout=fetch_timeout)

        resolver: ChunkResolver
        if range_map is not None:
            if not os.path.exists(range_map):
                raise FileNotFoundError(range_map)
            resolver = StaticRangeResolver.from_file(range_map)
        elif table is not None:
            resolver = StaticRangeResolver(table)
        else:
            lo, hi = probe  # type: ignore[misc]
            resolver = ProbeResolver(transport, min_id=lo, max_id=hi, name_template=name_template)

        store = ChunkStore(transport, capacity=cache_size, timeout=fetch_timeout,
                           name_template=name_template)
        return cls(resolver, store, **engine_kwargs)

    # /* ~~~ Make the index usable; probe discovery happens exactly once ~~~ */
    async def initialize(self) -> bool:
        if not self._initialized:
            log.info("Initializing database index...")
            await self.resolver.discover()
            self._initialized = True

        if self.resolver.ready:
            log.info("Index ready: %s", self.resolver.describe())
            self._status(MSG_READY)
        else:
            log.error("Index not ready: %s", self.resolver.describe())
            self._status(MSG_INDEX_MISSING)
        return self.resolver.ready

    @property
    def ready(self) -> bool:
        return self._initialized and self.resolver.ready

    @property
    def searching(self) -> bool:
        return self.session.searching

    @property
    def results(self) -> List[ScoredMatch]:
        return list(self.session.results)

    # ------------- query -------------

    async def search(self, raw_query: str) -> Optional[List[ScoredMatch]]:
        """
        Run one query to completion and reveal its first page.

        Returns the ranked matches, or None when the query was refused
        (another search in flight, index not ready, query too short).
        """
        if self.session.searching:
            log.info("search(%r) ignored: another search is in flight", raw_query)
            return None
        if not self.ready:
            self._status(MSG_INDEX_MISSING)
            return None

        query = normalize_query(raw_query)
        if len(query) < self.min_query_length:
            self._status(MSG_TOO_SHORT.format(n=self.min_query_length))
            return None

        self.session.searching = True
        try:
            return await self._run(query)
        finally:
            self.session.searching = False
            self.sink.loading(False)

    async def _run(self, query: str) -> List[ScoredMatch]:
        self.session.reset_for(query)
        self.pager.publish(())
        self.sink.clear()
        self.sink.more_available(False)
        self.sink.loading(True)
        self._status(MSG_LOCATING)

        started = self.scheduler.now()

        chunk_ids = ids_in_order(self.resolver, query)
        if not chunk_ids:
            self._status(MSG_NO_CHUNKS)
            log.info("Query %r: no candidate chunks", query)
            return []

        matches: List[ScoredMatch] = []
        skipped = 0
        for chunk_id in chunk_ids:
            self._status(MSG_SEARCHING.format(chunk=chunk_id))
            rows = await self.store.load(chunk_id)
            if rows is None:
                skipped += 1
                continue
            matches.extend(scan_rows(rows, query, self.search_field))
            self._status(MSG_FOUND_SO_FAR.format(n=len(matches)))

        ranked = rank(matches)
        log.info("Query %r: %d matches from %d chunks (%d unavailable)",
                 query, len(ranked), len(chunk_ids), skipped)

        # Keep the "searching" state visible for at least min_loading_time
        elapsed = self.scheduler.now() - started
        if elapsed < self.min_loading_time:
            await self.scheduler.sleep(self.min_loading_time - elapsed)

        self.session.results = ranked
        self.pager.publish(ranked)
        self.sink.clear()
        self.sink.loading(False)
        await self.pager.reveal_next()
        return list(ranked)

    async def reveal_more(self) -> int:
        """Reveal the next page of the current result set (no-op when exhausted)."""
        if self.session.searching or not self.pager.has_more:
            return 0
        return await self.pager.reveal_next()

    # ------------- teardown -------------

    def shutdown(self) -> None:
        try:
            self.store.transport.close()
        finally:
            self.store.clear()
            self.session = SessionState()
            self.pager.state = self.session.reveal
            self.pager.publish(())
            log.info("Engine shutdown complete")

    # ------------- internals -------------

    def _status(self, message: str) -> None:
        self.sink.status(message)
