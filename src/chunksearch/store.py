from __future__ import annotations
import asyncio
import logging
from typing import Dict, Optional

from . import config as CFG
from .loader import parse_chunk
from .models import ChunkId, ParsedChunk
from .transport.api import ChunkTransport, chunk_path

log = logging.getLogger(__name__)


class ChunkStore:
    """
    Fetch + parse chunks on demand and keep the most recently *inserted*
    ones in a bounded cache.

    Eviction is FIFO: a cache hit does not refresh an entry, so the entry
    inserted first is always the one dropped when a new chunk arrives at
    full capacity.

    load() returns None when a chunk is unavailable (transport error,
    non-success status, timeout); nothing is cached in that case.
    """

    def __init__(
        self,
        transport: ChunkTransport,
        *,
        capacity: int = CFG.MAX_CACHE_SIZE,
        timeout: Optional[float] = CFG.FETCH_TIMEOUT,
        name_template: str = CFG.CHUNK_NAME_TEMPLATE,
    ) -> None:
        if capacity < 1:
            raise ValueError("ChunkStore capacity must be >= 1")
        self.transport = transport
        self.capacity = int(capacity)
        self.timeout = timeout
        self.name_template = name_template
        self._cache: Dict[ChunkId, ParsedChunk] = {}   # insertion-ordered
        self._inflight: Dict[ChunkId, asyncio.Future] = {}

    # ---- cache view ----

    def peek(self, chunk_id: ChunkId) -> Optional[ParsedChunk]:
        """Synchronous cache lookup; never touches the transport."""
        return self._cache.get(chunk_id)

    def cached_ids(self) -> list[ChunkId]:
        return list(self._cache.keys())

    def __contains__(self, chunk_id: ChunkId) -> bool:
        return chunk_id in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    # ---- load ----

    async def load(self, chunk_id: ChunkId) -> Optional[ParsedChunk]:
        cached = self._cache.get(chunk_id)
        if cached is not None:
            return cached

        # Concurrent loads of the same id share one fetch
        pending = self._inflight.get(chunk_id)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch_and_parse(chunk_id))
            self._inflight[chunk_id] = pending
            pending.add_done_callback(lambda _f, key=chunk_id: self._inflight.pop(key, None))
        return await asyncio.shield(pending)

    async def _fetch_and_parse(self, chunk_id: ChunkId) -> Optional[ParsedChunk]:
        path = chunk_path(chunk_id, self.name_template)
        try:
            if self.timeout is not None:
                text = await asyncio.wait_for(self.transport.fetch(path), self.timeout)
            else:
                text = await self.transport.fetch(path)
        except asyncio.TimeoutError:
            log.warning("Timed out loading %s after %.1fs", path, self.timeout)
            return None
        except Exception as exc:
            log.warning("Failed to load %s: %s", path, exc)
            return None
        if text is None:
            return None

        rows = parse_chunk(text, source=path)
        self._insert(chunk_id, rows)
        log.info("Loaded %s: %d rows (cache %d/%d)", path, len(rows), len(self._cache), self.capacity)
        return rows

    def _insert(self, chunk_id: ChunkId, rows: ParsedChunk) -> None:
        if chunk_id not in self._cache and len(self._cache) >= self.capacity:
            oldest = next(iter(self._cache))
            del self._cache[oldest]
            log.info("Evicted %s from chunk cache", oldest)
        self._cache[chunk_id] = rows
