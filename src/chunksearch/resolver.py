from __future__ import annotations
import json
import logging
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from . import config as CFG
from .models import ChunkDescriptor, ChunkId
from .normalize import normalize_key
from .transport.api import ChunkTransport, chunk_path

log = logging.getLogger(__name__)


class ChunkResolver(Protocol):
    # False until the resolver can answer queries ("index not ready")
    @property
    def ready(self) -> bool: ...
    # One-time preparation before the first query
    async def discover(self) -> object: ...
    # Ordered chunk ids to scan for an already-normalized query
    def resolve(self, query: str) -> List[ChunkId]: ...
    def describe(self) -> str: ...


# ---------------- static lexicographic range table ----------------

def load_range_map(path: str) -> List[ChunkDescriptor]:
    """Read a JSON array of {"file", "start", "end"} objects."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: range map must be a JSON array")
    return [ChunkDescriptor.from_dict(d) for d in raw]


def descriptor_matches(query: str, desc: ChunkDescriptor) -> bool:
    """
    True if the chunk may hold a key beginning with `query`.
    The startswith clause keeps short queries that the truncated comparison
    would miss; bounds are inclusive on both sides.
    """
    start = normalize_key(desc.range_start)
    end = normalize_key(desc.range_end)
    return (start[:len(query)] <= query <= end) or start.startswith(query)


class StaticRangeResolver:
    """Narrows a query to the chunks whose [start, end] range can contain it."""

    def __init__(self, table: Optional[Iterable[ChunkDescriptor]] = None) -> None:
        self.table: Tuple[ChunkDescriptor, ...] = tuple(table or ())

    @classmethod
    def from_file(cls, path: str) -> "StaticRangeResolver":
        return cls(load_range_map(path))

    @property
    def ready(self) -> bool:
        return len(self.table) > 0

    async def discover(self) -> int:
        """Nothing to probe: the table is the index."""
        return len(self.table)

    def resolve(self, query: str) -> List[ChunkId]:
        if not query:
            return []
        return [d.id for d in self.table if descriptor_matches(query, d)]

    def describe(self) -> str:
        return f"range map with {len(self.table)} chunks"


# ---------------- dynamic numeric probe ----------------

class ProbeResolver:
    """
    Bounds the search space to integer chunk ids that exist.
    discover() must run (once) before resolve() yields anything.
    """

    def __init__(
        self,
        transport: ChunkTransport,
        *,
        min_id: int = CFG.PROBE_MIN,
        max_id: int = CFG.PROBE_MAX,
        name_template: str = CFG.CHUNK_NAME_TEMPLATE,
    ) -> None:
        if min_id > max_id:
            raise ValueError(f"probe range is empty: {min_id}..{max_id}")
        self.transport = transport
        self.min_id = int(min_id)
        self.max_id = int(max_id)
        self.name_template = name_template
        self.bounds: Optional[Tuple[int, int]] = None
        self._discovered = False

    @property
    def ready(self) -> bool:
        return self.bounds is not None

    async def discover(self) -> Optional[Tuple[int, int]]:
        """
        Probe ids min..max in ascending order, one at a time, no retries.
        Misses before the first hit are skipped; the first miss after a hit
        ends the contiguous run.
        """
        if self._discovered:
            return self.bounds
        first: Optional[int] = None
        last: Optional[int] = None
        for n in range(self.min_id, self.max_id + 1):
            try:
                found = await self.transport.exists(chunk_path(n, self.name_template))
            except Exception as exc:
                log.warning("Probe of chunk %d failed: %s", n, exc)
                found = False
            if found:
                if first is None:
                    first = n
                last = n
            elif first is not None:
                break
        self._discovered = True
        if first is not None and last is not None:
            self.bounds = (first, last)
            log.info("Discovered chunks %d..%d", first, last)
        else:
            log.warning("No chunks found in %d..%d", self.min_id, self.max_id)
        return self.bounds

    def resolve(self, query: str) -> List[ChunkId]:
        if self.bounds is None or not query:
            return []
        lo, hi = self.bounds
        return list(range(hi, lo - 1, -1))

    def describe(self) -> str:
        if self.bounds is None:
            return "probe range not discovered"
        lo, hi = self.bounds
        return f"chunks {lo}..{hi}"


def ids_in_order(resolver: ChunkResolver, query: str) -> Sequence[ChunkId]:
    """Resolver output, or [] when the resolver is not ready."""
    if not resolver.ready:
        return []
    return resolver.resolve(query)
