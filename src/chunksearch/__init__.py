"""
Chunk Search Module

Client-side search over a dataset that was pre-partitioned into many small,
immutable line-delimited JSON chunks. Nothing is loaded up front: a query is
narrowed to the chunks that can hold a match, only those are fetched (and
kept in a small FIFO cache), matching rows are scored and ranked, and the
ranked rows are revealed page by page.

The module is split by concern:
- Chunk transports (HTTP, local directory, in-memory) and payload parsing
- Range resolution (static range map, or probing for existing chunk ids)
- Scoring / ranking and the page-by-page reveal
- The Engine controller that owns the session state

Example Usage:
    import asyncio
    from chunksearch import Engine, RecordingSink

    sink = RecordingSink()
    eng = Engine.create("https://example.org/json_chunks",
                        range_map="range_map.json", sink=sink)

    async def main():
        await eng.initialize()
        await eng.search("master lock")
        await eng.reveal_more()

    asyncio.run(main())
    print(sink.last_status)
"""

# src/chunksearch/__init__.py
from .engine import Engine
from .models import ChunkDescriptor, ScoredMatch
from .resolver import ProbeResolver, StaticRangeResolver
from .sink import PresentationSink, RecordingSink
from .store import ChunkStore

__version__ = "1.0.0"
__all__ = [
    "Engine",
    "ChunkDescriptor",
    "ScoredMatch",
    "ProbeResolver",
    "StaticRangeResolver",
    "PresentationSink",
    "RecordingSink",
    "ChunkStore",
]
