# chunksearch/transport/memory_transport.py
from __future__ import annotations
import asyncio
from typing import Dict, List, Optional

from .api import ChunkTransport


class MemoryTransport(ChunkTransport):
    """In-process chunk payloads (useful for tests or demos). Records every request."""

    def __init__(self, payloads: Optional[Dict[str, str]] = None) -> None:
        self._payloads: Dict[str, str] = dict(payloads or {})
        self.fetched: List[str] = []
        self.probed: List[str] = []
        self.failing: set[str] = set()     # paths that raise instead of answering
        self.gate: Optional[asyncio.Event] = None  # when set, fetches wait on it

    def put(self, path: str, text: str) -> None:
        self._payloads[path] = text

    async def fetch(self, path: str) -> Optional[str]:
        self.fetched.append(path)
        if self.gate is not None:
            await self.gate.wait()
        if path in self.failing:
            raise ConnectionError(f"simulated transport failure for {path}")
        return self._payloads.get(path)

    async def exists(self, path: str) -> bool:
        self.probed.append(path)
        return path in self._payloads

    def close(self) -> None:
        self._payloads.clear()
