# chunksearch/transport/api.py
from __future__ import annotations
import os
from typing import Optional, Protocol

from ..models import ChunkId
from .. import config as CFG


class ChunkTransport(Protocol):
    # Payload of one chunk, or None when it cannot be retrieved
    async def fetch(self, path: str) -> Optional[str]: ...
    # Metadata-only existence check
    async def exists(self, path: str) -> bool: ...
    # lifecycle
    def close(self) -> None: ...


def chunk_path(chunk_id: ChunkId, template: str = CFG.CHUNK_NAME_TEMPLATE) -> str:
    """Integer ids go through the name template; string ids are already paths."""
    if isinstance(chunk_id, int):
        return template.format(chunk_id)
    return str(chunk_id)


def make_transport(dsn: str, *, timeout: Optional[float] = None) -> ChunkTransport:
    """
    Factory:
      - http(s)://host/base -> HttpTransport (GET for payloads, HEAD for probes)
      - file:///dir or dir  -> LocalTransport
      - memory://           -> MemoryTransport (empty; fill with .put())
    """
    if dsn.startswith(("http://", "https://")):
        from .http_transport import HttpTransport
        return HttpTransport(dsn, timeout=timeout if timeout is not None else CFG.FETCH_TIMEOUT)

    if dsn.startswith("memory://"):
        # Lazy import to avoid a circular import (memory_transport imports this module)
        from .memory_transport import MemoryTransport
        return MemoryTransport()

    if dsn.startswith("file://"):
        path = dsn.removeprefix("file://")
    elif "://" in dsn:
        raise ValueError(f"Unsupported transport DSN: {dsn}")
    else:
        path = dsn

    if not os.path.isdir(path):
        raise FileNotFoundError(path)
    from .local_transport import LocalTransport
    return LocalTransport(path)
