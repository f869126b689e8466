# chunksearch/transport/local_transport.py
from __future__ import annotations
import logging
import os
from typing import Optional

log = logging.getLogger(__name__)


class LocalTransport:
    """Chunks stored as files under one directory (e.g. ./json_chunks)."""

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)

    def _resolve(self, path: str) -> Optional[str]:
        target = os.path.abspath(os.path.join(self.root, path))
        # keep lookups inside root (no absolute paths / .. traversal)
        if not target.startswith(self.root + os.sep):
            return None
        return target

    async def fetch(self, path: str) -> Optional[str]:
        target = self._resolve(path)
        if target is None:
            log.warning("Refusing chunk path outside %s: %r", self.root, path)
            return None
        try:
            with open(target, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("Failed to read %s: %s", target, exc)
            return None

    async def exists(self, path: str) -> bool:
        target = self._resolve(path)
        return target is not None and os.path.isfile(target)

    def close(self) -> None:
        pass
