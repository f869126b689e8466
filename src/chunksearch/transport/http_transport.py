# chunksearch/transport/http_transport.py
from __future__ import annotations
import logging
from typing import Optional

import httpx

log = logging.getLogger(__name__)


class HttpTransport:
    """
    Chunks served under a base URL. Every call opens its own AsyncClient so the
    transport is not tied to one event loop (the web front end runs each request
    in a fresh loop).
    """

    def __init__(self, base_url: str, *, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self._transport = transport  # injected in tests (httpx.MockTransport)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport,
        )

    async def fetch(self, path: str) -> Optional[str]:
        try:
            async with self._client() as client:
                resp = await client.get(path)
        except httpx.HTTPError as exc:
            log.warning("GET %s%s failed: %s", self.base_url, path, exc)
            return None
        if not resp.is_success:
            log.warning("GET %s%s -> HTTP %d", self.base_url, path, resp.status_code)
            return None
        return resp.text

    async def exists(self, path: str) -> bool:
        try:
            async with self._client() as client:
                resp = await client.head(path)
        except httpx.HTTPError as exc:
            log.info("HEAD %s%s failed: %s", self.base_url, path, exc)
            return False
        return resp.is_success

    def close(self) -> None:
        pass
