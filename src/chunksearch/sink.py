from __future__ import annotations
from typing import Any, List, Optional, Protocol, Tuple

from .models import Row


class PresentationSink(Protocol):
    """Whatever shows results: receives rows and status signals, never returns data."""
    def clear(self) -> None: ...
    def loading(self, active: bool) -> None: ...
    def status(self, message: str) -> None: ...
    def reveal(self, row: Row, delay: float) -> None: ...
    def more_available(self, available: bool) -> None: ...


class RecordingSink:
    """
    Keeps everything it is told. Used by the web front end (rows revealed
    since the last drain() go into the HTTP response) and by tests.
    """

    def __init__(self) -> None:
        self.visible: List[Row] = []
        self.delays: List[float] = []
        self.events: List[Tuple[str, Any]] = []
        self.last_status: Optional[str] = None
        self.is_loading = False
        self.can_reveal_more = False
        self._drain_from = 0

    def clear(self) -> None:
        self.visible = []
        self.delays = []
        self._drain_from = 0
        self.events.append(("clear", None))

    def loading(self, active: bool) -> None:
        self.is_loading = active
        self.events.append(("loading", active))

    def status(self, message: str) -> None:
        self.last_status = message
        self.events.append(("status", message))

    def reveal(self, row: Row, delay: float) -> None:
        self.visible.append(row)
        self.delays.append(delay)
        self.events.append(("reveal", row))

    def more_available(self, available: bool) -> None:
        self.can_reveal_more = available
        self.events.append(("more", available))

    # ---- helpers ----

    def statuses(self) -> List[str]:
        return [msg for kind, msg in self.events if kind == "status"]

    def drain(self) -> List[Tuple[Row, float]]:
        """(row, stagger delay) pairs revealed since the previous drain()."""
        out = list(zip(self.visible[self._drain_from:], self.delays[self._drain_from:]))
        self._drain_from = len(self.visible)
        return out
