from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

# A chunk is named by a filename-like string or by a dense integer index
ChunkId = Union[str, int]

# One dataset entry; only the search field is interpreted by the core
Row = Dict[str, Any]

# Parsed chunk payload, never mutated after creation
ParsedChunk = List[Row]


@dataclass(frozen=True)
class ChunkDescriptor:
    id: str
    range_start: str          # lowest key held by the chunk
    range_end: str            # highest key held by the chunk

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ChunkDescriptor":
        """Accepts the range-map shape {"file", "start", "end"} (or "id" instead of "file")."""
        cid = d.get("file", d.get("id"))
        if cid is None or "start" not in d or "end" not in d:
            raise ValueError(f"range map entry needs file/start/end: {d!r}")
        return cls(id=str(cid), range_start=str(d["start"]), range_end=str(d["end"]))


@dataclass(frozen=True)
class ScoredMatch:
    score: int                # 2 = prefix match, 1 = substring match
    row: Row


@dataclass
class RevealState:
    page: int = 0             # next page to reveal
    revealed_count: int = 0

    def reset(self) -> None:
        self.page = 0
        self.revealed_count = 0


@dataclass
class SessionState:
    """Everything one query session mutates; owned by a single Engine."""
    query: str = ""
    results: List[ScoredMatch] = field(default_factory=list)
    reveal: RevealState = field(default_factory=RevealState)
    searching: bool = False

    def reset_for(self, query: str) -> None:
        self.query = query
        self.results = []
        self.reveal.reset()
