from __future__ import annotations
import os

# Paging / reveal
RESULTS_PER_PAGE: int = 50
BATCH_SIZE: int = 10

# /* ~~~ pacing (seconds); purely visual, never affects results ~~~ */
BATCH_INTERVAL: float = 0.1      # pause between two batches of one page
STAGGER_STEP: float = 0.03       # per-row animation offset inside a batch
MIN_LOADING_TIME: float = 0.8    # floor for the "searching" indication

# Queries shorter than this (after trim + casefold) are rejected
MIN_QUERY_LENGTH: int = 2

# Parsed chunks kept in memory (FIFO)
MAX_CACHE_SIZE: int = 20

# Per-fetch timeout; a timeout counts as "chunk unavailable"
FETCH_TIMEOUT: float = 10.0

# Row field that is scored
SEARCH_FIELD: str = "mk"

# Where chunks live: "https://host/json_chunks", "file:///dir", a directory, or "memory://"
DEFAULT_SOURCE: str = os.environ.get("CHUNKSEARCH_SOURCE", "json_chunks")

# Integer chunk ids -> transport path (probe strategy)
CHUNK_NAME_TEMPLATE: str = "chunk_{:04d}.ndjson"

# /* ~~~ candidate id bounds for the probe strategy ~~~ */
PROBE_MIN: int = 1
PROBE_MAX: int = 200

# Progress logging (set CHUNKSEARCH_VERBOSE=1 to enable)
VERBOSE = os.environ.get("CHUNKSEARCH_VERBOSE") == "1"
