from __future__ import annotations
import json
import logging
from typing import Any, Iterable, List, Optional

from .models import ParsedChunk, Row

log = logging.getLogger(__name__)


def _schema_of(value: Any) -> Optional[List[str]]:
    """Return the declared field order if `value` is a schema line."""
    if isinstance(value, dict) and isinstance(value.get("schema"), list):
        return [str(name) for name in value["schema"]]
    return None


def _expand(schema: List[str], values: list) -> Row:
    """Bind positional values to schema names; missing trailing values become None."""
    return {name: (values[i] if i < len(values) else None) for i, name in enumerate(schema)}


def iter_rows(lines: Iterable[str], *, source: str = "") -> Iterable[Row]:
    """
    Yield row records from line-delimited JSON.

    Rules (per line, blank lines skipped):
      * {"schema": [...]}  -> becomes the active schema, yields nothing
      * [...]              -> expanded against the active schema; dropped if none yet
      * {...}              -> yielded verbatim
      * anything else      -> dropped (scalars, broken JSON)
    """
    schema: Optional[List[str]] = None
    for line_no, raw in enumerate(lines):
        line = raw.strip()
        if not line:
            continue
        try:
            value = json.loads(line)
        except (ValueError, RecursionError):
            log.debug("%s:%d: dropping unparseable line", source, line_no)
            continue

        declared = _schema_of(value)
        if declared is not None:
            schema = declared
            continue

        if isinstance(value, list):
            if schema is None:
                log.debug("%s:%d: positional row before any schema, dropped", source, line_no)
                continue
            yield _expand(schema, value)
        elif isinstance(value, dict):
            yield value
        else:
            log.debug("%s:%d: dropping non-row value of type %s", source, line_no, type(value).__name__)


def parse_chunk(text: str, *, source: str = "") -> ParsedChunk:
    """Materialize one chunk payload into its ordered list of rows.
    Lines are split on LF only; other Unicode line breaks may appear inside JSON strings.
    """
    return list(iter_rows(text.split("\n"), source=source))
