from __future__ import annotations
from typing import Iterable, List, Optional

from . import config as CFG
from .models import ScoredMatch, Row
from .normalize import searchable_text

# Relevance scores
PREFIX_SCORE = 2
SUBSTRING_SCORE = 1


def score_text(text_norm: str, query_norm: str) -> Optional[int]:
    """2 if the text starts with the query, 1 if it only contains it, None otherwise."""
    if text_norm.startswith(query_norm):
        return PREFIX_SCORE
    if query_norm in text_norm:
        return SUBSTRING_SCORE
    return None


def score_row(row: Row, query_norm: str, field: str = CFG.SEARCH_FIELD) -> Optional[int]:
    """Score one row; rows without a usable search field are never matched."""
    text = searchable_text(row, field)
    if text is None:
        return None
    return score_text(text, query_norm)


def scan_rows(rows: Iterable[Row], query_norm: str, field: str = CFG.SEARCH_FIELD) -> List[ScoredMatch]:
    """Matches of one chunk, in row order."""
    out: List[ScoredMatch] = []
    for row in rows:
        sc = score_row(row, query_norm, field)
        if sc is not None:
            out.append(ScoredMatch(score=sc, row=row))
    return out


def rank(matches: List[ScoredMatch]) -> List[ScoredMatch]:
    """Best score first; sorted() is stable so equal scores keep discovery order."""
    return sorted(matches, key=lambda m: m.score, reverse=True)
