from __future__ import annotations
from typing import Any, Dict, Optional

from .models import Row

MISSING = "—"

MARK_IMAGE_URL = "https://tmcms-docs.uspto.gov/cases/{sn}/mark/large.png"
STATUS_URL = "https://tsdr.uspto.gov/#caseNumber={sn}&caseType=SERIAL_NO&searchType=statusSearch"


def format_filed_date(fd: Any) -> str:
    """YYYYMMDD -> DD-MM-YYYY; anything shorter than 8 characters shows as a dash."""
    if not fd:
        return MISSING
    s = str(fd)
    if len(s) < 8:
        return MISSING
    return f"{s[6:8]}-{s[4:6]}-{s[0:4]}"


def _text(value: Any) -> str:
    return MISSING if value in (None, "") else str(value)


def image_url(serial: Any) -> Optional[str]:
    return MARK_IMAGE_URL.format(sn=serial) if serial else None


def status_url(serial: Any) -> Optional[str]:
    return STATUS_URL.format(sn=serial) if serial else None


def display_record(row: Row) -> Dict[str, Any]:
    """Flat, render-ready view of a row (the raw row stays untouched)."""
    sn = row.get("sn")
    return {
        "mark": _text(row.get("mk")),
        "owner": _text(row.get("or")),
        "serial": _text(sn),
        "description": _text(row.get("as")),
        "class": _text(row.get("pc")),
        "filed": format_filed_date(row.get("fd")),
        "image_url": image_url(sn),
        "status_url": status_url(sn),
    }
