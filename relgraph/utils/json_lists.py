"""JSON-encoded list columns (attendees, companies) at the domain boundary."""

from __future__ import annotations

import json
from typing import Iterable, List, Optional


def parse_string_list(value: Optional[str]) -> List[str]:
    """Decode a JSON array of strings; anything malformed degrades to []."""
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, str)]


def dump_string_list(values: Optional[Iterable[str]]) -> Optional[str]:
    if values is None:
        return None
    return json.dumps([str(v) for v in values], ensure_ascii=False)
