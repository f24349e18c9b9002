"""Whitelist text parsing."""

from __future__ import annotations

import re
from typing import Optional

_LINE_BREAK = re.compile(r"[\r\n]")


def parse_whitelist(raw: Optional[str]) -> tuple[str, ...]:
    """Turn raw list text into an ordered tuple of entries.

    Splits on ``\\n`` and ``\\r`` so any line-ending convention works, trims
    each line and drops lines that are empty afterwards. Order and duplicates
    are preserved. ``None`` or empty input yields an empty tuple.

    Examples:
        >>> parse_whitelist("alice\\n \\nBob \\r\\ncharlie")
        ('alice', 'Bob', 'charlie')
    """
    if not raw:
        return ()

    entries: list[str] = []
    for line in _LINE_BREAK.split(raw):
        name = line.strip()
        if name:
            entries.append(name)
    return tuple(entries)
