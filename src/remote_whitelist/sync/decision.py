"""Membership decision for the local participant."""

from __future__ import annotations

from typing import Iterable, Optional


def is_member(entries: Iterable[str], identity: Optional[str]) -> bool:
    """Return True if ``identity`` appears verbatim in ``entries``.

    Comparison is case-sensitive and exact. An unresolved identity (``None``)
    is never a member.
    """
    if identity is None:
        return False
    for entry in entries:
        if entry == identity:
            return True
    return False
