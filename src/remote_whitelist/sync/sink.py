"""Visibility sinks that apply the membership decision."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class VisibilitySink(Protocol):
    """Applies a visibility decision to a target container."""

    def apply_visibility(self, target: str, visible: bool) -> None: ...


class LoggingVisibilitySink:
    """Sink that only logs each visibility update."""

    def apply_visibility(self, target: str, visible: bool) -> None:
        logger.info("Setting children visibility for '%s' to: %s", target, visible)


@dataclass
class RecordingVisibilitySink:
    """Sink that keeps every update, optionally forwarding to a callback."""

    on_change: Optional[Callable[[str, bool], None]] = None
    calls: list[tuple[str, bool]] = field(default_factory=list)

    def apply_visibility(self, target: str, visible: bool) -> None:
        self.calls.append((target, visible))
        if self.on_change is not None:
            self.on_change(target, visible)

    @property
    def last(self) -> Optional[bool]:
        return self.calls[-1][1] if self.calls else None
