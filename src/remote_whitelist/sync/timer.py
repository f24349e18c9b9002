"""Periodic timer driven by externally supplied elapsed time."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_REFRESH_INTERVAL = 60.0


@dataclass
class PeriodicTimer:
    """Accumulates elapsed time and reports when an interval has passed.

    The timer has no clock of its own; the host calls ``advance()`` with the
    time elapsed since the previous tick. ``fire_now()`` makes the timer due
    immediately regardless of elapsed time.
    """

    interval: float = DEFAULT_REFRESH_INTERVAL
    elapsed: float = field(default=0.0)

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")

    def advance(self, delta: float) -> bool:
        """Add ``delta`` seconds and return whether the timer is due."""
        if delta > 0:
            self.elapsed += delta
        return self.due

    @property
    def due(self) -> bool:
        return self.elapsed >= self.interval

    @property
    def remaining(self) -> float:
        return max(0.0, self.interval - self.elapsed)

    def fire_now(self) -> None:
        self.elapsed = self.interval

    def reset(self) -> None:
        self.elapsed = 0.0
