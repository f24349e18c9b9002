"""WhitelistRuntime: asyncio tick source for a local session.

The whitelist core is purely reactive; something has to deliver elapsed
time to every participant and pump replication events. This runtime does
both on the running event loop.

Usage:
    session = LocalSession()
    runtime = WhitelistRuntime(session=session)
    runtime.add(WhitelistParticipant(session.join("alice"), target="stage", url=url))
    await runtime.run(duration=5.0)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .participant import WhitelistParticipant
from .session import LocalSession

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 0.1


@dataclass
class WhitelistRuntime:
    """Drives ticks and replication delivery for a ``LocalSession``."""

    session: LocalSession
    tick_seconds: float = DEFAULT_TICK_SECONDS
    participants: list[WhitelistParticipant] = field(default_factory=list)
    started: bool = False
    elapsed: float = 0.0
    _scheduled: list[tuple[float, Callable[[], None]]] = field(default_factory=list, repr=False)
    _stopping: bool = field(default=False, init=False, repr=False)

    def add(self, participant: WhitelistParticipant) -> WhitelistParticipant:
        """Register a participant; it is started immediately if the runtime runs."""
        self.participants.append(participant)
        if self.started:
            participant.start()
        return participant

    def remove(self, participant: WhitelistParticipant) -> None:
        self.participants.remove(participant)

    def call_at(self, at_seconds: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the runtime has been running ``at_seconds``."""
        self._scheduled.append((at_seconds, callback))
        self._scheduled.sort(key=lambda item: item[0])

    def start(self) -> None:
        """Start all registered participants (idempotent)."""
        if self.started:
            return
        for participant in list(self.participants):
            participant.start()
        self.started = True
        logger.debug("WhitelistRuntime started with %d participant(s)", len(self.participants))

    def step(self, delta: float) -> None:
        """Advance the session by ``delta`` seconds."""
        self.elapsed += delta
        while self._scheduled and self._scheduled[0][0] <= self.elapsed:
            _, callback = self._scheduled.pop(0)
            callback()
        self.session.deliver_pending()
        for participant in list(self.participants):
            participant.tick(delta)

    async def run(self, duration: Optional[float] = None) -> None:
        """Tick until ``duration`` seconds have passed or ``stop()`` is called."""
        loop = asyncio.get_running_loop()
        self._stopping = False
        self.start()
        last = loop.time()
        try:
            while not self._stopping:
                await asyncio.sleep(self.tick_seconds)
                now = loop.time()
                self.step(now - last)
                last = now
                if duration is not None and self.elapsed >= duration:
                    break
        finally:
            await self._drain()
            self.session.deliver_pending()
            logger.debug("WhitelistRuntime stopped after %.1fs", self.elapsed)

    def stop(self) -> None:
        self._stopping = True

    async def _drain(self) -> None:
        for participant in self.participants:
            await participant.scheduler.fetcher.drain()
