"""Coordinator-only refresh scheduling.

The scheduler moves between three phases::

    IDLE --trigger--> FETCH_IN_FLIGHT --success/failure--> COOLING_DOWN
                              ^                                  |
                              +------- interval / manual --------+

A fetch cycle holds a single-slot token from trigger until its completion
has been handled, so overlapping cycles cannot race on the store.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

from .errors import ConfigurationError, FetchError
from .fetcher import Fetcher, FetchResult
from .timer import DEFAULT_REFRESH_INTERVAL, PeriodicTimer

if TYPE_CHECKING:
    from .session import SessionPlatform
    from .store import ReplicatedStore

logger = logging.getLogger(__name__)


class ProcessingToken:
    """Single-slot in-progress marker. Not a lock: everything runs on one loop."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        self._held = False

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Yield True if the token was acquired; release it on exit."""
        if not self.try_acquire():
            yield False
            return
        try:
            yield True
        finally:
            self.release()


class SchedulerPhase(str, Enum):
    IDLE = "idle"
    FETCH_IN_FLIGHT = "fetch_in_flight"
    COOLING_DOWN = "cooling_down"


@dataclass
class SchedulerState:
    """Coordinator-side refresh bookkeeping."""

    timer: PeriodicTimer = field(default_factory=PeriodicTimer)
    initial_attempt_completed: bool = False
    phase: SchedulerPhase = SchedulerPhase.IDLE
    in_flight: ProcessingToken = field(default_factory=lambda: ProcessingToken("fetch"))
    fetch_count: int = 0

    def reset(self) -> None:
        """Reset on newly acquiring the coordinator role.

        An in-flight fetch keeps its token; its completion releases it.
        """
        self.timer.reset()
        self.initial_attempt_completed = False
        if not self.in_flight.held:
            self.phase = SchedulerPhase.IDLE


class RoleStrategy:
    """Behaviour selected per tick from the session's role query."""

    def __init__(self, scheduler: RefreshScheduler) -> None:
        self.scheduler = scheduler

    def tick(self, delta: float) -> None:
        raise NotImplementedError

    def refresh(self) -> bool:
        raise NotImplementedError


class CoordinatorStrategy(RoleStrategy):
    def tick(self, delta: float) -> None:
        state = self.scheduler.state
        # The timer only runs once the first download attempt has finished
        if not state.initial_attempt_completed:
            return
        state.timer.advance(delta)
        if state.timer.due and not state.in_flight.held:
            logger.info("Automatic refresh interval reached. Requesting download.")
            self.scheduler.poll("interval")

    def refresh(self) -> bool:
        logger.info("Manual refresh requested by coordinator.")
        return self.scheduler.fire_now("manual")


class ParticipantStrategy(RoleStrategy):
    def tick(self, delta: float) -> None:
        return None

    def refresh(self) -> bool:
        logger.info("Manual refresh requested, but not coordinator. Ignoring.")
        return False


class RefreshScheduler:
    """Drives fetches for the coordinator and hands results to the store.

    Args:
        session: Role query for the local participant.
        fetcher: Background downloader.
        store: Replicated store the coordinator writes to.
        process: Runs the local parse/decide pipeline once.
        fail_safe: Forces "not a member" when no valid data exists yet.
        url: Source URL. May be changed at runtime; completions for a
            previous URL are discarded.
        interval: Seconds between automatic refreshes.
    """

    def __init__(
        self,
        session: SessionPlatform,
        fetcher: Fetcher,
        store: ReplicatedStore,
        process: Callable[[], None],
        fail_safe: Callable[[], None],
        url: str = "",
        interval: float = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        self.session = session
        self.fetcher = fetcher
        self.store = store
        self.url = url
        self.state = SchedulerState(timer=PeriodicTimer(interval))
        self._process = process
        self._fail_safe = fail_safe
        self._coordinator = CoordinatorStrategy(self)
        self._participant = ParticipantStrategy(self)

    @property
    def phase(self) -> SchedulerPhase:
        return self.state.phase

    def strategy(self) -> RoleStrategy:
        if self.session.is_coordinator():
            return self._coordinator
        return self._participant

    # ── Host entry points ─────────────────────────────────────────

    def start(self) -> None:
        if self.session.is_coordinator():
            logger.info("Coordinator requesting initial whitelist download...")
            self.fire_now("startup")
        else:
            logger.info("Not coordinator, waiting for synced data...")

    def tick(self, delta: float) -> None:
        self.strategy().tick(delta)

    def refresh(self) -> bool:
        return self.strategy().refresh()

    def on_became_coordinator(self) -> None:
        logger.info("Local participant became coordinator, ensuring whitelist is downloaded.")
        self.state.reset()
        self.fire_now("became coordinator")

    # ── Triggering ────────────────────────────────────────────────

    def fire_now(self, reason: str) -> bool:
        """Make the timer due and start a fetch unless one is in progress."""
        if self.state.in_flight.held:
            logger.info("Refresh (%s) ignored: a fetch is already in progress", reason)
            return False
        self.state.timer.fire_now()
        return self.poll(reason)

    def poll(self, reason: str) -> bool:
        """Start a fetch cycle if the timer is due and the slot is free."""
        if not self.state.timer.due:
            return False
        if not self.state.in_flight.try_acquire():
            logger.debug("Refresh (%s) ignored: a fetch is already in progress", reason)
            return False

        self.state.timer.reset()
        self.state.phase = SchedulerPhase.FETCH_IN_FLIGHT
        try:
            self.fetcher.request(self.url, self._on_success, self._on_failure)
        except ConfigurationError as exc:
            logger.error("%s", exc)
            # Lets the periodic timer run even without a usable URL
            self.state.initial_attempt_completed = True
            self._finish()
            return False
        except Exception:
            self._finish()
            raise

        self.state.fetch_count += 1
        logger.info("Attempting to download from: %s (%s)", self.url, reason)
        return True

    # ── Completions ───────────────────────────────────────────────

    def _on_success(self, result: FetchResult) -> None:
        if result.url != self.url:
            logger.debug("Discarding stale completion for %s", result.url)
            self._discard_stale()
            return
        try:
            logger.info("Whitelist download successful.")

            if not self.session.is_coordinator():
                logger.info("Download finished after coordinator role was lost; discarding.")
                return

            if self.store.current_value != result.body:
                logger.info("Coordinator received updated data, publishing replicated value.")
                # The local echo of the write runs the pipeline
                self.store.set_value(result.body)
            else:
                logger.info("Coordinator received data, but it hasn't changed. No update needed.")
                if not self.state.initial_attempt_completed:
                    self._process()
            self.state.initial_attempt_completed = True
        finally:
            self._finish()

    def _on_failure(self, error: FetchError) -> None:
        if error.url != self.url:
            logger.debug("Discarding stale failure for %s", error.url)
            self._discard_stale()
            return
        try:
            logger.error("Failed to download whitelist: %s - %s", error.code, error.message)
            self.state.initial_attempt_completed = True
            self._fail_safe()
        finally:
            self._finish()

    def _discard_stale(self) -> None:
        self._finish()
        # The source changed while this fetch was in flight
        if self.session.is_coordinator():
            self.fire_now("source changed")

    def _finish(self) -> None:
        self.state.phase = SchedulerPhase.COOLING_DOWN
        self.state.in_flight.release()
