"""Per-participant whitelist pipeline.

Every participant, coordinator or not, runs the same pipeline whenever the
replicated value changes::

    ReplicatedStore -> parse_whitelist -> is_member -> VisibilitySink

Only the coordinator additionally drives the ``RefreshScheduler``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .decision import is_member
from .errors import ConfigurationError
from .fetcher import Fetcher
from .parser import parse_whitelist
from .scheduler import ProcessingToken, RefreshScheduler
from .session import SessionPlatform
from .sink import LoggingVisibilitySink, VisibilitySink
from .store import ReplicatedStore
from .timer import DEFAULT_REFRESH_INTERVAL

logger = logging.getLogger(__name__)


@dataclass
class ParticipantState:
    """Local derived state for one participant.

    Created when the participant joins and reset on reconnect.
    """

    entries: tuple[str, ...] = ()
    is_whitelisted: bool = False
    has_valid_data: bool = False
    process_count: int = 0
    processing: ProcessingToken = field(
        default_factory=lambda: ProcessingToken("process"), repr=False
    )

    @property
    def loaded_name_count(self) -> int:
        return len(self.entries)

    def reset(self) -> None:
        self.entries = ()
        self.is_whitelisted = False
        self.has_valid_data = False
        self.processing.release()


class WhitelistParticipant:
    """Wires one session participant to the whitelist pipeline.

    Args:
        session: The participant's handle on the session platform.
        target: Name of the container whose visibility is controlled.
        url: Source URL of the whitelist text (used only as coordinator).
        fetcher: Downloader; a default ``Fetcher`` is created if omitted.
        sink: Receives every visibility decision.
        refresh_interval: Seconds between automatic coordinator refreshes.
    """

    def __init__(
        self,
        session: SessionPlatform,
        target: Optional[str],
        url: str = "",
        fetcher: Optional[Fetcher] = None,
        sink: Optional[VisibilitySink] = None,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        self.session = session
        self.target = target
        self.sink: VisibilitySink = sink if sink is not None else LoggingVisibilitySink()
        self.state = ParticipantState()
        self.store = ReplicatedStore(session)
        self.scheduler = RefreshScheduler(
            session=session,
            fetcher=fetcher if fetcher is not None else Fetcher(),
            store=self.store,
            process=self.process,
            fail_safe=self.apply_fail_safe,
            url=url,
            interval=refresh_interval,
        )
        self.started = False
        self.store.on_value_changed(self._on_value_changed)
        session.attach(self.store, self)

    @property
    def is_whitelisted(self) -> bool:
        return self.state.is_whitelisted

    @property
    def url(self) -> str:
        return self.scheduler.url

    def set_source_url(self, url: str) -> None:
        """Point downloads at ``url``; in-flight results for the old URL are dropped."""
        if url == self.scheduler.url:
            return
        self.scheduler.url = url
        if self.started and self.session.is_coordinator():
            self.scheduler.fire_now("source changed")

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> bool:
        """Initialise visibility and begin syncing.

        Returns False if the participant could not start because no target
        container is configured.
        """
        logger.info("Initializing...")
        try:
            self._require_target()
        except ConfigurationError as exc:
            logger.error("%s", exc)
            return False

        # Hidden for everyone until the list has been checked
        self._apply(False)
        self.started = True

        self.scheduler.start()
        # Late joiners may already hold the snapshot
        if not self.session.is_coordinator() and self.store.current_value:
            self.process()
        return True

    def tick(self, delta: float) -> None:
        if self.started:
            self.scheduler.tick(delta)

    def refresh(self) -> bool:
        """Manual refresh; ignored unless this participant is coordinator."""
        if not self.started:
            logger.info("Manual refresh requested before start. Ignoring.")
            return False
        return self.scheduler.refresh()

    # ── Session events ────────────────────────────────────────────

    def on_became_coordinator(self) -> None:
        if self.started:
            self.scheduler.on_became_coordinator()

    def on_participant_joined(self, participant_id: str) -> None:
        logger.debug("Participant joined: %s", participant_id)

    def on_identity_resolved(self) -> None:
        if not self.started:
            return
        logger.debug("Local identity resolved; re-checking membership.")
        self._decide()

    def on_reconnected(self) -> None:
        logger.info("Reconnected; rebuilding local whitelist state.")
        self.state.reset()
        if not self.started:
            return
        self._apply(False)
        if self.store.current_value:
            self.process()

    # ── Pipeline ──────────────────────────────────────────────────

    def _on_value_changed(self, value: str) -> None:
        if not self.started:
            return
        logger.info("Received synced data update.")
        self.process()

    def process(self) -> None:
        """Parse the replicated value and recompute membership once."""
        with self.state.processing.hold() as acquired:
            if not acquired:
                logger.debug("Processing already in progress; skipping.")
                return

            logger.info("Processing whitelist data...")
            raw = self.store.current_value
            if not raw:
                logger.info("Synced data is empty, clearing local whitelist.")
            self.state.entries = parse_whitelist(raw)
            self.state.has_valid_data = True
            self.state.process_count += 1
            logger.info("Parsed %d valid names from whitelist.", self.state.loaded_name_count)
            self._decide()

    def apply_fail_safe(self) -> None:
        """Treat the local participant as not a member until data arrives."""
        if self.state.has_valid_data:
            return
        self.state.is_whitelisted = False
        self._apply(False)

    def _decide(self) -> None:
        identity = self.session.local_identity()
        if identity is None:
            logger.info("Local participant identity not resolved yet.")
            self.state.is_whitelisted = False
        else:
            self.state.is_whitelisted = is_member(self.state.entries, identity)
            logger.info(
                "Local participant '%s' IsWhitelisted: %s", identity, self.state.is_whitelisted
            )
        self._apply(self.state.is_whitelisted)

    def _apply(self, visible: bool) -> None:
        if self.target is None:
            return
        self.sink.apply_visibility(self.target, visible)

    def _require_target(self) -> str:
        if not self.target:
            raise ConfigurationError("Target container is not set!")
        return self.target
