"""Session platform interface and an in-process reference session.

The real session platform (presence, role arbitration, transport) lives
outside this package. ``LocalSession`` implements the same contract inside a
single process so the refresh protocol can be exercised end to end.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from .store import ReplicatedStore

logger = logging.getLogger(__name__)


class SessionListener(Protocol):
    """Events the session platform pushes to a participant."""

    def on_became_coordinator(self) -> None: ...

    def on_participant_joined(self, participant_id: str) -> None: ...

    def on_identity_resolved(self) -> None: ...

    def on_reconnected(self) -> None: ...


class SessionPlatform(Protocol):
    """What the whitelist core needs from the session platform."""

    def is_coordinator(self) -> bool: ...

    def local_identity(self) -> Optional[str]: ...

    def publish(self, value: str) -> None: ...

    def attach(self, store: ReplicatedStore, listener: SessionListener) -> None: ...


@dataclass
class LocalSessionHandle:
    """One participant's view of a ``LocalSession``."""

    hub: LocalSession
    participant_id: str
    identity: Optional[str] = None
    identity_resolved: bool = True
    store: Optional[ReplicatedStore] = field(default=None, repr=False)
    listener: Optional[SessionListener] = field(default=None, repr=False)

    def is_coordinator(self) -> bool:
        return self.hub.coordinator is self

    def local_identity(self) -> Optional[str]:
        if not self.identity_resolved:
            return None
        return self.identity if self.identity is not None else self.participant_id

    def publish(self, value: str) -> None:
        self.hub._publish(self, value)

    def attach(self, store: ReplicatedStore, listener: SessionListener) -> None:
        self.hub._attach(self, store, listener)


class LocalSession:
    """In-process session hub.

    The coordinator is the longest-present member. Replication events are
    queued and delivered in publish order by ``deliver_pending()``, which the
    runtime calls once per tick. Late joiners receive the latest published
    value as a snapshot.
    """

    def __init__(self) -> None:
        self._members: list[LocalSessionHandle] = []
        self._outbox: deque[tuple[LocalSessionHandle, str]] = deque()
        self.latest_value = ""
        self.publish_count = 0

    @property
    def members(self) -> list[LocalSessionHandle]:
        return list(self._members)

    @property
    def coordinator(self) -> Optional[LocalSessionHandle]:
        return self._members[0] if self._members else None

    def join(
        self,
        participant_id: str,
        identity: Optional[str] = None,
        identity_resolved: bool = True,
    ) -> LocalSessionHandle:
        """Add a participant. The first member becomes coordinator."""
        if any(m.participant_id == participant_id for m in self._members):
            raise ValueError(f"Participant already in session: {participant_id}")

        handle = LocalSessionHandle(
            hub=self,
            participant_id=participant_id,
            identity=identity,
            identity_resolved=identity_resolved,
        )
        self._members.append(handle)
        logger.info(
            "Participant %s joined (coordinator=%s)", participant_id, handle.is_coordinator()
        )
        for member in self._members:
            if member is not handle and member.listener is not None:
                member.listener.on_participant_joined(participant_id)
        return handle

    def leave(self, handle: LocalSessionHandle) -> None:
        """Remove a participant, migrating the coordinator role if needed."""
        was_coordinator = handle.is_coordinator()
        self._members.remove(handle)
        self._outbox = deque((m, v) for m, v in self._outbox if m is not handle)
        logger.info("Participant %s left", handle.participant_id)

        successor = self.coordinator
        if was_coordinator and successor is not None:
            logger.info("Coordinator role migrated to %s", successor.participant_id)
            # The successor must hold the latest value before it writes
            self._deliver_to(successor)
            if successor.listener is not None:
                successor.listener.on_became_coordinator()

    def resolve_identity(self, handle: LocalSessionHandle, identity: Optional[str] = None) -> None:
        """Mark a participant's identity as available and notify it."""
        if identity is not None:
            handle.identity = identity
        handle.identity_resolved = True
        if handle.listener is not None:
            handle.listener.on_identity_resolved()

    def reconnect(self, handle: LocalSessionHandle) -> None:
        """Simulate a dropped and restored connection for ``handle``.

        Pending deliveries are lost; the latest value arrives as a snapshot.
        """
        self._outbox = deque((m, v) for m, v in self._outbox if m is not handle)
        if handle.store is not None:
            handle.store.load_snapshot(self.latest_value)
        if handle.listener is not None:
            handle.listener.on_reconnected()

    def deliver_pending(self) -> int:
        """Deliver queued replication events. Returns the number delivered."""
        delivered = 0
        while self._outbox:
            member, value = self._outbox.popleft()
            if member.store is not None:
                member.store.receive(value)
            delivered += 1
        return delivered

    @property
    def pending_deliveries(self) -> int:
        return len(self._outbox)

    def _deliver_to(self, handle: LocalSessionHandle) -> None:
        remaining: deque[tuple[LocalSessionHandle, str]] = deque()
        for member, value in self._outbox:
            if member is handle:
                if member.store is not None:
                    member.store.receive(value)
            else:
                remaining.append((member, value))
        self._outbox = remaining

    def _attach(
        self,
        handle: LocalSessionHandle,
        store: ReplicatedStore,
        listener: SessionListener,
    ) -> None:
        handle.store = store
        handle.listener = listener
        store.load_snapshot(self.latest_value)

    def _publish(self, sender: LocalSessionHandle, value: str) -> None:
        if not sender.is_coordinator():
            logger.warning("Ignoring publish from non-coordinator %s", sender.participant_id)
            return
        self.latest_value = value
        self.publish_count += 1
        for member in self._members:
            if member is not sender:
                self._outbox.append((member, value))
