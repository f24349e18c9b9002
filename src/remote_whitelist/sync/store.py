"""Replicated single-string store shared by all session participants."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from .errors import NotCoordinatorError

if TYPE_CHECKING:
    from .session import SessionPlatform

logger = logging.getLogger(__name__)

ValueChangedCallback = Callable[[str], None]


class ReplicatedStore:
    """Holds the raw whitelist text agreed upon by the session.

    Only the coordinator may write. Writes are published through the session
    platform and echoed locally, so change handlers run on every participant
    including the writer. Deliveries are at-least-once; a delivery equal to
    the value already held is dropped.
    """

    def __init__(self, session: SessionPlatform, initial_value: str = "") -> None:
        self._session = session
        self._value = initial_value
        self._callbacks: list[ValueChangedCallback] = []

    @property
    def current_value(self) -> str:
        return self._value

    def on_value_changed(self, callback: ValueChangedCallback) -> None:
        """Register a handler invoked with the new value on every transition."""
        self._callbacks.append(callback)

    def set_value(self, new_value: str) -> bool:
        """Write a new value as coordinator.

        Returns:
            True if the value changed and was published, False if it was
            already held.

        Raises:
            NotCoordinatorError: If the local participant is not coordinator.
        """
        if not self._session.is_coordinator():
            raise NotCoordinatorError("Only the coordinator may write the replicated value")

        if new_value == self._value:
            logger.debug("Replicated value unchanged; skipping publish")
            return False

        self._value = new_value
        logger.debug("Publishing replicated value (%d chars)", len(new_value))
        self._session.publish(new_value)
        self._notify(new_value)
        return True

    def receive(self, value: str) -> bool:
        """Apply a replication event delivered by the session transport."""
        if value == self._value:
            return False
        self._value = value
        logger.debug("Received replicated value (%d chars)", len(value))
        self._notify(value)
        return True

    def load_snapshot(self, value: str) -> None:
        """Install the late-join snapshot without raising a change event."""
        self._value = value

    def _notify(self, value: str) -> None:
        for callback in list(self._callbacks):
            callback(value)
