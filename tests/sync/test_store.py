"""Tests for ReplicatedStore and its LocalSession transport."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from remote_whitelist.sync.errors import NotCoordinatorError
from remote_whitelist.sync.session import LocalSession
from remote_whitelist.sync.store import ReplicatedStore


def _attached_store(session: LocalSession, name: str) -> tuple[ReplicatedStore, list[str]]:
    handle = session.join(name)
    store = ReplicatedStore(handle)
    changes: list[str] = []
    store.on_value_changed(changes.append)
    handle.attach(store, MagicMock())
    return store, changes


class TestSetValue:
    def test_coordinator_write_echoes_locally(self, session: LocalSession):
        """The writer's own handlers see the change."""
        store, changes = _attached_store(session, "alice")

        assert store.set_value("alice\nbob") is True
        assert store.current_value == "alice\nbob"
        assert changes == ["alice\nbob"]

    def test_same_value_is_noop(self, session: LocalSession):
        """Writing the held value publishes nothing."""
        store, changes = _attached_store(session, "alice")
        store.set_value("x")
        assert store.set_value("x") is False
        assert changes == ["x"]
        assert session.publish_count == 1

    def test_non_coordinator_cannot_write(self, session: LocalSession):
        _attached_store(session, "alice")
        store, changes = _attached_store(session, "bob")

        with pytest.raises(NotCoordinatorError):
            store.set_value("x")
        assert store.current_value == ""
        assert changes == []


class TestReplication:
    def test_write_reaches_other_participants_after_delivery(self, session: LocalSession):
        coordinator, _ = _attached_store(session, "alice")
        follower, changes = _attached_store(session, "bob")

        coordinator.set_value("v1")
        assert follower.current_value == ""  # not delivered yet

        assert session.deliver_pending() == 1
        assert follower.current_value == "v1"
        assert changes == ["v1"]

    def test_double_write_delivers_once_per_participant(self, session: LocalSession):
        """set_value(v) twice produces at most one change per participant."""
        coordinator, coordinator_changes = _attached_store(session, "alice")
        follower, follower_changes = _attached_store(session, "bob")

        coordinator.set_value("v")
        coordinator.set_value("v")
        session.deliver_pending()

        assert coordinator_changes == ["v"]
        assert follower_changes == ["v"]

    def test_duplicate_delivery_is_dropped(self, session: LocalSession):
        """At-least-once transport: redelivery of the held value is ignored."""
        follower, changes = _attached_store(session, "bob")
        assert follower.receive("v") is True
        assert follower.receive("v") is False
        assert changes == ["v"]

    def test_writes_observed_in_issue_order(self, session: LocalSession):
        coordinator, _ = _attached_store(session, "alice")
        follower, changes = _attached_store(session, "bob")

        coordinator.set_value("v1")
        coordinator.set_value("v2")
        coordinator.set_value("v3")
        session.deliver_pending()

        assert changes == ["v1", "v2", "v3"]

    def test_late_joiner_gets_snapshot_without_change_event(self, session: LocalSession):
        coordinator, _ = _attached_store(session, "alice")
        coordinator.set_value("alice\r\nbob")

        late, changes = _attached_store(session, "carol")

        assert late.current_value == "alice\r\nbob"
        assert changes == []
