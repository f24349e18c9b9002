"""Shared fixtures for whitelist sync tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import pytest

from remote_whitelist.sync.errors import ConfigurationError, FetchError
from remote_whitelist.sync.fetcher import FetchResult
from remote_whitelist.sync.participant import WhitelistParticipant
from remote_whitelist.sync.session import LocalSession
from remote_whitelist.sync.sink import RecordingVisibilitySink

WHITELIST_URL = "https://example.github.io/whitelist.txt"


@dataclass
class PendingRequest:
    url: str
    on_success: Callable[[FetchResult], None]
    on_failure: Callable[[FetchError], None]


class FakeFetcher:
    """Fetcher double whose downloads are completed by the test."""

    def __init__(self) -> None:
        self.requests: list[PendingRequest] = []
        self.request_count = 0

    def request(self, url, on_success, on_failure) -> None:
        if not url:
            raise ConfigurationError("Whitelist URL is not set")
        self.request_count += 1
        self.requests.append(PendingRequest(url, on_success, on_failure))

    def succeed(self, body: str, index: int = 0) -> None:
        pending = self.requests.pop(index)
        pending.on_success(FetchResult(url=pending.url, body=body))

    def fail(self, code: int = 404, message: str = "Not Found", index: int = 0) -> None:
        pending = self.requests.pop(index)
        pending.on_failure(FetchError(pending.url, code, message))

    async def drain(self) -> None:
        return None


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def session() -> LocalSession:
    return LocalSession()


@pytest.fixture
def make_participant(session: LocalSession, fake_fetcher: FakeFetcher):
    """Factory joining a participant to the session with its own recording sink."""

    def _make(
        name: str,
        url: str = WHITELIST_URL,
        target: Optional[str] = "stage",
        identity_resolved: bool = True,
        refresh_interval: float = 60.0,
    ) -> WhitelistParticipant:
        return WhitelistParticipant(
            session=session.join(name, identity_resolved=identity_resolved),
            target=target,
            url=url,
            fetcher=fake_fetcher,
            sink=RecordingVisibilitySink(),
            refresh_interval=refresh_interval,
        )

    return _make
