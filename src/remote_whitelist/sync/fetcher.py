"""HTTP fetcher for the remote whitelist text."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx

from .errors import ConfigurationError, FetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

# Hosts known to serve raw text reliably. Other hosts still work.
TRUSTED_HOST_SUFFIXES = (
    ".github.io",
    "raw.githubusercontent.com",
    "gist.githubusercontent.com",
    "pastebin.com",
    ".vrcdn.cloud",
    ".disbridge.com",
)


@dataclass(frozen=True)
class FetchResult:
    """Successful download. ``url`` echoes the requested URL."""

    url: str
    body: str


SuccessCallback = Callable[[FetchResult], None]
FailureCallback = Callable[[FetchError], None]


def is_trusted_host(url: str) -> bool:
    """Check whether ``url`` points at one of the known raw-text hosts."""
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return False
    for suffix in TRUSTED_HOST_SUFFIXES:
        if suffix.startswith("."):
            if host.endswith(suffix):
                return True
        elif host == suffix or host.endswith("." + suffix):
            return True
    return False


def validate_url(url: str) -> str:
    """Return ``url`` stripped, or raise if it is not an absolute http(s) URL.

    Raises:
        ConfigurationError: If ``url`` is empty or malformed.
    """
    url = url.strip()
    if not url:
        raise ConfigurationError("Whitelist URL is not set")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"Invalid whitelist URL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"Whitelist URL must be an absolute http(s) URL: {url}")
    return url


class Fetcher:
    """Performs single GET requests for a text resource.

    The fetcher never touches shared state: results are handed to the
    caller, which decides whether the completion is still relevant.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport
        self._pending: set[asyncio.Task] = set()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch(self, url: str) -> FetchResult:
        """Download ``url`` and return its body as text.

        Raises:
            ConfigurationError: If ``url`` is empty. No request is made.
            FetchError: On a malformed URL, transport failure or a non-success status.
        """
        if not url:
            raise ConfigurationError("Whitelist URL is not set")

        logger.debug("Attempting to download from: %s", url)
        try:
            async with self._build_client() as client:
                response = await client.get(url)
        except httpx.InvalidURL as exc:
            raise FetchError(url, 0, f"Invalid URL: {exc}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, 0, f"Cannot reach server: {exc}") from exc

        if not response.is_success:
            raise FetchError(url, response.status_code, response.reason_phrase or "HTTP error")

        body = response.content.decode("utf-8", errors="replace")
        logger.debug("Raw downloaded content received:\n---\n%s\n---", body)
        return FetchResult(url=url, body=body)

    def request(
        self,
        url: str,
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> asyncio.Task:
        """Start a download in the background.

        Exactly one of ``on_success`` or ``on_failure`` is invoked when the
        download completes. Must be called from a running event loop.

        Raises:
            ConfigurationError: If ``url`` is empty. Neither callback runs.
        """
        if not url:
            raise ConfigurationError("Whitelist URL is not set")

        task = asyncio.get_running_loop().create_task(
            self._run(url, on_success, on_failure)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(
        self,
        url: str,
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> None:
        try:
            result = await self.fetch(url)
        except FetchError as exc:
            on_failure(exc)
            return
        except Exception as exc:
            logger.exception("Unexpected error while downloading %s", url)
            on_failure(FetchError(url, 0, f"Unexpected error: {exc}"))
            return
        on_success(result)

    @property
    def pending(self) -> int:
        """Number of downloads still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all in-flight downloads to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
