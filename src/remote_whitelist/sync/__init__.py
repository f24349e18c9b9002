"""
Sync module for remote-whitelist.

Keeps a remote whitelist consistent across the participants of a shared
session:
- Coordinator-only fetch and refresh scheduling
- Replicated single-string store with late-join snapshots
- Whitelist parsing and membership decisions
- Visibility sinks applying the decision locally

HTTP-dependent names (httpx) are lazily imported via __getattr__ so that
``from remote_whitelist.sync.parser import ...`` stays lightweight.
"""

from .decision import is_member
from .errors import ConfigurationError, FetchError, NotCoordinatorError, WhitelistError
from .parser import parse_whitelist
from .session import LocalSession, SessionPlatform
from .sink import LoggingVisibilitySink, RecordingVisibilitySink, VisibilitySink
from .store import ReplicatedStore
from .timer import PeriodicTimer

# Lazy-loaded names (require 'httpx' at runtime)
_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Fetcher": (".fetcher", "Fetcher"),
    "FetchResult": (".fetcher", "FetchResult"),
    "is_trusted_host": (".fetcher", "is_trusted_host"),
    "validate_url": (".fetcher", "validate_url"),
    "RefreshScheduler": (".scheduler", "RefreshScheduler"),
    "SchedulerPhase": (".scheduler", "SchedulerPhase"),
    "WhitelistParticipant": (".participant", "WhitelistParticipant"),
    "WhitelistRuntime": (".runtime", "WhitelistRuntime"),
    "WhitelistConfig": (".config", "WhitelistConfig"),
}


def __getattr__(name: str):
    if name in _LAZY_IMPORTS:
        module_path, attr = _LAZY_IMPORTS[name]
        import importlib

        mod = importlib.import_module(module_path, __name__)
        return getattr(mod, attr)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ConfigurationError",
    "FetchError",
    "FetchResult",
    "Fetcher",
    "LocalSession",
    "LoggingVisibilitySink",
    "NotCoordinatorError",
    "PeriodicTimer",
    "RecordingVisibilitySink",
    "RefreshScheduler",
    "ReplicatedStore",
    "SchedulerPhase",
    "SessionPlatform",
    "VisibilitySink",
    "WhitelistConfig",
    "WhitelistError",
    "WhitelistParticipant",
    "WhitelistRuntime",
    "is_member",
    "is_trusted_host",
    "validate_url",
    "parse_whitelist",
]
