"""
Host selection for the backend cluster.

The blacklist is shared by every request served by this process. Entries are
replaced atomically per endpoint and expire lazily on lookup.
"""

from collections.abc import Callable, Collection, Iterable
import logging
import threading
import time

import msgspec

from bedrock_gateway.config import HostEndpoint


logger = logging.getLogger(__name__)


class BlacklistEntry(msgspec.Struct, frozen=True):
    endpoint: HostEndpoint
    expires_at: float


class Blacklist:
    """
    Time-bounded exclusion of failed endpoints.

    Thread-safe: a single lock guards the entry map, and each write replaces the
    entry for one endpoint.
    """

    def __init__(self, timeout_seconds: float, clock: Callable[[], float] = time.time) -> None:
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._entries: dict[HostEndpoint, BlacklistEntry] = {}
        self._lock = threading.Lock()

    def add(self, endpoint: HostEndpoint) -> BlacklistEntry:
        entry = BlacklistEntry(endpoint=endpoint, expires_at=self._clock() + self.timeout_seconds)
        with self._lock:
            self._entries[endpoint] = entry
        logger.warning(
            "Blacklisted %s for %.0fs",
            endpoint,
            self.timeout_seconds,
        )
        return entry

    def is_blacklisted(self, endpoint: HostEndpoint) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(endpoint)
            if entry is None:
                return False
            if entry.expires_at <= now:
                del self._entries[endpoint]
                return False
            return True

    def entries(self) -> list[BlacklistEntry]:
        """Snapshot of the entries that have not yet expired."""
        now = self._clock()
        with self._lock:
            return [entry for entry in self._entries.values() if entry.expires_at > now]

    def remaining(self, entry: BlacklistEntry) -> float:
        return max(0.0, entry.expires_at - self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class HostPool:
    """Ordered primary and failover endpoints."""

    def __init__(
        self,
        primary: Iterable[HostEndpoint],
        failover: Iterable[HostEndpoint] = (),
    ) -> None:
        self.primary = tuple(primary)
        self.failover = tuple(failover)

    @property
    def endpoints(self) -> tuple[HostEndpoint, ...]:
        return self.primary + self.failover

    def __len__(self) -> int:
        return len(self.primary) + len(self.failover)

    def next_candidate(
        self,
        blacklist: Blacklist,
        exclude: Collection[HostEndpoint] = (),
    ) -> HostEndpoint | None:
        """
        Return the first endpoint that is neither blacklisted nor excluded.

        Primary endpoints are always considered before failover endpoints.

        Args:
            blacklist: Shared blacklist to consult
            exclude: Endpoints already tried by the caller

        Returns:
            The endpoint to try next, or None when no endpoint is eligible
        """
        for endpoint in self.endpoints:
            if endpoint in exclude:
                continue
            if not blacklist.is_blacklisted(endpoint):
                return endpoint
        return None
