from collections.abc import Callable
from dataclasses import dataclass
from threading import RLock
from time import monotonic
from typing import Generic
from typing import TypeVar


T = TypeVar("T")


@dataclass(frozen=True)
class CachedPayload(Generic[T]):
    expires_at: float
    data: T


class ResponseCache(Generic[T]):
    """In-memory TTL cache for aggregated responses.

    Expired entries are dropped lazily on the next lookup of their key.
    The clock is injectable so expiry can be driven from tests.
    """

    def __init__(
        self, ttl_seconds: float, clock: Callable[[], float] = monotonic
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CachedPayload[T]] = {}
        self._lock = RLock()

    def get(self, key: str) -> T | None:
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                return None

            if self._clock() >= cached.expires_at:
                del self._entries[key]
                return None

            return cached.data

    def set(self, key: str, data: T) -> None:
        with self._lock:
            self._entries[key] = CachedPayload(
                expires_at=self._clock() + self.ttl_seconds,
                data=data,
            )

