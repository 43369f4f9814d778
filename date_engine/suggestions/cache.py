from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from .models import DateSuggestionRequest

_DEFAULT_TTL_MINUTES = 15.0


def fingerprint(request: DateSuggestionRequest) -> str:
    """
    Deterministic cache key for a request.

    Coordinates are rounded to 4 decimals (~11 m) so near-identical requests
    share an entry. The relationship id is not part of the key.
    """
    parts = [
        f"{request.location.latitude:.4f}",
        f"{request.location.longitude:.4f}",
        repr(float(request.radius_km)),
        json.dumps(request.preferences.model_dump(), sort_keys=True, default=str),
        request.requester_id or "anonymous",
    ]
    return hashlib.sha256("_".join(parts).encode()).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    expires_at: float


class ResponseCache:
    """Mutex-guarded TTL map. Expired entries are dropped on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry and self._clock() < entry.expires_at:
                self._hits += 1
                return entry.payload
            if entry:
                del self._entries[key]
            self._misses += 1
            return None

    def put(self, key: str, payload: Any, ttl_minutes: float = _DEFAULT_TTL_MINUTES) -> None:
        expires_at = self._clock() + ttl_minutes * 60
        with self._lock:
            self._entries[key] = CacheEntry(key=key, payload=payload, expires_at=expires_at)

    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
