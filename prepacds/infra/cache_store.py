"""
Stockage du contenu généré, avec expiration (TTL).

Ce module fournit deux implémentations du même contrat `get(key)` / `set(key, data, ttl)` :
une version en mémoire bornée (LRU, éviction paresseuse du TTL à la lecture) et une version
Redis pour partager le cache entre plusieurs processus.
"""

from __future__ import annotations

import json
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import redis
import structlog

log = structlog.get_logger(__name__)


class CacheStore(Protocol):
    """Contrat commun des caches de contenu."""

    backend: str

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, data: Any, ttl: float) -> None: ...

    def clear(self) -> None: ...

    def stats(self) -> dict[str, int]: ...


@dataclass
class CacheEntry:
    """Entrée de cache : donnée, instant d'écriture et durée de validité (secondes)."""

    key: str
    data: Any
    timestamp: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.timestamp >= self.ttl


class InMemoryCacheStore:
    """
    Cache mémoire borné, local au processus.

    - `get` évince l'entrée expirée au moment de la lecture (pas de balayage proactif).
    - `set` écrase toujours l'entrée existante.
    - Au-delà de `max_entries`, l'entrée la moins récemment utilisée est évincée.
    - Les données sont rendues telles quelles : l'appelant ne doit pas les muter.
    """

    backend = "memory"

    def __init__(self, max_entries: int = 256, clock: Callable[[], float] = time.monotonic):
        """Initialise un cache vide."""
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Any | None:
        """Retourne la donnée si elle est encore valide, sinon None."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            self.misses += 1
            log.debug("cache_entry_expired", key=key)
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return entry.data

    def set(self, key: str, data: Any, ttl: float) -> None:
        """Écrit (ou écrase) l'entrée pour `key`."""
        self._entries[key] = CacheEntry(key=key, data=data, timestamp=self._clock(), ttl=ttl)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self.evictions += 1
            log.debug("cache_entry_evicted", key=evicted)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, int]:
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }


class RedisCacheStore:
    """Cache partagé adossé à Redis (clé: `{prefix}{key}`, expiration gérée par Redis)."""

    backend = "redis"

    def __init__(self, url: str, prefix: str = "training:content:"):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self.prefix = prefix

    def get(self, key: str) -> Any | None:
        """Charge et désérialise la donnée; Redis indisponible équivaut à un défaut de cache."""
        try:
            raw = self.client.get(self.prefix + key)
        except redis.RedisError as err:
            log.warning("redis_cache_get_failed", key=key, error=str(err))
            return None
        return json.loads(raw) if raw else None

    def set(self, key: str, data: Any, ttl: float) -> None:
        """Sérialise en JSON avec expiration en ms; écriture ignorée si Redis est indisponible."""
        try:
            self.client.set(self.prefix + key, json.dumps(data), px=max(1, int(ttl * 1000)))
        except redis.RedisError as err:
            log.warning("redis_cache_set_failed", key=key, error=str(err))

    def clear(self) -> None:
        keys = list(self.client.scan_iter(match=f"{self.prefix}*"))
        if keys:
            self.client.delete(*keys)

    def stats(self) -> dict[str, int]:
        try:
            entries = sum(1 for _ in self.client.scan_iter(match=f"{self.prefix}*"))
        except redis.RedisError as err:
            log.warning("redis_cache_stats_failed", error=str(err))
            return {"entries": -1}
        return {"entries": entries}


def build_cache_store(
    redis_url: str | None, max_entries: int, require_redis: bool = False
) -> InMemoryCacheStore | RedisCacheStore:
    """Choisit Redis si configuré et joignable, sinon le cache mémoire."""
    if redis_url:
        try:
            store = RedisCacheStore(redis_url)
            store.client.ping()
            return store
        except redis.RedisError as err:
            if require_redis:
                raise RuntimeError("Redis required but unavailable") from err
            log.warning("redis_cache_unavailable", error=str(err), fallback="memory")
    return InMemoryCacheStore(max_entries=max_entries)
