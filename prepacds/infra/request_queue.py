# ============================================================
# Module : prepacds/infra/request_queue.py
# Objet  : File FIFO à concurrence bornée pour les appels LLM sortants.
# Invariants :
#  - Jamais plus de `max_concurrent` tâches en vol.
#  - Ordre d'admission FIFO strict (pas de priorité).
#  - L'échec d'une tâche n'affecte que son appelant.
#  - Pas de verrou : exécution coopérative sur une seule boucle asyncio.
# ============================================================

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from prepacds.app.metrics import LLM_QUEUE_ACTIVE, LLM_QUEUE_PENDING

T = TypeVar("T")

log = structlog.get_logger(__name__)


class RequestQueue:
    """File d'admission pour limiter les appels simultanés vers l'API distante."""

    def __init__(self, max_concurrent: int = 2, drain_delay: float = 0.1) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.max_concurrent = max_concurrent
        self.drain_delay = drain_delay
        self._pending: deque[tuple[Callable[[], Awaitable[Any]], asyncio.Future]] = deque()
        self._active = 0
        self._running: set[asyncio.Task] = set()

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def enqueue(self, task: Callable[[], Awaitable[T]]) -> T:
        """Ajoute `task` à la file et attend son résultat (ou son exception)."""
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending.append((task, future))
        self._publish()
        self._drain()
        return await future

    def _drain(self) -> None:
        while self._pending and self._active < self.max_concurrent:
            task, future = self._pending.popleft()
            if future.done():
                # appelant annulé pendant l'attente
                continue
            self._active += 1
            runner = asyncio.ensure_future(self._run(task, future))
            self._running.add(runner)
            runner.add_done_callback(self._running.discard)
        self._publish()

    async def _run(self, task: Callable[[], Awaitable[Any]], future: asyncio.Future) -> None:
        try:
            result = await task()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            if not future.done():
                future.set_exception(exc)
        else:
            if not future.done():
                future.set_result(result)
        finally:
            self._active -= 1
            self._publish()
            self._schedule_drain()

    def _schedule_drain(self) -> None:
        if not self._pending:
            return
        if self.drain_delay > 0:
            asyncio.get_running_loop().call_later(self.drain_delay, self._drain)
        else:
            self._drain()

    def _publish(self) -> None:
        LLM_QUEUE_ACTIVE.set(self._active)
        LLM_QUEUE_PENDING.set(len(self._pending))

    def stats(self) -> dict[str, int]:
        return {
            "active": self._active,
            "pending": len(self._pending),
            "max_concurrent": self.max_concurrent,
        }
