"""Service de contenu d'entraînement (orchestrateur).

Ce module coordonne le cache, le générateur et le contenu de secours :

    Requested → CacheCheck → CacheHit → Done
                           → CacheMiss → Generating → Success → Cached → Done
                                                    → Failure → FallbackSynthesis → Done

Les erreurs de génération ne remontent jamais à l'appelant : elles sont converties en contenu de
secours (`source = "fallback"`). Seules les erreurs de configuration sont propagées.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime

import structlog

from prepacds.app.metrics import TRAINING_CONTENT_TOTAL, TRAINING_GENERATION_LATENCY
from prepacds.domain.content_generator import ContentGenerator
from prepacds.domain.entities import (
    ContentSource,
    GenerationRequest,
    SessionMetadata,
    StudyDomain,
    TrainingContentResult,
    TrainingType,
    UserLevel,
)
from prepacds.domain.errors import ConfigurationError
from prepacds.domain.fallback import build_fallback_content
from prepacds.infra.cache_store import CacheStore

DEFAULT_CACHE_TTL_S = 30 * 60


def default_session_id() -> str:
    return f"session-{int(time.time() * 1000)}"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class TrainingContentService:
    """Orchestrateur cache → génération → secours."""

    def __init__(
        self,
        cache: CacheStore,
        generator: ContentGenerator,
        ttl: float = DEFAULT_CACHE_TTL_S,
    ):
        """Initialise le service; le cache est le seul état partagé entre requêtes."""
        self.cache = cache
        self.generator = generator
        self.ttl = ttl
        self._log = structlog.get_logger(__name__).bind(component="training_content_service")

    async def generate_content(
        self,
        training_type: TrainingType | str,
        level: UserLevel | str,
        domain: StudyDomain | str,
        session_id: str | None = None,
    ) -> TrainingContentResult:
        """Retourne le contenu demandé, depuis le cache, l'IA ou le gabarit de secours.

        Raises:
            ConfigurationError: clé API ou assistant absent (jamais masqué par le secours).
        """
        request = GenerationRequest(
            training_type=training_type, level=level, domain=domain, session_id=session_id
        )
        sid = request.session_id or default_session_id()
        key = request.cache_key
        log = self._log.bind(cache_key=key, session_id=sid)

        cached = self.cache.get(key)
        if cached is not None:
            log.info("training_cache_hit")
            return self._result(request, sid, cached, ContentSource.CACHE)

        log.info("training_cache_miss")
        start = time.perf_counter()
        try:
            content = await self.generator.generate(request)
        except ConfigurationError:
            raise
        except Exception as exc:
            log.warning(
                "training_generation_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            fallback = build_fallback_content(
                request.training_type, request.level, request.domain, session_id=sid
            )
            # type seul côté appelant; le détail reste dans les logs
            return self._result(
                request, sid, fallback, ContentSource.FALLBACK, error=type(exc).__name__
            )
        finally:
            TRAINING_GENERATION_LATENCY.labels(request.training_type.value).observe(
                time.perf_counter() - start
            )

        self.cache.set(key, content, self.ttl)
        log.info("training_generation_succeeded", ttl_s=self.ttl)
        return self._result(request, sid, content, ContentSource.AI)

    def _result(
        self,
        request: GenerationRequest,
        session_id: str,
        content: dict,
        source: ContentSource,
        error: str | None = None,
    ) -> TrainingContentResult:
        TRAINING_CONTENT_TOTAL.labels(request.training_type.value, source.value).inc()
        created_at = _now_iso()
        return TrainingContentResult(
            content=content,
            source=source,
            session_id=session_id,
            timestamp=created_at,
            session=SessionMetadata(
                id=session_id,
                source=source,
                training_type=request.training_type,
                level=request.level,
                domain=request.domain,
                created_at=created_at,
            ),
            error=error,
        )
