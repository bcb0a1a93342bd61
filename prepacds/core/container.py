"""
Conteneur d'injection de dépendances.

Instancie les composants partagés entre requêtes (settings, cache de contenu, file d'attente des
appels LLM) et la fabrique de clients LLM. Le conteneur est construit explicitement et attaché à
l'application (`app.state.container`); plusieurs instances indépendantes peuvent coexister.
"""

from __future__ import annotations

from collections.abc import Callable

from prepacds.core.settings import Settings, get_settings
from prepacds.domain.content_generator import ContentGenerator
from prepacds.domain.question_service import QuestionService
from prepacds.domain.training_service import TrainingContentService
from prepacds.infra.cache_store import CacheStore, build_cache_store
from prepacds.infra.llm.base import LLM
from prepacds.infra.llm.factory import build_llm_client
from prepacds.infra.request_queue import RequestQueue

LLMFactory = Callable[[Settings], LLM]


class Container:
    """Composants du pipeline de génération, partagés par toutes les requêtes."""

    def __init__(
        self,
        settings: Settings | None = None,
        cache: CacheStore | None = None,
        queue: RequestQueue | None = None,
        llm_factory: LLMFactory = build_llm_client,
        runtime_settings: Callable[[], Settings] | None = None,
    ):
        """Construit le conteneur; chaque composant peut être fourni (tests)."""
        self.settings = settings if settings is not None else get_settings()
        self.cache = (
            cache
            if cache is not None
            else build_cache_store(self.settings.REDIS_URL, self.settings.CACHE_MAX_ENTRIES)
        )
        self.queue = (
            queue
            if queue is not None
            else RequestQueue(
                max_concurrent=self.settings.LLM_MAX_CONCURRENT,
                drain_delay=self.settings.LLM_QUEUE_DRAIN_DELAY_S,
            )
        )
        self.llm_factory = llm_factory
        # Les secrets LLM sont relus à chaque requête.
        self.runtime_settings = runtime_settings or (
            get_settings if settings is None else (lambda: self.settings)
        )

    @property
    def storage_backend(self) -> str:
        return getattr(self.cache, "backend", "unknown")

    def build_llm(self) -> LLM:
        """Construit le client LLM avec la configuration courante.

        Raises:
            ConfigurationError: clé API ou identifiant d'assistant manquant.
        """
        return self.llm_factory(self.runtime_settings())

    def training_service(self) -> TrainingContentService:
        generator = ContentGenerator(self.build_llm(), self.queue)
        return TrainingContentService(self.cache, generator, ttl=self.settings.CACHE_TTL_S)

    def question_service(self) -> QuestionService:
        return QuestionService(self.build_llm(), self.queue)
