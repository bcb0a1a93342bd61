"""
Endpoint de santé pour vérifier la disponibilité de l'API et de ses dépendances.

Expose `/health` : backend et statistiques du cache, état de la file d'attente LLM et
présence de la configuration de l'assistant (jamais sa valeur).
"""


from fastapi import APIRouter, Depends

from prepacds.api.deps import get_container
from prepacds.core.container import Container

router = APIRouter(tags=["health"])
_container_dep = Depends(get_container)


@router.get("/health")
def health(container: Container = _container_dep):
    """Vérifie la disponibilité de l'API, du cache et de la configuration LLM."""
    settings = container.runtime_settings()
    return {
        "status": "ok",
        "storage": container.storage_backend,
        "cache": container.cache.stats(),
        "queue": container.queue.stats(),
        "llm_backend": settings.LLM_BACKEND,
        "llm_configured": bool(settings.OPENAI_API_KEY and settings.PREPACDS_ASSISTANT_ID)
        if settings.LLM_BACKEND == "assistants"
        else bool(settings.OPENAI_API_KEY),
    }
