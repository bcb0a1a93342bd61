"""Construction du client LLM à partir de la configuration courante."""

from __future__ import annotations

from prepacds.core.settings import Settings
from prepacds.domain.errors import ConfigurationError
from prepacds.infra.llm.assistants_client import AssistantsClient
from prepacds.infra.llm.base import LLM
from prepacds.infra.llm.openai_client import OpenAIChatLLM

ASSISTANT_INSTRUCTIONS = (
    "Tu es un expert en génération de contenus d'entraînement pour les concours de Chef de "
    "Service de Police Municipale. Génère du contenu de qualité professionnelle."
)


def build_llm_client(settings: Settings) -> LLM:
    """Retourne le client configuré (`LLM_BACKEND`).

    Raises:
        ConfigurationError: clé API / identifiant d'assistant manquant ou backend inconnu.
    """
    backend = (settings.LLM_BACKEND or "assistants").strip().lower()
    if backend == "assistants":
        return AssistantsClient(
            settings.OPENAI_API_KEY,
            settings.PREPACDS_ASSISTANT_ID,
            base_url=settings.OPENAI_BASE_URL,
            instructions=ASSISTANT_INSTRUCTIONS,
            max_attempts=settings.LLM_MAX_ATTEMPTS,
            poll_interval=settings.LLM_POLL_INTERVAL_S,
            poll_timeout=settings.LLM_POLL_TIMEOUT_S,
            backoff_base=settings.LLM_BACKOFF_BASE_S,
            request_timeout=settings.LLM_REQUEST_TIMEOUT_S,
        )
    if backend == "chat":
        return OpenAIChatLLM(
            settings.OPENAI_API_KEY,
            settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL,
            max_attempts=settings.LLM_MAX_ATTEMPTS,
            request_timeout=settings.LLM_REQUEST_TIMEOUT_S,
        )
    raise ConfigurationError(f"unknown LLM_BACKEND '{settings.LLM_BACKEND}'")
