"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Relire l'environnement à chaque appel de `get_settings()` : la clé API et l'identifiant
  d'assistant sont lus au moment de la requête, pas au démarrage.
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _resolve_env_file() -> Path | str:
    """Retourne le fichier .env à charger (ENV_FILE > .env.{APP_ENV} > .env)."""
    env_file_from_env = os.getenv("ENV_FILE")
    if env_file_from_env:
        return env_file_from_env
    cwd = Path.cwd()
    app_env = os.getenv("APP_ENV", "dev")
    candidate_specific = cwd / f".env.{app_env}"
    if candidate_specific.exists():
        return candidate_specific
    return cwd / ".env"


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "prepacds-training"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # OpenAI / assistant PrepaCDS
    OPENAI_API_KEY: str | None = None
    PREPACDS_ASSISTANT_ID: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4.1-2025-04-14"
    LLM_BACKEND: str = "assistants"  # "assistants" | "chat"

    # File d'attente et politique de retry
    LLM_MAX_CONCURRENT: int = 2
    LLM_QUEUE_DRAIN_DELAY_S: float = 0.1
    LLM_MAX_ATTEMPTS: int = 3
    LLM_POLL_INTERVAL_S: float = 1.0
    LLM_POLL_TIMEOUT_S: float = 60.0
    LLM_BACKOFF_BASE_S: float = 1.0
    LLM_REQUEST_TIMEOUT_S: float = 30.0

    # Cache du contenu généré
    CACHE_TTL_S: float = 30 * 60
    CACHE_MAX_ENTRIES: int = 256
    REDIS_URL: str | None = None

    # JWT/Auth (jetons d'accès Supabase)
    SUPABASE_JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALG: str = "HS256"
    JWT_AUDIENCE: str | None = "authenticated"


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
