"""Configuration de test pour pytest avec gestion des chemins.

Ce module configure pytest pour résoudre les imports `prepacds` en ajoutant la racine du projet au
sys.path, et fournit les fixtures communes : configuration isolée, conteneur en mémoire,
application FastAPI et jeton d'accès signé.
"""

import os
import sys
from unittest.mock import Mock, patch

import pytest

# Ensure project root is on sys.path so that
# imports like `from prepacds...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from prepacds.core.settings import Settings  # noqa: E402
from prepacds.domain.auth import create_access_token  # noqa: E402

TEST_JWT_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def mock_redis_connection():
    """Mock Redis connections pour éviter les erreurs de connexion dans les tests."""
    with patch("redis.Redis.from_url") as from_url:
        mock_redis_instance = Mock()
        mock_redis_instance.ping.return_value = True
        mock_redis_instance.get.return_value = None
        mock_redis_instance.set.return_value = True
        mock_redis_instance.delete.return_value = 1
        mock_redis_instance.scan_iter.return_value = iter([])
        from_url.return_value = mock_redis_instance
        yield mock_redis_instance


@pytest.fixture
def settings() -> Settings:
    """Configuration de test : secrets factices, file sans délai, aucun Redis."""
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test",
        PREPACDS_ASSISTANT_ID="asst_test",
        SUPABASE_JWT_SECRET=TEST_JWT_SECRET,
        REDIS_URL=None,
        LLM_QUEUE_DRAIN_DELAY_S=0,
        LLM_BACKOFF_BASE_S=0,
        LLM_POLL_INTERVAL_S=0,
    )


@pytest.fixture
def auth_headers(settings: Settings) -> dict[str, str]:
    """En-tête Authorization avec un jeton valide pour l'utilisateur `user-1`."""
    token = create_access_token(
        secret=settings.SUPABASE_JWT_SECRET,
        alg=settings.JWT_ALG,
        expires_min=5,
        payload={"sub": "user-1", "email": "candidat@example.com"},
        audience=settings.JWT_AUDIENCE,
    )
    return {"Authorization": f"Bearer {token}"}
