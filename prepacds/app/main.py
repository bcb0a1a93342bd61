"""
Application principale FastAPI.

Ce module assemble tous les composants du service de génération d'entraînements PrepaCDS :
middlewares, routes, métriques, gestion d'erreurs et conteneur de dépendances.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Attacher le conteneur (cache, file d'attente, fabrique LLM) à `app.state`
- Ajouter les middlewares (request id, métriques Prometheus)
- Monter les routers (santé, entraînement, métriques)
"""

from __future__ import annotations

from fastapi import FastAPI

from prepacds.api.errors import register_error_handlers
from prepacds.api.routes_health import router as health_router
from prepacds.api.routes_training import router as training_router
from prepacds.app.metrics import PrometheusMiddleware, metrics_router
from prepacds.core.container import Container
from prepacds.core.logging import setup_logging
from prepacds.middlewares.request_id import RequestIDMiddleware


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Construit (ou reçoit) le conteneur de dépendances
    - Configure le logging structuré (structlog)
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes de santé, d'entraînement et de métriques
    """
    container = container or Container()
    settings = container.settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.state.container = container
    register_error_handlers(app)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health_router)
    app.include_router(training_router)
    app.include_router(metrics_router)
    return app


app = create_app()
