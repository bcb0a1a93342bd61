"""
Métriques Prometheus pour l'application.

Ce module définit les métriques Prometheus du service de génération d'entraînements : trafic
HTTP, provenance du contenu, tentatives vers l'assistant distant et état de la file d'attente.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Training content metrics
TRAINING_CONTENT_TOTAL = Counter(
    "training_content_total",
    "Training content responses by provenance",
    ["training_type", "source"],
)
TRAINING_GENERATION_LATENCY = Histogram(
    "training_generation_latency_seconds",
    "Latency of training content generation (cache misses only)",
    ["training_type"],
    buckets=[0.5, 1, 2, 5, 10, 20, 40, 60, 120, 240],
)
TRAINING_QUESTION_TOTAL = Counter(
    "training_question_total",
    "Single training questions by provenance",
    ["source"],
)

# LLM adapter metrics
LLM_ATTEMPTS_TOTAL = Counter(
    "llm_attempts_total",
    "Attempts of the remote assistant protocol",
    ["backend", "result"],
)
LLM_STEP_ERRORS_TOTAL = Counter(
    "llm_step_errors_total",
    "Errors per step of the remote assistant protocol",
    ["step", "reason"],
)

# Request queue
LLM_QUEUE_ACTIVE = Gauge(
    "llm_queue_active",
    "Outbound LLM calls currently in flight",
)
LLM_QUEUE_PENDING = Gauge(
    "llm_queue_pending",
    "Outbound LLM calls waiting for a slot",
)


def normalize_route(path: str) -> str:
    """Project a raw path onto a low-cardinality route label."""
    known = ("/training/content", "/training/question", "/health", "/metrics")
    for route in known:
        if path == route or path.startswith(route + "/"):
            return route
    return "other"


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Compte les requêtes et mesure leur latence, étiquetées par route normalisée."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = normalize_route(request.scope.get("path", "unknown"))
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
