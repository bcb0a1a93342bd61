"""Tests pour les endpoints de santé et de métriques."""

from fastapi.testclient import TestClient

from prepacds.app.main import create_app
from prepacds.app.metrics import normalize_route
from prepacds.core.container import Container
from prepacds.core.http_constants import HTTP_OK
from prepacds.infra.cache_store import InMemoryCacheStore
from prepacds.infra.request_queue import RequestQueue

MAX_CONCURRENT = 2


def _client(settings) -> TestClient:
    container = Container(
        settings=settings, cache=InMemoryCacheStore(), queue=RequestQueue(drain_delay=0)
    )
    return TestClient(create_app(container))


def test_health(settings):
    """Teste que l'endpoint de santé retourne un statut OK sans exposer de secret."""
    with _client(settings) as client:
        r = client.get("/health")

    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["status"] == "ok"
    assert body["storage"] == "memory"
    assert body["queue"]["max_concurrent"] == MAX_CONCURRENT
    assert body["llm_backend"] == "assistants"
    assert body["llm_configured"] is True
    assert "sk-test" not in r.text


def test_health_reports_missing_assistant(settings):
    settings.PREPACDS_ASSISTANT_ID = None
    with _client(settings) as client:
        assert client.get("/health").json()["llm_configured"] is False


def test_metrics_endpoint_exposes_training_counters(settings):
    with _client(settings) as client:
        client.get("/health")
        r = client.get("/metrics")

    assert r.status_code == HTTP_OK
    assert "http_requests_total" in r.text
    assert "llm_queue_active" in r.text


def test_normalize_route():
    assert normalize_route("/training/content") == "/training/content"
    assert normalize_route("/unknown/path") == "other"
