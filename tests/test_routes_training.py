"""Tests des routes `/training/*` (authentification, provenance, enveloppes d'erreur)."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from prepacds.app.main import create_app
from prepacds.core.container import Container
from prepacds.domain.errors import ConfigurationError, RunStep, UpstreamAPIError
from prepacds.infra.cache_store import InMemoryCacheStore
from prepacds.infra.request_queue import RequestQueue
from tests.fakes import FailingLLM, FakeLLM

HTTP_OK = 200
HTTP_UNAUTHORIZED = 401
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500
QCM_QUESTIONS = 5

BODY = {
    "trainingType": "qcm",
    "level": "debutant",
    "domain": "droit_administratif",
    "sessionId": "session-123",
}


def _app(settings, llm):
    container = Container(
        settings=settings,
        cache=InMemoryCacheStore(),
        queue=RequestQueue(drain_delay=0),
        llm_factory=lambda _settings: llm,
    )
    return create_app(container)


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def client(settings, llm):
    with TestClient(_app(settings, llm)) as c:
        yield c


def test_content_generated_then_served_from_cache(client, llm, auth_headers) -> None:
    r1 = client.post("/training/content", json=BODY, headers=auth_headers)
    r2 = client.post("/training/content", json=BODY, headers=auth_headers)

    assert r1.status_code == HTTP_OK
    data = r1.json()
    assert data["success"] is True
    assert len(data["content"]["questions"]) == QCM_QUESTIONS
    meta = data["meta"]
    assert meta["source"] == "ai"
    assert meta["status"] == "OK"
    assert meta["userId"] == "user-1"
    assert meta["session"]["id"] == "session-123"
    assert meta["session"]["trainingType"] == "qcm"
    assert "createdAt" in meta["session"]
    assert meta["requestId"] == r1.headers["X-Request-ID"]

    assert r2.json()["meta"]["source"] == "cache"
    assert r2.json()["content"] == data["content"]
    assert llm.calls == 1


def test_request_id_header_is_propagated(client, auth_headers) -> None:
    headers = {**auth_headers, "X-Request-ID": "req-fixed"}
    r = client.post("/training/content", json=BODY, headers=headers)

    assert r.headers["X-Request-ID"] == "req-fixed"
    assert r.json()["meta"]["requestId"] == "req-fixed"


def test_degraded_content_is_http_200_with_error_status(settings, auth_headers) -> None:
    app = _app(settings, FakeLLM("le modèle a répondu en prose"))
    with TestClient(app) as client:
        r = client.post("/training/content", json=BODY, headers=auth_headers)

    assert r.status_code == HTTP_OK
    data = r.json()
    assert data["success"] is True
    assert data["meta"]["source"] == "fallback"
    assert data["meta"]["status"] == "ERROR"
    assert data["meta"]["error"]
    assert data["content"]["metadata"]["source"] == "fallback"
    assert len(data["content"]["questions"]) >= 1


def test_missing_token_is_unauthorized(client) -> None:
    r = client.post("/training/content", json=BODY)

    assert r.status_code == HTTP_UNAUTHORIZED
    assert r.json()["success"] is False
    assert r.json()["code"] == "UNAUTHORIZED"
    assert r.json()["error"] == "Authorization header missing"


def test_invalid_token_is_unauthorized(client) -> None:
    r = client.post(
        "/training/content", json=BODY, headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert r.status_code == HTTP_UNAUTHORIZED
    assert r.json()["error"] == "Authentication failed"


def test_invalid_body_is_a_validation_error(client, auth_headers) -> None:
    r = client.post(
        "/training/content",
        json={"trainingType": "dissertation", "level": "debutant"},
        headers=auth_headers,
    )

    assert r.status_code == HTTP_UNPROCESSABLE_ENTITY
    assert r.json()["code"] == "VALIDATION_ERROR"
    assert r.json()["details"]


def test_missing_configuration_is_a_500(settings, auth_headers) -> None:
    settings.PREPACDS_ASSISTANT_ID = None
    container = Container(
        settings=settings, cache=InMemoryCacheStore(), queue=RequestQueue(drain_delay=0)
    )
    with TestClient(create_app(container)) as client:
        r = client.post("/training/content", json=BODY, headers=auth_headers)

    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json()["code"] == "CONFIGURATION_ERROR"
    assert r.json()["success"] is False


def test_configuration_error_raised_by_llm_is_a_500(settings, auth_headers) -> None:
    app = _app(settings, FailingLLM(ConfigurationError("clé absente")))
    with TestClient(app) as client:
        r = client.post("/training/content", json=BODY, headers=auth_headers)

    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json()["code"] == "CONFIGURATION_ERROR"


def test_single_question_endpoint(settings, auth_headers) -> None:
    question = {"question": "Q ?", "options": ["A", "B"], "correctAnswer": "A"}
    app = _app(settings, FakeLLM(json.dumps(question)))
    with TestClient(app) as client:
        r = client.post(
            "/training/question",
            json={"level": "avance", "domain": "management", "avoidRecentTopics": True},
            headers=auth_headers,
        )

    assert r.status_code == HTTP_OK
    assert r.json() == question


def test_single_question_falls_back(settings, auth_headers) -> None:
    app = _app(settings, FailingLLM(RuntimeError("réseau")))
    with TestClient(app) as client:
        r = client.post("/training/question", json={}, headers=auth_headers)

    assert r.status_code == HTTP_OK
    assert r.json()["metadata"]["source"] == "fallback"
    assert r.json()["domain"] == "droit_administratif"


def test_unexpected_error_uses_standard_envelope(settings, auth_headers) -> None:
    def broken_factory(_settings):
        raise RuntimeError("boom")

    container = Container(
        settings=settings,
        cache=InMemoryCacheStore(),
        queue=RequestQueue(drain_delay=0),
        llm_factory=broken_factory,
    )
    with TestClient(create_app(container), raise_server_exceptions=False) as client:
        r = client.post("/training/content", json=BODY, headers=auth_headers)

    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json()["code"] == "INTERNAL_ERROR"


def test_degraded_meta_error_hides_provider_body(settings, auth_headers) -> None:
    error = UpstreamAPIError(RunStep.FETCH_MESSAGES, HTTP_INTERNAL_SERVER_ERROR, "provider trace")
    app = _app(settings, FailingLLM(error))
    with TestClient(app) as client:
        r = client.post("/training/content", json=BODY, headers=auth_headers)

    assert r.status_code == HTTP_OK
    assert r.json()["meta"]["error"] == "UpstreamAPIError"
    assert "provider trace" not in r.text
