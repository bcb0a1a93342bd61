"""
Client de l'API Assistants (protocole à base de threads).

Une tentative enchaîne strictement cinq appels réseau :
création du thread, ajout du message, lancement du run, polling du statut, lecture des messages.
Toute tentative échouée est rejouée depuis le début (le thread est recréé, jamais repris) avec un
backoff exponentiel et une gigue. Les threads abandonnés ne sont pas supprimés côté fournisseur.
"""

from __future__ import annotations

import asyncio
import random
import time
from typing import Any

import httpx
import structlog

from prepacds.app.metrics import LLM_ATTEMPTS_TOTAL, LLM_STEP_ERRORS_TOTAL
from prepacds.core.http_constants import HTTP_MULTIPLE_CHOICES, HTTP_OK, HTTP_TOO_MANY_REQUESTS
from prepacds.domain.errors import (
    ConfigurationError,
    InvalidUpstreamResponseError,
    NoAssistantMessageError,
    RetriesExhaustedError,
    RunFailedError,
    RunStep,
    RunTimeoutError,
    UpstreamAPIError,
)
from prepacds.infra.llm.base import LLM

DEFAULT_BASE_URL = "https://api.openai.com/v1"
TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled", "expired"})

RETRYABLE_ERRORS = (
    UpstreamAPIError,
    InvalidUpstreamResponseError,
    RunTimeoutError,
    RunFailedError,
    NoAssistantMessageError,
    httpx.HTTPError,
)


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _require_id(payload: dict[str, Any], step: RunStep) -> str:
    identifier = payload.get("id")
    if not identifier:
        LLM_STEP_ERRORS_TOTAL.labels(step=step.value, reason="missing_id").inc()
        raise InvalidUpstreamResponseError(step, "missing 'id'")
    return identifier


def extract_assistant_text(messages: dict[str, Any]) -> str:
    """Retourne le texte du premier message rédigé par l'assistant.

    Raises:
        NoAssistantMessageError: si aucun message assistant ne porte de texte.
    """
    for msg in messages.get("data") or []:
        if msg.get("role") != "assistant":
            continue
        content = msg.get("content") or []
        text = (content[0].get("text") or {}).get("value") if content else None
        if text:
            return text
        break
    raise NoAssistantMessageError("No response from PrepaCDS assistant")


class AssistantsClient(LLM):
    """
    LLM adossé à un assistant OpenAI configuré côté fournisseur.

    Args:
        api_key: clé API du fournisseur.
        assistant_id: identifiant de l'assistant PrepaCDS.
        instructions: consignes additionnelles passées au run.
        max_attempts: nombre de tentatives complètes du protocole.
        poll_interval: intervalle entre deux lectures du statut (s).
        poll_timeout: durée maximale de polling avant abandon de la tentative (s).
        backoff_base: base du backoff; délai = 2**tentative * base + gigue(0, base).
        transport: transport httpx injectable (tests).
    """

    backend = "assistants"

    def __init__(
        self,
        api_key: str | None,
        assistant_id: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        instructions: str | None = None,
        max_attempts: int = 3,
        poll_interval: float = 1.0,
        poll_timeout: float = 60.0,
        backoff_base: float = 1.0,
        request_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key or not assistant_id:
            raise ConfigurationError(
                "Configuration manquante: OpenAI API key ou PrepaCDS Assistant ID"
            )
        self.api_key = api_key
        self.assistant_id = assistant_id
        self.base_url = base_url.rstrip("/")
        self.instructions = instructions
        self.max_attempts = max(1, max_attempts)
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.backoff_base = backoff_base
        self.request_timeout = request_timeout
        self._transport = transport
        self._log = structlog.get_logger(__name__).bind(component="assistants_client")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(self.request_timeout),
            transport=self._transport,
        )

    def backoff_delay(self, attempt: int, error: Exception | None = None) -> float:
        """Délai avant la tentative suivante (Retry-After prioritaire sur un 429)."""
        if (
            isinstance(error, UpstreamAPIError)
            and error.status_code == HTTP_TOO_MANY_REQUESTS
            and error.retry_after is not None
        ):
            return error.retry_after
        return (2**attempt) * self.backoff_base + random.uniform(0, self.backoff_base)

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        """Exécute le protocole complet avec retry; retourne le texte de l'assistant."""
        attempt = 0
        while True:
            attempt += 1
            self._log.debug("llm_attempt_started", attempt=attempt, max_attempts=self.max_attempts)
            try:
                text = await self._run_once(prompt, max_tokens)
            except RETRYABLE_ERRORS as exc:
                LLM_ATTEMPTS_TOTAL.labels(backend=self.backend, result="error").inc()
                self._log.warning(
                    "llm_attempt_failed",
                    attempt=attempt,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                if attempt >= self.max_attempts:
                    raise RetriesExhaustedError(self.max_attempts, exc) from exc
                await asyncio.sleep(self.backoff_delay(attempt, exc))
                continue
            LLM_ATTEMPTS_TOTAL.labels(backend=self.backend, result="ok").inc()
            return text

    async def _run_once(self, prompt: str, max_tokens: int | None) -> str:
        async with self._client() as client:
            thread = await self._call(client, RunStep.CREATE_THREAD, "POST", "/threads", json={})
            thread_id = _require_id(thread, RunStep.CREATE_THREAD)

            await self._call(
                client,
                RunStep.POST_MESSAGE,
                "POST",
                f"/threads/{thread_id}/messages",
                json={"role": "user", "content": prompt},
            )

            run_body: dict[str, Any] = {"assistant_id": self.assistant_id}
            if self.instructions:
                run_body["instructions"] = self.instructions
            if max_tokens:
                run_body["max_completion_tokens"] = max_tokens
            run = await self._call(
                client, RunStep.CREATE_RUN, "POST", f"/threads/{thread_id}/runs", json=run_body
            )

            run_id = _require_id(run, RunStep.CREATE_RUN)
            status = await self._wait_for_run(client, thread_id, run_id, run.get("status", ""))
            if status != "completed":
                LLM_STEP_ERRORS_TOTAL.labels(step=RunStep.POLL_RUN.value, reason=status).inc()
                raise RunFailedError(run_id, status)

            messages = await self._call(
                client, RunStep.FETCH_MESSAGES, "GET", f"/threads/{thread_id}/messages"
            )
            try:
                return extract_assistant_text(messages)
            except NoAssistantMessageError:
                LLM_STEP_ERRORS_TOTAL.labels(
                    step=RunStep.FETCH_MESSAGES.value, reason="no_assistant_message"
                ).inc()
                raise

    async def _wait_for_run(
        self, client: httpx.AsyncClient, thread_id: str, run_id: str, status: str
    ) -> str:
        deadline = time.monotonic() + self.poll_timeout
        while status not in TERMINAL_STATUSES:
            if time.monotonic() >= deadline:
                LLM_STEP_ERRORS_TOTAL.labels(step=RunStep.POLL_RUN.value, reason="timeout").inc()
                raise RunTimeoutError(run_id, self.poll_timeout, status)
            await asyncio.sleep(self.poll_interval)
            data = await self._call(
                client, RunStep.POLL_RUN, "GET", f"/threads/{thread_id}/runs/{run_id}"
            )
            status = data.get("status", "")
        return status

    async def _call(
        self,
        client: httpx.AsyncClient,
        step: RunStep,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        resp = await client.request(method, path, json=json)
        if not HTTP_OK <= resp.status_code < HTTP_MULTIPLE_CHOICES:
            LLM_STEP_ERRORS_TOTAL.labels(step=step.value, reason=str(resp.status_code)).inc()
            raise UpstreamAPIError(
                step,
                resp.status_code,
                resp.text,
                retry_after=_parse_retry_after(resp.headers.get("retry-after")),
            )
        try:
            data = resp.json()
        except ValueError as exc:
            LLM_STEP_ERRORS_TOTAL.labels(step=step.value, reason="invalid_json").inc()
            raise InvalidUpstreamResponseError(step, "body is not JSON") from exc
        if not isinstance(data, dict):
            LLM_STEP_ERRORS_TOTAL.labels(step=step.value, reason="invalid_json").inc()
            raise InvalidUpstreamResponseError(step, "JSON object expected")
        return data
