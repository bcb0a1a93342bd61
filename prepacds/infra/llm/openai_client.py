"""
Client LLM basé sur l'API Chat Completions (SDK OpenAI).

Alternative au protocole Assistants : un seul appel `chat.completions` avec le gabarit en
message système. Les erreurs du SDK sont converties dans la taxonomie du pipeline.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog
from openai import AsyncOpenAI

from prepacds.app.metrics import LLM_ATTEMPTS_TOTAL
from prepacds.domain.errors import (
    ConfigurationError,
    RetriesExhaustedError,
    RunStep,
    UpstreamAPIError,
)
from prepacds.infra.llm.base import LLM

USER_INSTRUCTION = "Génère le contenu demandé en respectant exactement le format JSON."


class OpenAIChatLLM(LLM):
    """
    LLM basé sur `chat.completions`.

    Le prompt complet (gabarit + contexte) est envoyé comme message système, suivi d'une consigne
    utilisateur fixe. Les retries réseau sont délégués au SDK (`max_retries`).
    """

    backend = "chat"

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4.1-2025-04-14",
        *,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_attempts: int = 3,
        request_timeout: float = 30.0,
        client: Any | None = None,
    ) -> None:
        """Initialise le client; `client` permet d'injecter un double de test."""
        if not api_key and client is None:
            raise ConfigurationError("OpenAI API key not configured")
        self.model = model
        self.temperature = temperature
        self.max_attempts = max(1, max_attempts)
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=self.max_attempts - 1,
            timeout=request_timeout,
        )
        self._log = structlog.get_logger(__name__).bind(component="openai_chat", model=model)

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        """Génère du texte; lève une erreur de génération si la réponse est vide."""
        kwargs: dict[str, Any] = {"temperature": self.temperature}
        if max_tokens:
            kwargs["max_completion_tokens"] = max_tokens
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": USER_INSTRUCTION},
                ],
                **kwargs,
            )
        except openai.APIStatusError as exc:
            LLM_ATTEMPTS_TOTAL.labels(backend=self.backend, result="error").inc()
            raise RetriesExhaustedError(
                self.max_attempts,
                UpstreamAPIError(RunStep.FETCH_MESSAGES, exc.status_code, str(exc)),
            ) from exc
        except openai.APIError as exc:
            LLM_ATTEMPTS_TOTAL.labels(backend=self.backend, result="error").inc()
            raise RetriesExhaustedError(self.max_attempts, exc) from exc

        choice = resp.choices[0] if resp.choices else None
        content = getattr(getattr(choice, "message", None), "content", None)
        if not content:
            LLM_ATTEMPTS_TOTAL.labels(backend=self.backend, result="empty").inc()
            raise UpstreamAPIError(RunStep.FETCH_MESSAGES, 200, "Réponse OpenAI invalide")
        LLM_ATTEMPTS_TOTAL.labels(backend=self.backend, result="ok").inc()
        self._log.debug("chat_completion_ok", usage=self._extract_usage_dict(resp))
        return str(content)

    def _extract_usage_dict(self, resp: Any) -> dict[str, int]:
        """
        Extrait les infos d'usage depuis la réponse OpenAI.

        Toujours un dict.
        """
        usage = getattr(resp, "usage", None)
        if not usage:
            return {}
        return {
            "prompt_tokens": int(getattr(usage, "prompt_tokens", 0) or 0),
            "completion_tokens": int(getattr(usage, "completion_tokens", 0) or 0),
            "total_tokens": int(getattr(usage, "total_tokens", 0) or 0),
        }
