"""Taxonomie des erreurs de génération de contenu.

- Erreur de configuration : fatale, jamais absorbée par le contenu de secours.
- Erreurs transitoires de l'API distante : rejouées par le client avec backoff.
- Erreurs de contenu malformé : non rejouées, remontées à l'orchestrateur.
"""

from __future__ import annotations

from enum import Enum


class RunStep(str, Enum):
    """Étapes du protocole assistant (thread → message → run → poll → lecture)."""

    CREATE_THREAD = "create_thread"
    POST_MESSAGE = "post_message"
    CREATE_RUN = "create_run"
    POLL_RUN = "poll_run"
    FETCH_MESSAGES = "fetch_messages"


class TrainingError(Exception):
    """Erreur de base du pipeline de génération."""


class ConfigurationError(TrainingError):
    """Clé API ou identifiant d'assistant absent."""


class GenerationError(TrainingError):
    """Échec de génération, converti en contenu de secours par l'orchestrateur."""


class UpstreamAPIError(GenerationError):
    """Réponse non-2xx de l'API distante à une étape donnée."""

    def __init__(
        self,
        step: RunStep,
        status_code: int,
        body: str = "",
        retry_after: float | None = None,
    ) -> None:
        super().__init__(f"{step.value} failed with HTTP {status_code}: {body[:200]}")
        self.step = step
        self.status_code = status_code
        self.body = body
        self.retry_after = retry_after


class RunTimeoutError(GenerationError):
    """Le run n'a pas atteint un statut terminal dans le délai imparti."""

    def __init__(self, run_id: str, timeout_s: float, last_status: str) -> None:
        super().__init__(f"run {run_id} still '{last_status}' after {timeout_s}s")
        self.run_id = run_id
        self.timeout_s = timeout_s
        self.last_status = last_status


class RunFailedError(GenerationError):
    """Le run s'est terminé sans être `completed`."""

    def __init__(self, run_id: str, status: str) -> None:
        super().__init__(f"run {run_id} ended with status '{status}'")
        self.run_id = run_id
        self.status = status


class NoAssistantMessageError(GenerationError):
    """Aucun message de l'assistant dans le thread."""


class RetriesExhaustedError(GenerationError):
    """Toutes les tentatives ont échoué."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"all {attempts} attempts failed: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class InvalidUpstreamResponseError(GenerationError):
    """Réponse 2xx inexploitable (corps non JSON, identifiant absent) à une étape donnée."""

    def __init__(self, step: RunStep, detail: str) -> None:
        super().__init__(f"{step.value} returned an unusable response: {detail}")
        self.step = step
        self.detail = detail


class MalformedContentError(GenerationError):
    """La réponse du modèle n'est pas un objet JSON exploitable."""


class MissingRequiredFieldError(GenerationError):
    """Le champ obligatoire du type d'entraînement est absent ou vide."""

    def __init__(self, field: str) -> None:
        super().__init__(f"required field '{field}' missing or empty")
        self.field = field
