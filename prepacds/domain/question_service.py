"""Génération d'une question d'entraînement unique via l'assistant PrepaCDS.

Toute erreur de génération (réseau, retries épuisés, JSON malformé) produit une question de
secours : l'appelant reçoit toujours une question exploitable.
"""

from __future__ import annotations

from typing import Any

import structlog

from prepacds.app.metrics import TRAINING_QUESTION_TOTAL
from prepacds.domain.content_parser import parse_content
from prepacds.domain.entities import DOMAIN_LABELS, StudyDomain, UserLevel
from prepacds.domain.errors import ConfigurationError, MissingRequiredFieldError
from prepacds.domain.fallback import build_fallback_question
from prepacds.infra.llm.base import LLM
from prepacds.infra.request_queue import RequestQueue

QUESTION_MAX_TOKENS = 1200


def build_question_prompt(
    level: UserLevel, domain: StudyDomain, question_type: str, avoid_recent_topics: bool
) -> str:
    return f"""GÉNÉRATION DE QUESTION PREPACDS

Type de question: {question_type}
Niveau: {level.value}
Domaine: {domain.value} ({DOMAIN_LABELS[domain]})
Éviter répétitions: {"Oui" if avoid_recent_topics else "Non"}

Génère UNE question d'entraînement de qualité professionnelle conforme aux épreuves du concours
de Chef de Service de Police Municipale.

FORMAT DE RÉPONSE REQUIS (JSON strict):
{{
  "question": "Question formulée clairement",
  "options": ["A", "B", "C", "D"],
  "correctAnswer": "Réponse correcte",
  "explanation": "Explication détaillée avec analyse et références",
  "references": [
    {{
      "article": "Article L.511-1",
      "code": "Code de la sécurité intérieure",
      "content": "Texte de l'article",
      "url": "URL légifrance si disponible"
    }}
  ],
  "difficulty": "Niveau de difficulté 1-5",
  "domain": "{domain.value}",
  "learningObjectives": ["Objectif 1", "Objectif 2"]
}}

IMPORTANT: Réponds UNIQUEMENT avec le JSON, sans texte supplémentaire."""


class QuestionService:
    """Génère une question isolée en passant par la file d'attente partagée."""

    def __init__(self, llm: LLM, queue: RequestQueue):
        self.llm = llm
        self.queue = queue
        self._log = structlog.get_logger(__name__).bind(component="question_service")

    async def generate_question(
        self,
        level: UserLevel,
        domain: StudyDomain,
        question_type: str = "qcm",
        avoid_recent_topics: bool = False,
    ) -> tuple[dict[str, Any], str]:
        """Retourne `(question, source)` avec source `ai` ou `fallback`."""
        prompt = build_question_prompt(level, domain, question_type, avoid_recent_topics)
        try:
            raw = await self.queue.enqueue(
                lambda: self.llm.complete(prompt, max_tokens=QUESTION_MAX_TOKENS)
            )
            question = parse_content(raw)
            if not question.get("question"):
                raise MissingRequiredFieldError("question")
        except ConfigurationError:
            raise
        except Exception as exc:
            self._log.warning(
                "question_generation_failed", error_type=type(exc).__name__, error=str(exc)
            )
            TRAINING_QUESTION_TOTAL.labels(source="fallback").inc()
            return build_fallback_question(level, domain), "fallback"
        TRAINING_QUESTION_TOTAL.labels(source="ai").inc()
        self._log.info("question_generated", domain=domain.value, question_type=question_type)
        return question, "ai"
