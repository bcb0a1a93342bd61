"""Générateur de contenu d'entraînement.

Sélectionne le gabarit du type demandé, construit le prompt, appelle le LLM à travers la file
d'attente puis parse et valide la réponse.
"""

from __future__ import annotations

from typing import Any

import structlog

from prepacds.domain.content_parser import parse_content, validate_content
from prepacds.domain.entities import GenerationRequest
from prepacds.domain.templates import build_prompt, get_template
from prepacds.infra.llm.base import LLM
from prepacds.infra.request_queue import RequestQueue


class ContentGenerator:
    """Pont entre les gabarits métier et le client LLM."""

    def __init__(self, llm: LLM, queue: RequestQueue):
        """Initialise le générateur avec un client LLM et la file partagée."""
        self.llm = llm
        self.queue = queue
        self._log = structlog.get_logger(__name__).bind(component="content_generator")

    async def generate(self, request: GenerationRequest) -> dict[str, Any]:
        """Génère, parse et valide le contenu pour `request`.

        Raises:
            GenerationError: erreur réseau, retries épuisés, JSON malformé ou champ manquant.
        """
        template = get_template(request.training_type)
        prompt = build_prompt(template, request)
        self._log.info(
            "content_generation_started",
            training_type=request.training_type.value,
            level=request.level.value,
            domain=request.domain.value,
            queue=self.queue.stats(),
        )
        raw = await self.queue.enqueue(
            lambda: self.llm.complete(prompt, max_tokens=template.max_tokens)
        )
        content = parse_content(raw)
        return validate_content(content, template.required_field)
