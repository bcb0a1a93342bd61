"""Interface de base pour les modèles de langage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLM(ABC):
    """Interface abstraite pour les clients de modèles de langage."""

    backend: str = "unknown"

    @abstractmethod
    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        """Retourne le texte généré pour un prompt unique."""
        ...
