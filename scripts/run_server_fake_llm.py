"""
Script de serveur de développement avec LLM factice.

Ce script lance le service avec un LLM déterministe pour le développement local sans clé OpenAI
ni assistant configuré.
"""

import os

import uvicorn

from prepacds.app.main import create_app
from prepacds.core.container import Container
from prepacds.infra.llm.fake_llm import DeterministicLLM


def main():
    """
    Point d'entrée principal pour le serveur avec LLM factice.

    Lance l'application FastAPI avec un LLM simulé pour faciliter le développement et les tests.
    """
    fake = DeterministicLLM()
    app = create_app(Container(llm_factory=lambda _settings: fake))

    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":
    main()
