"""
Quick smoke test for the training endpoints using TestClient.

Checks:
- GET /health
- POST /training/content (ai, then cache)
- POST /training/question
"""

from fastapi.testclient import TestClient

from prepacds.app.main import create_app
from prepacds.core.container import Container
from prepacds.domain.auth import create_access_token
from prepacds.infra.llm.fake_llm import DeterministicLLM


def main() -> None:
    """
    Point d'entrée principal pour les tests de fumée.

    Exécute le parcours complet avec un LLM déterministe et un jeton signé localement.
    """
    fake = DeterministicLLM()
    container = Container(llm_factory=lambda _settings: fake)
    settings = container.settings
    token = create_access_token(
        secret=settings.SUPABASE_JWT_SECRET,
        alg=settings.JWT_ALG,
        expires_min=5,
        payload={"sub": "smoke-user", "email": "smoke@prepacds.local"},
        audience=settings.JWT_AUDIENCE,
    )
    headers = {"Authorization": f"Bearer {token}"}

    with TestClient(create_app(container)) as client:
        r = client.get("/health")
        print("/health:", r.status_code, r.json())

        body = {"trainingType": "qcm", "level": "debutant", "domain": "droit_administratif"}
        for _ in range(2):
            r = client.post("/training/content", json=body, headers=headers)
            data = r.json()
            print(
                "/training/content:",
                r.status_code,
                {
                    "source": data["meta"]["source"],
                    "status": data["meta"]["status"],
                    "questions": len(data["content"].get("questions", [])),
                },
            )

        r = client.post(
            "/training/question",
            json={"level": "avance", "domain": "police_municipale", "questionType": "qcm"},
            headers=headers,
        )
        print("/training/question:", r.status_code, r.json().get("question"))

    print("LLM calls:", fake.calls)


if __name__ == "__main__":
    main()
