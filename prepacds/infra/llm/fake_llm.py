"""
LLM factice déterministe (dev local et tests de fumée).

Déduit le type d'entraînement demandé du prompt et renvoie un JSON valide correspondant, enrobé
dans un bloc Markdown comme le fait souvent le modèle réel.
"""

from __future__ import annotations

import json
import re

from prepacds.infra.llm.base import LLM

_TYPE_RE = re.compile(r"- Type: (\w+)")
_COUNT_RE = re.compile(r"Produis exactement (\d+) élément")


class DeterministicLLM(LLM):
    """Réponses stables, sans réseau; compte les appels reçus."""

    backend = "fake"

    def __init__(self) -> None:
        self.calls = 0

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        self.calls += 1
        type_match = _TYPE_RE.search(prompt)
        count_match = _COUNT_RE.search(prompt)
        training_type = type_match.group(1) if type_match else "question"
        count = int(count_match.group(1)) if count_match else 1
        if training_type == "cas_pratique":
            payload = {
                "title": "Cas pratique factice",
                "context": "Contexte de démonstration",
                "steps": [
                    {
                        "id": f"step{i}",
                        "title": f"Étape {i}",
                        "scenario": "Scénario",
                        "question": "Que faites-vous ?",
                        "expectedPoints": ["Point 1"],
                        "timeLimit": 10,
                    }
                    for i in range(1, count + 1)
                ],
                "totalTime": 10 * count,
            }
        elif training_type == "question":
            payload = {
                "question": "Quel article fonde les compétences de police du maire ?",
                "options": ["L.2212-1 CGCT", "L.511-1 CSI", "R.610-5 CP", "L.2213-1 CGCT"],
                "correctAnswer": "L.2212-1 CGCT",
                "explanation": "Réponse de démonstration",
                "references": [],
                "difficulty": 3,
                "domain": "police_municipale",
                "learningObjectives": ["Démonstration"],
            }
        else:
            payload = {
                "questions": [
                    {"id": f"q{i}", "question": f"Question {i}", "explanation": "Démonstration"}
                    for i in range(1, count + 1)
                ]
            }
        return f"```json\n{json.dumps(payload, ensure_ascii=False)}\n```"
