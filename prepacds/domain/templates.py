"""Gabarits de génération par type d'entraînement.

Chaque gabarit fournit le prompt système (avec la structure JSON attendue), le champ obligatoire
vérifié après parsing, le nombre d'éléments demandés et la limite de tokens.
"""

from __future__ import annotations

from dataclasses import dataclass

from prepacds.domain.entities import (
    DOMAIN_LABELS,
    LEVEL_LABELS,
    GenerationRequest,
    TrainingType,
)

EXPERT_PREAMBLE = (
    "Tu es un expert en préparation aux concours de Chef de Service de Police Municipale "
    "(PrepaCDS)."
)


@dataclass(frozen=True)
class TrainingTemplate:
    """Gabarit immuable associé à un type d'entraînement."""

    training_type: TrainingType
    instruction: str
    structure_hint: str
    required_field: str
    item_count: int
    max_tokens: int

    @property
    def system_prompt(self) -> str:
        return (
            f"{EXPERT_PREAMBLE}\n{self.instruction}\n"
            f"Format JSON STRICT requis:\n{self.structure_hint}"
        )


TRAINING_TEMPLATES: dict[TrainingType, TrainingTemplate] = {
    TrainingType.QCM: TrainingTemplate(
        training_type=TrainingType.QCM,
        instruction="Génère EXACTEMENT 5 questions QCM de qualité professionnelle.",
        structure_hint="""{
  "questions": [
    {
      "id": "q1",
      "question": "Question claire et précise",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Explication détaillée de la bonne réponse",
      "difficulty": "facile|moyen|difficile"
    }
  ],
  "metadata": {
    "estimatedTime": 10,
    "passingScore": 70
  }
}""",
        required_field="questions",
        item_count=5,
        max_tokens=2000,
    ),
    TrainingType.VRAI_FAUX: TrainingTemplate(
        training_type=TrainingType.VRAI_FAUX,
        instruction="Génère EXACTEMENT 6 affirmations Vrai/Faux équilibrées.",
        structure_hint="""{
  "questions": [
    {
      "id": "tf1",
      "statement": "Affirmation claire et précise",
      "isTrue": true,
      "explanation": "Explication détaillée",
      "domain": "domaine"
    }
  ],
  "metadata": {
    "estimatedTime": 10,
    "difficulty": "facile|moyen|difficile"
  }
}""",
        required_field="questions",
        item_count=6,
        max_tokens=1500,
    ),
    TrainingType.CAS_PRATIQUE: TrainingTemplate(
        training_type=TrainingType.CAS_PRATIQUE,
        instruction="Génère UN cas pratique complet avec EXACTEMENT 3 étapes progressives.",
        structure_hint="""{
  "title": "Titre du cas",
  "context": "Contexte détaillé",
  "steps": [
    {
      "id": "step1",
      "title": "Titre de l'étape",
      "scenario": "Scénario détaillé",
      "question": "Question à traiter",
      "expectedPoints": ["Point 1", "Point 2", "Point 3"],
      "timeLimit": 15
    }
  ],
  "totalTime": 30
}""",
        required_field="steps",
        item_count=3,
        max_tokens=2500,
    ),
    TrainingType.QUESTION_OUVERTE: TrainingTemplate(
        training_type=TrainingType.QUESTION_OUVERTE,
        instruction="Génère EXACTEMENT 3 questions ouvertes de rédaction.",
        structure_hint="""{
  "title": "Titre de la série",
  "questions": [
    {
      "id": "open1",
      "question": "Sujet de rédaction",
      "context": "Mise en situation professionnelle",
      "expectedLength": 300,
      "timeLimit": 20,
      "guidelines": ["Consigne 1", "Consigne 2"]
    }
  ]
}""",
        required_field="questions",
        item_count=3,
        max_tokens=2000,
    ),
    TrainingType.SIMULATION_ORAL: TrainingTemplate(
        training_type=TrainingType.SIMULATION_ORAL,
        instruction=(
            "Génère une simulation d'entretien oral avec jury virtuel et EXACTEMENT 4 questions."
        ),
        structure_hint="""{
  "scenario": {
    "setting": "Cadre de l'entretien",
    "juryMembers": ["membre1", "membre2", "membre3"],
    "duration": 20
  },
  "questions": [
    {
      "id": "oral1",
      "question": "Question du jury",
      "type": "motivation|technique|situation|leadership",
      "expectedElements": ["élément1", "élément2"],
      "followUpQuestions": ["relance1", "relance2"]
    }
  ],
  "metadata": {
    "tips": ["conseil1", "conseil2"],
    "evaluationGrid": ["critère1", "critère2"]
  }
}""",
        required_field="questions",
        item_count=4,
        max_tokens=2500,
    ),
}


def get_template(training_type: TrainingType) -> TrainingTemplate:
    """Retourne le gabarit du type demandé (KeyError si absent)."""
    return TRAINING_TEMPLATES[training_type]


def build_prompt(template: TrainingTemplate, request: GenerationRequest) -> str:
    """Construit le prompt textuel unique : gabarit + contexte niveau/domaine + consignes."""
    level = request.level.value
    domain = request.domain.value
    return f"""{template.system_prompt}

CONTEXTE:
- Niveau: {level} ({LEVEL_LABELS[request.level]})
- Domaine: {domain} ({DOMAIN_LABELS[request.domain]})
- Type: {request.training_type.value}

INSTRUCTIONS CRITIQUES:
1. Respecte EXACTEMENT le format JSON demandé
2. Génère du contenu de qualité professionnelle niveau {level}
3. Concentre-toi sur le domaine: {domain}
4. Produis exactement {template.item_count} élément(s) dans "{template.required_field}"
5. Assure-toi que le JSON est valide et parsable, sans texte additionnel"""
