"""
Contenu de secours lorsque la génération échoue.

Chaque type d'entraînement dispose d'un gabarit statique contenant au moins un élément dans son
champ obligatoire, pour que l'interface affiche toujours un exercice exploitable. Le contenu est
marqué `metadata.source = "fallback"`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from prepacds.domain.entities import (
    DOMAIN_LABELS,
    StudyDomain,
    TrainingType,
    UserLevel,
)

FALLBACK_REASON = "API génération indisponible"

_BY_LEVEL = {
    UserLevel.DEBUTANT: 0,
    UserLevel.INTERMEDIAIRE: 1,
    UserLevel.AVANCE: 2,
}


def _pick(level: UserLevel, values: tuple[Any, Any, Any]) -> Any:
    return values[_BY_LEVEL[level]]


def _metadata(level: UserLevel, domain: StudyDomain, session_id: str | None) -> dict[str, Any]:
    return {
        "source": "fallback",
        "generated_at": datetime.now(UTC).isoformat(),
        "level": level.value,
        "domain": domain.value,
        "session_id": session_id,
        "fallback_reason": FALLBACK_REASON,
        "retry_recommended": True,
    }


def _qcm(level: UserLevel, domain: StudyDomain) -> dict[str, Any]:
    label = DOMAIN_LABELS[domain]
    depth = _pick(level, ("fondamentaux", "approfondis", "experts"))
    return {
        "title": f"QCM {label} - Niveau {level.value}",
        "description": f"Questions à choix multiple sur les aspects {depth} : {label}",
        "questions": [
            {
                "id": "fallback-qcm-1",
                "question": f"Question de base en {label} adaptée au niveau {level.value}",
                "options": [
                    "Option A - Réponse plausible",
                    "Option B - Réponse correcte",
                    "Option C - Réponse incorrecte",
                    "Option D - Réponse de distraction",
                ],
                "correctAnswer": 1,
                "explanation": "Explication détaillée de la réponse correcte",
                "difficulty": level.value,
                "points": _pick(level, (2, 3, 4)),
            }
        ],
    }


def _vrai_faux(level: UserLevel, domain: StudyDomain) -> dict[str, Any]:
    label = DOMAIN_LABELS[domain]
    return {
        "title": f"Vrai/Faux {label} - Niveau {level.value}",
        "description": f"Affirmations vrai/faux : {label}",
        "questions": [
            {
                "id": "fallback-tf-1",
                "statement": f"Affirmation de base concernant : {label}",
                "isTrue": True,
                "explanation": "Explication détaillée de pourquoi cette affirmation est vraie",
                "difficulty": level.value,
                "points": _pick(level, (1, 2, 3)),
            }
        ],
    }


def _cas_pratique(level: UserLevel, domain: StudyDomain) -> dict[str, Any]:
    label = DOMAIN_LABELS[domain]
    complexity = _pick(level, ("simple", "modérée", "complexe"))
    return {
        "title": f"Cas pratique {label} - Niveau {level.value}",
        "context": f"Vous devez traiter une situation {complexity} relevant de : {label}",
        "steps": [
            {
                "id": "fallback-step-1",
                "title": "Analyse de la situation",
                "scenario": (
                    f"Situation {complexity} nécessitant votre intervention professionnelle"
                ),
                "question": (
                    "Comment analysez-vous cette situation et quelles sont vos premières actions ?"
                ),
                "expectedPoints": [
                    "Identifier les éléments clés de la situation",
                    "Évaluer les risques et enjeux",
                    "Déterminer les actions prioritaires",
                ],
                "timeLimit": _pick(level, (10, 15, 20)),
            }
        ],
        "totalTime": _pick(level, (20, 30, 45)),
    }


def _question_ouverte(level: UserLevel, domain: StudyDomain) -> dict[str, Any]:
    label = DOMAIN_LABELS[domain]
    complexity = _pick(level, ("élémentaires", "intermédiaires", "avancées"))
    return {
        "title": f"Questions ouvertes {label} - Niveau {level.value}",
        "description": f"Questions de rédaction sur les notions {complexity} : {label}",
        "questions": [
            {
                "id": "fallback-open-1",
                "question": f"Développez votre compréhension des enjeux {complexity} : {label}",
                "context": f"Dans le cadre de votre pratique professionnelle ({label})",
                "expectedLength": _pick(level, (200, 300, 500)),
                "timeLimit": _pick(level, (15, 20, 30)),
                "guidelines": [
                    "Structurez votre réponse avec une introduction, un développement et une "
                    "conclusion",
                    "Utilisez des exemples concrets si possible",
                    "Démontrez votre compréhension des enjeux",
                ],
            }
        ],
    }


def _simulation_oral(level: UserLevel, domain: StudyDomain) -> dict[str, Any]:
    label = DOMAIN_LABELS[domain]
    return {
        "scenario": {
            "setting": "Entretien avec le jury du concours de Chef de Service de Police Municipale",
            "juryMembers": ["Président du jury", "Élu local", "Directeur de police municipale"],
            "duration": _pick(level, (15, 20, 25)),
        },
        "questions": [
            {
                "id": "fallback-oral-1",
                "question": f"Présentez votre parcours et votre vision du domaine : {label}",
                "type": "motivation",
                "expectedElements": ["Parcours professionnel", "Motivation pour le poste"],
                "followUpQuestions": ["Quelle situation difficile avez-vous gérée ?"],
            }
        ],
    }


_BUILDERS = {
    TrainingType.QCM: _qcm,
    TrainingType.VRAI_FAUX: _vrai_faux,
    TrainingType.CAS_PRATIQUE: _cas_pratique,
    TrainingType.QUESTION_OUVERTE: _question_ouverte,
    TrainingType.SIMULATION_ORAL: _simulation_oral,
}


def build_fallback_content(
    training_type: TrainingType,
    level: UserLevel,
    domain: StudyDomain,
    session_id: str | None = None,
) -> dict[str, Any]:
    """Construit le contenu de secours pour le type demandé."""
    content = _BUILDERS[training_type](level, domain)
    content["metadata"] = _metadata(level, domain, session_id)
    return content


def is_fallback_content(content: Any) -> bool:
    """Vrai si `content` a été produit par ce module."""
    return (
        isinstance(content, dict)
        and isinstance(content.get("metadata"), dict)
        and content["metadata"].get("source") == "fallback"
    )


def build_fallback_question(
    level: UserLevel | None = None, domain: StudyDomain | None = None
) -> dict[str, Any]:
    """Question unique de secours pour l'endpoint de génération de question."""
    objective = f"Maîtriser : {DOMAIN_LABELS[domain]}" if domain else "Révision générale"
    return {
        "question": "Question d'entraînement générée pour le domaine demandé",
        "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
        "correctAnswer": "Option 1",
        "explanation": (
            "Cette question sera développée ultérieurement avec les références appropriées."
        ),
        "references": [],
        "difficulty": _pick(level, (2, 3, 4)) if level else 3,
        "domain": domain.value if domain else "general",
        "learningObjectives": [objective],
        "metadata": {"source": "fallback", "fallback_reason": FALLBACK_REASON},
    }
