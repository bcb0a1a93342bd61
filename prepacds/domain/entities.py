"""Entités métier de la génération de contenu d'entraînement PrepaCDS.

Ce module définit les énumérations (type d'entraînement, niveau, domaine d'étude), la requête de
génération immuable et les métadonnées de session attachées à chaque réponse.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class TrainingType(str, Enum):
    """Types d'entraînement disposant d'un gabarit de génération."""

    QCM = "qcm"
    VRAI_FAUX = "vrai_faux"
    CAS_PRATIQUE = "cas_pratique"
    QUESTION_OUVERTE = "question_ouverte"
    SIMULATION_ORAL = "simulation_oral"


class UserLevel(str, Enum):
    """Niveau de l'utilisateur préparant le concours."""

    DEBUTANT = "debutant"
    INTERMEDIAIRE = "intermediaire"
    AVANCE = "avance"


class StudyDomain(str, Enum):
    """Domaines juridiques et administratifs couverts par les épreuves."""

    DROIT_ADMINISTRATIF = "droit_administratif"
    POLICE_MUNICIPALE = "police_municipale"
    SECURITE_PUBLIQUE = "securite_publique"
    REGLEMENTATION = "reglementation"
    PROCEDURE_PENALE = "procedure_penale"
    MANAGEMENT = "management"
    ETHIQUE_DEONTOLOGIE = "ethique_deontologie"


class ContentSource(str, Enum):
    """Provenance du contenu renvoyé à l'appelant."""

    AI = "ai"
    CACHE = "cache"
    FALLBACK = "fallback"


LEVEL_LABELS: dict[UserLevel, str] = {
    UserLevel.DEBUTANT: "Débutant",
    UserLevel.INTERMEDIAIRE: "Intermédiaire",
    UserLevel.AVANCE: "Avancé",
}

DOMAIN_LABELS: dict[StudyDomain, str] = {
    StudyDomain.DROIT_ADMINISTRATIF: "Droit Administratif",
    StudyDomain.POLICE_MUNICIPALE: "Police Municipale",
    StudyDomain.SECURITE_PUBLIQUE: "Sécurité Publique",
    StudyDomain.REGLEMENTATION: "Réglementation",
    StudyDomain.PROCEDURE_PENALE: "Procédure Pénale",
    StudyDomain.MANAGEMENT: "Management",
    StudyDomain.ETHIQUE_DEONTOLOGIE: "Éthique & Déontologie",
}


class GenerationRequest(BaseModel):
    """Requête de génération, immuable une fois construite."""

    model_config = ConfigDict(frozen=True)

    training_type: TrainingType
    level: UserLevel
    domain: StudyDomain
    session_id: str | None = None

    @property
    def cache_key(self) -> str:
        """Clé de cache déterministe; le session_id n'en fait pas partie."""
        return f"{self.training_type.value}-{self.level.value}-{self.domain.value}"


class SessionMetadata(BaseModel):
    """Métadonnées de session attachées à toute réponse, quelle que soit sa provenance."""

    id: str
    source: ContentSource
    training_type: TrainingType
    level: UserLevel
    domain: StudyDomain
    created_at: str


class TrainingContentResult(BaseModel):
    """Résultat du service de contenu : contenu, provenance et session."""

    content: dict[str, Any]
    source: ContentSource
    session_id: str
    timestamp: str
    session: SessionMetadata
    error: str | None = None

    @property
    def degraded(self) -> bool:
        """Vrai si le contenu provient du gabarit de secours."""
        return self.source is ContentSource.FALLBACK
