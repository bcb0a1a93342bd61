# Schémas Pydantic exposés par l'API (requêtes et réponses).

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from prepacds.domain.entities import ContentSource, StudyDomain, TrainingType, UserLevel


class TrainingContentRequest(BaseModel):
    """Requête de génération de contenu d'entraînement.

    Champs:
    - trainingType: type d'entraînement (qcm, vrai_faux, cas_pratique, ...)
    - level: debutant | intermediaire | avance
    - domain: domaine d'étude
    - sessionId: identifiant de session optionnel (exclu de la clé de cache)
    """

    model_config = ConfigDict(populate_by_name=True)

    training_type: TrainingType = Field(alias="trainingType")
    level: UserLevel
    domain: StudyDomain
    session_id: str | None = Field(default=None, alias="sessionId")


class SessionInfo(BaseModel):
    """Métadonnées de session renvoyées dans `meta.session`."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: ContentSource
    training_type: TrainingType = Field(alias="trainingType")
    level: UserLevel
    domain: StudyDomain
    created_at: str = Field(alias="createdAt")


class TrainingContentMeta(BaseModel):
    """Métadonnées de réponse; `source` et `status` sont toujours présents."""

    model_config = ConfigDict(populate_by_name=True)

    source: ContentSource
    status: Literal["OK", "ERROR"]
    session: SessionInfo
    user_id: str = Field(alias="userId")
    request_id: str = Field(alias="requestId")
    timestamp: str
    error: str | None = None


class TrainingContentResponse(BaseModel):
    """Réponse `POST /training/content` (HTTP 200 y compris en mode dégradé)."""

    success: bool = True
    content: dict[str, Any]
    meta: TrainingContentMeta


class TrainingQuestionRequest(BaseModel):
    """Requête de génération d'une question unique."""

    model_config = ConfigDict(populate_by_name=True)

    level: UserLevel = UserLevel.INTERMEDIAIRE
    domain: StudyDomain = StudyDomain.DROIT_ADMINISTRATIF
    question_type: str = Field(default="qcm", alias="questionType", max_length=64)
    avoid_recent_topics: bool = Field(default=False, alias="avoidRecentTopics")
