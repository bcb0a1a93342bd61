"""Routes de génération de contenu d'entraînement PrepaCDS.

Ce module expose la génération d'exercices (QCM, vrai/faux, cas pratiques, ...) et de questions
isolées. Les réponses sont en HTTP 200 y compris lorsque le contenu est dégradé (`source` =
`fallback`); seules l'authentification et la configuration produisent des erreurs.
"""

from __future__ import annotations

from uuid import uuid4

import structlog
from fastapi import APIRouter, Depends, Request

from prepacds.api.deps import get_container, get_current_user
from prepacds.api.schemas import (
    SessionInfo,
    TrainingContentMeta,
    TrainingContentRequest,
    TrainingContentResponse,
    TrainingQuestionRequest,
)
from prepacds.core.container import Container
from prepacds.domain.auth import TokenData

router = APIRouter(prefix="/training", tags=["training"])
log = structlog.get_logger(__name__)

_current_user_dep = Depends(get_current_user)
_container_dep = Depends(get_container)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or uuid4().hex


@router.post("/content", response_model=TrainingContentResponse)
async def generate_training_content(
    payload: TrainingContentRequest,
    request: Request,
    user: TokenData = _current_user_dep,
    container: Container = _container_dep,
) -> TrainingContentResponse:
    """Génère (ou relit depuis le cache) un contenu d'entraînement."""
    log.info(
        "training_content_requested",
        training_type=payload.training_type.value,
        level=payload.level.value,
        domain=payload.domain.value,
        user_id=user.sub,
    )
    service = container.training_service()
    result = await service.generate_content(
        payload.training_type, payload.level, payload.domain, payload.session_id
    )
    session = result.session
    return TrainingContentResponse(
        success=True,
        content=result.content,
        meta=TrainingContentMeta(
            source=result.source,
            status="ERROR" if result.degraded else "OK",
            session=SessionInfo(
                id=session.id,
                source=session.source,
                training_type=session.training_type,
                level=session.level,
                domain=session.domain,
                created_at=session.created_at,
            ),
            user_id=user.sub,
            request_id=_request_id(request),
            timestamp=result.timestamp,
            error=result.error,
        ),
    )


@router.post("/question")
async def generate_training_question(
    payload: TrainingQuestionRequest,
    user: TokenData = _current_user_dep,
    container: Container = _container_dep,
) -> dict:
    """Génère une question d'entraînement unique (question de secours en cas d'échec)."""
    service = container.question_service()
    question, source = await service.generate_question(
        payload.level, payload.domain, payload.question_type, payload.avoid_recent_topics
    )
    log.info("training_question_served", source=source, user_id=user.sub)
    return question
