"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Récupérer le conteneur attaché à l'application.
- Authentifier l'appelant à partir du jeton porteur (`Authorization: Bearer ...`).
"""

from fastapi import Header, Request

from prepacds.api.errors import unauthorized
from prepacds.core.container import Container
from prepacds.domain.auth import TokenData, decode_token


def get_container(request: Request) -> Container:
    """Retourne le conteneur de l'application courante."""
    return request.app.state.container


def get_current_user(request: Request, authorization: str | None = Header(None)) -> TokenData:
    """Extrait et valide l'utilisateur courant à partir du jeton d'autorisation."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise unauthorized("Authorization header missing")
    token = authorization.split(" ", 1)[1].strip()
    settings = get_container(request).settings
    data = decode_token(
        token, settings.SUPABASE_JWT_SECRET, settings.JWT_ALG, settings.JWT_AUDIENCE
    )
    if not data:
        raise unauthorized("Authentication failed")
    return data
