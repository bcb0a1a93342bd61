"""
Module d'authentification par jeton porteur.

Les jetons d'accès Supabase sont des JWT signés (HS256) avec le secret du projet. Ce module les
valide et en extrait l'identité de l'utilisateur; il sait aussi en émettre (outillage de dev et
tests).
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError
from pydantic import BaseModel, ValidationError


class TokenData(BaseModel):
    """Données contenues dans un jeton d'accès."""

    sub: str
    email: str | None = None
    role: str = "authenticated"


def create_access_token(
    secret: str,
    alg: str,
    expires_min: int,
    payload: dict[str, Any],
    audience: str | None = "authenticated",
) -> str:
    """Crée un JWT d'accès avec expiration."""
    to_encode = payload.copy()
    to_encode["exp"] = datetime.now(UTC) + timedelta(minutes=expires_min)
    if audience:
        to_encode["aud"] = audience
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_token(
    token: str, secret: str, alg: str, audience: str | None = "authenticated"
) -> TokenData | None:
    """Décode et valide un JWT; retourne None s'il est invalide ou expiré."""
    options = {} if audience else {"verify_aud": False}
    try:
        data = jwt.decode(token, secret, algorithms=[alg], audience=audience, options=options)
        return TokenData(**data)
    except (InvalidTokenError, ValidationError):
        return None
