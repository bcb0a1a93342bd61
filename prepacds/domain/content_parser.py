"""Nettoyage, parsing et validation des réponses textuelles du modèle.

Le modèle distant n'émet pas toujours du JSON pur : on retire les blocs Markdown, on découpe du
premier `{` au dernier `}`, puis on parse. Aucun rattrapage partiel n'est tenté.
"""

from __future__ import annotations

import json
import re
from typing import Any

from prepacds.domain.errors import MalformedContentError, MissingRequiredFieldError

_FENCE_START = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_END = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Retire les marqueurs ``` (éventuellement ```json) en début et fin de texte."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_START.sub("", cleaned)
        cleaned = _FENCE_END.sub("", cleaned)
    return cleaned


def extract_json_object(text: str) -> str:
    """Découpe le texte du premier `{` au dernier `}` (tolère la prose autour)."""
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and first < last:
        return text[first : last + 1]
    return text


def parse_content(raw: str) -> dict[str, Any]:
    """Parse la réponse du modèle en objet JSON.

    Raises:
        MalformedContentError: texte vide, JSON invalide ou racine non-objet.
    """
    if not raw or not raw.strip():
        raise MalformedContentError("Contenu généré vide")
    candidate = extract_json_object(strip_code_fences(raw))
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedContentError(f"Contenu généré invalide (JSON malformé): {exc.msg}") from exc
    if not isinstance(data, dict):
        raise MalformedContentError("Contenu généré invalide (objet JSON attendu)")
    return data


def validate_content(content: dict[str, Any], required_field: str) -> dict[str, Any]:
    """Vérifie que `required_field` existe, est une liste et n'est pas vide."""
    value = content.get(required_field)
    if not isinstance(value, list) or not value:
        raise MissingRequiredFieldError(required_field)
    return content
