"""Tests du nettoyage et de la validation des réponses du modèle."""

import pytest

from prepacds.domain.content_parser import (
    extract_json_object,
    parse_content,
    strip_code_fences,
    validate_content,
)
from prepacds.domain.errors import MalformedContentError, MissingRequiredFieldError


def test_strip_code_fences_with_language_tag() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_extract_json_object_ignores_surrounding_prose() -> None:
    text = 'Voici le contenu : {"questions": [{"id": "q1"}]} Bonne révision !'
    assert extract_json_object(text) == '{"questions": [{"id": "q1"}]}'


def test_parse_content_accepts_fenced_json() -> None:
    raw = '```json\n{"questions": [{"id": "q1"}]}\n```'
    assert parse_content(raw) == {"questions": [{"id": "q1"}]}


@pytest.mark.parametrize("raw", ["", "   ", "pas du JSON", '{"questions": [', "[1, 2]"])
def test_parse_content_rejects_malformed_text(raw: str) -> None:
    with pytest.raises(MalformedContentError):
        parse_content(raw)


def test_validate_content_requires_non_empty_list() -> None:
    content = {"questions": [{"id": "q1"}]}
    assert validate_content(content, "questions") is content

    for bad in ({}, {"questions": []}, {"questions": "q1"}):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            validate_content(bad, "questions")
        assert exc_info.value.field == "questions"
