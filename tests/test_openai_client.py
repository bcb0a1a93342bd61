"""Tests du client Chat Completions avec un SDK simulé."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from prepacds.domain.errors import ConfigurationError, RetriesExhaustedError, UpstreamAPIError
from prepacds.infra.llm.openai_client import USER_INSTRUCTION, OpenAIChatLLM

PROMPT_TOKENS = 10
COMPLETION_TOKENS = 20
HTTP_SERVICE_UNAVAILABLE = 503


def _client(create: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(
            prompt_tokens=PROMPT_TOKENS,
            completion_tokens=COMPLETION_TOKENS,
            total_tokens=PROMPT_TOKENS + COMPLETION_TOKENS,
        ),
    )


@pytest.mark.asyncio
async def test_complete_sends_prompt_as_system_message() -> None:
    create = AsyncMock(return_value=_response('{"questions": [1]}'))
    llm = OpenAIChatLLM("sk-test", "gpt-test", client=_client(create))

    text = await llm.complete("PROMPT", max_tokens=1500)

    assert text == '{"questions": [1]}'
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["messages"] == [
        {"role": "system", "content": "PROMPT"},
        {"role": "user", "content": USER_INSTRUCTION},
    ]
    assert kwargs["max_completion_tokens"] == 1500


@pytest.mark.asyncio
async def test_empty_content_is_an_upstream_error() -> None:
    llm = OpenAIChatLLM("sk-test", client=_client(AsyncMock(return_value=_response(""))))

    with pytest.raises(UpstreamAPIError):
        await llm.complete("PROMPT")


@pytest.mark.asyncio
async def test_sdk_status_error_becomes_retries_exhausted() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIStatusError(
        "unavailable",
        response=httpx.Response(HTTP_SERVICE_UNAVAILABLE, request=request),
        body=None,
    )
    llm = OpenAIChatLLM("sk-test", client=_client(AsyncMock(side_effect=error)))

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await llm.complete("PROMPT")

    assert exc_info.value.last_error.status_code == HTTP_SERVICE_UNAVAILABLE


def test_usage_extraction_is_always_a_dict() -> None:
    llm = OpenAIChatLLM("sk-test", client=_client(AsyncMock()))

    assert llm._extract_usage_dict(_response("x"))["total_tokens"] == (
        PROMPT_TOKENS + COMPLETION_TOKENS
    )
    assert llm._extract_usage_dict(SimpleNamespace(usage=None)) == {}


def test_missing_api_key_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        OpenAIChatLLM(None)
