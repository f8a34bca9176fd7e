import asyncio
import logging

import httpx
import openai
import pytest

from app.config import Settings
from app.exceptions import UpstreamFailureKind
from app.models import HistoryTurn
from app.prompts import FALLBACK_RESPONSE, SYSTEM_PROMPT
from app.services.chat_relay import PortfolioChatRelay, classify_upstream_error

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _relay(fake=None, api_key="sk-test") -> PortfolioChatRelay:
    return PortfolioChatRelay(Settings(openai_api_key=api_key), client=fake)


class _CodedError(Exception):
    def __init__(self, code=None, status_code=None):
        super().__init__(f"code={code} status={status_code}")
        self.code = code
        self.status_code = status_code


def test_build_messages_maps_history_roles() -> None:
    history = [
        HistoryTurn(type="user", text="Who is Aaron?"),
        HistoryTurn(type="bot", text="A CS student."),
        HistoryTurn(type="assistant", text="Anything else?"),
        HistoryTurn(type="User", text="Case matters"),
    ]

    messages = _relay(api_key=None).build_messages("  What does he build?  ", history)

    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert [m["role"] for m in messages[1:]] == ["user", "assistant", "assistant", "assistant", "user"]
    assert messages[-1] == {"role": "user", "content": "What does he build?"}


def test_process_message_sends_fixed_generation_params(fake_openai) -> None:
    fake = fake_openai(content="Hello there")

    result = asyncio.run(_relay(fake).process_message("Hi"))

    assert result.text == "Hello there"
    assert result.source == "openai"
    call = fake.completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["max_tokens"] == 500
    assert call["temperature"] == 0.7
    assert call["presence_penalty"] == 0.1
    assert call["frequency_penalty"] == 0.1
    assert len(call["messages"]) == 2


def test_process_message_without_key_skips_provider(fake_openai) -> None:
    fake = fake_openai(content="Hello there")
    relay = _relay(fake, api_key=None)

    result = asyncio.run(relay.process_message("Hi"))

    assert relay.is_ready is False
    assert result.source == "fallback"
    assert result.text == FALLBACK_RESPONSE
    assert fake.completions.calls == []


def test_key_builds_async_openai_client() -> None:
    relay = PortfolioChatRelay(Settings(openai_api_key="sk-test", request_timeout=12.0))

    assert isinstance(relay.client, openai.AsyncOpenAI)
    assert relay.client.max_retries == 0
    asyncio.run(relay.close())


def test_process_message_logs_failure_kind(fake_openai, caplog) -> None:
    fake = fake_openai(error=_CodedError(code="insufficient_quota", status_code=429))

    with caplog.at_level(logging.INFO, logger="app.services.chat_relay"):
        result = asyncio.run(_relay(fake).process_message("Hi"))

    assert result.source == "fallback"
    assert "quota_exceeded" in caplog.text
    assert "OpenAI quota exceeded, using fallback" in caplog.text


def test_empty_completion_is_logged_as_empty_response(fake_openai, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="app.services.chat_relay"):
        result = asyncio.run(_relay(fake_openai(content="  ")).process_message("Hi"))

    assert result.source == "fallback"
    assert "empty_response" in caplog.text


@pytest.mark.parametrize(
    "error, expected",
    [
        (_CodedError(code="unsupported_country_region_territory"), UpstreamFailureKind.REGION_DENIED),
        (_CodedError(code="permission_denied"), UpstreamFailureKind.REGION_DENIED),
        (_CodedError(status_code=403), UpstreamFailureKind.REGION_DENIED),
        (_CodedError(code="insufficient_quota", status_code=429), UpstreamFailureKind.QUOTA_EXCEEDED),
        (_CodedError(code="invalid_api_key", status_code=401), UpstreamFailureKind.INVALID_CREDENTIAL),
        (_CodedError(code="server_error", status_code=500), UpstreamFailureKind.UNSPECIFIED),
        (RuntimeError("boom"), UpstreamFailureKind.UNSPECIFIED),
    ],
)
def test_classify_upstream_error(error, expected) -> None:
    assert classify_upstream_error(error) is expected


def test_classify_openai_sdk_errors() -> None:
    denied = openai.PermissionDeniedError(
        "Country, region, or territory not supported",
        response=httpx.Response(403, request=_REQUEST),
        body={"code": "unsupported_country_region_territory"},
    )
    quota = openai.RateLimitError(
        "You exceeded your current quota",
        response=httpx.Response(429, request=_REQUEST),
        body={"code": "insufficient_quota"},
    )
    timeout = openai.APITimeoutError(request=_REQUEST)

    assert classify_upstream_error(denied) is UpstreamFailureKind.REGION_DENIED
    assert classify_upstream_error(quota) is UpstreamFailureKind.QUOTA_EXCEEDED
    assert classify_upstream_error(timeout) is UpstreamFailureKind.UNSPECIFIED
