"""Tests for the text-generation client against a mocked router."""

import json

import httpx
import pytest

from runplan.config.settings import Settings
from runplan.core.errors import DIAGNOSTIC_MAX_CHARS, ConfigurationError, ContextTooLargeError, UpstreamError
from runplan.llm.client import (
    HuggingFaceTextClient,
    completion_prompt,
    extract_chat_content,
    is_not_chat_model_error,
    split_model_provider,
)

ROUTER_URL = "https://router.test/v1/chat/completions"


def _settings(model: str = "org/model:featherless-ai", api_key: str = "hf_test") -> Settings:
    return Settings(
        hf_api_key=api_key,
        hf_model=model,
        hf_router_url=ROUTER_URL,
        hf_completions_base_url="https://router.test",
    )


def _client(handler, **settings_kwargs) -> tuple[HuggingFaceTextClient, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HuggingFaceTextClient(config=_settings(**settings_kwargs), http_client=http_client), http_client


def _chat_answer(content) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


@pytest.mark.asyncio
async def test_chat_completion_success():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append({"url": str(request.url), "auth": request.headers["Authorization"], "body": json.loads(request.content)})
        return _chat_answer('  {"weeks": []}  ')

    client, http_client = _client(handler)
    async with http_client:
        result = await client.generate("system", "user", max_tokens=1200, temperature=0.15, top_p=0.9)

    assert result.text == '{"weeks": []}'
    assert result.model == "org/model:featherless-ai"
    assert seen[0]["url"] == ROUTER_URL
    assert seen[0]["auth"] == "Bearer hf_test"
    body = seen[0]["body"]
    assert body["messages"] == [{"role": "system", "content": "system"}, {"role": "user", "content": "user"}]
    assert (body["max_tokens"], body["temperature"], body["top_p"], body["stream"]) == (1200, 0.15, 0.9, False)


@pytest.mark.asyncio
async def test_not_chat_model_falls_back_to_provider_completions():
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        if request.url.path.endswith("/chat/completions"):
            return httpx.Response(400, text='{"error": "model_not_supported: not a chat model"}')
        body = json.loads(request.content)
        assert body["model"] == "org/model"
        assert body["prompt"].startswith("[SYSTEM]")
        return httpx.Response(200, json={"choices": [{"text": '{"title": "Plan"}'}]})

    client, http_client = _client(handler)
    async with http_client:
        result = await client.generate("system", "user", max_tokens=900)

    assert urls == [ROUTER_URL, "https://router.test/featherless-ai/v1/completions"]
    assert result.text == '{"title": "Plan"}'
    assert result.model == "org/model:featherless-ai (completions)"


@pytest.mark.asyncio
async def test_not_chat_model_without_completions_route_suggests_model():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="Not Found")

    client, http_client = _client(handler, model="org/model")
    async with http_client:
        with pytest.raises(UpstreamError) as exc_info:
            await client.generate("system", "user", max_tokens=900)

    assert "HF_MODEL=org/model:featherless-ai" in str(exc_info.value)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_context_length_error_is_classified():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text='{"error": {"code": "context_length_exceeded"}}')

    client, http_client = _client(handler)
    async with http_client:
        with pytest.raises(ContextTooLargeError):
            await client.generate("system", "user", max_tokens=900)


@pytest.mark.asyncio
async def test_server_error_detail_is_truncated():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="x" * 2000)

    client, http_client = _client(handler)
    async with http_client:
        with pytest.raises(UpstreamError) as exc_info:
            await client.generate("system", "user", max_tokens=900)

    assert not isinstance(exc_info.value, ContextTooLargeError)
    assert len(exc_info.value.detail) == DIAGNOSTIC_MAX_CHARS
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_empty_content_is_an_upstream_error():
    client, http_client = _client(lambda request: _chat_answer("   "))
    async with http_client:
        with pytest.raises(UpstreamError):
            await client.generate("system", "user", max_tokens=900)


@pytest.mark.asyncio
async def test_transport_failure_is_an_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, http_client = _client(handler)
    async with http_client:
        with pytest.raises(UpstreamError) as exc_info:
            await client.generate("system", "user", max_tokens=900)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_missing_api_key_fails_before_any_request():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return _chat_answer("{}")

    client, http_client = _client(handler, api_key="")
    async with http_client:
        with pytest.raises(ConfigurationError):
            await client.generate("system", "user", max_tokens=900)
    assert calls == []


def test_chat_content_extraction_variants():
    chunks = [{"type": "text", "text": '{"a"'}, {"type": "image", "url": "x"}, {"type": "text", "text": ": 1}"}]
    assert extract_chat_content({"choices": [{"message": {"content": chunks}}]}) == '{"a": 1}'
    assert extract_chat_content({"choices": [{"text": "fallback"}]}) == "fallback"
    assert extract_chat_content({"choices": []}) is None


def test_model_provider_split():
    assert split_model_provider("org/model:featherless-ai") == ("org/model", "featherless-ai")
    assert split_model_provider("org/model") == ("org/model", None)
    assert split_model_provider("org/model:") == ("org/model:", None)


def test_not_chat_model_detection():
    assert is_not_chat_model_error(404, "")
    assert is_not_chat_model_error(400, "This is not a chat model")
    assert not is_not_chat_model_error(400, "bad request")
    assert not is_not_chat_model_error(500, "not a chat model")


def test_completion_prompt_layout():
    assert completion_prompt("S", "U") == "[SYSTEM]\nS\n\n[USER]\nU\n\n[ASSISTANT]"
