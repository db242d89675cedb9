"""Tests for inference providers and the fallback gateway."""

import asyncio
import json

import httpx
import pytest

from scheduler.config import Settings
from scheduler.core.conversation.models import Role, Turn
from scheduler.errors import InferenceUnavailable, ProviderError
from scheduler.infra.inference import (
    FALLBACK_REPLY,
    InferenceGateway,
    ModelParams,
    OpenAICompatibleProvider,
    build_inference_gateway,
)

MESSAGES = [
    Turn(role=Role.SYSTEM, content="You are a helpful scheduling assistant."),
    Turn(role=Role.USER, content="What's available tomorrow at 2pm?"),
]


def completion(content):
    """OpenAI-style success body."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_provider(handler, name="groq") -> OpenAICompatibleProvider:
    """Provider whose HTTP traffic goes to a mock transport."""
    provider = OpenAICompatibleProvider(
        name=name,
        api_key=f"{name}-key",
        model=f"{name}-model",
        base_url="https://llm.example/openai/v1",
    )
    provider._client = httpx.AsyncClient(
        base_url=provider.base_url,
        transport=httpx.MockTransport(handler),
    )
    return provider


class SlowProvider:
    """Provider that never answers in time."""

    name = "slow"

    async def complete(self, messages, params):
        await asyncio.sleep(5)
        return "too late"

    async def close(self):
        pass


class TestOpenAICompatibleProvider:
    """Test the wire contract."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion("Sure!"))

        provider = make_provider(handler)

        reply = await provider.complete(MESSAGES, ModelParams(temperature=0.7, max_tokens=1024))

        assert reply == "Sure!"
        assert seen["path"] == "/openai/v1/chat/completions"
        assert seen["auth"] == "Bearer groq-key"
        assert seen["body"] == {
            "model": "groq-model",
            "messages": [
                {"role": "system", "content": "You are a helpful scheduling assistant."},
                {"role": "user", "content": "What's available tomorrow at 2pm?"},
            ],
            "temperature": 0.7,
            "max_tokens": 1024,
        }

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        provider = make_provider(lambda request: httpx.Response(503, text="overloaded"))

        with pytest.raises(ProviderError):
            await provider.complete(MESSAGES, ModelParams())

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = make_provider(handler)

        with pytest.raises(ProviderError):
            await provider.complete(MESSAGES, ModelParams())

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            OpenAICompatibleProvider(name="groq", api_key="", model="m", base_url="https://x")


class TestInferenceGateway:
    """Test ordered fallback."""

    @pytest.mark.asyncio
    async def test_primary_success_skips_secondary(self):
        secondary_calls = []

        def secondary(request):
            secondary_calls.append(request)
            return httpx.Response(200, json=completion("from mistral"))

        gateway = InferenceGateway([
            make_provider(lambda r: httpx.Response(200, json=completion("from groq"))),
            make_provider(secondary, name="mistral"),
        ])

        assert await gateway.complete(MESSAGES) == "from groq"
        assert secondary_calls == []

    @pytest.mark.asyncio
    async def test_falls_back_on_primary_failure(self):
        gateway = InferenceGateway([
            make_provider(lambda r: httpx.Response(500)),
            make_provider(lambda r: httpx.Response(200, json=completion("from mistral")), name="mistral"),
        ])

        assert await gateway.complete(MESSAGES) == "from mistral"

    @pytest.mark.asyncio
    async def test_secondary_gets_same_messages_and_params(self):
        bodies = []

        def record(status):
            def handler(request):
                bodies.append(json.loads(request.content))
                if status != 200:
                    return httpx.Response(status)
                return httpx.Response(200, json=completion("ok"))
            return handler

        gateway = InferenceGateway(
            [make_provider(record(429)), make_provider(record(200), name="mistral")],
            params=ModelParams(temperature=0.3, max_tokens=256),
        )

        await gateway.complete(MESSAGES)

        assert bodies[0]["messages"] == bodies[1]["messages"]
        assert bodies[1]["temperature"] == 0.3
        assert bodies[1]["max_tokens"] == 256
        assert bodies[1]["model"] == "mistral-model"

    @pytest.mark.asyncio
    async def test_no_fallback_configured_propagates(self):
        gateway = InferenceGateway([make_provider(lambda r: httpx.Response(500))])

        with pytest.raises(InferenceUnavailable):
            await gateway.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_all_fail(self):
        gateway = InferenceGateway([
            make_provider(lambda r: httpx.Response(500)),
            make_provider(lambda r: httpx.Response(502), name="mistral"),
        ])

        with pytest.raises(InferenceUnavailable):
            await gateway.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_no_providers(self):
        with pytest.raises(InferenceUnavailable):
            await InferenceGateway([]).complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        gateway = InferenceGateway(
            [SlowProvider(), make_provider(lambda r: httpx.Response(200, json=completion("fast")))],
            timeout=0.05,
        )

        assert await gateway.complete(MESSAGES) == "fast"

    @pytest.mark.asyncio
    async def test_timeout_without_fallback(self):
        gateway = InferenceGateway([SlowProvider()], timeout=0.05)

        with pytest.raises(InferenceUnavailable):
            await gateway.complete(MESSAGES)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"error": "weird"},
    ])
    async def test_missing_content_is_degraded_success(self, body):
        gateway = InferenceGateway([
            make_provider(lambda r: httpx.Response(200, json=body)),
            make_provider(lambda r: httpx.Response(200, json=completion("unused")), name="mistral"),
        ])

        assert await gateway.complete(MESSAGES) == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_non_json_success_is_degraded_success(self):
        gateway = InferenceGateway([make_provider(lambda r: httpx.Response(200, text="<html>"))])

        assert await gateway.complete(MESSAGES) == FALLBACK_REPLY


class TestBuildInferenceGateway:
    """Test provider selection from settings."""

    def test_order_follows_configured_keys(self):
        settings = Settings(groq_api_key="g", mistral_api_key="m", anthropic_api_key=None)

        gateway = build_inference_gateway(settings)

        assert [p.name for p in gateway.providers] == ["groq", "mistral"]

    def test_single_secondary_when_all_keys_set(self):
        settings = Settings(groq_api_key="g", mistral_api_key="m", anthropic_api_key="a")

        gateway = build_inference_gateway(settings)

        assert [p.name for p in gateway.providers] == ["groq", "mistral"]

    def test_anthropic_is_secondary_without_mistral(self):
        settings = Settings(groq_api_key="g", mistral_api_key=None, anthropic_api_key="a")

        gateway = build_inference_gateway(settings)

        assert [p.name for p in gateway.providers] == ["groq", "anthropic"]

    def test_secondary_optional(self):
        settings = Settings(groq_api_key="g", mistral_api_key=None, anthropic_api_key=None)

        gateway = build_inference_gateway(settings)

        assert [p.name for p in gateway.providers] == ["groq"]

    def test_model_params_from_settings(self):
        settings = Settings(
            groq_api_key="g",
            mistral_api_key=None,
            anthropic_api_key=None,
            inference_temperature=0.2,
            inference_max_tokens=512,
            inference_timeout_seconds=12.5,
        )

        gateway = build_inference_gateway(settings)

        assert gateway.params == ModelParams(temperature=0.2, max_tokens=512)
        assert gateway.timeout == 12.5
