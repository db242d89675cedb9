"""
Inference Gateway

Sends a composed message sequence to an ordered list of chat-completion
providers. The first provider is the primary; each later one is only tried
after every earlier one failed or timed out. There are no retries beyond
moving to the next provider.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import httpx

from scheduler.config import Settings, get_settings
from scheduler.core.conversation.models import Turn
from scheduler.errors import InferenceUnavailable, MalformedProviderResponse, ProviderError

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I could not respond."


@dataclass(frozen=True)
class ModelParams:
    """Sampling configuration shared by every provider."""

    temperature: float = 0.7
    max_tokens: int = 1024


class InferenceProvider(Protocol):
    """A chat-completion backend."""

    name: str

    async def complete(self, messages: Sequence[Turn], params: ModelParams) -> str:
        """Return the assistant text.

        Raises:
            ProviderError: Non-success status or transport failure
            MalformedProviderResponse: Success status without usable text
        """
        ...

    async def close(self) -> None:
        ...


def extract_completion_text(response: httpx.Response) -> str:
    """Pull choices[0].message.content out of an OpenAI-style response.

    Raises:
        MalformedProviderResponse: If the body is not JSON or the field is absent/empty
    """
    try:
        data = response.json()
    except ValueError as e:
        raise MalformedProviderResponse(f"Body is not JSON: {e}") from e

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedProviderResponse("Missing choices[0].message.content") from e

    if not isinstance(content, str) or not content:
        raise MalformedProviderResponse("Empty completion content")

    return content


class OpenAICompatibleProvider:
    """
    Provider speaking the OpenAI chat-completions wire format.

    Request:  POST {base_url}/chat/completions
              {model, messages: [{role, content}], temperature, max_tokens}
    Response: choices[0].message.content
    """

    def __init__(
        self,
        name: str,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 30.0,
    ):
        """Initialize provider.

        Args:
            name: Provider label used in logs
            api_key: Bearer token
            model: Model identifier
            base_url: API root, e.g. https://api.groq.com/openai/v1
            timeout: HTTP timeout in seconds
        """
        if not api_key:
            raise ValueError(f"{name} API key is required")

        self.name = name
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def complete(self, messages: Sequence[Turn], params: ModelParams) -> str:
        client = await self._get_client()

        payload = {
            "model": self.model,
            "messages": [turn.to_dict() for turn in messages],
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
        }

        try:
            response = await client.post(
                "/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"transport error: {e}") from e

        if not response.is_success:
            raise ProviderError(self.name, f"HTTP {response.status_code}")

        return extract_completion_text(response)


class InferenceGateway:
    """
    Tries providers in order until one answers.

    A provider that answers with a success status but no usable text counts
    as answered: the fixed fallback reply is returned instead of moving on.
    """

    def __init__(
        self,
        providers: Sequence[InferenceProvider],
        params: Optional[ModelParams] = None,
        timeout: float = 30.0,
    ):
        """Initialize gateway.

        Args:
            providers: Providers in priority order
            params: Default sampling configuration
            timeout: Upper bound for each provider attempt, in seconds
        """
        self.providers = list(providers)
        self.params = params or ModelParams()
        self.timeout = timeout

    async def complete(
        self,
        messages: Sequence[Turn],
        params: Optional[ModelParams] = None,
    ) -> str:
        """
        Get the assistant text for a message sequence.

        Args:
            messages: Composed turns, system turn first
            params: Sampling configuration (defaults to the gateway's)

        Returns:
            The first available provider's completion text

        Raises:
            InferenceUnavailable: If no provider is configured or all failed
        """
        params = params or self.params

        if not self.providers:
            logger.error("No inference provider configured")
            raise InferenceUnavailable("No inference provider configured")

        for provider in self.providers:
            try:
                return await asyncio.wait_for(
                    provider.complete(messages, params),
                    timeout=self.timeout,
                )
            except MalformedProviderResponse as e:
                logger.warning(f"Malformed response from {provider.name}: {e}")
                return FALLBACK_REPLY
            except ProviderError as e:
                logger.warning(f"Provider {provider.name} failed: {e}")
            except asyncio.TimeoutError:
                logger.warning(f"Provider {provider.name} timed out after {self.timeout}s")

        names = ", ".join(p.name for p in self.providers)
        logger.error(f"All inference providers failed ({names})")
        raise InferenceUnavailable(f"All inference providers failed: {names}")

    async def close(self) -> None:
        """Close every provider."""
        for provider in self.providers:
            await provider.close()


def build_inference_gateway(settings: Settings) -> InferenceGateway:
    """
    Build the gateway from configured credentials.

    Groq is the primary. At most one secondary follows it: Mistral when
    configured, otherwise Anthropic. Providers without a credential are
    skipped.
    """
    providers: list[InferenceProvider] = []
    timeout = settings.inference_timeout_seconds

    if settings.groq_api_key:
        providers.append(
            OpenAICompatibleProvider(
                name="groq",
                api_key=settings.groq_api_key,
                model=settings.groq_model,
                base_url=settings.groq_base_url,
                timeout=timeout,
            )
        )

    if settings.mistral_api_key:
        providers.append(
            OpenAICompatibleProvider(
                name="mistral",
                api_key=settings.mistral_api_key,
                model=settings.mistral_model,
                base_url=settings.mistral_base_url,
                timeout=timeout,
            )
        )
    elif settings.anthropic_api_key:
        # Import here so the SDK is only loaded when configured
        from scheduler.infra.claude import AnthropicProvider

        providers.append(
            AnthropicProvider(
                api_key=settings.anthropic_api_key,
                model=settings.anthropic_model,
                timeout=timeout,
            )
        )

    logger.info(
        f"Inference gateway initialized with providers="
        f"{[p.name for p in providers] or 'none'}"
    )

    return InferenceGateway(
        providers=providers,
        params=ModelParams(
            temperature=settings.inference_temperature,
            max_tokens=settings.inference_max_tokens,
        ),
        timeout=timeout,
    )


# Singleton
_gateway: Optional[InferenceGateway] = None


def get_inference_gateway() -> InferenceGateway:
    """Get singleton InferenceGateway."""
    global _gateway
    if _gateway is None:
        _gateway = build_inference_gateway(get_settings())
    return _gateway


async def close_inference_gateway() -> None:
    """Close the singleton gateway, if one was created."""
    global _gateway
    if _gateway is not None:
        await _gateway.close()
        _gateway = None
