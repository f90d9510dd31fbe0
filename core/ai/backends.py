"""Generative backends behind the provider gateway.

Each backend turns a ``BackendRequest`` into a ``BackendResponse`` carrying the
raw text and a uniform ``TokenUsage``. Schema validation and retry live in the
gateway, not here.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from google import genai
from google.genai import types
from openai import AzureOpenAI

from .config import ProviderConfig
from .errors import ConfigurationError, ProviderError, classify_provider_error
from .telemetry import TokenUsage

logger = logging.getLogger(__name__)


@dataclass
class BackendRequest:
    """A single text generation call."""

    prompt: str
    model: str
    temperature: float = 0.7
    max_tokens: int = 8192
    json_output: bool = False
    system_prompt: Optional[str] = None


@dataclass
class BackendResponse:
    """Raw backend output plus token usage."""

    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    finish_reason: Optional[str] = None


@dataclass
class ReferenceImage:
    """Inline image bytes used to condition image generation."""

    data: bytes
    mime_type: str = "image/png"


@dataclass
class GeneratedImage:
    """Inline image returned by an image-capable backend."""

    data: bytes
    mime_type: str = "image/png"

    def to_data_url(self) -> str:
        """Encode as a ``data:`` URL."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class GenerationBackend:
    """Interface for a generative provider."""

    name = "backend"
    supports_images = False

    async def generate(self, request: BackendRequest) -> BackendResponse:
        raise NotImplementedError

    async def generate_image(
        self,
        prompt: str,
        model: str,
        aspect_ratio: str = "4:3",
        reference_images: Optional[List[ReferenceImage]] = None,
        temperature: float = 0.9,
    ) -> GeneratedImage:
        raise ProviderError(f"{self.name} does not support image generation", retryable=False)


class GeminiBackend(GenerationBackend):
    """Google Gemini backend (primary)."""

    name = "gemini"
    supports_images = True

    def __init__(self, api_key: str):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is required for the Gemini backend")
        self._api_key = api_key
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        """Get or create the Gemini client."""
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, request: BackendRequest) -> BackendResponse:
        config = types.GenerateContentConfig(
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
            system_instruction=request.system_prompt,
            response_mime_type="application/json" if request.json_output else None,
        )

        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self.client.models.generate_content(
                    model=request.model,
                    contents=request.prompt,
                    config=config,
                ),
            )
        except Exception as e:
            raise classify_provider_error(e) from e

        text = response.text or ""
        if not text:
            raise ProviderError("Empty response from Gemini", error_type="empty_response")

        finish_reason = None
        if response.candidates:
            reason = response.candidates[0].finish_reason
            finish_reason = str(reason.value if hasattr(reason, "value") else reason) if reason else None

        return BackendResponse(
            text=text,
            usage=self._extract_usage(response),
            finish_reason=finish_reason,
        )

    async def generate_image(
        self,
        prompt: str,
        model: str,
        aspect_ratio: str = "4:3",
        reference_images: Optional[List[ReferenceImage]] = None,
        temperature: float = 0.9,
    ) -> GeneratedImage:
        contents: list = [
            types.Part.from_bytes(data=ref.data, mime_type=ref.mime_type)
            for ref in (reference_images or [])
        ]
        contents.append(prompt)

        config = types.GenerateContentConfig(
            temperature=temperature,
            response_modalities=["IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
        )

        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self.client.models.generate_content(
                    model=model,
                    contents=contents,
                    config=config,
                ),
            )
        except Exception as e:
            raise classify_provider_error(e) from e

        if response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
            for part in response.candidates[0].content.parts:
                if part.inline_data and part.inline_data.data:
                    data = part.inline_data.data
                    if isinstance(data, str):
                        data = base64.b64decode(data)
                    return GeneratedImage(
                        data=data,
                        mime_type=part.inline_data.mime_type or "image/png",
                    )

        raise ProviderError("No image data in Gemini response", error_type="empty_response")

    @staticmethod
    def _extract_usage(response) -> TokenUsage:
        meta = getattr(response, "usage_metadata", None)
        if meta is None:
            return TokenUsage()
        return TokenUsage(
            prompt_tokens=meta.prompt_token_count or 0,
            completion_tokens=meta.candidates_token_count or 0,
            total_tokens=meta.total_token_count or 0,
        )


class AzureOpenAIBackend(GenerationBackend):
    """Azure OpenAI chat backend (fallback)."""

    name = "azure-openai"

    def __init__(self, endpoint: str, api_key: str, api_version: str, deployment: str):
        self.endpoint = endpoint
        self.api_key = api_key
        self.api_version = api_version
        self.deployment = deployment
        self._client: Optional[AzureOpenAI] = None

    @property
    def client(self) -> AzureOpenAI:
        """Get or create Azure OpenAI client."""
        if self._client is None:
            self._client = AzureOpenAI(
                azure_endpoint=self.endpoint,
                api_key=self.api_key,
                api_version=self.api_version,
            )
        return self._client

    async def generate(self, request: BackendRequest) -> BackendResponse:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        kwargs = {
            "model": self.deployment,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": min(request.max_tokens, 4096),
        }
        if request.json_output:
            kwargs["response_format"] = {"type": "json_object"}

        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self.client.chat.completions.create(**kwargs),
            )
        except Exception as e:
            raise classify_provider_error(e) from e

        choice = response.choices[0]
        usage = TokenUsage()
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return BackendResponse(
            text=choice.message.content or "",
            usage=usage,
            finish_reason=choice.finish_reason,
        )


def build_backends(config: ProviderConfig) -> tuple:
    """
    Construct primary and fallback backends from configuration.

    Args:
        config: Provider configuration loaded at startup

    Returns:
        Tuple of (primary, fallback); fallback is None when not configured

    Raises:
        ConfigurationError: If the primary API key is missing
    """
    config.require_primary()
    primary = GeminiBackend(config.gemini_api_key)

    fallback = None
    if config.is_fallback_configured():
        fallback = AzureOpenAIBackend(
            endpoint=config.azure_openai_endpoint,
            api_key=config.azure_openai_api_key,
            api_version=config.azure_openai_api_version,
            deployment=config.azure_openai_deployment,
        )
        logger.info(f"Fallback backend configured: Azure OpenAI ({config.azure_openai_deployment})")

    return primary, fallback
