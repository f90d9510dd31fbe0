"""Generative provider configuration management."""

import logging
import os
from dataclasses import dataclass

from .errors import ConfigurationError
from .models import DEFAULT_IMAGE_MODEL, DEFAULT_LITE_MODEL, DEFAULT_TEXT_MODEL, GPT_4O

logger = logging.getLogger(__name__)


@dataclass
class ProviderConfig:
    """Provider configuration, built once at startup and passed down."""

    # Gemini (primary)
    gemini_api_key: str = ""

    # Azure OpenAI (fallback)
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_api_version: str = "2024-02-15-preview"
    azure_openai_deployment: str = GPT_4O

    # Models
    text_model: str = DEFAULT_TEXT_MODEL
    lite_model: str = DEFAULT_LITE_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL

    # Shared rate limit for all gateway calls
    requests_per_minute: int = 60
    burst: int = 5

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Load configuration from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            azure_openai_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT", ""),
            azure_openai_api_key=os.getenv("AZURE_OPENAI_API_KEY", ""),
            azure_openai_api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-15-preview"),
            azure_openai_deployment=os.getenv("AZURE_OPENAI_DEPLOYMENT", GPT_4O),
            text_model=os.getenv("AI_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            lite_model=os.getenv("AI_LITE_MODEL", DEFAULT_LITE_MODEL),
            image_model=os.getenv("AI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            requests_per_minute=int(os.getenv("AI_REQUESTS_PER_MINUTE", "60")),
            burst=int(os.getenv("AI_BURST", "5")),
        )

    def is_primary_configured(self) -> bool:
        """Check if the Gemini backend has an API key."""
        return bool(self.gemini_api_key)

    def is_fallback_configured(self) -> bool:
        """Check if the Azure OpenAI fallback is properly configured."""
        return bool(self.azure_openai_endpoint and self.azure_openai_api_key)

    def require_primary(self) -> None:
        """Fail fast when the primary key is absent; warn when the fallback is."""
        if not self.is_primary_configured():
            raise ConfigurationError("GEMINI_API_KEY is not set. The primary backend is required.")
        if not self.is_fallback_configured():
            logger.warning(
                "Azure OpenAI fallback is not configured "
                "(AZURE_OPENAI_ENDPOINT / AZURE_OPENAI_API_KEY); running without fallback"
            )
