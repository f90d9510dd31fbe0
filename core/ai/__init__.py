"""Generative AI layer for the design library seeder.

This module provides the provider gateway with retry and fallback, operation
telemetry, structured bilingual content generation, image generation and
approach/color selection.

Usage:
    from core.ai import ProviderConfig, ProviderGateway, ContentGenerator, build_backends

    config = ProviderConfig.from_env()
    primary, fallback = build_backends(config)
    gateway = ProviderGateway(primary, fallback, metrics=MetricsCollector())

    content = await ContentGenerator(gateway).generate_category_content(
        {"he": "קלאסי", "en": "Classic"}
    )
"""

from core.resilience.rate_limit import MinIntervalRateLimiter, MonotonicClock, NullRateLimiter, TokenBucketRateLimiter
from core.resilience.retry import RetryPolicy

from .backends import AzureOpenAIBackend, GeminiBackend, GenerationBackend, build_backends
from .config import ProviderConfig
from .content import BatchItemResult, ContentGenerator, RoomProfile, StyleContext, batch_generate
from .errors import (
    AllAttemptsFailed,
    ConfigurationError,
    ContentPolicyError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    SchemaValidationError,
)
from .gateway import GenerationOptions, ProviderGateway, StructuredResult, TextResult, build_gateway
from .images import GOLDEN_SCENES, ImageGenerationOptions, ImageGenerator
from .style_selector import StyleSelector, explain_selection, get_default_selection
from .telemetry import MetricsCollector, TokenUsage, TokenUsageTracker

__all__ = [
    # Configuration
    "ProviderConfig",
    # Backends
    "GenerationBackend",
    "GeminiBackend",
    "AzureOpenAIBackend",
    "build_backends",
    "build_gateway",
    # Gateway
    "ProviderGateway",
    "GenerationOptions",
    "StructuredResult",
    "TextResult",
    # Resilience
    "RetryPolicy",
    "TokenBucketRateLimiter",
    "MinIntervalRateLimiter",
    "NullRateLimiter",
    "MonotonicClock",
    # Errors
    "ProviderError",
    "RateLimitError",
    "ProviderTimeoutError",
    "ContentPolicyError",
    "SchemaValidationError",
    "ConfigurationError",
    "AllAttemptsFailed",
    # Telemetry
    "MetricsCollector",
    "TokenUsage",
    "TokenUsageTracker",
    # Generators
    "ContentGenerator",
    "StyleContext",
    "RoomProfile",
    "BatchItemResult",
    "batch_generate",
    "ImageGenerator",
    "ImageGenerationOptions",
    "GOLDEN_SCENES",
    # Selection
    "StyleSelector",
    "get_default_selection",
    "explain_selection",
]
