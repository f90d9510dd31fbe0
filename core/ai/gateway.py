"""Provider gateway: uniform generation contract with retry and fallback.

Example usage:
    primary, fallback = build_backends(ProviderConfig.from_env())
    gateway = ProviderGateway(primary, fallback, metrics=MetricsCollector())

    result = await gateway.generate_structured(
        prompt,
        DetailedContent,
        GenerationOptions(model=GEMINI_FLASH, temperature=0.7),
    )
    content = result.object
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from core.resilience.rate_limit import Clock, MonotonicClock, NullRateLimiter, RateLimiter, TokenBucketRateLimiter
from core.resilience.retry import RetryPolicy

from .backends import BackendRequest, GeneratedImage, GenerationBackend, ReferenceImage, build_backends
from .config import ProviderConfig
from .errors import AllAttemptsFailed, SchemaValidationError
from .models import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL
from .telemetry import MetricsCollector, TokenUsage, generate_operation_id

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Flat per-image price for image-capable models
IMAGE_COST_USD = 0.002

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass
class GenerationOptions:
    """Per-call generation options."""

    model: str = DEFAULT_TEXT_MODEL
    temperature: float = 0.7
    max_tokens: int = 8192
    retries: int = 3
    retry_delay_ms: int = 1000
    use_fallback: bool = True
    on_retry: Optional[Callable[[int, Exception], None]] = None
    on_token_usage: Optional[Callable[[TokenUsage], None]] = None
    function_id: str = "generate"


@dataclass
class StructuredResult(Generic[T]):
    """Validated structured output."""

    object: T
    usage: TokenUsage
    backend: str


@dataclass
class TextResult:
    """Plain text output."""

    text: str
    usage: TokenUsage
    backend: str


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1) if match else stripped


def _structured_prompt(prompt: str, schema: Type[BaseModel]) -> str:
    schema_json = json.dumps(schema.model_json_schema(), ensure_ascii=False)
    return (
        f"{prompt}\n\n"
        "Respond with a single JSON object that validates against this JSON Schema. "
        "Do not wrap it in markdown.\n"
        f"{schema_json}"
    )


class ProviderGateway:
    """Routes generation calls to a primary backend with retry, then a fallback."""

    def __init__(
        self,
        primary: GenerationBackend,
        fallback: Optional[GenerationBackend] = None,
        metrics: Optional[MetricsCollector] = None,
        rate_limiter: Optional[RateLimiter] = None,
        clock: Optional[Clock] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.metrics = metrics
        self.rate_limiter = rate_limiter or NullRateLimiter()
        self.clock = clock or MonotonicClock()

    @property
    def has_fallback(self) -> bool:
        return self.fallback is not None

    async def generate_structured(
        self,
        prompt: str,
        output_schema: Type[T],
        options: Optional[GenerationOptions] = None,
    ) -> StructuredResult[T]:
        """
        Generate an object validated against a pydantic schema.

        Args:
            prompt: Natural-language prompt
            output_schema: Pydantic model the response must validate against
            options: Generation options

        Returns:
            StructuredResult with the validated object and token usage

        Raises:
            AllAttemptsFailed: If the primary retries and the fallback all fail
        """
        options = options or GenerationOptions()
        request = BackendRequest(
            prompt=_structured_prompt(prompt, output_schema),
            model=options.model,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            json_output=True,
        )

        def parse(text: str) -> T:
            try:
                return output_schema.model_validate_json(_strip_code_fence(text))
            except (ValidationError, ValueError) as e:
                raise SchemaValidationError(
                    f"Response does not match {output_schema.__name__}: {e}"
                ) from e

        value, usage, backend = await self._generate(request, parse, options)
        return StructuredResult(object=value, usage=usage, backend=backend)

    async def generate_text(
        self,
        prompt: str,
        options: Optional[GenerationOptions] = None,
    ) -> TextResult:
        """Generate free-form text with the same retry and fallback rules."""
        options = options or GenerationOptions()
        request = BackendRequest(
            prompt=prompt,
            model=options.model,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
        )
        value, usage, backend = await self._generate(request, lambda text: text, options)
        return TextResult(text=value, usage=usage, backend=backend)

    async def _generate(
        self,
        request: BackendRequest,
        parse: Callable[[str], Any],
        options: GenerationOptions,
    ) -> tuple:
        operation_id = generate_operation_id()
        if self.metrics:
            self.metrics.start_operation(operation_id, options.function_id, options.model)

        attempts = 0

        def on_retry(attempt: int, error: Exception) -> None:
            nonlocal attempts
            attempts = attempt
            if options.on_retry is not None:
                options.on_retry(attempt, error)

        async def call_primary():
            await self.rate_limiter.acquire()
            response = await self.primary.generate(request)
            return parse(response.text), response

        policy = RetryPolicy(
            max_attempts=options.retries,
            base_delay=options.retry_delay_ms / 1000,
            clock=self.clock,
        )

        try:
            value, response = await policy.run(call_primary, on_retry=on_retry, label=options.function_id)
            backend = self.primary.name
        except Exception as primary_error:
            if not (options.use_fallback and self.fallback is not None):
                self._record_failure(operation_id, primary_error, attempts)
                raise AllAttemptsFailed(primary_error, attempts) from primary_error

            logger.warning(
                f"Primary backend exhausted for {options.function_id} after {attempts} attempts, "
                f"trying fallback {self.fallback.name}"
            )
            try:
                await self.rate_limiter.acquire()
                response = await self.fallback.generate(request)
                value = parse(response.text)
                backend = self.fallback.name
            except Exception as fallback_error:
                logger.error(f"Fallback backend failed for {options.function_id}: {fallback_error}")
                self._record_failure(operation_id, primary_error, attempts)
                raise AllAttemptsFailed(primary_error, attempts, fallback_error) from primary_error

        if self.metrics:
            self.metrics.complete_operation(operation_id, response.usage, response.finish_reason)
        if options.on_token_usage is not None:
            options.on_token_usage(response.usage)

        return value, response.usage, backend

    def _record_failure(self, operation_id: str, error: Exception, attempts: int) -> None:
        if self.metrics:
            self.metrics.fail_operation(operation_id, str(error), retry_attempts=attempts)

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "4:3",
        reference_images: Optional[List[ReferenceImage]] = None,
        model: str = DEFAULT_IMAGE_MODEL,
        temperature: float = 0.9,
        function_id: str = "generate-image",
    ) -> GeneratedImage:
        """
        Generate a single image on the primary backend.

        One attempt only; callers wrap this in their own retry policy.
        """
        operation_id = generate_operation_id()
        if self.metrics:
            self.metrics.start_operation(operation_id, function_id, model)

        try:
            await self.rate_limiter.acquire()
            image = await self.primary.generate_image(
                prompt=prompt,
                model=model,
                aspect_ratio=aspect_ratio,
                reference_images=reference_images,
                temperature=temperature,
            )
        except Exception as e:
            self._record_failure(operation_id, e, 1)
            raise

        if self.metrics:
            self.metrics.complete_operation(operation_id, TokenUsage(), "image")
            self.metrics.set_cost(operation_id, IMAGE_COST_USD)
        return image


def build_gateway(
    config: ProviderConfig,
    metrics: Optional[MetricsCollector] = None,
    rate_limiter: Optional[RateLimiter] = None,
    clock: Optional[Clock] = None,
) -> ProviderGateway:
    """
    Construct the gateway once at startup.

    Args:
        config: Provider configuration
        metrics: Collector shared by every call site
        rate_limiter: Shared limiter; defaults to a token bucket from config
        clock: Time source for retries and throttling

    Raises:
        ConfigurationError: If the primary API key is missing
    """
    primary, fallback = build_backends(config)
    clock = clock or MonotonicClock()
    if rate_limiter is None:
        rate_limiter = TokenBucketRateLimiter(
            rate=config.requests_per_minute / 60.0,
            capacity=config.burst,
            clock=clock,
        )
    return ProviderGateway(primary, fallback, metrics=metrics, rate_limiter=rate_limiter, clock=clock)
