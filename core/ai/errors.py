"""Exception hierarchy for generative provider calls."""

from typing import Optional


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, error_type: str = "unknown", retryable: bool = True):
        super().__init__(message)
        self.error_type = error_type
        self.retryable = retryable


class RateLimitError(ProviderError):
    """Rate limit or quota exceeded."""

    def __init__(self, message: str):
        super().__init__(message, error_type="rate_limit", retryable=True)


class ProviderTimeoutError(ProviderError):
    """Request timed out."""

    def __init__(self, message: str):
        super().__init__(message, error_type="timeout", retryable=True)


class ContentPolicyError(ProviderError):
    """Prompt or output blocked by the provider's safety filters."""

    def __init__(self, message: str):
        super().__init__(message, error_type="content_policy", retryable=False)


class SchemaValidationError(ProviderError):
    """Response could not be parsed into the requested schema."""

    def __init__(self, message: str):
        super().__init__(message, error_type="schema_validation", retryable=True)


class ConfigurationError(ProviderError):
    """Required provider configuration is missing."""

    def __init__(self, message: str):
        super().__init__(message, error_type="configuration", retryable=False)


class AllAttemptsFailed(ProviderError):
    """Primary retries and fallback were all exhausted.

    ``last_error`` is the final error raised by the primary backend; the
    fallback's error (if any) is kept on ``fallback_error`` for logging only.
    """

    def __init__(
        self,
        last_error: Exception,
        attempts: int,
        fallback_error: Optional[Exception] = None,
    ):
        super().__init__(
            f"All {attempts} attempts failed: {last_error}",
            error_type=getattr(last_error, "error_type", "unknown"),
            retryable=False,
        )
        self.last_error = last_error
        self.attempts = attempts
        self.fallback_error = fallback_error


def classify_provider_error(error: Exception) -> ProviderError:
    """
    Map a raw SDK exception onto the provider error hierarchy.

    Args:
        error: Exception raised by a backend client

    Returns:
        ProviderError subclass describing the failure
    """
    if isinstance(error, ProviderError):
        return error

    error_str = str(error).lower()

    if "safety" in error_str or "content_policy" in error_str or "blocked" in error_str:
        return ContentPolicyError(f"Content policy violation: {error}")
    if "rate" in error_str or "quota" in error_str or "429" in error_str or "resource_exhausted" in error_str:
        return RateLimitError(f"Rate limit exceeded: {error}")
    if "timeout" in error_str or "timed out" in error_str or "deadline" in error_str:
        return ProviderTimeoutError(f"Request timed out: {error}")
    return ProviderError(str(error), error_type="unknown", retryable=True)
