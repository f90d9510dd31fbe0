"""Health check routes."""

from fastapi import APIRouter, Request

from core.ai.config import ProviderConfig
from core.storage.config import StorageConfig

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness plus whether the seed service has been built."""
    service = getattr(request.app.state, "seed_service", None)
    return {
        "status": "healthy",
        "seed_service": service is not None,
    }


@router.get("/health/providers")
async def provider_status():
    """Which generation backends and storage are configured. Never returns secrets."""
    provider_config = ProviderConfig.from_env()
    return {
        "primary_configured": provider_config.is_primary_configured(),
        "fallback_configured": provider_config.is_fallback_configured(),
        "storage_configured": StorageConfig.from_env().is_configured(),
        "models": {
            "text": provider_config.text_model,
            "lite": provider_config.lite_model,
            "image": provider_config.image_model,
        },
    }
