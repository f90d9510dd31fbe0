"""Service wiring for the seeding API."""

import logging
from dataclasses import dataclass
from typing import Optional

from core.ai.config import ProviderConfig
from core.ai.content import ContentGenerator
from core.ai.gateway import ProviderGateway, build_gateway
from core.ai.images import ImageGenerator
from core.ai.style_selector import StyleSelector
from core.ai.telemetry import MetricsCollector, TokenUsageTracker
from core.materials.agent import MaterialSubAgent
from core.materials.matcher import MaterialMatcher
from core.seed.executions import SeedExecutionTracker
from core.seed.orchestrator import SeedOrchestrator
from core.seed.types import SeedOptions
from core.storage.blob_storage import BlobStorageService, ObjectStorage
from core.storage.config import StorageConfig
from core.store.base import DocumentStore
from core.store.memory import InMemoryDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class SeedService:
    """Everything a seed route needs, built once at startup."""

    store: DocumentStore
    orchestrator: SeedOrchestrator
    tracker: SeedExecutionTracker
    metrics: MetricsCollector
    token_tracker: TokenUsageTracker

    async def run_styles(self, execution_id: str, options: SeedOptions) -> None:
        """Background entry point for a style seeding execution."""
        options.execution_id = execution_id
        try:
            result = await self.orchestrator.seed_styles(options)
        except Exception as e:
            logger.error(f"Seed execution {execution_id} crashed: {e}")
            await self.tracker.fail(execution_id, str(e))
            return
        await self.tracker.complete(execution_id, result.to_dict())
        self.metrics.log_summary()


def build_seed_service(
    provider_config: ProviderConfig,
    storage_config: Optional[StorageConfig] = None,
    store: Optional[DocumentStore] = None,
    gateway: Optional[ProviderGateway] = None,
) -> SeedService:
    """
    Construct the seeding services.

    Args:
        provider_config: Generative provider configuration
        storage_config: Blob storage configuration; images are not uploaded when unconfigured
        store: Document store, in-memory by default
        gateway: Prebuilt gateway, mainly for tests

    Raises:
        ConfigurationError: If the primary API key is missing and no gateway is given
    """
    metrics = MetricsCollector()
    token_tracker = TokenUsageTracker()
    store = store or InMemoryDocumentStore()
    gateway = gateway or build_gateway(provider_config, metrics=metrics)

    storage: Optional[ObjectStorage] = None
    if storage_config is not None and storage_config.is_configured():
        storage = BlobStorageService(storage_config)
    else:
        logger.warning("Blob storage is not configured; generated images will be replaced by placeholders")

    content = ContentGenerator(
        gateway,
        token_tracker=token_tracker,
        text_model=provider_config.text_model,
        lite_model=provider_config.lite_model,
    )
    images = ImageGenerator(gateway, storage=storage, model=provider_config.image_model)
    selector = StyleSelector(gateway, model=provider_config.lite_model)
    matcher = MaterialMatcher(gateway, model=provider_config.lite_model)
    material_agent = MaterialSubAgent(store, matcher, image_generator=images)
    tracker = SeedExecutionTracker(store)

    orchestrator = SeedOrchestrator(
        store,
        content,
        image_generator=images,
        style_selector=selector,
        material_agent=material_agent,
        storage=storage,
        tracker=tracker,
    )
    return SeedService(
        store=store,
        orchestrator=orchestrator,
        tracker=tracker,
        metrics=metrics,
        token_tracker=token_tracker,
    )
