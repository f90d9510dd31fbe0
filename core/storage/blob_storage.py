"""Azure Blob Storage upload service for generated images."""

import asyncio
import logging
import re
import time
import uuid
from typing import Optional

from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

from .config import StorageConfig

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("category", "subcategory", "style", "approach", "room_type", "room", "material", "texture")


class StorageError(Exception):
    """Upload to object storage failed."""


def _unique_suffix() -> str:
    return uuid.uuid4().hex[:8]


def generate_storage_key(
    entity_type: str,
    entity_id: str,
    filename: str,
    room_type: Optional[str] = None,
    project_id: Optional[str] = None,
    room_id: Optional[str] = None,
    organization_id: Optional[str] = None,
) -> str:
    """
    Build the blob key for an entity image.

    Args:
        entity_type: One of ENTITY_TYPES
        entity_id: Owning entity id (may be empty for style/approach drafts)
        filename: Original filename, sanitized into the key
        room_type: Room type slug for style room images
        project_id: Project id, required for ``room``
        room_id: Room id, required for ``room``
        organization_id: Owning organization for ``material`` and ``texture``

    Returns:
        Key of the form ``{prefix}/{timestamp}-{random}-{filename}``

    Raises:
        ValueError: Unknown entity type or a required id is missing
    """
    timestamp = int(time.time() * 1000)
    sanitized = re.sub(r"[^a-zA-Z0-9.-]", "_", filename)
    unique_name = f"{timestamp}-{_unique_suffix()}-{sanitized}"

    if entity_type == "category":
        if not entity_id:
            raise ValueError("Category ID is required")
        return f"categories/{entity_id}/{unique_name}"

    if entity_type == "subcategory":
        if not entity_id:
            raise ValueError("SubCategory ID is required")
        return f"sub-categories/{entity_id}/{unique_name}"

    if entity_type == "style":
        style_id = entity_id or f"temp-{timestamp}-{_unique_suffix()}"
        if room_type:
            room_dir = re.sub(r"[^a-zA-Z0-9]", "_", room_type).lower()
            return f"styles/{style_id}/rooms/{room_dir}/{unique_name}"
        return f"styles/{style_id}/{unique_name}"

    if entity_type == "approach":
        approach_id = entity_id or f"temp-{timestamp}-{_unique_suffix()}"
        return f"approaches/{approach_id}/{unique_name}"

    if entity_type == "room_type":
        if not entity_id:
            raise ValueError("Room type ID is required")
        return f"room-types/{entity_id}/{unique_name}"

    if entity_type == "room":
        if not project_id or not room_id:
            raise ValueError("Project ID and Room ID are required for room images")
        return f"projects/{project_id}/rooms/{room_id}/{unique_name}"

    if entity_type == "material":
        if not organization_id:
            raise ValueError("Organization ID is required for material images")
        return f"materials/{organization_id}/{entity_id}/{unique_name}"

    if entity_type == "texture":
        if not organization_id:
            raise ValueError("Organization ID is required for texture images")
        return f"textures/{organization_id}/{entity_id}/{unique_name}"

    raise ValueError(f"Unknown entity type: {entity_type}")


class ObjectStorage:
    """Upload contract used by the generators and the orchestrator."""

    async def upload(
        self,
        data: bytes,
        mime_type: str,
        entity_type: str,
        entity_id: str,
        filename: str,
        room_type: Optional[str] = None,
        project_id: Optional[str] = None,
        room_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> str:
        """Upload bytes and return a public http(s) URL."""
        raise NotImplementedError


class BlobStorageService(ObjectStorage):
    """Azure Blob Storage implementation of ``ObjectStorage``."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self._client: Optional[BlobServiceClient] = None
        self._container: Optional[ContainerClient] = None

    @property
    def client(self) -> BlobServiceClient:
        """Get or create Blob Storage client."""
        if self._client is None:
            if not self.config.is_configured():
                raise ValueError(
                    "Azure Blob Storage is not configured. "
                    "Set AZURE_STORAGE_CONNECTION_STRING or account name/key."
                )

            if self.config.connection_string:
                self._client = BlobServiceClient.from_connection_string(self.config.connection_string)
            else:
                account_url = f"https://{self.config.account_name}.blob.core.windows.net"
                self._client = BlobServiceClient(
                    account_url=account_url,
                    credential=self.config.account_key,
                )

        return self._client

    @property
    def container(self) -> ContainerClient:
        """Get the images container, creating it if necessary."""
        if self._container is None:
            container = self.client.get_container_client(self.config.images_container)
            if not container.exists():
                container.create_container(public_access="blob")
                logger.info(f"Created container: {self.config.images_container}")
            self._container = container
        return self._container

    def public_url(self, blob_name: str, default_url: str) -> str:
        if self.config.public_url_base:
            return f"{self.config.public_url_base.rstrip('/')}/{blob_name}"
        return default_url

    async def upload(
        self,
        data: bytes,
        mime_type: str,
        entity_type: str,
        entity_id: str,
        filename: str,
        room_type: Optional[str] = None,
        project_id: Optional[str] = None,
        room_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> str:
        """
        Upload an image and return its public URL.

        Raises:
            ValueError: Invalid entity type or missing ids
            StorageError: The upload itself failed
        """
        blob_name = generate_storage_key(
            entity_type,
            entity_id,
            filename,
            room_type=room_type,
            project_id=project_id,
            room_id=room_id,
            organization_id=organization_id,
        )

        try:
            content_settings = ContentSettings(
                content_type=mime_type,
                cache_control=self.config.cache_control,
            )
            metadata = {"entity_type": entity_type, "entity_id": entity_id or ""}

            # Resolving the container may create it; keep that off the event loop
            loop = asyncio.get_event_loop()
            blob_url = await loop.run_in_executor(
                None,
                lambda: self._upload_blob(blob_name, data, content_settings, metadata),
            )
        except Exception as e:
            logger.error(f"Upload failed for {blob_name}: {e}")
            raise StorageError(f"Upload failed for {blob_name}: {e}") from e

        logger.info(f"Uploaded blob: {blob_name} ({len(data)} bytes)")
        return self.public_url(blob_name, blob_url)

    def _upload_blob(self, blob_name: str, data: bytes, content_settings: ContentSettings, metadata: dict) -> str:
        blob_client = self.container.get_blob_client(blob_name)
        blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=content_settings,
            metadata=metadata,
        )
        return blob_client.url
