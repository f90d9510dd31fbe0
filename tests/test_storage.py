"""Tests for blob storage keys, configuration and uploads."""

import re
import threading
from unittest.mock import MagicMock

import pytest

from core.storage.blob_storage import BlobStorageService, StorageError, generate_storage_key
from core.storage.config import StorageConfig

UNIQUE = r"\d+-[0-9a-f]{8}-"


class TestStorageKeys:
    """Test the blob key layout per entity type."""

    @pytest.mark.parametrize("entity_type,prefix", [
        ("category", "categories/cat-1/"),
        ("subcategory", "sub-categories/cat-1/"),
        ("approach", "approaches/cat-1/"),
        ("room_type", "room-types/cat-1/"),
        ("style", "styles/cat-1/"),
    ])
    def test_entity_prefixes(self, entity_type, prefix):
        key = generate_storage_key(entity_type, "cat-1", "image 1.png")
        assert re.fullmatch(re.escape(prefix) + UNIQUE + r"image_1\.png", key)

    def test_style_room_images(self):
        key = generate_storage_key("style", "style-1", "view.png", room_type="Living Room")
        assert key.startswith("styles/style-1/rooms/living_room/")

    def test_style_without_id_gets_temp_prefix(self):
        key = generate_storage_key("style", "", "view.png")
        assert key.startswith("styles/temp-")

    def test_material_requires_organization(self):
        with pytest.raises(ValueError, match="Organization ID"):
            generate_storage_key("material", "mat-1", "swatch.png")

        key = generate_storage_key("material", "mat-1", "swatch.png", organization_id="global")
        assert key.startswith("materials/global/mat-1/")

    def test_texture_requires_organization(self):
        with pytest.raises(ValueError, match="Organization ID"):
            generate_storage_key("texture", "tex-1", "brass.png")

        key = generate_storage_key("texture", "tex-1", "brass.png", organization_id="global")
        assert key.startswith("textures/global/tex-1/")

    def test_project_rooms(self):
        key = generate_storage_key("room", "", "r.png", project_id="p1", room_id="r1")
        assert key.startswith("projects/p1/rooms/r1/")
        with pytest.raises(ValueError):
            generate_storage_key("room", "", "r.png", project_id="p1")

    @pytest.mark.parametrize("entity_type", ["category", "subcategory", "room_type"])
    def test_required_ids(self, entity_type):
        with pytest.raises(ValueError):
            generate_storage_key(entity_type, "", "x.png")

    def test_unknown_entity_type(self):
        with pytest.raises(ValueError, match="Unknown entity type"):
            generate_storage_key("planet", "p", "x.png")


class TestStorageConfig:
    def test_unconfigured_by_default(self):
        assert StorageConfig().is_configured() is False

    def test_connection_string_or_account_key(self):
        assert StorageConfig(connection_string="UseDevelopmentStorage=true").is_configured()
        assert StorageConfig(account_name="acct", account_key="key").is_configured()
        assert not StorageConfig(account_name="acct").is_configured()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AZURE_STORAGE_ACCOUNT_NAME", "acct")
        monkeypatch.setenv("AZURE_STORAGE_ACCOUNT_KEY", "key")
        monkeypatch.setenv("AZURE_STORAGE_CONTAINER", "library")
        monkeypatch.setenv("STORAGE_PUBLIC_URL", "https://cdn.example.com/")

        config = StorageConfig.from_env()

        assert config.is_configured()
        assert config.images_container == "library"
        assert config.public_url_base == "https://cdn.example.com/"


class TestBlobStorageService:
    """Test uploads against a mocked container client."""

    def make_service(self, **config) -> BlobStorageService:
        service = BlobStorageService(StorageConfig(connection_string="UseDevelopmentStorage=true", **config))
        blob_client = MagicMock()
        blob_client.url = "https://acct.blob.core.windows.net/design-library/blob.png"
        service._container = MagicMock()
        service._container.get_blob_client.return_value = blob_client
        return service

    @pytest.mark.asyncio
    async def test_upload_returns_blob_url(self):
        service = self.make_service()

        url = await service.upload(b"png", "image/png", "category", "cat-1", "a.png")

        assert url == "https://acct.blob.core.windows.net/design-library/blob.png"
        blob_client = service._container.get_blob_client.return_value
        _, kwargs = blob_client.upload_blob.call_args
        assert kwargs["content_settings"].content_type == "image/png"
        assert kwargs["metadata"] == {"entity_type": "category", "entity_id": "cat-1"}

    @pytest.mark.asyncio
    async def test_public_url_base(self):
        service = self.make_service(public_url_base="https://cdn.example.com/")

        url = await service.upload(b"png", "image/png", "category", "cat-1", "a.png")

        blob_name = service._container.get_blob_client.call_args[0][0]
        assert url == f"https://cdn.example.com/{blob_name}"

    @pytest.mark.asyncio
    async def test_upload_failure_raises_storage_error(self):
        service = self.make_service()
        service._container.get_blob_client.return_value.upload_blob.side_effect = RuntimeError("network")

        with pytest.raises(StorageError, match="network"):
            await service.upload(b"png", "image/png", "category", "cat-1", "a.png")

    @pytest.mark.asyncio
    async def test_invalid_entity_raises_before_upload(self):
        service = self.make_service()

        with pytest.raises(ValueError):
            await service.upload(b"png", "image/png", "category", "", "a.png")

        service._container.get_blob_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_container_created_off_event_loop(self):
        service = BlobStorageService(StorageConfig(connection_string="UseDevelopmentStorage=true"))
        container = MagicMock()
        container.get_blob_client.return_value.url = "https://acct.blob.core.windows.net/design-library/a.png"
        threads = []

        def exists():
            threads.append(threading.get_ident())
            return False

        container.exists.side_effect = exists
        service._client = MagicMock()
        service._client.get_container_client.return_value = container

        await service.upload(b"png", "image/png", "category", "cat-1", "a.png")
        await service.upload(b"png", "image/png", "category", "cat-1", "b.png")

        container.create_container.assert_called_once_with(public_access="blob")
        assert threads and threads[0] != threading.get_ident()
        assert container.get_blob_client.return_value.upload_blob.call_count == 2

    def test_unconfigured_client_raises(self):
        service = BlobStorageService(StorageConfig())
        with pytest.raises(ValueError, match="not configured"):
            service.client
