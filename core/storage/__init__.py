"""Object storage for generated library images."""

from .base64_converter import (
    ConversionResult,
    convert_base64_to_storage_urls,
    convert_gallery_items,
    filter_gallery_items_for_storage,
    validate_no_base64_urls,
)
from .blob_storage import BlobStorageService, ObjectStorage, StorageError, generate_storage_key
from .config import StorageConfig

__all__ = [
    "StorageConfig",
    "ObjectStorage",
    "BlobStorageService",
    "StorageError",
    "generate_storage_key",
    "ConversionResult",
    "convert_base64_to_storage_urls",
    "convert_gallery_items",
    "filter_gallery_items_for_storage",
    "validate_no_base64_urls",
]
