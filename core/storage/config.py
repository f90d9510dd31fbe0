"""Object storage configuration management."""

import os
from dataclasses import dataclass


@dataclass
class StorageConfig:
    """Azure Blob Storage configuration."""

    account_name: str = ""
    account_key: str = ""
    connection_string: str = ""

    # Container holding all library images
    images_container: str = "design-library"

    # Optional CDN or custom domain in front of the container
    public_url_base: str = ""

    cache_control: str = "public, max-age=31536000"

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Load configuration from environment variables."""
        return cls(
            account_name=os.getenv("AZURE_STORAGE_ACCOUNT_NAME", ""),
            account_key=os.getenv("AZURE_STORAGE_ACCOUNT_KEY", ""),
            connection_string=os.getenv("AZURE_STORAGE_CONNECTION_STRING", ""),
            images_container=os.getenv("AZURE_STORAGE_CONTAINER", "design-library"),
            public_url_base=os.getenv("STORAGE_PUBLIC_URL", ""),
        )

    def is_configured(self) -> bool:
        """Check if Azure Blob Storage is properly configured."""
        return bool(self.connection_string or (self.account_name and self.account_key))
