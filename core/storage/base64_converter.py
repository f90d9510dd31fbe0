"""Convert inline base64 images to durable storage URLs before persistence.

Documents in the store have a hard size ceiling, so a ``data:`` URL must never
be written to a persisted aggregate. Anything that cannot be uploaded is
replaced with a placeholder URL.

Example usage:
    items, result = await convert_gallery_items(
        gallery, storage, entity_type="style", entity_id=style_id,
    )
    gallery = filter_gallery_items_for_storage(items)
"""

import base64
import binascii
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from core.resilience.rate_limit import Clock
from core.resilience.retry import RetryPolicy

from .blob_storage import ObjectStorage

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(image/\w+);base64,(.+)$", re.DOTALL)

PLACEHOLDER_BASE = "https://via.placeholder.com/1200x800/f7f7ed/333333"


@dataclass
class ConversionResult:
    """Summary of a batch conversion."""

    success: bool = True
    original_count: int = 0
    converted_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    urls: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def is_base64_data_url(url: Optional[str]) -> bool:
    return isinstance(url, str) and url.startswith("data:image/")


def is_http_url(url: Optional[str]) -> bool:
    return isinstance(url, str) and (url.startswith("http://") or url.startswith("https://"))


def upload_failed_placeholder(index: int) -> str:
    """Placeholder substituted for an image that could not be uploaded (1-based index)."""
    return f"{PLACEHOLDER_BASE}?text=Upload+Failed+{index}"


def parse_data_url(data_url: str) -> Optional[Tuple[str, bytes]]:
    """Split a data URL into (mime type, decoded bytes), or None if malformed."""
    match = DATA_URL_PATTERN.match(data_url)
    if not match:
        return None
    try:
        return match.group(1), base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError):
        return None


def _generate_filename(prefix: str, index: int, mime_type: str) -> str:
    extension = mime_type.split("/")[1] if "/" in mime_type else "png"
    sanitized = re.sub(r"-+", "-", re.sub(r"[^a-z0-9]", "-", prefix.lower()))
    return f"{sanitized}-{index + 1}-{int(time.time() * 1000)}.{extension}"


def analyze_urls(urls: List[str]) -> dict:
    """Count URL kinds and estimate the decoded size of inline images."""
    stats = {"total": len(urls), "http": 0, "base64": 0, "other": 0, "base64_size_estimate": 0}
    for url in urls:
        if is_http_url(url):
            stats["http"] += 1
        elif is_base64_data_url(url):
            stats["base64"] += 1
            data_length = len(url) - (url.index(",") + 1)
            stats["base64_size_estimate"] += -(-data_length * 3 // 4)
        else:
            stats["other"] += 1
    return stats


async def convert_base64_to_storage_url(
    data_url: str,
    storage: ObjectStorage,
    entity_type: str,
    entity_id: str,
    filename: str,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    clock: Optional[Clock] = None,
    **upload_options,
) -> str:
    """
    Upload one data URL with retry.

    Raises:
        ValueError: The data URL is malformed
        Exception: The last upload error once retries are exhausted
    """
    parsed = parse_data_url(data_url)
    if parsed is None:
        raise ValueError("Invalid data URL format")

    mime_type, data = parsed
    policy = RetryPolicy(max_attempts=max_retries, base_delay=retry_delay, clock=clock)
    return await policy.run(
        lambda: storage.upload(data, mime_type, entity_type, entity_id, filename, **upload_options),
        label=f"upload {filename}",
    )


async def convert_base64_to_storage_urls(
    urls: List[str],
    storage: ObjectStorage,
    entity_type: str,
    entity_id: str,
    filename_prefix: str = "image",
    max_retries: int = 3,
    retry_delay: float = 1.0,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
    clock: Optional[Clock] = None,
    **upload_options,
) -> ConversionResult:
    """
    Convert a list of URLs, uploading every inline image.

    HTTP URLs pass through; uploads that fail become placeholders. Empty and
    unrecognised entries are skipped. The output never contains a data URL.
    """
    result = ConversionResult(original_count=len(urls))
    total = len(urls)

    for i, url in enumerate(urls):
        if on_progress:
            on_progress(i + 1, total, f"Processing URL {i + 1}/{total}")

        if not url:
            result.skipped_count += 1
            continue

        if is_http_url(url):
            result.urls.append(url)
            result.skipped_count += 1
            continue

        if is_base64_data_url(url):
            filename = _generate_filename(filename_prefix, i, url[5:url.find(";")] if ";" in url else "image/png")
            try:
                stored = await convert_base64_to_storage_url(
                    url,
                    storage,
                    entity_type,
                    entity_id,
                    filename,
                    max_retries=max_retries,
                    retry_delay=retry_delay,
                    clock=clock,
                    **upload_options,
                )
                result.urls.append(stored)
                result.converted_count += 1
            except Exception as e:
                logger.error(f"Failed to upload image {i + 1}: {e}")
                result.urls.append(upload_failed_placeholder(i + 1))
                result.failed_count += 1
                result.errors.append(f"Image {i + 1}: {e}")
            continue

        logger.warning(f"Unknown URL format at index {i}: {url[:50]}")
        result.skipped_count += 1

    result.success = result.failed_count == 0
    if result.converted_count:
        logger.info(f"Converted {result.converted_count}/{total} base64 URLs to storage")
    if result.failed_count:
        logger.warning(f"Failed to convert {result.failed_count} URLs")
    return result


async def convert_gallery_items(
    items: List[dict],
    storage: ObjectStorage,
    entity_type: str,
    entity_id: str,
    filename_prefix: str = "image",
    max_retries: int = 3,
    retry_delay: float = 1.0,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
    clock: Optional[Clock] = None,
    **upload_options,
) -> Tuple[List[dict], ConversionResult]:
    """
    Convert the ``url`` of every gallery item.

    Items whose URL could not be converted keep their original entry; run
    ``filter_gallery_items_for_storage`` afterwards before persisting.
    """
    result = ConversionResult(original_count=len(items))
    converted: List[dict] = []

    for i, item in enumerate(items):
        single = await convert_base64_to_storage_urls(
            [item.get("url", "")],
            storage,
            entity_type,
            entity_id,
            filename_prefix=f"{filename_prefix}-{i + 1}",
            max_retries=max_retries,
            retry_delay=retry_delay,
            clock=clock,
            **upload_options,
        )
        if on_progress:
            on_progress(i + 1, len(items), f"Converted gallery item {i + 1}/{len(items)}")

        result.converted_count += single.converted_count
        result.failed_count += single.failed_count
        result.skipped_count += single.skipped_count
        result.errors.extend(f"Item {i + 1}: {error}" for error in single.errors)

        if single.urls:
            if single.failed_count:
                url = upload_failed_placeholder(i + 1)
            else:
                url = single.urls[0]
            result.urls.append(url)
            converted.append({**item, "url": url})
        else:
            converted.append(dict(item))

    result.success = result.failed_count == 0
    return converted, result


def filter_gallery_items_for_storage(items: List[dict]) -> List[dict]:
    """Keep only items whose URL is http(s)."""
    kept = [item for item in items if is_http_url(item.get("url"))]
    dropped = len(items) - len(kept)
    if dropped:
        logger.warning(f"Dropped {dropped} gallery items without a storage URL")
    return kept


def validate_no_base64_urls(urls: List[str], context: str = "") -> None:
    """Raise if any inline image URL is present."""
    inline = [url for url in urls if is_base64_data_url(url)]
    if inline:
        raise ValueError(f"Found {len(inline)} base64 URLs that should have been converted. {context}")
