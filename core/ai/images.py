"""Image generation for library entities, styles, rooms and golden scenes.

Images are generated one per gateway call. Sequential calls are spaced by a
shared interval limiter; the golden-scene gallery instead runs many calls
concurrently under a semaphore. Inline results are uploaded to object storage
before being handed to anything that persists them.

Example usage:
    generator = ImageGenerator(gateway, storage=BlobStorageService(StorageConfig.from_env()))
    urls = await generator.generate_and_upload_images(ImageGenerationOptions(
        entity_type="category",
        entity_name={"he": "קלאסי", "en": "Classic"},
        entity_id=category_id,
        number_of_images=3,
    ))
"""

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from urllib.parse import quote

import httpx

from core.resilience.rate_limit import Clock, MinIntervalRateLimiter, MonotonicClock
from core.resilience.retry import RetryPolicy
from core.storage.base64_converter import PLACEHOLDER_BASE, parse_data_url, upload_failed_placeholder
from core.storage.blob_storage import ObjectStorage

from .backends import ReferenceImage
from .gateway import IMAGE_COST_USD, ProviderGateway
from .models import GEMINI_FLASH_IMAGE

logger = logging.getLogger(__name__)

IMAGE_TEMPERATURE = 0.9
GOLDEN_SCENE_ASPECT_RATIOS = ["16:9", "4:3", "1:1", "3:4", "9:16"]
ROOM_ORIENTATIONS = ["main", "opposite", "left", "right"]


@dataclass
class GoldenScene:
    name: str
    prompt_suffix: str
    complement: Optional[str] = None


GOLDEN_SCENES: List[GoldenScene] = [
    GoldenScene("entry", "Exterior entrance, wide angle, welcoming atmosphere", "style-dependent"),
    GoldenScene("living", "Living room, cozy, focal point fireplace or seating", "style-dependent"),
    GoldenScene("dining", "Dining area, elegant table setting, lighting feature", "style-dependent"),
    GoldenScene("kitchen", "Kitchen, functional and stylish, island or counter", "style-dependent"),
    GoldenScene("master_bed", "Master bedroom, serene, plush bedding, relaxing", "style-dependent"),
    GoldenScene("bath", "Bathroom, spa-like, clean lines, material focus", "style-dependent"),
]

# Storage entity type for each image entity type
STORAGE_ENTITY_TYPES = {
    "category": "category",
    "subcategory": "subcategory",
    "approach": "approach",
    "room_type": "room_type",
    "style": "style",
    "scene": "style",
    "style_room": "style",
    "material": "material",
    "texture": "texture",
}


@dataclass
class ImageGenerationOptions:
    """What to generate and where to store it."""

    entity_type: str
    entity_name: dict
    number_of_images: int = 3
    description: Optional[dict] = None
    period: Optional[str] = None
    # sub_category_name, approach_name, color_name, color_hex
    style_context: Optional[dict] = None
    # room_type_name, style_name, color_hex
    room_context: Optional[dict] = None
    # scene_name, prompt_suffix, complementary_color
    scene_context: Optional[dict] = None
    variation_type: Optional[str] = None
    # characteristics, visual_elements, material_guidance, color_guidance
    visual_context: Optional[dict] = None
    reference_images: List[str] = field(default_factory=list)
    aspect_ratio: str = "4:3"
    price_level: str = "REGULAR"
    entity_id: str = ""
    organization_id: Optional[str] = None
    # Surface finish for material and texture images, e.g. "brushed"
    finish: Optional[str] = None


@dataclass
class ImageGenerationResult:
    images: List[str]
    metrics: dict = field(default_factory=dict)


def generation_placeholder(name: str, index: int) -> str:
    """Deterministic placeholder for image ``index`` (1-based) of an entity."""
    seed = random.Random(f"{name}:{index}").randint(0, 9999)
    return f"{PLACEHOLDER_BASE}?text={quote(name)}+{index}&seed={seed}"


def _bullets(items: Optional[List[str]], limit: int) -> str:
    return "\n".join(f"- {item}" for item in (items or [])[:limit])


_NO_HUMANS = (
    "CRITICAL CONSTRAINT: DO NOT include any humans, human figures, portraits, "
    "or artwork depicting humans."
)


def _tier_keywords(price_level: str) -> str:
    if price_level == "LUXURY":
        return "Exclusive, Premium, High-end, Artisanal, Precious, Hand-crafted"
    return "Quality, Functional, Accessible, Standard, Practical, Versatile"


def build_image_prompt(options: ImageGenerationOptions) -> str:
    """Build the text prompt for one image of the given entity."""
    name = options.entity_name["en"]
    style = options.style_context or {}
    visual = options.visual_context or {}
    kind = options.entity_type

    if kind == "scene":
        scene = options.scene_context or {}
        complement = scene.get("complementary_color")
        prompt = f"""Create a stunning, professional interior design photograph of a {scene.get('scene_name')} in the "{name}" style.

Style Context:
- Sub-Category: {style.get('sub_category_name')}
- Approach: {style.get('approach_name')}
- Primary Color: {style.get('color_name')} ({style.get('color_hex')})
{f'- Accent/Complementary Color: {complement}' if complement else ''}

Scene Description: {scene.get('prompt_suffix')}

The image should be a masterpiece of interior photography with perfect lighting and composition,
showing the interplay between the primary color and the accent color.

{_NO_HUMANS}

Style: Architectural Digest, High-end, Photorealistic."""

    elif kind == "style":
        framing = {
            "detail-shot": "CLOSE-UP focus on materials, textures, and decorative details",
            "furniture-arrangement": "Focus on furniture arrangement and spatial composition",
        }.get(options.variation_type or "", "WIDE ANGLE view showing the entire room or major section")
        prompt = f"""Create a stunning, professional interior design photograph representing the "{name}" design style.

This style combines {style.get('sub_category_name')} with a {style.get('approach_name')} approach, prominently featuring {style.get('color_name')} ({style.get('color_hex')}).

Framing: {framing}

{_NO_HUMANS}

Style: Professional interior photography, architectural digest quality."""

    elif kind == "style_room":
        room = options.room_context or {}
        view = {
            "main": "Main view entering the room, showing the focal point.",
            "opposite": "Reverse angle view, looking back towards the entrance or opposite wall.",
            "left": "View towards the left wall, showing side details.",
            "right": "View towards the right wall, showing side details.",
        }.get(options.variation_type or "main", "Main view entering the room, showing the focal point.")
        tier = (
            "High-end finishes, premium materials, designer furniture, luxurious textiles"
            if options.price_level == "LUXURY"
            else "Quality finishes, practical materials, comfortable furniture, accessible elegance"
        )
        prompt = f"""Create a stunning, professional interior design photograph of a {room.get('room_type_name')} designed in the "{room.get('style_name', name)}" style.

Primary Color: {room.get('color_hex')}
Quality Tier: {options.price_level}
Keywords: {tier}
Perspective: {view}

Show a complete, functional {room.get('room_type_name')} with lighting appropriate to the room function.

{_NO_HUMANS}

Style: Professional interior photography, architectural digest quality, natural lighting."""

    elif kind == "material":
        keywords = _tier_keywords(options.price_level)
        description = (options.description or {}).get("en")
        prompt = f"""Create a stunning, professional CLOSE-UP photograph of {name} material.

Price Tier: {options.price_level}
Keywords: {keywords}

EXTREME CLOSE-UP showing surface texture, grain, and finish in detail, with lighting that highlights the surface.
{f'Material Description: {description}' if description else ''}

CRITICAL CONSTRAINT: NO humans, NO furniture, NO room context. ONLY the material surface.

Style: Professional macro photography, studio lighting, material swatch documentation."""

    elif kind == "texture":
        finish = options.finish or "natural"
        keywords = _tier_keywords(options.price_level)
        prompt = f"""Seamless tileable texture for {name} with a {finish} finish.

Price Tier: {options.price_level}
Keywords: {keywords}

Top-down orthographic view, flat even lighting, no shadows or highlights.
Uniform surface pattern that tiles perfectly in both directions, high resolution,
PBR material reference quality.

CRITICAL CONSTRAINT: NO humans, NO furniture, NO room context. ONLY the texture surface.

Style: Texture library documentation, material specification quality."""

    else:
        label = {
            "category": "design style category",
            "subcategory": "design style",
            "approach": "design approach",
            "room_type": "room type",
        }.get(kind, "design concept")
        description = (options.description or {}).get("en")
        prompt = f"""Create a stunning, professional interior design photograph that represents the "{name}" {label}.
{f'Period: {options.period}' if options.period else ''}
{f'Description: {description}' if description else ''}

The image should capture the signature architecture, furniture, materials and atmosphere, photorealistic and professionally lit.

{_NO_HUMANS}

Style: Professional interior photography, architectural digest quality."""

    if visual.get("characteristics"):
        prompt += f"\n\nKey Characteristics to showcase:\n{_bullets(visual['characteristics'], 5)}"
    if visual.get("visual_elements"):
        prompt += f"\n\nSignature Visual Elements:\n{_bullets(visual['visual_elements'], 5)}"
    if visual.get("material_guidance"):
        prompt += f"\n\nMaterials & Finishes: {visual['material_guidance']}"
    if visual.get("color_guidance"):
        prompt += f"\n\nColor Palette Guidance: {visual['color_guidance']}"
    if options.reference_images:
        prompt += "\n\nIMPORTANT: Use the provided reference images as visual inspiration for the overall aesthetic."

    return prompt


class ImageGenerator:
    """Generates images through the gateway and uploads them to storage."""

    def __init__(
        self,
        gateway: ProviderGateway,
        storage: Optional[ObjectStorage] = None,
        model: str = GEMINI_FLASH_IMAGE,
        clock: Optional[Clock] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        image_interval: float = 2.0,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        scene_concurrency: int = 20,
    ):
        self.gateway = gateway
        self.storage = storage
        self.model = model
        self.clock = clock or MonotonicClock()
        self.http_client = http_client
        self.limiter = MinIntervalRateLimiter(image_interval, clock=self.clock)
        self.retry_policy = RetryPolicy(max_attempts=max_attempts, base_delay=base_delay, clock=self.clock)
        self.scene_concurrency = scene_concurrency

    async def fetch_reference_image(self, url: str) -> Optional[ReferenceImage]:
        """Download a reference image; None on any failure."""
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url)
            else:
                async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch reference image {url}: {e}")
            return None

        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        return ReferenceImage(data=response.content, mime_type=mime_type)

    async def _load_references(self, urls: List[str]) -> List[ReferenceImage]:
        references = []
        for url in urls:
            image = await self.fetch_reference_image(url)
            if image is not None:
                references.append(image)
        if urls:
            logger.info(f"Loaded {len(references)}/{len(urls)} reference images")
        return references

    async def generate_images(self, options: ImageGenerationOptions, throttle: bool = True) -> ImageGenerationResult:
        """
        Generate ``number_of_images`` images as data URLs.

        Each image is its own gateway call wrapped in the outer retry policy.
        Individual failures are skipped; when none succeed, deterministic
        placeholder URLs are returned instead.

        Args:
            options: Entity and rendering options
            throttle: Space calls with the shared interval limiter

        Returns:
            ImageGenerationResult with data URLs or placeholders
        """
        prompt = build_image_prompt(options)
        references = await self._load_references(options.reference_images)
        started = self.clock.now()
        images: List[str] = []

        logger.info(
            f"Image generation: {options.entity_name['en']} ({options.entity_type}), "
            f"{options.number_of_images} images, model {self.model}"
        )

        for i in range(options.number_of_images):
            async def attempt():
                if throttle:
                    await self.limiter.acquire()
                return await self.gateway.generate_image(
                    prompt,
                    aspect_ratio=options.aspect_ratio,
                    reference_images=references,
                    model=self.model,
                    temperature=IMAGE_TEMPERATURE,
                    function_id=f"image-generation-{options.entity_type}",
                )

            try:
                image = await self.retry_policy.run(attempt, label=f"image {i + 1}")
                images.append(image.to_data_url())
                logger.info(f"Generated image {i + 1}/{options.number_of_images}")
            except Exception as e:
                logger.error(f"Failed to generate image {i + 1}: {e}")

        generated = len(images)
        if not images:
            logger.warning(f"No images generated for {options.entity_name['en']}, falling back to placeholders")
            images = [
                generation_placeholder(options.entity_name["en"], i + 1)
                for i in range(options.number_of_images)
            ]

        metrics = {
            "requested": options.number_of_images,
            "generated": generated,
            "estimated_cost_usd": generated * IMAGE_COST_USD,
            "duration_ms": (self.clock.now() - started) * 1000,
        }
        return ImageGenerationResult(images=images, metrics=metrics)

    async def generate_and_upload_images(self, options: ImageGenerationOptions, throttle: bool = True) -> List[str]:
        """
        Generate images and replace every data URL with a storage URL.

        Placeholders pass through. A malformed data URL or failed upload
        becomes an "Upload Failed" placeholder; no data URL is ever returned.
        """
        result = await self.generate_images(options, throttle=throttle)
        storage_type = STORAGE_ENTITY_TYPES.get(options.entity_type, options.entity_type)
        room_type = (options.room_context or {}).get("room_type_name") if options.entity_type == "style_room" else None
        slug = re.sub(r"\s+", "-", options.entity_name["en"].lower())

        uploaded: List[str] = []
        for i, url in enumerate(result.images):
            if url.startswith(PLACEHOLDER_BASE):
                uploaded.append(url)
                continue

            if not url.startswith("data:image/"):
                uploaded.append(url)
                continue

            parsed = parse_data_url(url)
            if parsed is None or self.storage is None:
                logger.error(f"Cannot upload image {i + 1}: {'invalid data URL' if parsed is None else 'no storage configured'}")
                uploaded.append(upload_failed_placeholder(i + 1))
                continue

            mime_type, data = parsed
            filename = f"{slug}-{i + 1}.{mime_type.split('/')[1]}"
            try:
                stored = await self.storage.upload(
                    data,
                    mime_type,
                    storage_type,
                    options.entity_id or "seed-generated",
                    filename,
                    room_type=room_type,
                    organization_id=options.organization_id,
                )
                uploaded.append(stored)
            except Exception as e:
                logger.warning(f"Upload failed for image {i + 1}, using placeholder: {e}")
                uploaded.append(upload_failed_placeholder(i + 1))

        return uploaded

    async def generate_golden_scenes(
        self,
        style_name: dict,
        style_context: dict,
        scenes: Optional[List[GoldenScene]] = None,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
        images_per_scene: int = 5,
        entity_id: str = "",
    ) -> List[dict]:
        """
        Generate the golden scene gallery concurrently.

        Aspect ratios cycle across all shots; shots from index 2 onwards are
        close-up detail shots. Failed shots are dropped from the result.

        Returns:
            Gallery items ``{"scene_name", "url", "complement"}``
        """
        scenes = scenes if scenes is not None else GOLDEN_SCENES
        total = len(scenes) * images_per_scene
        semaphore = asyncio.Semaphore(self.scene_concurrency)
        completed = 0

        logger.info(f"Golden scenes: {len(scenes)} scenes x {images_per_scene} images = {total} total")
        if on_progress:
            on_progress(0, total, "Starting parallel generation...")

        async def run_shot(scene: GoldenScene, index: int, aspect_ratio: str) -> Optional[dict]:
            nonlocal completed
            detail = index >= 2
            shot_prompt = (
                f"Close-up detail shot of {scene.name}, focusing on textures, materials, "
                f"and intricate design elements. {scene.prompt_suffix}"
                if detail else scene.prompt_suffix
            )
            async with semaphore:
                try:
                    urls = await self.generate_and_upload_images(
                        ImageGenerationOptions(
                            entity_type="scene",
                            entity_name=style_name,
                            number_of_images=1,
                            style_context=style_context,
                            aspect_ratio=aspect_ratio,
                            scene_context={
                                "scene_name": scene.name,
                                "prompt_suffix": shot_prompt,
                                "complementary_color": scene.complement,
                            },
                            variation_type="detail-shot" if detail else "wide-angle",
                            entity_id=entity_id,
                        ),
                        throttle=False,
                    )
                finally:
                    completed += 1
                    if on_progress:
                        on_progress(completed, total, f"{scene.name} ({index + 1})")

            if not urls or urls[0].startswith(PLACEHOLDER_BASE):
                return None
            return {"scene_name": scene.name, "url": urls[0], "complement": scene.complement}

        tasks = []
        for i, scene in enumerate(scenes):
            for j in range(images_per_scene):
                aspect_ratio = GOLDEN_SCENE_ASPECT_RATIOS[(i * images_per_scene + j) % len(GOLDEN_SCENE_ASPECT_RATIOS)]
                tasks.append(run_shot(scene, j, aspect_ratio))

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        gallery = []
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                logger.error(f"Golden scene shot failed: {outcome}")
            elif outcome is not None:
                gallery.append(outcome)

        logger.info(f"Golden scenes complete: {len(gallery)}/{total} images")
        return gallery

    async def generate_style_room_images(
        self,
        style_name: dict,
        room_type_name: str,
        color_hex: str,
        visual_context: Optional[dict] = None,
        reference_images: Optional[List[str]] = None,
        price_level: str = "REGULAR",
        style_id: str = "",
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> List[dict]:
        """Generate the four orientation views of a room; a failed view gets a placeholder."""
        views = []
        style_en = style_name["en"]
        for i, orientation in enumerate(ROOM_ORIENTATIONS):
            if on_progress:
                on_progress(i + 1, len(ROOM_ORIENTATIONS))

            fallback = f"{PLACEHOLDER_BASE}?text={quote(f'{style_en} {room_type_name} {orientation}')}"
            try:
                urls = await self.generate_and_upload_images(ImageGenerationOptions(
                    entity_type="style_room",
                    entity_name=style_name,
                    number_of_images=1,
                    room_context={
                        "room_type_name": room_type_name,
                        "style_name": style_name["en"],
                        "color_hex": color_hex,
                    },
                    visual_context=visual_context,
                    reference_images=reference_images or [],
                    variation_type=orientation,
                    aspect_ratio="4:3",
                    price_level=price_level,
                    entity_id=style_id,
                ))
                views.append({"url": urls[0] if urls else fallback, "orientation": orientation})
            except Exception as e:
                logger.error(f"Failed to generate {orientation} view for {room_type_name}: {e}")
                views.append({"url": fallback, "orientation": orientation})

        return views
