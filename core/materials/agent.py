"""Material sub-agent: resolves a style's required materials to catalog entries.

Materials are resolved and, where needed, created before the style exists;
links to the style are written afterwards so no link ever points at a
material that was not persisted. A created material gets a global texture,
reused when one with the same name, category and finish already exists.
"""

import asyncio
import dataclasses
import logging
import uuid
from typing import Callable, List, Optional

from core.ai.images import ImageGenerationOptions, ImageGenerator
from core.ai.schemas import MaterialMatch
from core.resilience.rate_limit import Clock, MonotonicClock
from core.storage.base64_converter import PLACEHOLDER_BASE
from core.store.base import (
    MATERIAL_CATEGORIES,
    MATERIAL_TYPES,
    MATERIALS,
    STYLE_MATERIALS,
    TEXTURES,
    DocumentStore,
)

from .matcher import MaterialMatcher, heuristic_material_match
from .types import (
    AvailableCategory,
    AvailableMaterial,
    AvailableTexture,
    AvailableType,
    MaterialAgentResult,
    MaterialMatchContext,
)
from .vocabulary import hebrew_material_name, infer_category_slug

logger = logging.getLogger(__name__)

CONTEXT_CACHE_TTL = 5 * 60
CONCURRENCY_LIMIT = 5
MAX_CONTEXT_MATERIALS = 200
MAX_CONTEXT_TEXTURES = 100
GLOBAL_ORGANIZATION = "global"


def generate_sku() -> str:
    return f"AI-{uuid.uuid4().hex[:8].upper()}"


class MaterialSubAgent:
    """Single entry point for material work during style generation."""

    def __init__(
        self,
        store: DocumentStore,
        matcher: MaterialMatcher,
        image_generator: Optional[ImageGenerator] = None,
        clock: Optional[Clock] = None,
        cache_ttl: float = CONTEXT_CACHE_TTL,
        concurrency: int = CONCURRENCY_LIMIT,
        max_materials: int = 10,
    ):
        self.store = store
        self.matcher = matcher
        self.image_generator = image_generator
        self.clock = clock or MonotonicClock()
        self.cache_ttl = cache_ttl
        self.concurrency = concurrency
        self.max_materials = max_materials
        self._context: Optional[MaterialMatchContext] = None
        self._loaded_at = 0.0

    async def get_match_context(self) -> MaterialMatchContext:
        """Catalog snapshot for matching, cached for ``cache_ttl`` seconds."""
        if self._context is not None and self.clock.now() - self._loaded_at < self.cache_ttl:
            return self._context

        logger.info("Loading material matching context from store")
        categories = await self.store.find_all(MATERIAL_CATEGORIES)
        slugs = {c["id"]: c.get("slug", "") for c in categories}
        materials = await self.store.find_all(MATERIALS, limit=MAX_CONTEXT_MATERIALS)
        types = await self.store.find_all(MATERIAL_TYPES)
        textures = await self.store.find_all(TEXTURES, limit=MAX_CONTEXT_TEXTURES)

        self._context = MaterialMatchContext(
            available_materials=[
                AvailableMaterial.from_document(m, slugs.get(m.get("category_id", ""), ""))
                for m in materials
            ],
            available_categories=[
                AvailableCategory(id=c["id"], name=c["name"], slug=c.get("slug", "")) for c in categories
            ],
            available_types=[
                AvailableType(id=t["id"], category_id=t["category_id"], name=t["name"], slug=t.get("slug", ""))
                for t in types
            ],
            available_textures=[AvailableTexture(id=t["id"], name=t["name"]) for t in textures],
        )
        self._loaded_at = self.clock.now()

        logger.info(
            f"Loaded {len(materials)} materials, {len(categories)} categories, "
            f"{len(types)} types, {len(textures)} textures"
        )
        return self._context

    def clear_cache(self) -> None:
        self._context = None
        logger.info("Material context cache cleared")

    async def _find_exact(self, name: str) -> Optional[dict]:
        hebrew = hebrew_material_name(name)
        for material in await self.store.find_all(MATERIALS):
            names = material.get("name") or {}
            if names.get("en") == name or names.get("he") == hebrew:
                return material
        return None

    async def _generate_image(
        self,
        entity_type: str,
        entity_id: str,
        name: dict,
        price_level: str,
        finish: Optional[str] = None,
    ) -> Optional[str]:
        if self.image_generator is None:
            return None
        try:
            urls = await self.image_generator.generate_and_upload_images(ImageGenerationOptions(
                entity_type=entity_type,
                entity_name=name,
                number_of_images=1,
                aspect_ratio="1:1",
                price_level=price_level,
                entity_id=entity_id,
                organization_id=GLOBAL_ORGANIZATION,
                finish=finish,
            ))
        except Exception as e:
            logger.error(f"Failed to generate {entity_type} image for {name['en']}: {e}")
            return None
        if urls and not urls[0].startswith(PLACEHOLDER_BASE):
            return urls[0]
        return None

    async def find_or_create_texture(
        self,
        name: dict,
        category_id: str,
        finish: str,
        price_level: str = "REGULAR",
        generate_image: bool = False,
    ) -> tuple:
        """
        Reuse the global texture with this name, category and finish, or create it.

        A new texture gets a seamless tileable image when ``generate_image``
        is set and an image generator is configured.

        Returns:
            (texture_id, created)
        """
        candidates = await self.store.find_all(
            TEXTURES, {"category_id": category_id, "finish": finish, "organization_id": None}
        )
        wanted = name["en"].strip().lower()
        for texture in candidates:
            if (texture.get("name") or {}).get("en", "").strip().lower() == wanted:
                logger.info(f"Reusing texture {name['en']!r} ({finish}): {texture['id']}")
                return texture["id"], False

        texture_id = uuid.uuid4().hex
        image_url = None
        if generate_image:
            image_url = await self._generate_image("texture", texture_id, name, price_level, finish=finish)

        await self.store.insert(TEXTURES, {
            "id": texture_id,
            "organization_id": None,
            "name": name,
            "category_id": category_id,
            "finish": finish,
            "is_abstract": False,
            "image_url": image_url,
            "tags": [finish, price_level.lower()],
            "usage": 0,
        })
        logger.info(f"Created texture {name['en']!r} ({finish}): {texture_id}")
        return texture_id, True

    async def _create_material(
        self,
        name: str,
        match: MaterialMatch,
        context: MaterialMatchContext,
        price_level: str,
        generate_images: bool,
    ) -> dict:
        spec = match.new_material
        material_id = uuid.uuid4().hex
        display_name = spec.name.model_dump() if spec else {"he": hebrew_material_name(name), "en": name}

        image_url = None
        if generate_images:
            image_url = await self._generate_image("material", material_id, display_name, price_level)

        category_id = spec.category_id if spec else ""
        if not category_id:
            slug = infer_category_slug(name)
            category = next(
                (c for c in context.available_categories if c.slug == slug),
                context.available_categories[0] if context.available_categories else None,
            )
            if category is None:
                raise ValueError("No material categories exist in store")
            category_id = category.id

        type_id = spec.type_id if spec else None
        if not type_id:
            type_id = next((t.id for t in context.available_types if t.category_id == category_id), "")

        finishes = spec.finish if spec else []
        texture_id = spec.texture_id if spec else None
        texture_created = False
        if not texture_id:
            try:
                texture_id, texture_created = await self.find_or_create_texture(
                    display_name, category_id, finishes[0] if finishes else "natural", price_level, generate_images,
                )
            except Exception as e:
                logger.error(f"Texture creation failed for {name}: {e}")

        await self.store.insert(MATERIALS, {
            "id": material_id,
            "sku": generate_sku(),
            "name": display_name,
            "category_id": category_id,
            "texture_id": texture_id,
            "organization_id": None,
            "is_abstract": True,
            "generation_status": "COMPLETED",
            "ai_description": f"AI-generated material: {name}. {match.reasoning}",
            "properties": {
                "type_id": type_id,
                "sub_type": (spec.sub_type if spec else None) or name,
                "finish": finishes,
                "texture": "AI-generated",
                "technical": {"durability": 5, "maintenance": 5, "sustainability": 5},
            },
            "assets": {
                "thumbnail": image_url or "",
                "images": [image_url] if image_url else [],
            },
        })
        logger.info(f"Created material {name!r}: {material_id}")
        return {
            "material_id": material_id,
            "matched": False,
            "created": True,
            "image": image_url is not None,
            "texture": texture_created,
        }

    async def _resolve(
        self,
        name: str,
        context: MaterialMatchContext,
        price_level: str,
        generate_images: bool,
    ) -> dict:
        existing = await self._find_exact(name)
        if existing is not None:
            logger.info(f"Exact match: {name}")
            return {"material_id": existing["id"], "matched": True, "created": False, "image": False}

        heuristic = heuristic_material_match(name, context.available_materials)
        if heuristic.matched and heuristic.confidence >= self.matcher.config.heuristic_threshold:
            logger.info(f"Heuristic match: {name} -> {heuristic.material_id}")
            return {"material_id": heuristic.material_id, "matched": True, "created": False, "image": False}

        match = await self.matcher.smart_match_material(name, context)
        if match.action == "link" and match.matched_material_id:
            logger.info(f"AI matched: {name} -> {match.matched_material_id}")
            return {"material_id": match.matched_material_id, "matched": True, "created": False, "image": False}

        return await self._create_material(name, match, context, price_level, generate_images)

    async def prepare_materials(
        self,
        names: List[str],
        price_level: str = "REGULAR",
        generate_images: bool = False,
        style_context: Optional[str] = None,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> MaterialAgentResult:
        """
        Resolve names to material ids, creating missing materials.

        Each name goes exact store match, then heuristic, then AI, then
        create. Names are processed concurrently up to ``concurrency``; one
        failing name is recorded and never aborts the rest. No style links
        are written here.

        Args:
            names: Required material names, usually from style content
            price_level: "REGULAR" or "LUXURY"
            generate_images: Generate a close-up image for new materials and a
                tileable image for their new textures
            style_context: Style name passed to the matcher prompt
            on_progress: Called with a message after each material

        Returns:
            MaterialAgentResult with unique ids in input order
        """
        result = MaterialAgentResult()

        unique: List[str] = []
        seen = set()
        for name in names:
            key = name.strip().lower()
            if key and key not in seen:
                seen.add(key)
                unique.append(name.strip())
        to_process = unique[:self.max_materials]

        if not to_process:
            logger.info("No materials to process")
            return result

        logger.info(f"Material sub-agent: {len(to_process)} materials, price level {price_level}")
        context = dataclasses.replace(
            await self.get_match_context(), style_context=style_context, price_level=price_level
        )

        semaphore = asyncio.Semaphore(self.concurrency)
        completed = 0

        async def run(name: str) -> dict:
            nonlocal completed
            async with semaphore:
                try:
                    outcome = await self._resolve(name, context, price_level, generate_images)
                except Exception as e:
                    logger.error(f"Error processing material {name}: {e}")
                    outcome = {"material_id": None, "error": str(e)}
            completed += 1
            if on_progress:
                status = "failed" if outcome.get("error") else "ok"
                on_progress(f"[{completed}/{len(to_process)}] {name} {status}")
            return outcome

        outcomes = await asyncio.gather(*(run(name) for name in to_process))

        for name, outcome in zip(to_process, outcomes):
            if outcome.get("error"):
                result.stats.errors += 1
                result.errors.append({"material": name, "error": outcome["error"]})
                continue
            if outcome["material_id"] not in result.material_ids:
                result.material_ids.append(outcome["material_id"])
            if outcome["matched"]:
                result.stats.matched += 1
            if outcome["created"]:
                result.stats.created += 1
            if outcome["image"]:
                result.stats.images += 1
            if outcome.get("texture"):
                result.stats.textures += 1

        if result.stats.created:
            self.clear_cache()

        result.success = bool(result.material_ids) or not result.errors
        logger.info(
            f"Material sub-agent complete: matched {result.stats.matched}, created {result.stats.created}, "
            f"images {result.stats.images}, textures {result.stats.textures}, errors {result.stats.errors}"
        )
        return result

    async def link_materials(self, style_id: str, material_ids: List[str]) -> int:
        """Create missing style-material links; returns the number of new links."""
        created = 0
        for material_id in material_ids:
            existing = await self.store.find_one(
                STYLE_MATERIALS, {"style_id": style_id, "material_id": material_id}
            )
            if existing is None:
                await self.store.insert(STYLE_MATERIALS, {"style_id": style_id, "material_id": material_id})
                created += 1
        logger.info(f"Linked {created} new materials to style {style_id}")
        return created

    async def process_style_materials(
        self,
        style_id: str,
        names: List[str],
        price_level: str = "REGULAR",
        generate_images: bool = False,
        style_context: Optional[str] = None,
    ) -> MaterialAgentResult:
        """Prepare materials, then link them to an existing style."""
        result = await self.prepare_materials(names, price_level, generate_images, style_context)
        await self.link_materials(style_id, result.material_ids)
        return result
