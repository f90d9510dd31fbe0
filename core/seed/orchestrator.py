"""Seed orchestration: base library entities and AI-generated styles.

``seed_all_content`` upserts approaches, room types, colors, material
categories, categories and sub-categories from the seed source.
``seed_styles`` turns every sub-category that has no style yet into a
persisted Style:

    select approach/color -> generate content -> prepare materials
    -> golden scenes -> persist -> room profiles one by one -> complete

The style is written before its room profiles so a crash mid-way keeps the
base content; an execution record lets a restarted run continue the last
style from its first missing room.
"""

import inspect
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from core.ai.content import ContentGenerator, StyleContext
from core.ai.images import ImageGenerationOptions, ImageGenerator
from core.ai.schemas import LocalizedStyleContent, SelectionResult
from core.ai.style_selector import StyleSelector
from core.materials.agent import MaterialSubAgent
from core.resilience.rate_limit import Clock, MinIntervalRateLimiter, MonotonicClock
from core.storage.base64_converter import analyze_urls, convert_gallery_items, filter_gallery_items_for_storage, is_http_url
from core.storage.blob_storage import ObjectStorage
from core.store.base import (
    APPROACHES,
    CATEGORIES,
    COLORS,
    MATERIAL_CATEGORIES,
    ROOM_TYPES,
    STYLES,
    SUB_CATEGORIES,
    DocumentStore,
)

from .data import SeedData, load_seed_data
from .executions import SeedExecutionTracker
from .types import EntityStats, PriceLevel, SeedOptions, SeedResult

logger = logging.getLogger(__name__)

MANUAL_REASONING = {"he": "בחירה ידנית על ידי המשתמש", "en": "Manual selection by user"}
STYLE_VERSION = "1.0.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _summary_text(content) -> dict:
    return {
        "he": content.he.introduction or content.he.description or "",
        "en": content.en.introduction or content.en.description or "",
    }


def build_style_identity(sub_category: dict, approach: dict, color: dict) -> Tuple[dict, str]:
    """Bilingual style name and slug for a sub-category/approach/color triple."""
    name = {
        "he": f"{sub_category['name']['he']} {approach['name']['he']} {color['name']['he']}",
        "en": f"{sub_category['name']['en']} {approach['name']['en']} in {color['name']['en']}",
    }
    color_slug = "-".join(color["name"]["en"].lower().split())
    return name, f"{sub_category['slug']}-{approach['slug']}-{color_slug}"


def build_visual_context(sub_category: dict) -> Optional[dict]:
    english = (sub_category.get("detailed_content") or {}).get("en")
    if not english:
        return None
    return {
        "characteristics": english.get("characteristics") or [],
        "visual_elements": english.get("visual_elements") or [],
        "material_guidance": english.get("material_guidance"),
        "color_guidance": english.get("color_guidance"),
    }


class SeedOrchestrator:
    """Runs seeding jobs against a document store."""

    def __init__(
        self,
        store: DocumentStore,
        content_generator: ContentGenerator,
        image_generator: Optional[ImageGenerator] = None,
        style_selector: Optional[StyleSelector] = None,
        material_agent: Optional[MaterialSubAgent] = None,
        storage: Optional[ObjectStorage] = None,
        tracker: Optional[SeedExecutionTracker] = None,
        clock: Optional[Clock] = None,
        room_interval: float = 0.5,
        entity_interval: float = 1.0,
        seed_data_loader: Callable[[], SeedData] = load_seed_data,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.content = content_generator
        self.images = image_generator
        self.selector = style_selector or StyleSelector(content_generator.gateway)
        self.materials = material_agent
        self.storage = storage
        self.tracker = tracker or SeedExecutionTracker(store)
        self.clock = clock or MonotonicClock()
        self.room_interval = room_interval
        self.entity_interval = entity_interval
        self.seed_data_loader = seed_data_loader
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Base content
    # ------------------------------------------------------------------

    async def seed_all_content(self, options: Optional[SeedOptions] = None) -> SeedResult:
        """
        Seed approaches, room types, colors, material categories, categories
        and sub-categories.

        Args:
            options: Run options; ``only`` selects entity kinds

        Returns:
            SeedResult; a seed source failure is the single ``global`` error
        """
        options = options or SeedOptions()
        result = SeedResult()

        options.progress("Parsing seed data...")
        try:
            data = self.seed_data_loader()
        except Exception as e:
            logger.error(f"Seed data could not be loaded: {e}")
            result.add_error("global", e)
            options.progress(f"Fatal error: {e}")
            return result
        options.progress("Data parsed successfully")

        limiter = MinIntervalRateLimiter(self.entity_interval, clock=self.clock)

        if options.includes("approaches"):
            await self._seed_entities(
                "approach", APPROACHES, data.approaches, result.stats.approaches, result, options, limiter,
                self._approach_document,
            )
        if options.includes("room_types"):
            await self._seed_entities(
                "roomType", ROOM_TYPES, data.room_types, result.stats.room_types, result, options, limiter,
                self._room_type_document,
            )
        if options.includes("colors"):
            await self._seed_entities(
                "color", COLORS, data.colors, result.stats.colors, result, options, limiter,
                self._color_document,
            )
        if options.includes("material_categories"):
            await self._seed_entities(
                "materialCategory", MATERIAL_CATEGORIES, data.material_categories,
                result.stats.material_categories, result, options, limiter, self._material_category_document,
            )
        if options.includes("categories"):
            await self._seed_entities(
                "category", CATEGORIES, data.categories, result.stats.categories, result, options, limiter,
                self._category_document,
            )
        if options.includes("sub_categories"):
            await self._seed_entities(
                "subCategory", SUB_CATEGORIES, data.sub_categories, result.stats.sub_categories, result, options,
                limiter, self._sub_category_document,
            )

        result.success = not result.errors
        options.progress(f"Seeding completed with {len(result.errors)} errors")
        return result

    async def _seed_entities(
        self,
        kind: str,
        collection: str,
        items: list,
        stats: EntityStats,
        result: SeedResult,
        options: SeedOptions,
        limiter: MinIntervalRateLimiter,
        build_document: Callable[..., Awaitable[dict]],
    ) -> None:
        items = items[:options.limit] if options.limit else items
        total = len(items)
        options.progress(f"Seeding {total} {collection}...", 0, total)

        for i, item in enumerate(items, start=1):
            try:
                existing = await self.store.find_by_slug(collection, item.slug)
                if existing and options.skip_existing:
                    stats.skipped += 1
                    options.progress(f"Skipping existing {kind}: {item.name.en}", i, total)
                    continue

                await limiter.acquire()
                entity_id = existing["id"] if existing else uuid.uuid4().hex
                options.progress(f"Generating content for {kind}: {item.name.en}", i, total)
                document = await build_document(item, entity_id, options)

                if options.dry_run:
                    stats.created += 1
                    options.progress(f"[DRY RUN] Would create/update {kind}: {item.name.en}", i, total)
                    continue

                if existing:
                    if not document.get("images"):
                        document.pop("images", None)
                else:
                    document["id"] = entity_id
                await self.store.upsert_by_slug(collection, item.slug, document)

                if existing:
                    stats.updated += 1
                    options.progress(f"Updated {kind}: {item.name.en}", i, total)
                else:
                    stats.created += 1
                    options.progress(f"Created {kind}: {item.name.en}", i, total)
            except Exception as e:
                logger.error(f"Error seeding {kind} {item.slug}: {e}")
                result.add_error(f"{kind}:{item.slug}", e)
                options.progress(f"Error seeding {kind} {item.name.en}: {e}", i, total)

    async def _entity_images(
        self,
        entity_type: str,
        item,
        entity_id: str,
        description: dict,
        options: SeedOptions,
        period: Optional[str] = None,
    ) -> List[str]:
        if not options.generate_images or self.images is None:
            return []
        options.progress(f"Generating {options.images_per_entity} images for {entity_type}: {item.name.en}")
        try:
            urls = await self.images.generate_and_upload_images(ImageGenerationOptions(
                entity_type=entity_type,
                entity_name=item.name.model_dump(),
                number_of_images=options.images_per_entity,
                description=description,
                period=period,
                entity_id=entity_id,
            ))
        except Exception as e:
            logger.warning(f"Image generation failed for {item.name.en}: {e}")
            options.progress(f"Warning: Failed to generate images for {item.name.en}: {e}")
            return []
        return [url for url in urls if is_http_url(url)]

    async def _approach_document(self, item, entity_id: str, options: SeedOptions) -> dict:
        content = await self.content.generate_approach_content(
            item.name.model_dump(), item.description.model_dump() if item.description else None
        )
        images = await self._entity_images(
            "approach", item, entity_id,
            {"he": content.he.description or "", "en": content.en.description or ""}, options,
        )
        return {
            "name": item.name.model_dump(),
            "description": _summary_text(content),
            "order": item.order,
            "images": images,
            "detailed_content": content.model_dump(),
            "metadata": {"is_default": False, "version": STYLE_VERSION, "tags": [], "usage": 0},
        }

    async def _room_type_document(self, item, entity_id: str, options: SeedOptions) -> dict:
        content = await self.content.generate_room_type_content(item.name.model_dump(), None, item.category)
        return {
            "name": item.name.model_dump(),
            "category": item.category,
            "description": _summary_text(content),
            "order": item.order,
            "detailed_content": content.model_dump(),
        }

    async def _color_document(self, item, entity_id: str, options: SeedOptions) -> dict:
        if item.description is not None:
            description = item.description.model_dump()
        else:
            description = (
                await self.content.generate_color_description(item.name.model_dump(), item.hex, item.category)
            ).model_dump()
        return {
            "organization_id": None,
            "name": item.name.model_dump(),
            "hex": item.hex,
            "category": item.category,
            "description": description,
            "order": item.order,
        }

    async def _material_category_document(self, item, entity_id: str, options: SeedOptions) -> dict:
        return {
            "organization_id": None,
            "name": item.name.model_dump(),
            "description": item.description.model_dump() if item.description else None,
            "order": item.order,
        }

    async def _category_document(self, item, entity_id: str, options: SeedOptions) -> dict:
        content = await self.content.generate_category_content(
            item.name.model_dump(), item.description.model_dump(), item.period
        )
        images = await self._entity_images(
            "category", item, entity_id,
            {"he": content.he.description or "", "en": content.en.description or ""}, options, item.period,
        )
        return {
            "name": item.name.model_dump(),
            "description": _summary_text(content),
            "period": item.period,
            "order": item.order,
            "images": images,
            "detailed_content": content.model_dump(),
        }

    async def _sub_category_document(self, item, entity_id: str, options: SeedOptions) -> dict:
        category = await self.store.find_by_slug(CATEGORIES, item.category_slug)
        if category is None:
            raise ValueError(f"Parent category not found: {item.category_slug}")

        content = await self.content.generate_sub_category_content(
            item.name.model_dump(),
            category["name"],
            item.description.model_dump() if item.description else None,
            item.period,
        )
        images = await self._entity_images(
            "subcategory", item, entity_id,
            {"he": content.he.description or "", "en": content.en.description or ""}, options, item.period,
        )
        return {
            "name": item.name.model_dump(),
            "category_id": category["id"],
            "description": _summary_text(content),
            "period": item.period,
            "order": item.order,
            "images": images,
            "detailed_content": content.model_dump(),
        }

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    async def _query_sub_categories(self, options: SeedOptions) -> List[dict]:
        if options.sub_category_filter:
            sub_categories = await self.store.find_all(SUB_CATEGORIES, {"slug": options.sub_category_filter})
        elif options.category_filter:
            category = await self.store.find_by_slug(CATEGORIES, options.category_filter)
            if category is None:
                return []
            sub_categories = await self.store.find_all(SUB_CATEGORIES, {"category_id": category["id"]})
        else:
            sub_categories = await self.store.find_all(SUB_CATEGORIES)

        categories = {c["id"]: c for c in await self.store.find_all(CATEGORIES)}
        for sub_category in sub_categories:
            sub_category["category"] = categories.get(sub_category.get("category_id"))
        return sub_categories

    async def _query_room_types(self, options: SeedOptions) -> List[dict]:
        filters = {"slug": list(options.room_type_filter)} if options.room_type_filter else None
        room_types = await self.store.find_all(ROOM_TYPES, filters)
        return sorted(room_types, key=lambda r: (r.get("order", 0), r.get("slug", "")))

    async def _find_resume_point(self, options: SeedOptions) -> Optional[Tuple[dict, int, int]]:
        """Last style of the execution and its first missing room index, if incomplete."""
        if not options.execution_id:
            return None

        options.progress("Checking for incomplete style to resume...")
        record = await self.tracker.get(options.execution_id)
        if record is None:
            logger.warning(f"Execution {options.execution_id} not found, nothing to resume")
            return None

        computed = len(await self._query_room_types(options))
        expected = await self.tracker.snapshot_expected_rooms(options.execution_id, computed)

        generated = record.get("generated_styles") or []
        if not generated:
            return None

        style = await self.store.find_by_id(STYLES, generated[-1])
        if style is None:
            return None

        current = len(style.get("room_profiles") or [])
        if current < expected:
            options.progress(f"Found incomplete style: {style['name']['en']} ({current}/{expected} rooms)")
            return style, current, expected
        return None

    def _manual_selections(
        self,
        options: SeedOptions,
        sub_categories: List[dict],
        approaches: List[dict],
        colors: List[dict],
    ) -> Dict[str, SelectionResult]:
        if not options.approach_id or not options.color_id:
            raise ValueError("Manual mode requires approach_id and color_id")
        approach = next((a for a in approaches if a["id"] == options.approach_id), None)
        color = next((c for c in colors if c["id"] == options.color_id), None)
        if approach is None or color is None:
            raise ValueError(
                f"Invalid manual selection: Approach {options.approach_id} or Color {options.color_id} not found"
            )

        options.progress(f"Using: {approach['name']['en']} + {color['name']['en']} for {len(sub_categories)} style(s)")
        return {
            sc["id"]: SelectionResult(
                approach_id=approach["id"],
                color_id=color["id"],
                reasoning=MANUAL_REASONING,
                confidence=1.0,
            )
            for sc in sub_categories
        }

    def _price_level(self, options: SeedOptions) -> str:
        level = PriceLevel(options.price_level)
        if level == PriceLevel.RANDOM:
            return PriceLevel.LUXURY.value if self.rng.random() > 0.5 else PriceLevel.REGULAR.value
        return level.value

    async def _notify_completed(self, options: SeedOptions, style_id: str, name: dict) -> None:
        if options.on_style_completed:
            outcome = options.on_style_completed(style_id, name)
            if inspect.isawaitable(outcome):
                await outcome

    async def seed_styles(self, options: Optional[SeedOptions] = None) -> SeedResult:
        """
        Generate styles for sub-categories that do not have one yet.

        Sub-categories that already own a style are never regenerated. When
        ``options.execution_id`` is set, an incomplete style recorded by that
        execution is continued before any new style is started.

        Args:
            options: Run options

        Returns:
            SeedResult; per-style failures are ``style:{slug}`` errors and an
            unexpected failure of the run is the ``styles-global`` error
        """
        options = options or SeedOptions(skip_existing=True)
        result = SeedResult()
        stats = result.stats.styles

        try:
            resume = await self._find_resume_point(options)

            options.progress("Querying sub-categories, approaches, colors and room types...")
            sub_categories = await self._query_sub_categories(options)
            approaches = await self.store.find_all(APPROACHES)
            colors = await self.store.find_all(COLORS, {"organization_id": None})
            room_types = await self._query_room_types(options)
            options.progress(
                f"Found {len(sub_categories)} sub-categories, {len(approaches)} approaches, "
                f"{len(colors)} colors, {len(room_types)} room types"
            )

            existing_styles = await self.store.find_all(STYLES)
            generated_ids = {s.get("sub_category_id") for s in existing_styles}
            pending = [sc for sc in sub_categories if sc["id"] not in generated_ids]
            already = sum(1 for sc in sub_categories if sc["id"] in generated_ids)

            stats.total_sub_categories = len(sub_categories)
            stats.already_generated = already
            stats.pending_before_seed = len(pending)
            options.progress(
                f"Status: {already}/{len(sub_categories)} sub-categories already have styles, "
                f"{len(pending)} pending generation"
            )

            to_process = pending[:options.limit] if options.limit else pending

            if resume is not None:
                style, start_index, _ = resume
                if options.dry_run:
                    options.progress(f"[DRY RUN] Would resume {style['name']['en']} from room {start_index + 1}")
                else:
                    options.progress("Resuming incomplete style generation...")
                    try:
                        await self._resume_style(style, start_index, room_types, options, result)
                    except Exception as e:
                        logger.error(f"Error resuming style {style['slug']}: {e}")
                        result.add_error(f"style:{style['slug']}", e)

            if not to_process:
                options.progress("All sub-categories already have generated styles. No work to do.")
                result.success = not result.errors
                return result

            if not approaches:
                raise ValueError("No approaches found. Seed base content before generating styles.")
            if not colors:
                raise ValueError("No colors found. Seed base content before generating styles.")

            if options.manual_mode:
                selections = self._manual_selections(options, to_process, approaches, colors)
            else:
                options.progress(
                    f"AI selecting approach and color for {len(to_process)} sub-categories...", 0, len(to_process)
                )
                selections = await self.selector.batch_select_optimal_combinations(
                    to_process, approaches, colors, options.on_progress,
                )

            approaches_by_id = {a["id"]: a for a in approaches}
            colors_by_id = {c["id"]: c for c in colors}
            total = len(to_process)

            for i, sub_category in enumerate(to_process, start=1):
                selection = selections.get(sub_category["id"])
                if selection is None:
                    result.add_error(f"style:{sub_category['slug']}", ValueError("No AI selection available"))
                    continue
                approach = approaches_by_id.get(selection.approach_id)
                color = colors_by_id.get(selection.color_id)
                if approach is None or color is None:
                    result.add_error(
                        f"style:{sub_category['slug']}", ValueError("Selected approach or color not found")
                    )
                    continue

                try:
                    await self._generate_style(
                        sub_category, approach, color, selection, room_types, options, result, i, total
                    )
                except Exception as e:
                    logger.error(f"Error processing style for {sub_category['slug']}: {e}")
                    result.add_error(f"style:{sub_category['slug']}", e)
                    options.progress(f"Error: {e}", i, total)

            options.progress(
                f"Style seeding completed. Created: {stats.created}, Updated: {stats.updated}, "
                f"Skipped: {stats.skipped}, Errors: {len(result.errors)}"
            )
            result.success = not result.errors
        except Exception as e:
            logger.error(f"Style seeding failed: {e}")
            result.add_error("styles-global", e)
            options.progress(f"Fatal error: {e}")

        return result

    async def _generate_style(
        self,
        sub_category: dict,
        approach: dict,
        color: dict,
        selection: SelectionResult,
        room_types: List[dict],
        options: SeedOptions,
        result: SeedResult,
        index: int,
        total: int,
    ) -> None:
        name, slug = build_style_identity(sub_category, approach, color)
        price_level = self._price_level(options)
        options.progress(f"[{index}/{total}] Processing: {name['en']}", index, total)

        options.progress(f"Generating style content [{price_level}]...", index, total)
        category = sub_category.get("category") or {"name": {"he": "", "en": ""}}
        content = await self.content.generate_style_content(
            name, category, sub_category, approach, color, price_level
        )

        material_ids: List[str] = []
        if self.materials is not None and content.required_materials:
            options.progress(f"Preparing {len(content.required_materials)} materials...", index, total)
            try:
                prepared = await self.materials.prepare_materials(
                    content.required_materials,
                    price_level=price_level,
                    generate_images=options.generate_images,
                    style_context=name["en"],
                )
                material_ids = prepared.material_ids
            except Exception as e:
                logger.warning(f"Material preparation failed for {name['en']}: {e}")
                options.progress("Warning: Material preparation failed", index, total)

        gallery: List[dict] = []
        if options.generate_images and self.images is not None:
            options.progress("Generating golden scenes...", index, total)
            try:
                scenes = await self.images.generate_golden_scenes(
                    name,
                    {
                        "sub_category_name": sub_category["name"]["en"],
                        "approach_name": approach["name"]["en"],
                        "color_name": color["name"]["en"],
                        "color_hex": color.get("hex", ""),
                    },
                    on_progress=lambda current, count, label: options.progress(
                        f"Scene {current}/{count}: {label}", index, total
                    ),
                    entity_id=f"seed-{slug}",
                )
                gallery = [
                    {
                        "id": uuid.uuid4().hex,
                        "url": scene["url"],
                        "type": "scene",
                        "scene_name": scene["scene_name"],
                        "complementary_color": scene["complement"],
                        "created_at": _now(),
                    }
                    for scene in scenes
                ]
            except Exception as e:
                logger.warning(f"Scene generation failed for {name['en']}: {e}")
                options.progress("Warning: Scene generation failed", index, total)

        if options.dry_run:
            options.progress(f"[DRY RUN] Would create style: {name['en']} with {len(gallery)} golden scenes", index, total)
            result.stats.styles.created += 1
            return

        if analyze_urls([item["url"] for item in gallery])["base64"] and self.storage is not None:
            gallery, conversion = await convert_gallery_items(
                gallery, self.storage, "style", f"seed-{slug}", filename_prefix=name["en"], clock=self.clock,
            )
            if conversion.failed_count:
                options.progress(
                    f"{conversion.failed_count} images failed to upload, using placeholders", index, total
                )
        gallery = filter_gallery_items_for_storage(gallery)

        style = await self.store.insert(STYLES, {
            "organization_id": None,
            "slug": slug,
            "name": name,
            "category_id": sub_category.get("category_id"),
            "sub_category_id": sub_category["id"],
            "approach_id": approach["id"],
            "color_id": color["id"],
            "gallery": gallery,
            "price_level": price_level,
            "detailed_content": content.model_dump(),
            "room_profiles": [],
            "metadata": {
                "version": STYLE_VERSION,
                "is_public": False,
                "tags": [sub_category["slug"], approach["slug"], color["name"]["en"].lower(), price_level.lower()],
                "usage": 0,
                "ai_generated": True,
                "ai_selection": {
                    "approach_confidence": selection.confidence,
                    "reasoning": selection.reasoning.model_dump(),
                },
                "is_complete": False,
            },
        })
        options.progress(f"Style saved (ID: {style['id']})", index, total)

        if options.execution_id:
            await self.tracker.record_style(options.execution_id, style["id"])

        if self.materials is not None and material_ids:
            await self.materials.link_materials(style["id"], material_ids)

        if options.generate_room_profiles and room_types:
            completed = await self._generate_room_profiles(
                style, content, color, sub_category, room_types, 0, options, result,
            )
        else:
            completed = await self._mark_complete(style, options)

        if completed:
            result.stats.styles.created += 1
            options.progress(f"Created style: {name['en']}", index, total)

    async def _mark_complete(self, style: dict, options: SeedOptions) -> bool:
        metadata = {**style.get("metadata", {}), "is_complete": True}
        await self.store.update(STYLES, style["id"], {"metadata": metadata})
        await self._notify_completed(options, style["id"], style["name"])
        return True

    async def _generate_room_profiles(
        self,
        style: dict,
        content: LocalizedStyleContent,
        color: dict,
        sub_category: dict,
        room_types: List[dict],
        start_index: int,
        options: SeedOptions,
        result: SeedResult,
    ) -> bool:
        """
        Append room profiles from ``start_index`` one at a time.

        A failed room stops the loop and leaves the style incomplete so a
        resumed run retries from that room.

        Returns:
            True once the style is marked complete
        """
        style_context = StyleContext.from_content(style["name"], content, color)
        visual_context = build_visual_context(sub_category)
        references = [url for url in sub_category.get("images") or [] if is_http_url(url)]
        limiter = MinIntervalRateLimiter(self.room_interval, clock=self.clock)
        total = len(room_types)

        for j in range(start_index, total):
            room_type = room_types[j]
            await limiter.acquire()
            try:
                options.progress(f"Room {j + 1}/{total}: {room_type['name']['en']}", j + 1, total)
                profile = await self.content.generate_room_profile_content(room_type, style_context)

                if options.generate_images and self.images is not None:
                    try:
                        views = await self.images.generate_style_room_images(
                            style["name"],
                            room_type["name"]["en"],
                            color.get("hex", ""),
                            visual_context=visual_context,
                            reference_images=references,
                            price_level=style.get("price_level", PriceLevel.REGULAR.value),
                            style_id=style["id"],
                        )
                        profile.views = [
                            {
                                "id": uuid.uuid4().hex,
                                "url": view["url"],
                                "orientation": view["orientation"],
                                "status": "COMPLETED",
                                "created_at": _now(),
                            }
                            for view in views
                            if is_http_url(view["url"])
                        ]
                    except Exception as e:
                        logger.error(f"Room image generation failed for {room_type['name']['en']}: {e}")

                await self.store.push(STYLES, style["id"], "room_profiles", profile.to_dict())
            except Exception as e:
                logger.error(f"Room profile {room_type['slug']} failed for {style['slug']}: {e}")
                result.add_error(f"style:{style['slug']}:room:{room_type['slug']}", e)
                return False

        return await self._mark_complete(style, options)

    async def _resume_style(
        self,
        style: dict,
        start_index: int,
        room_types: List[dict],
        options: SeedOptions,
        result: SeedResult,
    ) -> None:
        options.progress(f"Continuing {style['name']['en']} from room {start_index + 1}")
        sub_category = await self.store.find_by_id(SUB_CATEGORIES, style["sub_category_id"]) or {}
        color = await self.store.find_by_id(COLORS, style["color_id"])
        if color is None:
            raise ValueError(f"Color not found: {style['color_id']}")
        content = LocalizedStyleContent.model_validate(style["detailed_content"])

        completed = await self._generate_room_profiles(
            style, content, color, sub_category, room_types, start_index, options, result,
        )
        if completed:
            result.stats.styles.updated += 1
