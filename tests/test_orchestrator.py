"""Tests for base content and style seeding."""

import json

import pytest

from core.ai.images import ImageGenerator
from core.ai.style_selector import StyleSelector
from core.materials.agent import MaterialSubAgent
from core.materials.matcher import MaterialMatcher
from core.seed.data import SeedData, SeedDataError
from core.seed.executions import SeedExecutionTracker
from core.seed.orchestrator import SeedOrchestrator, build_style_identity
from core.seed.types import PriceLevel, SeedOptions
from core.store.base import (
    APPROACHES,
    CATEGORIES,
    COLORS,
    MATERIAL_CATEGORIES,
    MATERIALS,
    ROOM_TYPES,
    STYLE_MATERIALS,
    STYLES,
    SUB_CATEGORIES,
    TEXTURES,
)
from core.store.memory import InMemoryDocumentStore

from tests.fakes import FailingStorage, FakeContentGenerator, ROOM_SLUGS, library_documents

SELECTION = {
    "approach_id": "ap-timeless",
    "color_id": "col-cream",
    "reasoning": {"he": "התאמה", "en": "Cream suits the period"},
    "confidence": 0.8,
}
STYLE_SLUG = "baroque-timeless-warm-cream"

SEED_SOURCE = {
    "approaches": [
        {"name": {"he": "על-זמני", "en": "Timeless"}},
        {"name": {"he": "אקלקטי", "en": "Eclectic"}},
    ],
    "room_types": [{"name": {"he": "מטבח", "en": "Kitchen"}, "category": "public-spaces"}],
    "colors": [
        {"name": {"he": "שמנת", "en": "Warm Cream"}, "hex": "#F5F0E1", "category": "neutral"},
        {
            "name": {"he": "כחול כהה", "en": "Navy"},
            "hex": "#1F2A44",
            "category": "accent",
            "description": {"he": "כחול עמוק", "en": "A deep, quiet blue"},
        },
    ],
    "material_categories": [
        {"name": {"he": "גימורי אבן", "en": "Stone Finishes"}},
        {"name": {"he": "גימורי מתכת", "en": "Metal Finishes"}},
    ],
    "categories": [{
        "name": {"he": "קלאסי", "en": "Classical Styles"},
        "description": {"he": "תיאור", "en": "European grandeur"},
        "period": "1400 - 1939",
    }],
    "sub_categories": [{"name": {"he": "בארוק", "en": "Baroque"}, "category_slug": "classical-styles"}],
}


def make_orchestrator(store, gateway, fake_clock, content=None, **kwargs):
    return SeedOrchestrator(
        store,
        content or FakeContentGenerator(),
        style_selector=StyleSelector(gateway, clock=fake_clock),
        clock=fake_clock,
        **kwargs,
    )


class TestStyleIdentity:
    def test_name_and_slug(self):
        docs = library_documents()
        name, slug = build_style_identity(docs[SUB_CATEGORIES][0], docs[APPROACHES][0], docs["colors"][0])

        assert name["en"] == "Baroque Timeless in Warm Cream"
        assert name["he"] == "בארוק על-זמני שמנת"
        assert slug == STYLE_SLUG


class TestSeedStyles:
    """Test end-to-end style seeding."""

    @pytest.mark.asyncio
    async def test_creates_complete_style(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        content = FakeContentGenerator()
        orchestrator = make_orchestrator(library_store, gateway, fake_clock, content)

        result = await orchestrator.seed_styles(SeedOptions())

        assert result.success is True
        assert result.stats.styles.created == 1
        assert result.stats.styles.total_sub_categories == 1
        [style] = await library_store.find_all(STYLES)
        assert style["slug"] == STYLE_SLUG
        assert style["sub_category_id"] == "sc-baroque"
        assert style["metadata"]["is_complete"] is True
        assert style["metadata"]["ai_selection"]["approach_confidence"] == 0.8
        assert style["gallery"] == []
        assert [p["room_type_id"] for p in style["room_profiles"]] == [f"rt-{s}" for s in ROOM_SLUGS]
        assert content.room_calls == ROOM_SLUGS

    @pytest.mark.asyncio
    async def test_rerun_creates_nothing(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        orchestrator = make_orchestrator(library_store, gateway, fake_clock)
        await orchestrator.seed_styles(SeedOptions())

        result = await orchestrator.seed_styles(SeedOptions())

        assert result.success is True
        assert result.stats.styles.created == 0
        assert result.stats.styles.already_generated == 1
        assert result.stats.styles.pending_before_seed == 0
        assert await library_store.count(STYLES) == 1

    @pytest.mark.asyncio
    async def test_existing_style_prevents_duplicate(self, gateway, primary, fake_clock):
        store = InMemoryDocumentStore(library_documents(sub_categories=2))
        await store.insert(STYLES, {"slug": "baroque-existing", "sub_category_id": "sc-baroque"})
        primary.queue({**SELECTION, "color_id": "col-navy"})
        content = FakeContentGenerator()

        result = await make_orchestrator(store, gateway, fake_clock, content).seed_styles(SeedOptions())

        assert result.stats.styles.created == 1
        assert result.stats.styles.already_generated == 1
        assert [c["name"]["en"] for c in content.style_calls] == ["Art Deco Timeless in Navy"]
        assert await store.count(STYLES, {"sub_category_id": "sc-baroque"}) == 1

    @pytest.mark.asyncio
    async def test_room_failure_then_resume(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        content = FakeContentGenerator(fail_rooms={"kitchen"})
        tracker = SeedExecutionTracker(library_store)
        orchestrator = make_orchestrator(library_store, gateway, fake_clock, content, tracker=tracker)
        execution = await tracker.create()
        options = SeedOptions(execution_id=execution["id"])

        first = await orchestrator.seed_styles(options)

        assert first.success is False
        assert [e.entity for e in first.errors] == [f"style:{STYLE_SLUG}:room:kitchen"]
        assert first.stats.styles.created == 0
        [style] = await library_store.find_all(STYLES)
        assert len(style["room_profiles"]) == 1
        assert style["metadata"]["is_complete"] is False
        assert await tracker.generated_styles(execution["id"]) == [style["id"]]

        content.fail_rooms.clear()
        content.room_calls.clear()
        second = await orchestrator.seed_styles(options)

        assert second.success is True
        assert second.stats.styles.updated == 1
        assert content.room_calls == ["kitchen", "master-bedroom"]
        style = await library_store.find_by_id(STYLES, style["id"])
        assert [p["room_type_id"] for p in style["room_profiles"]] == [f"rt-{s}" for s in ROOM_SLUGS]
        assert style["metadata"]["is_complete"] is True
        assert (await tracker.get(execution["id"]))["expected_total_rooms"] == 3

    @pytest.mark.asyncio
    async def test_resume_skipped_in_dry_run(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        content = FakeContentGenerator(fail_rooms={"kitchen"})
        tracker = SeedExecutionTracker(library_store)
        orchestrator = make_orchestrator(library_store, gateway, fake_clock, content, tracker=tracker)
        execution = await tracker.create()
        await orchestrator.seed_styles(SeedOptions(execution_id=execution["id"]))
        content.room_calls.clear()

        await orchestrator.seed_styles(SeedOptions(execution_id=execution["id"], dry_run=True))

        assert content.room_calls == []

    @pytest.mark.asyncio
    async def test_no_data_urls_persisted(self, gateway, primary, fake_clock):
        store = InMemoryDocumentStore({
            **library_documents(),
            MATERIAL_CATEGORIES: [{"id": "cat-stone", "slug": "stone-finishes", "name": {"he": "אבן", "en": "Stone"}}],
            MATERIALS: [{"id": "mat-marble", "name": {"he": "שיש", "en": "Marble"}, "category_id": "cat-stone"}],
        })
        storage = FailingStorage()
        images = ImageGenerator(gateway, storage=storage, clock=fake_clock)
        agent = MaterialSubAgent(store, MaterialMatcher(gateway), image_generator=images, clock=fake_clock)
        primary.queue(SELECTION)
        orchestrator = make_orchestrator(
            store, gateway, fake_clock, FakeContentGenerator(materials=["Marble"]),
            image_generator=images, material_agent=agent, storage=storage,
        )

        result = await orchestrator.seed_styles(SeedOptions(generate_images=True))

        assert result.stats.styles.created == 1
        [style] = await store.find_all(STYLES)
        assert style["gallery"] == []
        assert await store.find_one(STYLE_MATERIALS, {"style_id": style["id"], "material_id": "mat-marble"})
        assert "data:image/" not in json.dumps(store.dump(), ensure_ascii=False)

    @pytest.mark.asyncio
    async def test_manual_mode(self, library_store, gateway, primary, fake_clock):
        orchestrator = make_orchestrator(library_store, gateway, fake_clock)

        result = await orchestrator.seed_styles(
            SeedOptions(manual_mode=True, approach_id="ap-eclectic", color_id="col-navy")
        )

        assert result.success is True
        [style] = await library_store.find_all(STYLES)
        assert style["slug"] == "baroque-eclectic-navy"
        assert style["metadata"]["ai_selection"]["approach_confidence"] == 1.0
        assert primary.requests == []

    @pytest.mark.asyncio
    async def test_manual_mode_invalid_ids(self, library_store, gateway, fake_clock):
        orchestrator = make_orchestrator(library_store, gateway, fake_clock)

        result = await orchestrator.seed_styles(
            SeedOptions(manual_mode=True, approach_id="ap-missing", color_id="col-cream")
        )

        assert result.success is False
        assert [e.entity for e in result.errors] == ["styles-global"]
        assert await library_store.count(STYLES) == 0

    @pytest.mark.asyncio
    async def test_dry_run_persists_nothing(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        content = FakeContentGenerator()

        result = await make_orchestrator(library_store, gateway, fake_clock, content).seed_styles(
            SeedOptions(dry_run=True)
        )

        assert result.stats.styles.created == 1
        assert await library_store.count(STYLES) == 0
        assert content.room_calls == []

    @pytest.mark.asyncio
    async def test_luxury_price_level(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        content = FakeContentGenerator()

        await make_orchestrator(library_store, gateway, fake_clock, content).seed_styles(
            SeedOptions(price_level=PriceLevel.LUXURY, generate_room_profiles=False)
        )

        [style] = await library_store.find_all(STYLES)
        assert style["price_level"] == "LUXURY"
        assert style["room_profiles"] == []
        assert style["metadata"]["is_complete"] is True
        assert content.style_calls[0]["price_level"] == "LUXURY"

    @pytest.mark.asyncio
    async def test_room_type_filter(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        content = FakeContentGenerator()

        await make_orchestrator(library_store, gateway, fake_clock, content).seed_styles(
            SeedOptions(room_type_filter=["master-bedroom", "living-room"])
        )

        assert content.room_calls == ["living-room", "master-bedroom"]

    @pytest.mark.asyncio
    async def test_async_completion_callback(self, library_store, gateway, primary, fake_clock):
        primary.queue(SELECTION)
        completed = []

        async def on_completed(style_id, name):
            completed.append(name["en"])

        await make_orchestrator(library_store, gateway, fake_clock).seed_styles(
            SeedOptions(on_style_completed=on_completed)
        )

        assert completed == ["Baroque Timeless in Warm Cream"]

    @pytest.mark.asyncio
    async def test_missing_colors_is_global_error(self, gateway, primary, fake_clock):
        documents = library_documents()
        documents.pop(COLORS)
        store = InMemoryDocumentStore(documents)

        result = await make_orchestrator(store, gateway, fake_clock).seed_styles(SeedOptions())

        assert result.success is False
        [error] = result.errors
        assert error.entity == "styles-global"
        assert error.error.startswith("No colors found")
        assert primary.requests == []
        assert await store.count(STYLES) == 0

    @pytest.mark.asyncio
    async def test_unknown_room_filter_slug_does_not_resume_complete_style(
        self, library_store, gateway, primary, fake_clock
    ):
        primary.queue(SELECTION)
        content = FakeContentGenerator()
        tracker = SeedExecutionTracker(library_store)
        orchestrator = make_orchestrator(library_store, gateway, fake_clock, content, tracker=tracker)
        execution = await tracker.create()
        options = SeedOptions(execution_id=execution["id"], room_type_filter=["kitchen", "sunroom"])

        first = await orchestrator.seed_styles(options)
        content.room_calls.clear()
        second = await orchestrator.seed_styles(options)

        assert first.stats.styles.created == 1
        assert second.success is True
        assert second.stats.styles.updated == 0
        assert content.room_calls == []
        assert (await tracker.get(execution["id"]))["expected_total_rooms"] == 1


class TestSeedAllContent:
    """Test seeding of base library entities."""

    def make(self, store, gateway, fake_clock, source=None):
        data = SeedData.model_validate(source or SEED_SOURCE)
        return make_orchestrator(store, gateway, fake_clock, seed_data_loader=lambda: data)

    @pytest.mark.asyncio
    async def test_creates_every_entity(self, store, gateway, fake_clock):
        progress = []

        result = await self.make(store, gateway, fake_clock).seed_all_content(
            SeedOptions(on_progress=lambda message, current=None, total=None: progress.append(message))
        )

        assert result.success is True
        assert result.stats.approaches.created == 2
        assert result.stats.room_types.created == 1
        assert result.stats.colors.created == 2
        assert result.stats.material_categories.created == 2
        assert result.stats.categories.created == 1
        assert result.stats.sub_categories.created == 1
        category = await store.find_by_slug(CATEGORIES, "classical-styles")
        sub_category = await store.find_by_slug(SUB_CATEGORIES, "baroque")
        assert sub_category["category_id"] == category["id"]
        assert sub_category["description"]["en"] == "Introduction to Baroque"
        assert (await store.find_by_slug(APPROACHES, "eclectic"))["order"] == 2
        assert progress[0] == "Parsing seed data..."

    @pytest.mark.asyncio
    async def test_colors_and_material_categories(self, store, gateway, fake_clock):
        data = SeedData.model_validate(SEED_SOURCE)
        content = FakeContentGenerator()
        orchestrator = make_orchestrator(store, gateway, fake_clock, content, seed_data_loader=lambda: data)

        result = await orchestrator.seed_all_content(SeedOptions(only=["colors", "material_categories"]))

        assert result.stats.colors.created == 2
        assert result.stats.material_categories.created == 2
        cream = await store.find_by_slug(COLORS, "warm-cream")
        assert cream["organization_id"] is None
        assert cream["hex"] == "#F5F0E1"
        assert cream["category"] == "neutral"
        assert cream["description"]["en"] == "Warm Cream is a neutral color"
        assert (await store.find_by_slug(COLORS, "navy"))["description"]["en"] == "A deep, quiet blue"
        assert content.color_calls == ["#F5F0E1"]
        assert (await store.find_by_slug(MATERIAL_CATEGORIES, "metal-finishes"))["order"] == 2
        assert await store.count(APPROACHES) == 0

    @pytest.mark.asyncio
    async def test_rerun_updates(self, store, gateway, fake_clock):
        orchestrator = self.make(store, gateway, fake_clock)
        await orchestrator.seed_all_content()
        first_id = (await store.find_by_slug(APPROACHES, "timeless"))["id"]

        result = await orchestrator.seed_all_content()

        assert result.stats.approaches.updated == 2
        assert result.stats.approaches.created == 0
        assert await store.count(APPROACHES) == 2
        assert (await store.find_by_slug(APPROACHES, "timeless"))["id"] == first_id

    @pytest.mark.asyncio
    async def test_skip_existing(self, store, gateway, fake_clock):
        orchestrator = self.make(store, gateway, fake_clock)
        await orchestrator.seed_all_content()

        result = await orchestrator.seed_all_content(SeedOptions(skip_existing=True))

        assert result.stats.approaches.skipped == 2
        assert result.stats.sub_categories.skipped == 1

    @pytest.mark.asyncio
    async def test_only_and_limit(self, store, gateway, fake_clock):
        result = await self.make(store, gateway, fake_clock).seed_all_content(
            SeedOptions(only=["approaches"], limit=1)
        )

        assert result.stats.approaches.created == 1
        assert await store.count(ROOM_TYPES) == 0

    @pytest.mark.asyncio
    async def test_entities_are_spaced(self, store, gateway, fake_clock):
        await self.make(store, gateway, fake_clock).seed_all_content(SeedOptions(only=["approaches"]))

        assert fake_clock.sleeps == [1.0]

    @pytest.mark.asyncio
    async def test_missing_parent_category(self, store, gateway, fake_clock):
        source = {**SEED_SOURCE, "categories": []}

        result = await self.make(store, gateway, fake_clock, source).seed_all_content()

        assert result.success is False
        assert [e.entity for e in result.errors] == ["subCategory:baroque"]
        assert result.stats.approaches.created == 2

    @pytest.mark.asyncio
    async def test_loader_failure_is_global(self, store, gateway, fake_clock):
        def broken():
            raise SeedDataError("File not found: seed.json")

        orchestrator = make_orchestrator(store, gateway, fake_clock, seed_data_loader=broken)

        result = await orchestrator.seed_all_content()

        assert [e.to_dict() for e in result.errors] == [{"entity": "global", "error": "File not found: seed.json"}]
        assert await store.count(APPROACHES) == 0

    @pytest.mark.asyncio
    async def test_dry_run(self, store, gateway, fake_clock):
        result = await self.make(store, gateway, fake_clock).seed_all_content(
            SeedOptions(dry_run=True, only=["approaches"])
        )

        assert result.stats.approaches.created == 2
        assert await store.count(APPROACHES) == 0


class TestSeedFromEmptyStore:
    """Base content seeding is enough to generate styles."""

    @pytest.mark.asyncio
    async def test_content_then_styles(self, store, gateway, fake_clock):
        data = SeedData.model_validate(SEED_SOURCE)
        content = FakeContentGenerator(materials=["Brushed brass"])
        agent = MaterialSubAgent(store, MaterialMatcher(gateway), clock=fake_clock)
        orchestrator = make_orchestrator(
            store, gateway, fake_clock, content, material_agent=agent, seed_data_loader=lambda: data,
        )

        base = await orchestrator.seed_all_content()
        styles = await orchestrator.seed_styles(SeedOptions())

        assert base.success is True
        assert styles.success is True
        assert styles.stats.styles.created == 1
        [style] = await store.find_all(STYLES)
        assert style["slug"] == STYLE_SLUG
        assert style["color_id"] == (await store.find_by_slug(COLORS, "warm-cream"))["id"]
        assert style["metadata"]["is_complete"] is True
        assert len(style["room_profiles"]) == 1

        [material] = await store.find_all(MATERIALS)
        [texture] = await store.find_all(TEXTURES)
        metal = await store.find_by_slug(MATERIAL_CATEGORIES, "metal-finishes")
        assert material["category_id"] == metal["id"]
        assert material["texture_id"] == texture["id"]
        assert await store.find_one(STYLE_MATERIALS, {"style_id": style["id"], "material_id": material["id"]})
