"""Tests for the material sub-agent."""

from unittest.mock import AsyncMock

import pytest

from core.ai.images import ImageGenerator
from core.materials.agent import MaterialSubAgent, generate_sku
from core.materials.matcher import MaterialMatcher
from core.store.base import MATERIAL_CATEGORIES, MATERIAL_TYPES, MATERIALS, STYLE_MATERIALS, TEXTURES
from core.store.memory import InMemoryDocumentStore


def catalog() -> dict:
    return {
        MATERIAL_CATEGORIES: [
            {"id": "cat-wall", "slug": "wall-finishes", "name": {"he": "גימור קירות", "en": "Wall Finishes"}},
            {"id": "cat-metal", "slug": "metal-finishes", "name": {"he": "מתכת", "en": "Metal Finishes"}},
        ],
        MATERIAL_TYPES: [
            {"id": "type-wall", "category_id": "cat-wall", "name": {"he": "טיח", "en": "Plaster"}},
            {"id": "type-metal", "category_id": "cat-metal", "name": {"he": "חיפוי", "en": "Cladding"}},
        ],
        MATERIALS: [
            {"id": "mat-marble", "name": {"he": "שיש", "en": "Marble"}, "category_id": "cat-wall"},
            {"id": "mat-oak", "name": {"he": "עץ אלון", "en": "Oak Wood"}, "category_id": "cat-wall"},
        ],
    }


@pytest.fixture
def material_store():
    return InMemoryDocumentStore(catalog())


@pytest.fixture
def agent(material_store, gateway, fake_clock):
    return MaterialSubAgent(material_store, MaterialMatcher(gateway), clock=fake_clock)


class TestPrepareMaterials:
    """Test name resolution and creation."""

    @pytest.mark.asyncio
    async def test_exact_and_heuristic_matches(self, agent, primary):
        result = await agent.prepare_materials(["Marble", "White marble countertop"])

        assert result.material_ids == ["mat-marble"]
        assert result.stats.matched == 2
        assert result.stats.created == 0
        assert primary.requests == []

    @pytest.mark.asyncio
    async def test_ai_link(self, agent, primary):
        primary.queue({"results": [{
            "input_name": "Veined stone",
            "action": "link",
            "matched_material_id": "mat-marble",
            "confidence": 0.8,
        }]})

        result = await agent.prepare_materials(["Veined stone"])

        assert result.material_ids == ["mat-marble"]
        assert result.stats.matched == 1

    @pytest.mark.asyncio
    async def test_creates_missing_material(self, agent, primary, material_store):
        primary.queue({"results": [{
            "input_name": "Brushed brass",
            "action": "create",
            "confidence": 0.9,
            "new_material": {
                "name": {"he": "פליז מוברש", "en": "Brushed Brass"},
                "category_id": "cat-metal",
                "type_id": "type-metal",
                "finish": ["brushed"],
            },
        }]})

        result = await agent.prepare_materials(["Brushed brass"], price_level="LUXURY")

        assert result.stats.created == 1
        material = await material_store.find_by_id(MATERIALS, result.material_ids[0])
        assert material["name"] == {"he": "פליז מוברש", "en": "Brushed Brass"}
        assert material["sku"].startswith("AI-")
        assert material["organization_id"] is None
        assert material["is_abstract"] is True
        assert material["generation_status"] == "COMPLETED"
        assert material["properties"]["type_id"] == "type-metal"
        assert material["properties"]["finish"] == ["brushed"]
        assert material["assets"] == {"thumbnail": "", "images": []}

    @pytest.mark.asyncio
    async def test_ai_failure_still_creates(self, agent, material_store):
        result = await agent.prepare_materials(["Brushed brass"])

        assert result.success is True
        material = await material_store.find_by_id(MATERIALS, result.material_ids[0])
        assert material["category_id"] == "cat-metal"
        assert material["name"]["en"] == "Brushed brass"

    @pytest.mark.asyncio
    async def test_names_are_deduplicated_and_capped(self, material_store, gateway, fake_clock):
        agent = MaterialSubAgent(material_store, MaterialMatcher(gateway), clock=fake_clock, max_materials=2)

        result = await agent.prepare_materials(["Marble", "marble ", "Oak Wood", "Brushed brass", ""])

        assert result.material_ids == ["mat-marble", "mat-oak"]
        assert result.stats.created == 0

    @pytest.mark.asyncio
    async def test_empty_input(self, agent):
        result = await agent.prepare_materials([])
        assert result.success is True
        assert result.material_ids == []

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_others(self, material_store, fake_clock):
        matcher = MaterialMatcher(gateway=None)
        matcher.smart_match_material = AsyncMock(side_effect=RuntimeError("matcher exploded"))
        agent = MaterialSubAgent(material_store, matcher, clock=fake_clock)
        progress = []

        result = await agent.prepare_materials(["Marble", "Brushed brass"], on_progress=progress.append)

        assert result.material_ids == ["mat-marble"]
        assert result.errors == [{"material": "Brushed brass", "error": "matcher exploded"}]
        assert result.stats.errors == 1
        assert result.success is True
        assert len(progress) == 2

    @pytest.mark.asyncio
    async def test_all_failed_is_unsuccessful(self, material_store, fake_clock):
        matcher = MaterialMatcher(gateway=None)
        matcher.smart_match_material = AsyncMock(side_effect=RuntimeError("down"))
        agent = MaterialSubAgent(material_store, matcher, clock=fake_clock)

        result = await agent.prepare_materials(["Brushed brass"])

        assert result.success is False
        assert result.to_dict()["stats"]["errors"] == 1

    @pytest.mark.asyncio
    async def test_material_image_uploaded_under_global(self, material_store, gateway, fake_clock, fake_storage):
        images = ImageGenerator(gateway, storage=fake_storage, clock=fake_clock)
        agent = MaterialSubAgent(material_store, MaterialMatcher(gateway), image_generator=images, clock=fake_clock)

        result = await agent.prepare_materials(["Brushed brass"], generate_images=True)

        material_id = result.material_ids[0]
        material = await material_store.find_by_id(MATERIALS, material_id)
        assert material["assets"]["images"] == [material["assets"]["thumbnail"]]
        assert material["assets"]["thumbnail"].startswith("https://")
        assert fake_storage.uploads[0]["organization_id"] == "global"
        assert fake_storage.uploads[0]["entity_id"] == material_id
        assert result.stats.images == 1
        texture = await material_store.find_by_id(TEXTURES, material["texture_id"])
        assert texture["image_url"].startswith("https://")
        assert fake_storage.uploads[1]["entity_type"] == "texture"
        assert fake_storage.uploads[1]["entity_id"] == texture["id"]


BRASS_CREATE = {"results": [{
    "input_name": "Brushed brass",
    "action": "create",
    "confidence": 0.9,
    "new_material": {
        "name": {"he": "פליז מוברש", "en": "Brushed Brass"},
        "category_id": "cat-metal",
        "type_id": "type-metal",
        "finish": ["brushed"],
    },
}]}


class TestTextures:
    """Test textures for created materials."""

    @pytest.mark.asyncio
    async def test_created_material_gets_texture(self, agent, primary, material_store):
        primary.queue(BRASS_CREATE)

        result = await agent.prepare_materials(["Brushed brass"], price_level="LUXURY")

        material = await material_store.find_by_id(MATERIALS, result.material_ids[0])
        texture = await material_store.find_by_id(TEXTURES, material["texture_id"])
        assert texture["name"] == {"he": "פליז מוברש", "en": "Brushed Brass"}
        assert texture["category_id"] == "cat-metal"
        assert texture["finish"] == "brushed"
        assert texture["organization_id"] is None
        assert texture["image_url"] is None
        assert result.stats.textures == 1

    @pytest.mark.asyncio
    async def test_existing_texture_reused(self, agent, primary, material_store):
        await material_store.insert(TEXTURES, {
            "id": "tex-brass",
            "name": {"he": "פליז מוברש", "en": "brushed brass"},
            "category_id": "cat-metal",
            "finish": "brushed",
            "organization_id": None,
        })
        primary.queue(BRASS_CREATE)

        result = await agent.prepare_materials(["Brushed brass"])

        material = await material_store.find_by_id(MATERIALS, result.material_ids[0])
        assert material["texture_id"] == "tex-brass"
        assert result.stats.textures == 0
        assert await material_store.count(TEXTURES) == 1

    @pytest.mark.asyncio
    async def test_other_finish_creates_new_texture(self, agent, material_store):
        first, created = await agent.find_or_create_texture(
            {"he": "פליז", "en": "Brass"}, "cat-metal", "brushed"
        )
        second, created_again = await agent.find_or_create_texture(
            {"he": "פליז", "en": "Brass"}, "cat-metal", "polished"
        )

        assert created and created_again
        assert first != second
        assert await agent.find_or_create_texture({"he": "פליז", "en": "Brass"}, "cat-metal", "brushed") == (
            first, False
        )


class TestMatchContext:
    """Test the cached catalog snapshot."""

    @pytest.mark.asyncio
    async def test_context_cached_until_ttl(self, agent, material_store, fake_clock):
        first = await agent.get_match_context()
        await material_store.insert(MATERIALS, {"name": {"he": "פליז", "en": "Brass"}, "category_id": "cat-metal"})

        assert len((await agent.get_match_context()).available_materials) == 2

        fake_clock.advance(301)
        refreshed = await agent.get_match_context()
        assert len(refreshed.available_materials) == 3
        assert first is not refreshed

    @pytest.mark.asyncio
    async def test_context_lists_catalog(self, agent):
        context = await agent.get_match_context()

        assert {c.slug for c in context.available_categories} == {"wall-finishes", "metal-finishes"}
        assert context.available_materials[0].category_slug == "wall-finishes"

    @pytest.mark.asyncio
    async def test_style_details_do_not_leak_into_cache(self, agent):
        cached = await agent.get_match_context()

        await agent.prepare_materials(["Marble"], price_level="LUXURY", style_context="Baroque Timeless")

        assert agent._context is cached
        assert cached.style_context is None
        assert cached.price_level is None

    @pytest.mark.asyncio
    async def test_cache_cleared_after_creation(self, agent):
        await agent.get_match_context()

        await agent.prepare_materials(["Brushed brass"])

        assert agent._context is None


class TestLinking:
    """Test style-material links."""

    @pytest.mark.asyncio
    async def test_links_are_idempotent(self, agent, material_store):
        assert await agent.link_materials("style-1", ["mat-marble", "mat-oak"]) == 2
        assert await agent.link_materials("style-1", ["mat-marble"]) == 0

        assert await material_store.count(STYLE_MATERIALS, {"style_id": "style-1"}) == 2

    @pytest.mark.asyncio
    async def test_process_style_materials(self, agent, material_store):
        result = await agent.process_style_materials("style-1", ["Marble"])

        assert result.material_ids == ["mat-marble"]
        assert await material_store.find_one(STYLE_MATERIALS, {"style_id": "style-1", "material_id": "mat-marble"})


def test_sku_format():
    sku = generate_sku()
    assert sku.startswith("AI-")
    assert len(sku) == 11
    assert sku[3:] == sku[3:].upper()
