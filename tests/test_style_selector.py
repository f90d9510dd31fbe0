"""Tests for approach and color selection."""

import pytest

from core.ai.errors import ProviderError
from core.ai.schemas import BilingualText, SelectionResult
from core.ai.style_selector import (
    DEFAULT_CONFIDENCE,
    StyleSelector,
    build_selection_prompt,
    explain_selection,
    get_default_selection,
)

from tests.fakes import library_documents

APPROACHES = [
    {"id": "ap-eclectic", "slug": "eclectic", "name": {"he": "אקלקטי", "en": "Eclectic"}},
    {"id": "ap-timeless", "slug": "timeless", "name": {"he": "על-זמני", "en": "Timeless"}},
]
COLORS = [
    {"id": "col-navy", "name": {"he": "כחול", "en": "Navy"}, "hex": "#1F2A44", "category": "cool"},
    {"id": "col-stone", "name": {"he": "אבן", "en": "Stone Grey"}, "hex": "#9A9A9A", "category": "neutral"},
    {"id": "col-cream", "name": {"he": "שמנת", "en": "Warm Cream"}, "hex": "#F5F0E1", "category": "neutral"},
]
SUB_CATEGORY = library_documents()["sub_categories"][0]


def selection(approach_id: str = "ap-eclectic", color_id: str = "col-navy") -> dict:
    return {
        "approach_id": approach_id,
        "color_id": color_id,
        "reasoning": {"he": "התאמה", "en": "Good fit"},
        "confidence": 0.9,
    }


@pytest.fixture
def selector(gateway, fake_clock):
    return StyleSelector(gateway, clock=fake_clock)


class TestDefaultSelection:
    """Test the deterministic fallback pair."""

    def test_prefers_timeless_and_cream(self):
        result = get_default_selection(APPROACHES, COLORS)

        assert (result.approach_id, result.color_id) == ("ap-timeless", "col-cream")
        assert result.confidence == DEFAULT_CONFIDENCE
        assert "Timeless" in result.reasoning.en

    def test_any_neutral_when_no_cream(self):
        result = get_default_selection(APPROACHES, COLORS[:2])
        assert result.color_id == "col-stone"

    def test_first_candidates_otherwise(self):
        result = get_default_selection(APPROACHES[:1], COLORS[:1])
        assert (result.approach_id, result.color_id) == ("ap-eclectic", "col-navy")

    def test_empty_candidates_raise_value_error(self):
        with pytest.raises(ValueError, match="no colors"):
            get_default_selection(APPROACHES, [])
        with pytest.raises(ValueError, match="no approaches"):
            get_default_selection([], COLORS)


class TestSelect:
    """Test AI selection with validation."""

    @pytest.mark.asyncio
    async def test_valid_selection_returned(self, selector, primary):
        primary.queue(selection())

        result = await selector.select_optimal_approach_and_color(SUB_CATEGORY, APPROACHES, COLORS)

        assert (result.approach_id, result.color_id) == ("ap-eclectic", "col-navy")
        assert result.confidence == 0.9

    @pytest.mark.asyncio
    async def test_unknown_id_falls_back_to_default(self, selector, primary):
        primary.queue(selection(color_id="col-invented"))

        result = await selector.select_optimal_approach_and_color(SUB_CATEGORY, APPROACHES, COLORS)

        assert (result.approach_id, result.color_id) == ("ap-timeless", "col-cream")

    @pytest.mark.asyncio
    async def test_model_failure_falls_back_to_default(self, selector, primary):
        primary.queue(*[ProviderError("down")] * 3)

        result = await selector.select_optimal_approach_and_color(SUB_CATEGORY, APPROACHES, COLORS)

        assert result.confidence == DEFAULT_CONFIDENCE

    @pytest.mark.asyncio
    async def test_empty_candidates_raise(self, selector):
        with pytest.raises(ValueError):
            await selector.select_optimal_approach_and_color(SUB_CATEGORY, [], COLORS)
        with pytest.raises(ValueError):
            await selector.select_optimal_approach_and_color(SUB_CATEGORY, APPROACHES, [])

    def test_prompt_lists_every_candidate(self):
        prompt = build_selection_prompt(SUB_CATEGORY, APPROACHES, COLORS)

        for candidate in APPROACHES + COLORS:
            assert f"ID: {candidate['id']}" in prompt
        assert "#F5F0E1" in prompt


class TestBatchSelect:
    @pytest.mark.asyncio
    async def test_keyed_by_id_and_spaced(self, selector, primary, fake_clock):
        sub_categories = library_documents(sub_categories=2)["sub_categories"]
        primary.queue(selection(), selection("ap-timeless", "col-stone"))
        progress = []

        results = await selector.batch_select_optimal_combinations(
            sub_categories, APPROACHES, COLORS, on_progress=lambda msg, i, total: progress.append((i, total))
        )

        assert results["sc-baroque"].approach_id == "ap-eclectic"
        assert results["sc-art-deco"].color_id == "col-stone"
        assert fake_clock.sleeps == [1.5]
        assert progress == [(1, 2), (2, 2)]

    @pytest.mark.asyncio
    async def test_empty_colors_raise_before_any_call(self, selector, primary):
        sub_categories = library_documents(sub_categories=2)["sub_categories"]

        with pytest.raises(ValueError, match="one color"):
            await selector.batch_select_optimal_combinations(sub_categories, APPROACHES, [])

        assert primary.requests == []


class TestExplainSelection:
    def test_valid(self):
        result = SelectionResult(
            approach_id="ap-timeless",
            color_id="col-cream",
            reasoning=BilingualText(he="", en="Soft and classic"),
            confidence=0.82,
        )

        explained = explain_selection(result, APPROACHES, COLORS)

        assert explained["is_valid"] is True
        assert "Warm Cream" in explained["explanation"]
        assert "Confidence: 82%" in explained["explanation"]

    def test_invalid(self):
        result = get_default_selection(APPROACHES, COLORS)
        assert explain_selection(result, APPROACHES[:1], COLORS)["is_valid"] is False
