"""Selects the best-fit approach and primary color for a sub-category."""

import logging
from typing import Callable, Dict, List, Optional

from core.resilience.rate_limit import Clock, MinIntervalRateLimiter, MonotonicClock

from .gateway import GenerationOptions, ProviderGateway
from .models import GEMINI_FLASH_LITE
from .prompts import _localized
from .schemas import BilingualText, SelectionResult

logger = logging.getLogger(__name__)

SELECTION_TEMPERATURE = 0.3
DEFAULT_CONFIDENCE = 0.5
NEUTRAL_COLOR_HINTS = ("cream", "beige", "off-white")


class InvalidSelectionError(ValueError):
    """The model returned an approach or color id that is not a candidate."""


def _numbered(items: List[str]) -> str:
    if not items:
        return "N/A"
    return "\n".join(f"  {i}. {item}" for i, item in enumerate(items, start=1))


def build_selection_prompt(sub_category: dict, approaches: List[dict], colors: List[dict]) -> str:
    """Build the selection prompt listing every candidate id."""
    category = sub_category.get("category") or {"name": {"he": "", "en": ""}}
    he = (sub_category.get("detailed_content") or {}).get("he") or {}

    approach_lines = []
    for i, approach in enumerate(approaches, start=1):
        approach_lines.append(
            f"{i}. ID: {approach['id']}\n"
            f"   Name: {approach['name']['he']} / {approach['name']['en']}\n"
            f"   Description: {_localized(approach, 'he', 'description', 'N/A')}\n"
            f"   Philosophy: {_localized(approach, 'he', 'philosophy', 'N/A')}"
        )

    color_lines = []
    for i, color in enumerate(colors, start=1):
        color_lines.append(
            f"{i}. ID: {color['id']}\n"
            f"   Name: {color['name']['he']} / {color['name']['en']}\n"
            f"   Hex: {color.get('hex', '')}\n"
            f"   Category: {color.get('category', '')}\n"
            f"   Description: {(color.get('description') or {}).get('he') or 'N/A'}"
        )

    approaches_text = "\n\n".join(approach_lines)
    colors_text = "\n\n".join(color_lines)

    return f"""You are an expert interior designer tasked with selecting the MOST FITTING design approach and primary color for a specific design style.

**CRITICAL WEIGHTING**:
- Sub-Category characteristics: 60% (HIGHEST priority)
- Design Approach compatibility: 25%
- Color aesthetic fit: 15%

**SUB-CATEGORY TO ANALYZE**:
Name: {sub_category['name']['he']} / {sub_category['name']['en']}
Category: {category['name']['he']} / {category['name']['en']}
Period: {he.get('period') or 'Unknown'}

Description (Hebrew): {_localized(sub_category, 'he', 'description', 'N/A')}
Description (English): {_localized(sub_category, 'en', 'description', 'N/A')}

Historical Context (English): {_localized(sub_category, 'en', 'historical_context', 'N/A')}
Cultural Context (English): {_localized(sub_category, 'en', 'cultural_context', 'N/A')}

Key Characteristics:
{_numbered(he.get('characteristics') or [])}

Visual Elements:
{_numbered(he.get('visual_elements') or [])}

---

**AVAILABLE APPROACHES** (choose ONE):
{approaches_text}

---

**AVAILABLE COLORS** (choose ONE):
{colors_text}

---

**YOUR TASK**:
1. Analyze the sub-category's historical period, cultural context, and design philosophy
2. Determine which APPROACH best complements this style's essence
3. Determine which COLOR is most historically and aesthetically appropriate
4. Consider historical accuracy, cultural authenticity, visual harmony and practical application

Return approach_id and color_id using ONLY ids from the lists above, a confidence between 0.0 and 1.0,
and a short bilingual reasoning (he, en) explaining the fit."""


def get_default_selection(approaches: List[dict], colors: List[dict]) -> SelectionResult:
    """
    Deterministic fallback pair.

    Prefers a "timeless" approach and a cream, beige or off-white neutral
    color, then any neutral, then the first candidate of each list.

    Raises:
        ValueError: If either candidate list is empty
    """
    if not approaches:
        raise ValueError("Cannot pick a default selection: no approaches available")
    if not colors:
        raise ValueError("Cannot pick a default selection: no colors available")

    approach = next(
        (
            a for a in approaches
            if a.get("slug") == "timeless" or "timeless" in a["name"]["en"].lower()
        ),
        approaches[0],
    )
    color = next(
        (
            c for c in colors
            if c.get("category") == "neutral"
            and any(hint in c["name"]["en"].lower() for hint in NEUTRAL_COLOR_HINTS)
        ),
        None,
    ) or next((c for c in colors if c.get("category") == "neutral"), colors[0])

    return SelectionResult(
        approach_id=approach["id"],
        color_id=color["id"],
        reasoning=BilingualText(
            he=f'בחירת ברירת מחדל: גישה "{approach["name"]["he"]}" וצבע "{color["name"]["he"]}" כשילוב בטוח ואוניברסלי',
            en=f'Default selection: "{approach["name"]["en"]}" approach and "{color["name"]["en"]}" color as a safe, universal combination',
        ),
        confidence=DEFAULT_CONFIDENCE,
    )


class StyleSelector:
    """AI selection of {approach, color} with a deterministic default."""

    def __init__(
        self,
        gateway: ProviderGateway,
        model: str = GEMINI_FLASH_LITE,
        clock: Optional[Clock] = None,
        batch_interval: float = 1.5,
    ):
        self.gateway = gateway
        self.model = model
        self.clock = clock or MonotonicClock()
        self.batch_interval = batch_interval

    async def select_optimal_approach_and_color(
        self,
        sub_category: dict,
        approaches: List[dict],
        colors: List[dict],
    ) -> SelectionResult:
        """
        Select the approach and color that best fit a sub-category.

        Never raises for model failures or unknown ids; those fall back to
        ``get_default_selection``.

        Args:
            sub_category: Sub-category document, optionally with ``category``
            approaches: Candidate approach documents
            colors: Candidate color documents

        Returns:
            SelectionResult whose ids are members of the candidate lists

        Raises:
            ValueError: If either candidate list is empty
        """
        if not approaches or not colors:
            raise ValueError("At least one approach and one color are required for selection")

        try:
            result = await self.gateway.generate_structured(
                build_selection_prompt(sub_category, approaches, colors),
                SelectionResult,
                GenerationOptions(
                    model=self.model,
                    temperature=SELECTION_TEMPERATURE,
                    function_id="select-approach-and-color",
                ),
            )
            selection = result.object
            approach_ids = {a["id"] for a in approaches}
            color_ids = {c["id"] for c in colors}
            if selection.approach_id not in approach_ids or selection.color_id not in color_ids:
                raise InvalidSelectionError(
                    f"Invalid approach or color ID returned: {selection.approach_id}, {selection.color_id}"
                )
            return selection
        except Exception as e:
            logger.warning(f"AI selection failed for {sub_category['name']['en']}, using default: {e}")
            return get_default_selection(approaches, colors)

    async def batch_select_optimal_combinations(
        self,
        sub_categories: List[dict],
        approaches: List[dict],
        colors: List[dict],
        on_progress: Optional[Callable[[str, int, int], None]] = None,
    ) -> Dict[str, SelectionResult]:
        """
        Select sequentially for each sub-category, keyed by sub-category id.

        Raises:
            ValueError: If either candidate list is empty
        """
        if not approaches or not colors:
            raise ValueError("At least one approach and one color are required for selection")

        limiter = MinIntervalRateLimiter(self.batch_interval, clock=self.clock)
        results: Dict[str, SelectionResult] = {}
        total = len(sub_categories)

        for i, sub_category in enumerate(sub_categories, start=1):
            if on_progress:
                on_progress(f"Selecting optimal combination for {sub_category['name']['en']}...", i, total)
            await limiter.acquire()
            try:
                results[sub_category["id"]] = await self.select_optimal_approach_and_color(
                    sub_category, approaches, colors
                )
            except Exception as e:
                logger.error(f"Error selecting for {sub_category['name']['en']}: {e}")
                if on_progress:
                    on_progress(f"Error selecting for {sub_category['name']['en']}, using default", i, total)
                results[sub_category["id"]] = get_default_selection(approaches, colors)

        return results


def explain_selection(selection: SelectionResult, approaches: List[dict], colors: List[dict]) -> dict:
    """Human-readable check of a selection against its candidates."""
    approach = next((a for a in approaches if a["id"] == selection.approach_id), None)
    color = next((c for c in colors if c["id"] == selection.color_id), None)

    if approach is None or color is None:
        return {"is_valid": False, "explanation": "Invalid selection: Approach or Color not found"}

    return {
        "is_valid": True,
        "explanation": (
            f'Selected "{approach["name"]["en"]}" approach with "{color["name"]["en"]}" '
            f"({color.get('hex', '')}) color.\n"
            f"Confidence: {selection.confidence * 100:.0f}%\n"
            f"Reasoning: {selection.reasoning.en}"
        ),
    }
