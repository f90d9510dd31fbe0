"""Material name matching: heuristic pre-filter, then AI batch matching.

The heuristic stage resolves near-identical names for free. Whatever it cannot
resolve confidently goes to the model in small batches, and every model answer
is validated against the candidate lists before it is returned.

Example usage:
    matcher = MaterialMatcher(gateway)
    matches = await matcher.smart_match_materials_batch(
        ["White marble countertop", "Brushed brass"], context
    )
"""

import logging
import re
from typing import List, Optional

from core.ai.gateway import GenerationOptions, ProviderGateway
from core.ai.models import GEMINI_FLASH_LITE
from core.ai.schemas import BilingualText, MaterialMatch, MaterialMatchBatchResponse, NewMaterialSpec

from .types import AvailableMaterial, HeuristicMatch, MatcherConfig, MaterialMatchContext
from .vocabulary import ENGLISH_TO_HEBREW, QUICK_TRANSLATIONS, infer_category_slug

logger = logging.getLogger(__name__)

HEURISTIC_REASONING = "Matched via heuristic pre-filter"
AI_FAILURE_REASONING = "AI matching failed, using fallback inference"
INVALID_LINK_REASONING = "Original match ID invalid - creating new material"


def heuristic_material_match(name: str, candidates: List[AvailableMaterial]) -> HeuristicMatch:
    """
    Match a name against candidates without calling a model.

    Stages, first hit wins:
        1. Case-insensitive exact name (1.0)
        2. Input and candidate name contain one another (0.9)
        3. Bilingual synonym table (0.85)
        4. Any input token of 3+ characters inside an English name (0.8)

    Args:
        name: Free-text material name in either language
        candidates: Existing materials

    Returns:
        HeuristicMatch; ``matched`` is False when no stage hits
    """
    lowered = name.lower().strip()
    normalized = re.sub(r"\s+", " ", lowered)
    if not normalized:
        return HeuristicMatch(False)

    for material in candidates:
        he = (material.name.get("he") or "").lower().strip()
        en = (material.name.get("en") or "").lower().strip()
        if lowered and lowered in (he, en):
            return HeuristicMatch(True, material.id, 1.0)

    for material in candidates:
        en = (material.name.get("en") or "").lower().strip()
        he = material.name.get("he") or ""
        if (en and (en in normalized or normalized in en)) or (he and (he in name or name.strip() in he)):
            return HeuristicMatch(True, material.id, 0.9)

    hebrew = ENGLISH_TO_HEBREW.get(lowered)
    if hebrew:
        for material in candidates:
            if hebrew in (material.name.get("he") or ""):
                return HeuristicMatch(True, material.id, 0.85)

    for hebrew_term, variants in QUICK_TRANSLATIONS.items():
        if hebrew_term in name:
            for material in candidates:
                en = (material.name.get("en") or "").lower()
                if any(variant in en for variant in variants):
                    return HeuristicMatch(True, material.id, 0.85)

    words = [word for word in normalized.split(" ") if len(word) >= 3]
    for material in candidates:
        en = (material.name.get("en") or "").lower()
        if any(word in en for word in words):
            return HeuristicMatch(True, material.id, 0.8)

    return HeuristicMatch(False)


def infer_new_material(name: str, context: MaterialMatchContext) -> NewMaterialSpec:
    """Keyword-based spec for a new material, used whenever the model's answer is unusable."""
    lowered = name.lower()
    first_word = lowered.split()[0] if lowered.split() else lowered
    slug = infer_category_slug(name)

    category = next(
        (c for c in context.available_categories if c.slug == slug),
        context.available_categories[0] if context.available_categories else None,
    )
    category_id = category.id if category else ""
    material_type = next(
        (t for t in context.available_types if t.category_id == category_id),
        context.available_types[0] if context.available_types else None,
    )
    original_first = name.split()[0] if name.split() else name
    texture = next(
        (
            t for t in context.available_textures
            if (first_word and first_word in (t.name.get("en") or "").lower())
            or (original_first and original_first in (t.name.get("he") or ""))
        ),
        None,
    )

    return NewMaterialSpec(
        name=BilingualText(
            he=ENGLISH_TO_HEBREW.get(first_word, name),
            en=name[:1].upper() + name[1:],
        ),
        category_id=category_id,
        type_id=material_type.id if material_type else None,
        texture_id=texture.id if texture else None,
        sub_type=name,
        finish=["matte"],
    )


def build_material_match_prompt(names: List[str], context: MaterialMatchContext, config: MatcherConfig) -> str:
    """Prompt listing the names to match and every id the model may use."""
    materials = "\n".join(
        f'  - ID: "{m.id}" | Hebrew: "{m.name.get("he", "")}" | English: "{m.name.get("en", "")}" | Category: {m.category_slug}'
        for m in context.available_materials[:config.max_prompt_materials]
    )
    categories = "\n".join(
        f'  - ID: "{c.id}" | Hebrew: "{c.name.get("he", "")}" | English: "{c.name.get("en", "")}" | Slug: {c.slug}'
        for c in context.available_categories
    )

    category_names = {c.id: c.name.get("en", c.id) for c in context.available_categories}
    grouped = {}
    for material_type in context.available_types:
        grouped.setdefault(material_type.category_id, []).append(material_type)
    types = "\n".join(
        f'  Category "{category_names.get(category_id, category_id)}":\n'
        + "\n".join(
            f'    - ID: "{t.id}" | Hebrew: "{t.name.get("he", "")}" | English: "{t.name.get("en", "")}"'
            for t in members
        )
        for category_id, members in grouped.items()
    )
    textures = "\n".join(
        f'  - ID: "{t.id}" | Hebrew: "{t.name.get("he", "")}" | English: "{t.name.get("en", "")}"'
        for t in context.available_textures[:config.max_prompt_textures]
    )
    to_match = "\n".join(f'{i}. "{name}"' for i, name in enumerate(names, start=1))

    return f"""You are an expert interior design material specialist. Match material names to existing materials in a database, or specify how to create new ones.

**CONTEXT**
{f'Style: {context.style_context}' if context.style_context else 'General interior design'}
{f'Price Level: {context.price_level}' if context.price_level else ''}

**MATERIALS TO MATCH** ({len(names)} items):
{to_match}

**AVAILABLE MATERIALS IN DATABASE** ({len(context.available_materials)} total, showing first {config.max_prompt_materials}):
{materials}

**AVAILABLE CATEGORIES**:
{categories}

**AVAILABLE TYPES** (grouped by category):
{types}

**AVAILABLE TEXTURES** ({len(context.available_textures)} total, showing first {config.max_prompt_textures}):
{textures}

For EACH material return one result, in the same order as the input:
- action "link" when an existing material matches the BASE material ("White marble" -> "Marble",
  "שיש לבן" -> "שיש"); set matched_material_id to the EXACT id and confidence 0.6-1.0.
- action "create" when nothing suitable exists; set new_material with a proper Hebrew and English
  name, category_id from the categories, type_id from the types of that category, an optional
  texture_id, sub_type and finish values such as matte, glossy, satin, polished, honed, brushed.

Use EXACT ids from the lists above. Never invent ids."""


class MaterialMatcher:
    """Resolves material names to catalog ids or new-material specs."""

    def __init__(
        self,
        gateway: ProviderGateway,
        config: Optional[MatcherConfig] = None,
        model: str = GEMINI_FLASH_LITE,
    ):
        self.gateway = gateway
        self.config = config or MatcherConfig()
        self.model = model

    def _fallback(self, name: str, context: MaterialMatchContext) -> MaterialMatch:
        return MaterialMatch(
            input_name=name,
            action="create",
            confidence=0.5,
            reasoning=AI_FAILURE_REASONING,
            new_material=infer_new_material(name, context),
        )

    def _validate(self, match: MaterialMatch, name: str, context: MaterialMatchContext) -> MaterialMatch:
        material_ids = {m.id for m in context.available_materials}

        if match.action == "link":
            if match.matched_material_id in material_ids and match.confidence >= self.config.link_threshold:
                return match
            logger.warning(
                f"Rejected link {match.matched_material_id!r} for {name!r} "
                f"(confidence {match.confidence:.2f}), converting to create"
            )
            return MaterialMatch(
                input_name=match.input_name or name,
                action="create",
                confidence=0.8,
                reasoning=INVALID_LINK_REASONING,
                new_material=infer_new_material(name, context),
            )

        spec = match.new_material
        category_ids = {c.id for c in context.available_categories}
        type_categories = {t.id: t.category_id for t in context.available_types}
        type_ok = (
            not context.available_types
            or (spec is not None and type_categories.get(spec.type_id) == spec.category_id)
        )
        if spec is None or spec.category_id not in category_ids or not type_ok:
            logger.warning(f"Invalid category/type IDs for {name!r}, using inferred spec")
            return match.model_copy(update={"new_material": infer_new_material(name, context)})
        return match

    async def match_materials_batch(self, names: List[str], context: MaterialMatchContext) -> List[MaterialMatch]:
        """
        Match a batch of names with one model call.

        Results are index-aligned with ``names``. Invalid answers are repaired
        rather than raised; if the call fails entirely every name becomes a
        ``create`` with confidence 0.5.
        """
        if not names:
            return []

        logger.info(
            f"Matching {len(names)} materials via AI "
            f"({len(context.available_materials)} materials, {len(context.available_categories)} categories, "
            f"{len(context.available_types)} types available)"
        )

        try:
            result = await self.gateway.generate_structured(
                build_material_match_prompt(names, context, self.config),
                MaterialMatchBatchResponse,
                GenerationOptions(
                    model=self.model,
                    temperature=self.config.temperature,
                    function_id="material-matcher-batch",
                ),
            )
        except Exception as e:
            logger.error(f"AI material matching failed: {e}")
            return [self._fallback(name, context) for name in names]

        answers = result.object.results
        matches = []
        for index, name in enumerate(names):
            if index < len(answers):
                matches.append(self._validate(answers[index], name, context))
            else:
                logger.warning(f"No AI result for {name!r}, using fallback inference")
                matches.append(self._fallback(name, context))

        linked = sum(1 for m in matches if m.action == "link")
        logger.info(f"Material matching: {linked} linked, {len(matches) - linked} to create")
        return matches

    def _heuristic(self, name: str, context: MaterialMatchContext) -> Optional[MaterialMatch]:
        heuristic = heuristic_material_match(name, context.available_materials)
        if heuristic.matched and heuristic.confidence >= self.config.heuristic_threshold:
            return MaterialMatch(
                input_name=name,
                action="link",
                matched_material_id=heuristic.material_id,
                confidence=heuristic.confidence,
                reasoning=HEURISTIC_REASONING,
            )
        return None

    async def smart_match_material(self, name: str, context: MaterialMatchContext) -> MaterialMatch:
        """Heuristic first, then a single-item AI batch."""
        match = self._heuristic(name, context)
        if match is not None:
            logger.info(f"Heuristic matched {name!r} -> {match.matched_material_id} ({match.confidence:.0%})")
            return match
        return (await self.match_materials_batch([name], context))[0]

    async def smart_match_materials_batch(self, names: List[str], context: MaterialMatchContext) -> List[MaterialMatch]:
        """Heuristic pass over all names; the rest go to the model in chunks. Input order is kept."""
        results: List[Optional[MaterialMatch]] = [None] * len(names)
        pending = []

        for index, name in enumerate(names):
            match = self._heuristic(name, context)
            if match is not None:
                results[index] = match
            else:
                pending.append(index)

        logger.info(f"Smart matcher: {len(names) - len(pending)} matched via heuristic, {len(pending)} need AI")

        size = self.config.batch_size
        for start in range(0, len(pending), size):
            chunk = pending[start:start + size]
            answers = await self.match_materials_batch([names[i] for i in chunk], context)
            for index, answer in zip(chunk, answers):
                results[index] = answer

        return results
