"""Structured bilingual content generation for library entities."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from core.resilience.rate_limit import Clock, MinIntervalRateLimiter, MonotonicClock

from .gateway import GenerationOptions, ProviderGateway
from .models import GEMINI_FLASH, GEMINI_FLASH_LITE
from .prompts import (
    build_approach_prompt,
    build_category_prompt,
    build_color_description_prompt,
    build_factual_details_prompt,
    build_poetic_intro_prompt,
    build_room_profile_prompt,
    build_room_type_prompt,
    build_sub_category_prompt,
)
from .schemas import (
    ColorDescription,
    FactualDetailsResponse,
    LocalizedDetailedContent,
    LocalizedStyleContent,
    PoeticIntroResponse,
    RoomProfileBody,
    RoomProfileContent,
    StyleDetailedContent,
)
from .telemetry import TokenUsageTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

POETIC_TEMPERATURE = 0.8
FACTUAL_TEMPERATURE = 0.7


@dataclass
class StyleContext:
    """Style summary used when generating per-room content and images."""

    name: dict
    description: dict
    characteristics: List[str]
    visual_elements: List[str]
    material_guidance: dict
    primary_color: dict

    @classmethod
    def from_content(cls, name: dict, content: LocalizedStyleContent, color: dict) -> "StyleContext":
        """Build from generated style content and the chosen color document."""
        return cls(
            name=name,
            description={"he": content.he.description or "", "en": content.en.description or ""},
            characteristics=content.en.characteristics or [],
            visual_elements=content.en.visual_elements or [],
            material_guidance={
                "he": content.he.material_guidance or "",
                "en": content.en.material_guidance or "",
            },
            primary_color={"name": color["name"], "hex": color.get("hex", "")},
        )


@dataclass
class RoomProfile:
    """Per-room structured guidance plus embedded image URLs."""

    room_type_id: str
    profile: RoomProfileBody
    views: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {
            "room_type_id": self.room_type_id,
            **self.profile.model_dump(),
            "views": list(self.views),
        }


@dataclass
class BatchItemResult(Generic[T, R]):
    """Outcome of one item in a batch run."""

    item: T
    result: Optional[R] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


async def batch_generate(
    items: List[T],
    fn: Callable[[T], Awaitable[R]],
    batch_size: int = 5,
    delay: float = 1.0,
    on_progress: Optional[Callable[[int, int], None]] = None,
    clock: Optional[Clock] = None,
) -> List[BatchItemResult]:
    """
    Run ``fn`` over items in fixed-size chunks.

    Items within a chunk run concurrently; one failure never aborts the
    chunk. Consecutive chunks start at least ``delay`` seconds apart.

    Args:
        items: Items to process
        fn: Coroutine function applied to each item
        batch_size: Number of concurrent requests per chunk
        delay: Minimum spacing between chunk starts, in seconds
        on_progress: Called with (completed, total) after each chunk
        clock: Time source for the throttle

    Returns:
        One BatchItemResult per item, in input order
    """
    limiter = MinIntervalRateLimiter(delay, clock=clock or MonotonicClock())
    results: List[BatchItemResult] = []
    total = len(items)

    for start in range(0, total, batch_size):
        chunk = items[start:start + batch_size]
        await limiter.acquire()

        outcomes = await asyncio.gather(*(fn(item) for item in chunk), return_exceptions=True)
        for item, outcome in zip(chunk, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Batch item failed: {outcome}")
                results.append(BatchItemResult(item=item, error=str(outcome)))
            else:
                results.append(BatchItemResult(item=item, result=outcome))

        if on_progress:
            on_progress(len(results), total)

    return results


class ContentGenerator:
    """Generates validated bilingual content through the provider gateway."""

    def __init__(
        self,
        gateway: ProviderGateway,
        token_tracker: Optional[TokenUsageTracker] = None,
        text_model: str = GEMINI_FLASH,
        lite_model: str = GEMINI_FLASH_LITE,
        clock: Optional[Clock] = None,
    ):
        self.gateway = gateway
        self.token_tracker = token_tracker or TokenUsageTracker()
        self.text_model = text_model
        self.lite_model = lite_model
        self.clock = clock or MonotonicClock()

    def _options(self, model: str, function_id: str, temperature: float = 0.7) -> GenerationOptions:
        return GenerationOptions(
            model=model,
            temperature=temperature,
            function_id=function_id,
            on_token_usage=lambda usage: self.token_tracker.track(usage, model),
        )

    async def generate_category_content(
        self,
        name: dict,
        description: Optional[dict] = None,
        period: Optional[str] = None,
        related_styles: Optional[List[str]] = None,
    ) -> LocalizedDetailedContent:
        """Generate detailed content for a category."""
        logger.info(f"Generating category content for: {name['en']}")
        result = await self.gateway.generate_structured(
            build_category_prompt(name, description, period, related_styles),
            LocalizedDetailedContent,
            self._options(self.text_model, "generate-category-content"),
        )
        logger.info(f"Category content generated. Tokens used: {result.usage.total_tokens}")
        return result.object

    async def generate_sub_category_content(
        self,
        name: dict,
        category_name: dict,
        description: Optional[dict] = None,
        period: Optional[str] = None,
    ) -> LocalizedDetailedContent:
        """Generate detailed content for a sub-category."""
        logger.info(f"Generating sub-category content for: {name['en']}")
        result = await self.gateway.generate_structured(
            build_sub_category_prompt(name, category_name, description, period),
            LocalizedDetailedContent,
            self._options(self.lite_model, "generate-sub-category-content"),
        )
        return result.object

    async def generate_approach_content(self, name: dict, description: Optional[dict] = None) -> LocalizedDetailedContent:
        """Generate detailed content for a design approach."""
        logger.info(f"Generating approach content for: {name['en']}")
        result = await self.gateway.generate_structured(
            build_approach_prompt(name, description),
            LocalizedDetailedContent,
            self._options(self.lite_model, "generate-approach-content"),
        )
        return result.object

    async def generate_room_type_content(
        self,
        name: dict,
        description: Optional[dict] = None,
        category: Optional[str] = None,
    ) -> LocalizedDetailedContent:
        """Generate detailed content for a room type."""
        logger.info(f"Generating room type content for: {name['en']}")
        result = await self.gateway.generate_structured(
            build_room_type_prompt(name, description, category),
            LocalizedDetailedContent,
            self._options(self.lite_model, "generate-room-type-content"),
        )
        return result.object

    async def generate_color_description(self, name: dict, hex_code: str, category: str) -> ColorDescription:
        """Generate a short bilingual color description."""
        logger.info(f"Generating color description for: {name['en']}")
        result = await self.gateway.generate_structured(
            build_color_description_prompt(name, hex_code, category),
            ColorDescription,
            self._options(self.lite_model, "generate-color-description"),
        )
        return result.object

    async def generate_style_content(
        self,
        name: dict,
        category: dict,
        sub_category: dict,
        approach: dict,
        color: dict,
        price_level: str = "REGULAR",
    ) -> LocalizedStyleContent:
        """
        Generate style content in two phases and merge them per locale.

        The poetic introduction runs at a higher temperature than the factual
        block, whose fields feed material matching and image prompts.

        Args:
            name: Bilingual style name
            category: Parent category document
            sub_category: Sub-category document (primary knowledge source)
            approach: Approach document
            color: Color document
            price_level: "REGULAR" or "LUXURY"

        Returns:
            LocalizedStyleContent with ``poetic_intro`` set on both locales
        """
        logger.info(f"Generating poetic introduction for {name['en']}...")
        poetic = await self.gateway.generate_structured(
            build_poetic_intro_prompt(name, sub_category, approach, color),
            PoeticIntroResponse,
            self._options(self.text_model, "generate-style-poetic-intro", POETIC_TEMPERATURE),
        )

        logger.info(f"Generating factual details for {name['en']} (price level: {price_level})...")
        factual = await self.gateway.generate_structured(
            build_factual_details_prompt(name, category, sub_category, approach, color, price_level),
            FactualDetailsResponse,
            self._options(self.text_model, "generate-style-factual-details", FACTUAL_TEMPERATURE),
        )

        details = factual.object.factual_details
        intro = poetic.object.poetic_intro
        return LocalizedStyleContent(
            he=StyleDetailedContent(**details.he.model_dump(), poetic_intro=intro.he),
            en=StyleDetailedContent(**details.en.model_dump(), poetic_intro=intro.en),
        )

    async def generate_room_profile_content(self, room_type: dict, style: StyleContext) -> RoomProfile:
        """Generate the room-specific profile of a style."""
        logger.info(f"Generating room profile for {room_type['name']['en']} in {style.name['en']}...")
        prompt = build_room_profile_prompt(
            room_type=room_type,
            style_name=style.name,
            style_description=style.description,
            characteristics=style.characteristics,
            visual_elements=style.visual_elements,
            material_guidance=style.material_guidance,
            primary_color=style.primary_color,
        )
        result = await self.gateway.generate_structured(
            prompt,
            RoomProfileContent,
            self._options(self.text_model, "generate-room-profile"),
        )
        return RoomProfile(room_type_id=room_type["id"], profile=result.object.room_profile)

    async def batch_generate_room_profiles(
        self,
        room_types: List[dict],
        style: StyleContext,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
        interval: float = 2.0,
    ) -> List[RoomProfile]:
        """Generate profiles room by room; failed rooms are skipped."""
        limiter = MinIntervalRateLimiter(interval, clock=self.clock)
        profiles: List[RoomProfile] = []
        total = len(room_types)

        for index, room_type in enumerate(room_types, start=1):
            if on_progress:
                on_progress(index, total, room_type["name"]["en"])
            await limiter.acquire()
            try:
                profiles.append(await self.generate_room_profile_content(room_type, style))
            except Exception as e:
                logger.error(f"Error generating profile for {room_type['name']['en']}: {e}")

        return profiles

    def get_token_usage(self) -> dict[str, Any]:
        return self.token_tracker.get_usage()
