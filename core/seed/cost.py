"""Cost and duration estimates for style generation runs."""

import math
from dataclasses import asdict, dataclass, field

from core.ai.images import GOLDEN_SCENES, ROOM_ORIENTATIONS

# USD per request, conservative averages
PRICING = {
    "ai_selection": 0.0005,
    "main_content": 0.001,
    "room_profile": 0.0005,
    "image": 0.003,
}

DEFAULT_ROOM_TYPES_COUNT = 24
MATERIAL_IMAGES_PER_STYLE = 5


@dataclass
class CostLine:
    count: int = 0
    cost_per: float = 0.0
    total: float = 0.0

    @classmethod
    def of(cls, count: int, cost_per: float) -> "CostLine":
        return cls(count=count, cost_per=cost_per, total=count * cost_per)


@dataclass
class CostBreakdown:
    ai_selection: CostLine = field(default_factory=CostLine)
    main_content: CostLine = field(default_factory=CostLine)
    room_profiles: CostLine = field(default_factory=CostLine)
    scene_images: CostLine = field(default_factory=CostLine)
    room_images: CostLine = field(default_factory=CostLine)
    material_images: CostLine = field(default_factory=CostLine)

    @property
    def text_subtotal(self) -> float:
        return self.ai_selection.total + self.main_content.total + self.room_profiles.total

    @property
    def image_subtotal(self) -> float:
        return self.scene_images.total + self.room_images.total + self.material_images.total

    @property
    def grand_total(self) -> float:
        return self.text_subtotal + self.image_subtotal

    def to_dict(self) -> dict:
        data = asdict(self)
        data["text_subtotal"] = self.text_subtotal
        data["image_subtotal"] = self.image_subtotal
        data["grand_total"] = self.grand_total
        return data


def calculate_estimated_cost(
    num_styles: int,
    generate_images: bool = True,
    generate_room_profiles: bool = True,
    room_types_count: int = DEFAULT_ROOM_TYPES_COUNT,
    images_per_scene: int = 5,
) -> CostBreakdown:
    """Estimated cost of generating ``num_styles`` styles."""
    rooms = num_styles * room_types_count if generate_room_profiles else 0
    scene_images = num_styles * len(GOLDEN_SCENES) * images_per_scene if generate_images else 0
    room_images = rooms * len(ROOM_ORIENTATIONS) if generate_images else 0
    material_images = num_styles * MATERIAL_IMAGES_PER_STYLE if generate_images else 0

    return CostBreakdown(
        ai_selection=CostLine.of(num_styles, PRICING["ai_selection"]),
        main_content=CostLine.of(num_styles, PRICING["main_content"]),
        room_profiles=CostLine.of(rooms, PRICING["room_profile"]),
        scene_images=CostLine.of(scene_images, PRICING["image"]),
        room_images=CostLine.of(room_images, PRICING["image"]),
        material_images=CostLine.of(material_images, PRICING["image"]),
    )


def calculate_per_style_cost(**kwargs) -> CostBreakdown:
    return calculate_estimated_cost(1, **kwargs)


def format_cost(cost: float) -> str:
    return f"${cost:.3f}" if cost < 1 else f"${cost:.2f}"


def estimate_generation_time(
    num_styles: int,
    generate_images: bool = True,
    generate_room_profiles: bool = True,
) -> int:
    """Estimated wall-clock minutes, rounded up."""
    # selection and text
    per_style = 0.75
    if generate_images:
        per_style += 1
    if generate_room_profiles:
        per_style += 2
        if generate_images:
            per_style += 3
    return math.ceil(num_styles * per_style)


def format_time_estimate(minutes: int) -> str:
    if minutes < 60:
        return f"~{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"~{hours}h {mins}m" if mins else f"~{hours}h"
