"""Data types for seeding runs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class PriceLevel(str, Enum):
    REGULAR = "REGULAR"
    LUXURY = "LUXURY"
    RANDOM = "RANDOM"


ENTITY_KINDS = (
    "approaches",
    "room_types",
    "colors",
    "material_categories",
    "categories",
    "sub_categories",
    "styles",
)

ProgressCallback = Callable[..., None]


@dataclass
class SeedOptions:
    """Options for a seeding run.

    ``on_progress`` is called as ``(message, current=None, total=None)``.
    ``on_style_completed`` is called with ``(style_id, style_name)`` once a
    style has all of its room profiles.
    """

    skip_existing: bool = False
    only: Optional[List[str]] = None
    limit: Optional[int] = None
    on_progress: Optional[ProgressCallback] = None
    dry_run: bool = False
    generate_images: bool = False
    images_per_entity: int = 3
    category_filter: Optional[str] = None
    sub_category_filter: Optional[str] = None
    room_type_filter: Optional[List[str]] = None
    execution_id: Optional[str] = None
    manual_mode: bool = False
    approach_id: Optional[str] = None
    color_id: Optional[str] = None
    price_level: PriceLevel = PriceLevel.REGULAR
    generate_room_profiles: bool = True
    on_style_completed: Optional[Callable[[str, dict], Any]] = None

    def includes(self, kind: str) -> bool:
        return not self.only or kind in self.only

    def progress(self, message: str, current: Optional[int] = None, total: Optional[int] = None) -> None:
        if self.on_progress:
            self.on_progress(message, current, total)


@dataclass
class EntityStats:
    created: int = 0
    updated: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return {"created": self.created, "updated": self.updated, "skipped": self.skipped}


@dataclass
class StyleStats(EntityStats):
    total_sub_categories: Optional[int] = None
    already_generated: Optional[int] = None
    pending_before_seed: Optional[int] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        for key in ("total_sub_categories", "already_generated", "pending_before_seed"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class SeedError:
    """Failure of one entity, or of the whole run for ``global`` entities."""

    entity: str
    error: str

    def to_dict(self) -> dict:
        return {"entity": self.entity, "error": self.error}


@dataclass
class SeedStats:
    approaches: EntityStats = field(default_factory=EntityStats)
    room_types: EntityStats = field(default_factory=EntityStats)
    colors: EntityStats = field(default_factory=EntityStats)
    material_categories: EntityStats = field(default_factory=EntityStats)
    categories: EntityStats = field(default_factory=EntityStats)
    sub_categories: EntityStats = field(default_factory=EntityStats)
    styles: StyleStats = field(default_factory=StyleStats)

    def to_dict(self) -> Dict[str, dict]:
        return {
            "approaches": self.approaches.to_dict(),
            "room_types": self.room_types.to_dict(),
            "colors": self.colors.to_dict(),
            "material_categories": self.material_categories.to_dict(),
            "categories": self.categories.to_dict(),
            "sub_categories": self.sub_categories.to_dict(),
            "styles": self.styles.to_dict(),
        }


@dataclass
class SeedResult:
    """Outcome of a seeding run.

    ``success`` is False whenever ``errors`` is non-empty; partial progress is
    kept and callers must inspect ``errors`` to find what failed.
    """

    success: bool = True
    stats: SeedStats = field(default_factory=SeedStats)
    errors: List[SeedError] = field(default_factory=list)

    def add_error(self, entity: str, error: Exception) -> None:
        self.errors.append(SeedError(entity=entity, error=str(error)))
        self.success = False

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "stats": self.stats.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
        }
