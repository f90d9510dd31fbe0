"""Data types for material matching."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class AvailableMaterial:
    """Existing catalog material offered to the matcher."""

    id: str
    name: dict
    category_id: str = ""
    category_slug: str = ""
    type_id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict, category_slug: str = "") -> "AvailableMaterial":
        return cls(
            id=doc["id"],
            name=doc.get("name") or {"he": "", "en": ""},
            category_id=doc.get("category_id", ""),
            category_slug=category_slug,
            type_id=(doc.get("properties") or {}).get("type_id"),
        )


@dataclass
class AvailableCategory:
    id: str
    name: dict
    slug: str


@dataclass
class AvailableType:
    id: str
    category_id: str
    name: dict
    slug: str = ""


@dataclass
class AvailableTexture:
    id: str
    name: dict


@dataclass
class MaterialMatchContext:
    """Everything the matcher may reference when resolving names."""

    available_materials: List[AvailableMaterial] = field(default_factory=list)
    available_categories: List[AvailableCategory] = field(default_factory=list)
    available_types: List[AvailableType] = field(default_factory=list)
    available_textures: List[AvailableTexture] = field(default_factory=list)
    style_context: Optional[str] = None
    price_level: Optional[str] = None


@dataclass
class HeuristicMatch:
    matched: bool
    material_id: Optional[str] = None
    confidence: float = 0.0


@dataclass
class MatcherConfig:
    """Matching thresholds. Hand-tuned, override per deployment."""

    link_threshold: float = 0.6
    heuristic_threshold: float = 0.85
    batch_size: int = 10
    temperature: float = 0.2
    max_prompt_materials: int = 50
    max_prompt_textures: int = 30


@dataclass
class MaterialAgentStats:
    matched: int = 0
    created: int = 0
    images: int = 0
    textures: int = 0
    errors: int = 0

    def to_dict(self) -> dict:
        return {
            "matched": self.matched,
            "created": self.created,
            "images": self.images,
            "textures": self.textures,
            "errors": self.errors,
        }


@dataclass
class MaterialAgentResult:
    """Outcome of resolving a style's required materials."""

    success: bool = True
    material_ids: List[str] = field(default_factory=list)
    stats: MaterialAgentStats = field(default_factory=MaterialAgentStats)
    errors: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "material_ids": list(self.material_ids),
            "stats": self.stats.to_dict(),
            "errors": list(self.errors),
        }
