"""Seed source data: base library entities loaded from a JSON file.

The file holds the lists ``approaches``, ``room_types``, ``colors``,
``material_categories``, ``categories`` and ``sub_categories``. Slugs are
optional and derived from the English name.

Example:
    {
        "categories": [
            {"name": {"he": "עולם עתיק", "en": "Ancient World"},
             "description": {"he": "...", "en": "..."}, "period": "3000 BCE - 1500"}
        ],
        "sub_categories": [
            {"name": {"he": "גותי", "en": "Gothic"}, "category_slug": "ancient-world"}
        ]
    }
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from core.ai.schemas import BilingualText

logger = logging.getLogger(__name__)

DEFAULT_SEED_DATA_PATH = "data/seed_data.json"


class SeedDataError(Exception):
    """Seed source could not be read or parsed."""


def create_slug(name: str) -> str:
    """Lowercase, hyphenated slug keeping Latin letters, digits and Hebrew."""
    slug = re.sub(r"\s+", "-", name.lower())
    slug = re.sub("[^a-z0-9\u0590-\u05ff-]", "", slug)
    return re.sub(r"-+", "-", slug).strip("-")


class _SeedEntity(BaseModel):
    name: BilingualText
    slug: str = ""
    order: int = 0

    @model_validator(mode="after")
    def _default_slug(self):
        if not self.slug:
            self.slug = create_slug(self.name.en)
        return self


class ApproachData(_SeedEntity):
    description: Optional[BilingualText] = None


class RoomTypeData(_SeedEntity):
    category: str = Field(description="Room group slug, e.g. public-spaces")


class ColorData(_SeedEntity):
    hex: str = Field(pattern=r"^#[0-9A-Fa-f]{6}$")
    category: str = Field(default="neutral", description="neutral, accent, metallic or semantic")
    description: Optional[BilingualText] = None


class MaterialCategoryData(_SeedEntity):
    description: Optional[BilingualText] = None


class CategoryData(_SeedEntity):
    description: BilingualText
    period: Optional[str] = None


class SubCategoryData(_SeedEntity):
    category_slug: str
    description: Optional[BilingualText] = None
    period: Optional[str] = None


class SeedData(BaseModel):
    approaches: List[ApproachData] = Field(default_factory=list)
    room_types: List[RoomTypeData] = Field(default_factory=list)
    colors: List[ColorData] = Field(default_factory=list)
    material_categories: List[MaterialCategoryData] = Field(default_factory=list)
    categories: List[CategoryData] = Field(default_factory=list)
    sub_categories: List[SubCategoryData] = Field(default_factory=list)

    @model_validator(mode="after")
    def _default_order(self):
        for entities in (
            self.approaches,
            self.room_types,
            self.colors,
            self.material_categories,
            self.categories,
            self.sub_categories,
        ):
            for index, entity in enumerate(entities, start=1):
                if not entity.order:
                    entity.order = index
        return self


def load_seed_data(path: Optional[Union[str, Path]] = None) -> SeedData:
    """
    Load and validate the seed source.

    Args:
        path: JSON file; defaults to ``SEED_DATA_PATH`` or data/seed_data.json

    Returns:
        Parsed SeedData

    Raises:
        SeedDataError: File missing, unreadable or invalid
    """
    actual = Path(path or os.getenv("SEED_DATA_PATH", DEFAULT_SEED_DATA_PATH))
    if not actual.exists():
        raise SeedDataError(f"File not found: {actual}")

    try:
        raw = json.loads(actual.read_text(encoding="utf-8"))
        data = SeedData.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        raise SeedDataError(f"Invalid seed data in {actual}: {e}") from e

    logger.info(
        f"Loaded seed data: {len(data.approaches)} approaches, {len(data.room_types)} room types, "
        f"{len(data.colors)} colors, {len(data.material_categories)} material categories, "
        f"{len(data.categories)} categories, {len(data.sub_categories)} sub-categories"
    )
    return data
