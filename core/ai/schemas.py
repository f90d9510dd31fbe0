"""Pydantic schemas for AI-generated content.

Every structured gateway call validates its response against one of these
models, so no untyped data flows past the gateway boundary.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore")


class BilingualText(_Schema):
    """Text in Hebrew and English."""

    he: str = Field(description="Hebrew text (RTL)")
    en: str = Field(description="English text")


class DetailedContent(_Schema):
    """Detailed content for categories, sub-categories, approaches, room types and styles."""

    introduction: Optional[str] = Field(default=None, description="Brief introduction (2-3 sentences)")
    description: Optional[str] = Field(default=None, description="Full detailed description (5-8 sentences)")
    period: Optional[str] = Field(default=None, description="Historical period if applicable")
    characteristics: Optional[List[str]] = Field(default=None, description="Key characteristics (5 items)")
    visual_elements: Optional[List[str]] = Field(default=None, description="Visual elements (3-5 items)")
    philosophy: Optional[str] = Field(default=None, description="Design philosophy")
    color_guidance: Optional[str] = Field(default=None, description="Color palette guidance")
    material_guidance: Optional[str] = Field(default=None, description="Material and texture guidance")
    applications: Optional[List[str]] = Field(default=None, description="Typical applications")
    historical_context: Optional[str] = Field(default=None, description="Historical and cultural background")
    cultural_context: Optional[str] = Field(default=None, description="Cultural influences and significance")
    required_materials: Optional[List[str]] = Field(default=None, description="Required materials for this style")
    required_colors: Optional[List[str]] = Field(default=None, description="Supporting color names for this style")
    executive_summary: Optional[str] = Field(default=None, description="Core value proposition and target audience")


class LocalizedDetailedContent(_Schema):
    he: DetailedContent
    en: DetailedContent


class PoeticContent(_Schema):
    """Poetic introduction for a style."""

    title: str = Field(description="Evocative title")
    subtitle: str = Field(description="Poetic subtitle")
    paragraph1: str = Field(description="Opening paragraph, sets the mood")
    paragraph2: str = Field(description="Second paragraph, describes the aesthetic")
    paragraph3: str = Field(description="Third paragraph, materials and textures")
    paragraph4: str = Field(description="Closing paragraph, emotional impact")


class LocalizedPoeticContent(_Schema):
    he: PoeticContent
    en: PoeticContent


class PoeticIntroResponse(_Schema):
    poetic_intro: LocalizedPoeticContent


class FactualDetailsResponse(_Schema):
    factual_details: LocalizedDetailedContent


class StyleDetailedContent(DetailedContent):
    """Factual style content with the poetic block merged in."""

    poetic_intro: Optional[PoeticContent] = None


class LocalizedStyleContent(_Schema):
    he: StyleDetailedContent
    en: StyleDetailedContent

    @property
    def required_materials(self) -> List[str]:
        """English material names, falling back to the Hebrew list."""
        return self.en.required_materials or self.he.required_materials or []


class ColorDescription(_Schema):
    he: str = Field(description="Hebrew color description (3-4 sentences)")
    en: str = Field(description="English color description (3-4 sentences)")


# Room profile

class ColorPalette(_Schema):
    primary: str = Field(description="Primary color hex")
    secondary: List[str] = Field(default_factory=list, description="Secondary colors")
    accent: List[str] = Field(default_factory=list, description="Accent colors")
    description: BilingualText


class MaterialItem(_Schema):
    name: BilingualText
    application: BilingualText
    finish: str


class FurnitureItem(_Schema):
    item: BilingualText
    description: BilingualText
    importance: Literal["essential", "recommended", "optional"]


class LightingType(_Schema):
    type: BilingualText
    description: BilingualText


class Lighting(_Schema):
    natural: BilingualText
    artificial: List[LightingType] = Field(default_factory=list)


class FunctionalZone(_Schema):
    zone: BilingualText
    purpose: BilingualText


class SpatialConsiderations(_Schema):
    layout: BilingualText
    circulation: BilingualText
    functional_zones: List[FunctionalZone] = Field(default_factory=list)


class DecorativeElement(_Schema):
    element: BilingualText
    role: BilingualText


class DesignTip(_Schema):
    tip: BilingualText


class RoomProfileBody(_Schema):
    description: BilingualText
    color_palette: ColorPalette
    materials: List[MaterialItem] = Field(default_factory=list, description="3-5 items")
    furniture_and_fixtures: List[FurnitureItem] = Field(default_factory=list, description="5-8 items")
    lighting: Lighting
    spatial_considerations: SpatialConsiderations
    decorative_elements: List[DecorativeElement] = Field(default_factory=list, description="3-5 items")
    design_tips: List[DesignTip] = Field(default_factory=list, description="3-5 items")


class RoomProfileContent(_Schema):
    room_profile: RoomProfileBody


# Style selection

class SelectionResult(_Schema):
    """AI-chosen approach and color for a sub-category."""

    approach_id: str
    color_id: str
    reasoning: BilingualText
    confidence: float = Field(ge=0, le=1)


# Material matching

class NewMaterialSpec(_Schema):
    """Specification for a material that does not exist yet."""

    name: BilingualText
    category_id: str
    type_id: Optional[str] = None
    texture_id: Optional[str] = None
    sub_type: Optional[str] = Field(default=None, description="Specific variant, e.g. Carrara for marble")
    finish: List[str] = Field(default_factory=lambda: ["matte"])
    colors: List[str] = Field(default_factory=list)
    description: Optional[BilingualText] = None


class MaterialMatch(_Schema):
    """Resolution of a single free-text material name."""

    input_name: str
    action: Literal["link", "create"]
    matched_material_id: Optional[str] = None
    confidence: float = Field(ge=0, le=1)
    new_material: Optional[NewMaterialSpec] = None
    reasoning: str = ""


class MaterialMatchBatchResponse(_Schema):
    results: List[MaterialMatch]
