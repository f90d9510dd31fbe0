"""Test doubles: fake clock, scripted backends, fake storage and library fixtures."""

import json
from typing import List, Optional

from pydantic import BaseModel

from core.ai.backends import BackendResponse, GeneratedImage, GenerationBackend
from core.ai.content import RoomProfile
from core.ai.errors import ProviderError
from core.ai.schemas import (
    BilingualText,
    ColorDescription,
    ColorPalette,
    DetailedContent,
    Lighting,
    LocalizedDetailedContent,
    LocalizedStyleContent,
    RoomProfileBody,
    SpatialConsiderations,
    StyleDetailedContent,
)
from core.ai.telemetry import TokenUsage
from core.resilience.rate_limit import Clock
from core.storage.blob_storage import ObjectStorage, StorageError
from core.store.base import APPROACHES, CATEGORIES, COLORS, ROOM_TYPES, SUB_CATEGORIES


class FakeClock(Clock):
    """Clock whose ``sleep`` advances time instantly and records the delay."""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if seconds > 0:
            self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FakeBackend(GenerationBackend):
    """
    Backend replaying scripted responses.

    Each queued item is a pydantic model, a dict, a raw string or an
    exception to raise. An empty queue raises a retryable ProviderError.
    """

    supports_images = True

    def __init__(self, name: str = "fake-primary", responses: Optional[list] = None):
        self.name = name
        self.responses = list(responses or [])
        self.requests = []
        self.image_calls = 0
        self.image_error: Optional[Exception] = None

    def queue(self, *items) -> None:
        self.responses.extend(items)

    async def generate(self, request):
        self.requests.append(request)
        if not self.responses:
            raise ProviderError(f"{self.name}: no scripted response")

        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, BaseModel):
            text = item.model_dump_json()
        elif isinstance(item, dict):
            text = json.dumps(item, ensure_ascii=False)
        else:
            text = item
        return BackendResponse(
            text=text,
            usage=TokenUsage(prompt_tokens=100, completion_tokens=200),
            finish_reason="stop",
        )

    async def generate_image(self, prompt, model, aspect_ratio="4:3", reference_images=None, temperature=0.9):
        self.image_calls += 1
        if self.image_error is not None:
            raise self.image_error
        return GeneratedImage(data=b"\x89PNG fake image", mime_type="image/png")


class FakeStorage(ObjectStorage):
    """Records uploads and returns https URLs."""

    def __init__(self):
        self.uploads = []

    async def upload(self, data, mime_type, entity_type, entity_id, filename, room_type=None,
                     project_id=None, room_id=None, organization_id=None):
        self.uploads.append({
            "mime_type": mime_type,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "filename": filename,
            "room_type": room_type,
            "organization_id": organization_id,
        })
        return f"https://storage.example.com/{entity_type}/{entity_id}/{filename}"


class FailingStorage(ObjectStorage):
    """Every upload fails."""

    def __init__(self):
        self.attempts = 0

    async def upload(self, data, mime_type, entity_type, entity_id, filename, **kwargs):
        self.attempts += 1
        raise StorageError("storage unavailable")


def bilingual(text: str) -> BilingualText:
    return BilingualText(he=f"{text} (he)", en=text)


def detailed_content(name: str = "Entity") -> LocalizedDetailedContent:
    return LocalizedDetailedContent(
        he=DetailedContent(introduction=f"מבוא ל{name}", description=f"תיאור של {name}"),
        en=DetailedContent(
            introduction=f"Introduction to {name}",
            description=f"Description of {name}",
            characteristics=["Symmetry", "Ornament"],
            visual_elements=["Columns"],
        ),
    )


def style_content(materials: Optional[List[str]] = None) -> LocalizedStyleContent:
    return LocalizedStyleContent(
        he=StyleDetailedContent(description="סגנון מרשים", material_guidance="שיש ועץ"),
        en=StyleDetailedContent(
            description="An impressive style",
            characteristics=["Rich ornament"],
            visual_elements=["Gilded mouldings"],
            material_guidance="Marble and walnut",
            required_materials=materials or [],
        ),
    )


def room_profile_body(label: str = "room") -> RoomProfileBody:
    return RoomProfileBody(
        description=bilingual(f"A {label}"),
        color_palette=ColorPalette(primary="#F5F0E1", description=bilingual("Warm neutrals")),
        lighting=Lighting(natural=bilingual("Soft daylight")),
        spatial_considerations=SpatialConsiderations(
            layout=bilingual("Open layout"),
            circulation=bilingual("Clear paths"),
        ),
    )


class FakeContentGenerator:
    """Stands in for ContentGenerator; room profiles for ``fail_rooms`` slugs raise."""

    def __init__(self, materials: Optional[List[str]] = None, fail_rooms=None):
        self.gateway = None
        self.materials = materials or []
        self.fail_rooms = set(fail_rooms or [])
        self.room_calls: List[str] = []
        self.style_calls: List[dict] = []
        self.color_calls: List[str] = []

    async def generate_approach_content(self, name, description=None):
        return detailed_content(name["en"])

    async def generate_room_type_content(self, name, description=None, category=None):
        return detailed_content(name["en"])

    async def generate_color_description(self, name, hex_code, category):
        self.color_calls.append(hex_code)
        return ColorDescription(he=f"תיאור {name['he']}", en=f"{name['en']} is a {category} color")

    async def generate_category_content(self, name, description=None, period=None, related_styles=None):
        return detailed_content(name["en"])

    async def generate_sub_category_content(self, name, category_name, description=None, period=None):
        return detailed_content(name["en"])

    async def generate_style_content(self, name, category, sub_category, approach, color, price_level="REGULAR"):
        self.style_calls.append({"name": name, "price_level": price_level})
        return style_content(self.materials)

    async def generate_room_profile_content(self, room_type, style):
        self.room_calls.append(room_type["slug"])
        if room_type["slug"] in self.fail_rooms:
            raise ProviderError(f"room {room_type['slug']} failed", retryable=False)
        return RoomProfile(room_type_id=room_type["id"], profile=room_profile_body(room_type["slug"]))


ROOM_SLUGS = ["living-room", "kitchen", "master-bedroom"]


def library_documents(sub_categories: int = 1) -> dict:
    """Base library rows needed to seed styles."""
    subs = [
        {
            "id": "sc-baroque",
            "slug": "baroque",
            "name": {"he": "בארוק", "en": "Baroque"},
            "category_id": "cat-classical",
            "images": [],
            "detailed_content": detailed_content("Baroque").model_dump(),
        },
        {
            "id": "sc-art-deco",
            "slug": "art-deco",
            "name": {"he": "ארט דקו", "en": "Art Deco"},
            "category_id": "cat-classical",
            "images": [],
        },
    ]
    return {
        CATEGORIES: [
            {"id": "cat-classical", "slug": "classical-styles", "name": {"he": "קלאסי", "en": "Classical Styles"}},
        ],
        SUB_CATEGORIES: subs[:sub_categories],
        APPROACHES: [
            {"id": "ap-timeless", "slug": "timeless", "name": {"he": "על-זמני", "en": "Timeless"}},
            {"id": "ap-eclectic", "slug": "eclectic", "name": {"he": "אקלקטי", "en": "Eclectic"}},
        ],
        COLORS: [
            {
                "id": "col-cream",
                "name": {"he": "שמנת", "en": "Warm Cream"},
                "hex": "#F5F0E1",
                "category": "neutral",
                "organization_id": None,
            },
            {
                "id": "col-navy",
                "name": {"he": "כחול כהה", "en": "Navy"},
                "hex": "#1F2A44",
                "category": "cool",
                "organization_id": None,
            },
        ],
        ROOM_TYPES: [
            {"id": f"rt-{slug}", "slug": slug, "name": {"he": slug, "en": slug.replace("-", " ").title()}, "order": i}
            for i, slug in enumerate(ROOM_SLUGS, start=1)
        ],
    }
