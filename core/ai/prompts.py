"""Prompt templates for structured content generation.

Entities are passed as plain store documents: ``name`` and ``description`` are
``{"he": ..., "en": ...}`` dicts and ``detailed_content`` mirrors
``LocalizedDetailedContent``.
"""

from typing import List, Optional


def _format_list(items: List[str]) -> str:
    if not items:
        return "- N/A"
    return "\n".join(f"- {item}" for item in items)


def _localized(doc: Optional[dict], locale: str, field: str, default: str = "N/A") -> str:
    """Read ``doc['detailed_content'][locale][field]`` with a fallback to ``doc['description']``."""
    if not doc:
        return default
    detailed = (doc.get("detailed_content") or {}).get(locale) or {}
    value = detailed.get(field)
    if value:
        return value
    if field == "description":
        return (doc.get("description") or {}).get(locale) or default
    return default


def _color_description(color: dict, locale: str) -> str:
    description = color.get("description") or {}
    return description.get(locale) or "N/A"


def _existing_description(description: Optional[dict]) -> str:
    if not description or not (description.get("he") or description.get("en")):
        return ""
    return (
        "Existing Description:\n"
        f"- Hebrew: {description.get('he', '')}\n"
        f"- English: {description.get('en', '')}\n"
    )


_LOCALE_RULES = """IMPORTANT:
1. Keep descriptions professional and informative
2. Make sure Hebrew content is in proper RTL Hebrew
3. Ensure English translations are accurate and natural
4. Return the same structure under "he" and "en\""""


def build_category_prompt(
    name: dict,
    description: Optional[dict] = None,
    period: Optional[str] = None,
    related_styles: Optional[List[str]] = None,
) -> str:
    period_line = f"Time Period: {period}\n" if period else ""
    related = f"Related Styles: {', '.join(related_styles)}\n" if related_styles else ""
    return f"""You are an expert interior design historian and content writer. Generate comprehensive, detailed content for a design style CATEGORY.

Category Name:
- Hebrew: {name['he']}
- English: {name['en']}

{_existing_description(description)}{period_line}{related}
Generate detailed content in BOTH Hebrew and English. Include:
- A brief introduction (2-3 sentences)
- A full detailed description (5-8 sentences)
- The historical period (if applicable)
- 5 key characteristics
- 3-5 visual elements
- Historical context (3-5 sentences)
- Cultural context (2-4 sentences)
- 3 typical applications

{_LOCALE_RULES}"""


def build_sub_category_prompt(
    name: dict,
    category_name: dict,
    description: Optional[dict] = None,
    period: Optional[str] = None,
) -> str:
    period_line = f"Time Period: {period}\n" if period else ""
    return f"""You are an expert interior design historian and content writer. Generate comprehensive, detailed content for a design style SUB-CATEGORY.

Sub-Category Name:
- Hebrew: {name['he']}
- English: {name['en']}

Parent Category:
- Hebrew: {category_name['he']}
- English: {category_name['en']}

{_existing_description(description)}{period_line}
Generate detailed content in BOTH Hebrew and English. Include:
- A brief introduction (2-3 sentences)
- A full detailed description (4-6 sentences)
- The historical period
- 4 key characteristics
- 3-4 visual elements
- Color guidance (2-3 sentences)
- Material guidance (2-3 sentences)
- Historical and cultural context (2-4 sentences each)
- 3 typical applications

{_LOCALE_RULES}"""


def build_approach_prompt(name: dict, description: Optional[dict] = None) -> str:
    return f"""You are an expert interior design philosopher and content writer. Generate comprehensive, detailed content for a design APPROACH.

Approach Name:
- Hebrew: {name['he']}
- English: {name['en']}

{_existing_description(description)}
Generate detailed content in BOTH Hebrew and English. Include:
- A brief introduction (2-3 sentences)
- A full description of the approach (5-8 sentences)
- The core design philosophy (3-5 sentences)
- 5 core principles as characteristics
- 3 visual elements
- General color guidance (2-3 sentences)
- General material guidance (2-3 sentences)
- 3 application areas

{_LOCALE_RULES}"""


def build_room_type_prompt(name: dict, description: Optional[dict] = None, category: Optional[str] = None) -> str:
    category_line = f"Category: {category}\n" if category else ""
    return f"""You are an expert interior designer and content writer. Generate comprehensive, detailed content for a ROOM TYPE.

Room Type Name:
- Hebrew: {name['he']}
- English: {name['en']}

{_existing_description(description)}{category_line}
Generate detailed content in BOTH Hebrew and English. Include:
- A brief introduction (2-3 sentences)
- A detailed description of the room type and its purpose (4-6 sentences)
- 4 functional characteristics
- 3 common design elements as visual elements
- Color recommendations (2-3 sentences)
- Material and finish recommendations (2-3 sentences)
- 3 typical uses as applications

{_LOCALE_RULES}"""


def build_color_description_prompt(name: dict, hex_code: str, category: str) -> str:
    return f"""You are an expert interior designer and color consultant. Generate a professional description for this color.

Color Information:
- Name (Hebrew): {name['he']}
- Name (English): {name['en']}
- Hex Code: {hex_code}
- Category: {category}

Explain in 3-4 sentences per language:
1. The visual characteristics of this color
2. How and where it is used in interior design
3. The moods and atmospheres it creates
4. Which design styles and rooms it suits best

Write in professional, designer-friendly language, in BOTH Hebrew ("he") and English ("en")."""


def build_poetic_intro_prompt(
    style_name: dict,
    sub_category: dict,
    approach: dict,
    color: dict,
) -> str:
    return f"""You are a poetic interior design writer creating an ARTISTIC, PHILOSOPHICAL introduction for a design style.

STYLE: {style_name['he']} / {style_name['en']}
SUB-CATEGORY: {sub_category['name']['he']} / {sub_category['name']['en']}
APPROACH: {approach['name']['he']} / {approach['name']['en']}
PRIMARY COLOR: {color['name']['he']} / {color['name']['en']} ({color.get('hex', '')})

CONTEXT:
Sub-Category: {_localized(sub_category, 'he', 'description')}
Approach Philosophy: {_localized(approach, 'he', 'philosophy')}
Color Essence: {_color_description(color, 'he')}

Write a poetic introduction in BOTH Hebrew and English, each with:
- title: a poetic headline about harmony and unity (5-10 words)
- subtitle: 5-10 words
- paragraph1: harmony and unity in this style
- paragraph2: how {color['name']['en']} connects to nature, materials and textures
- paragraph3: how the {approach['name']['en']} approach shapes form and connection
- paragraph4: how color, material and form combine into a whole

Guidelines:
- Flowing, artistic language, not technical
- Focus on feelings, connections and harmony; nature, light, materials, spatial flow
- Avoid measurements and price points
- Each paragraph 100-150 words
- The English section mirrors the Hebrew section"""


PRICE_LEVEL_GUIDANCE = {
    "LUXURY": """LUXURY TIER KEYWORDS (inject throughout):
- Exclusive, High-end, Custom-made, Bespoke
- Sophisticated, Refined, Precious materials
- Artisanal, Hand-crafted, Limited edition
- Marble, Solid wood, Genuine leather, Silk
- Polished brass, Crystal, Fine metals""",
    "REGULAR": """REGULAR TIER KEYWORDS (inject throughout):
- Accessible, Functional, Practical
- Smart solutions, Value-oriented
- Standard materials, Quality essentials
- Engineered wood, Synthetic leather, Cotton blends
- Chrome, Aluminum, Glass""",
}


def build_factual_details_prompt(
    style_name: dict,
    category: dict,
    sub_category: dict,
    approach: dict,
    color: dict,
    price_level: str = "REGULAR",
) -> str:
    guidance = PRICE_LEVEL_GUIDANCE.get(price_level, PRICE_LEVEL_GUIDANCE["REGULAR"])
    sub_detailed = (sub_category.get("detailed_content") or {}).get("he") or {}
    return f"""You are an expert interior design historian creating DETAILED, FACTUAL content for a design style.

STYLE TO DOCUMENT: {style_name['he']} / {style_name['en']}

CORE COMPONENTS (60% weight to sub-category, 25% to approach, 15% to color):
- Category: {category['name']['he']} / {category['name']['en']}
- Sub-Category: {sub_category['name']['he']} / {sub_category['name']['en']}
- Approach: {approach['name']['he']} / {approach['name']['en']}
- Primary Color: {color['name']['he']} / {color['name']['en']} ({color.get('hex', '')})

{guidance}

SUB-CATEGORY KNOWLEDGE (60% weight):
Period: {_localized(sub_category, 'he', 'period', _localized(sub_category, 'en', 'period'))}
Description (Hebrew): {_localized(sub_category, 'he', 'description')}
Description (English): {_localized(sub_category, 'en', 'description')}
Characteristics:
{_format_list(sub_detailed.get('characteristics') or [])}
Historical Context: {_localized(sub_category, 'he', 'historical_context')}

APPROACH KNOWLEDGE (25% weight):
Philosophy (Hebrew): {_localized(approach, 'he', 'philosophy', _localized(approach, 'he', 'description'))}
Philosophy (English): {_localized(approach, 'en', 'philosophy', _localized(approach, 'en', 'description'))}

COLOR KNOWLEDGE (15% weight):
Category: {color.get('category', 'N/A')}
Description (English): {_color_description(color, 'en')}

Generate factual content in BOTH Hebrew and English:
1. introduction (2-3 sentences)
2. description (6-10 sentences): how the {approach['name']['en']} approach reinterprets {sub_category['name']['en']}, and how {color['name']['en']} enhances it
3. period (years, "Contemporary interpretation of ..." or "Timeless")
4. characteristics (8-12 items)
5. visual_elements (6-8 items)
6. color_guidance (4-6 sentences)
7. material_guidance (4-6 sentences, {price_level} tier materials)
8. historical_context (4-6 sentences)
9. cultural_context (3-5 sentences)
10. applications (6-10 room types)
11. executive_summary (4-6 sentences)
12. required_materials (15-25 specific material names in English, {price_level} tier only)
13. required_colors (10-15 color names in English)"""


def build_room_profile_prompt(
    room_type: dict,
    style_name: dict,
    style_description: dict,
    characteristics: List[str],
    visual_elements: List[str],
    material_guidance: dict,
    primary_color: dict,
) -> str:
    return f"""You are an interior designer creating a ROOM-SPECIFIC application guide for a design style.

STYLE: {style_name['he']} / {style_name['en']}
ROOM TYPE: {room_type['name']['he']} / {room_type['name']['en']}
PRIMARY COLOR: {primary_color['name']['he']} / {primary_color['name']['en']} ({primary_color.get('hex', '')})

STYLE OVERVIEW:
Description (Hebrew): {style_description.get('he') or 'N/A'}
Description (English): {style_description.get('en') or 'N/A'}

Key Characteristics:
{_format_list(characteristics[:6])}

Visual Elements:
{_format_list(visual_elements[:6])}

Material Guidance (English): {material_guidance.get('en') or 'N/A'}

ROOM TYPE KNOWLEDGE:
Description (English): {_localized(room_type, 'en', 'description')}

Create a room profile showing how the {style_name['en']} style is applied in a {room_type['name']['en']}:
- description (4-6 sentences per language)
- color_palette: primary "{primary_color.get('hex', '')}", 3 secondary hex, 2 accent hex, bilingual description
- materials (3-5): bilingual name and application, finish one of matte, glossy, textured, natural
- furniture_and_fixtures (5-8): importance one of essential, recommended, optional
- lighting: natural guidance plus 3-5 artificial lighting types
- spatial_considerations: layout, circulation, 2-4 functional zones
- decorative_elements (3-5) and design_tips (3-5)

All text fields are {{"he": ..., "en": ...}} objects."""
