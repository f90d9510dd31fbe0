"""Bilingual material vocabulary used by the heuristic matcher and inference."""

import re
from typing import Dict, List, Tuple

# Hebrew base term -> English variants
QUICK_TRANSLATIONS: Dict[str, List[str]] = {
    "שיש": ["marble", "carrara", "calacatta"],
    "עץ": ["wood", "oak", "walnut", "pine", "teak", "mahogany", "cherry"],
    "אלון": ["oak"],
    "אגוז": ["walnut"],
    "אורן": ["pine"],
    "טיק": ["teak"],
    "מהגוני": ["mahogany"],
    "אבן": ["stone", "limestone", "travertine"],
    "גרניט": ["granite"],
    "בטון": ["concrete"],
    "מתכת": ["metal", "steel", "iron"],
    "פלדה": ["steel"],
    "ברזל": ["iron"],
    "פליז": ["brass"],
    "נחושת": ["copper"],
    "ארד": ["bronze"],
    "בד": ["fabric", "textile"],
    "כותנה": ["cotton"],
    "פשתן": ["linen"],
    "משי": ["silk"],
    "קטיפה": ["velvet"],
    "עור": ["leather"],
    "צמר": ["wool"],
    "קרמיקה": ["ceramic", "ceramics"],
    "פורצלן": ["porcelain"],
    "זכוכית": ["glass"],
    "מראה": ["mirror"],
    "טיח": ["plaster", "stucco"],
    "טפט": ["wallpaper"],
    "צבע": ["paint"],
}

# English variant -> Hebrew base term; later entries win
ENGLISH_TO_HEBREW: Dict[str, str] = {
    english.lower(): hebrew
    for hebrew, variants in QUICK_TRANSLATIONS.items()
    for english in variants
}

# Display names for materials created without a model-provided Hebrew name
MATERIAL_TRANSLATIONS: Dict[str, str] = {
    "wood": "עץ",
    "oak": "אלון",
    "oak wood": "עץ אלון",
    "walnut": "אגוז",
    "walnut wood": "עץ אגוז",
    "maple": "מייפל",
    "teak": "טיק",
    "pine": "אורן",
    "mahogany": "מהגוני",
    "cherry": "דובדבן",
    "veneer": "פורניר",
    "metal": "מתכת",
    "steel": "פלדה",
    "iron": "ברזל",
    "wrought iron": "ברזל יצוק",
    "brass": "פליז",
    "copper": "נחושת",
    "bronze": "ארד",
    "aluminum": "אלומיניום",
    "chrome": "כרום",
    "gold leaf": "עלי זהב",
    "stone": "אבן",
    "marble": "שיש",
    "carrara marble": "שיש קררה",
    "granite": "גרניט",
    "limestone": "אבן גיר",
    "travertine": "טרוורטין",
    "concrete": "בטון",
    "terrazzo": "טראצו",
    "fabric": "בד",
    "cotton": "כותנה",
    "linen": "פשתן",
    "silk": "משי",
    "velvet": "קטיפה",
    "leather": "עור",
    "suede": "זמש",
    "wool": "צמר",
    "paint": "צבע",
    "plaster": "טיח",
    "venetian plaster": "טיח ונציאני",
    "wallpaper": "טפט",
    "stucco": "סטוקו",
    "gypsum": "גבס",
    "ceramic": "קרמיקה",
    "porcelain": "פורצלן",
    "terracotta": "טרקוטה",
    "tile": "אריח",
    "glass": "זכוכית",
    "mirror": "מראה",
    "crystal": "קריסטל",
}

DEFAULT_CATEGORY_SLUG = "wall-finishes"

# Checked in order; first match wins
CATEGORY_PATTERNS: List[Tuple[str, "re.Pattern[str]"]] = [
    ("wood-finishes", re.compile(r"wood|oak|walnut|pine|teak|mahogany|עץ|אלון|אגוז")),
    ("stone-finishes", re.compile(r"marble|granite|stone|limestone|שיש|גרניט|אבן")),
    ("metal-finishes", re.compile(r"metal|steel|iron|brass|copper|מתכת|פלדה|ברזל|פליז")),
    ("fabric-textures", re.compile(r"fabric|cotton|linen|silk|velvet|leather|בד|כותנה|פשתן|משי|עור")),
    ("ceramic-tiles", re.compile(r"ceramic|porcelain|tile|קרמיקה|פורצלן")),
]


def infer_category_slug(name: str) -> str:
    """Material category slug for a free-text name."""
    lowered = name.lower()
    for slug, pattern in CATEGORY_PATTERNS:
        if pattern.search(lowered):
            return slug
    return DEFAULT_CATEGORY_SLUG


def hebrew_material_name(english_name: str) -> str:
    """Best-effort Hebrew name; falls back to the input."""
    lowered = english_name.lower().strip()
    if lowered in MATERIAL_TRANSLATIONS:
        return MATERIAL_TRANSLATIONS[lowered]
    for english, hebrew in MATERIAL_TRANSLATIONS.items():
        if english in lowered or (lowered and lowered in english):
            return hebrew
    return english_name
