"""Material matching for the design library seeder.

This module resolves free-text material names from generated style content
to catalog materials, creating new catalog entries when nothing matches.

Usage:
    from core.materials import MaterialMatcher, MaterialSubAgent

    agent = MaterialSubAgent(store, MaterialMatcher(gateway))
    result = await agent.prepare_materials(["Carrara marble", "Brushed brass"])
    ...
    await agent.link_materials(style_id, result.material_ids)
"""

from .agent import MaterialSubAgent
from .matcher import MaterialMatcher, heuristic_material_match, infer_new_material
from .types import (
    AvailableCategory,
    AvailableMaterial,
    AvailableTexture,
    AvailableType,
    HeuristicMatch,
    MaterialAgentResult,
    MaterialMatchContext,
    MatcherConfig,
)

__all__ = [
    # Types
    "AvailableMaterial",
    "AvailableCategory",
    "AvailableType",
    "AvailableTexture",
    "MaterialMatchContext",
    "HeuristicMatch",
    "MatcherConfig",
    "MaterialAgentResult",
    # Matching
    "heuristic_material_match",
    "infer_new_material",
    "MaterialMatcher",
    # Agent
    "MaterialSubAgent",
]
