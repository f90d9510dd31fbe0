"""Seeding of the design library.

Usage:
    from core.seed import SeedOptions, SeedOrchestrator

    orchestrator = SeedOrchestrator(store, content_generator, image_generator, selector, material_agent)
    result = await orchestrator.seed_styles(SeedOptions(limit=1, generate_images=False))
    if not result.success:
        for error in result.errors:
            print(error.entity, error.error)
"""

from .cost import (
    CostBreakdown,
    calculate_estimated_cost,
    calculate_per_style_cost,
    estimate_generation_time,
    format_cost,
    format_time_estimate,
)
from .data import SeedData, SeedDataError, create_slug, load_seed_data
from .executions import SeedExecutionTracker
from .orchestrator import SeedOrchestrator, build_style_identity
from .types import EntityStats, PriceLevel, SeedError, SeedOptions, SeedResult, SeedStats, StyleStats

__all__ = [
    # Types
    "PriceLevel",
    "SeedOptions",
    "EntityStats",
    "StyleStats",
    "SeedStats",
    "SeedError",
    "SeedResult",
    # Seed data
    "SeedData",
    "SeedDataError",
    "create_slug",
    "load_seed_data",
    # Orchestration
    "SeedOrchestrator",
    "SeedExecutionTracker",
    "build_style_identity",
    # Cost
    "CostBreakdown",
    "calculate_estimated_cost",
    "calculate_per_style_cost",
    "estimate_generation_time",
    "format_cost",
    "format_time_estimate",
]
