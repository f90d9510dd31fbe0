"""Seed routes: trigger library seeding and inspect executions."""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from core.seed.cost import calculate_estimated_cost, estimate_generation_time, format_cost, format_time_estimate
from core.seed.types import ENTITY_KINDS, PriceLevel, SeedOptions

from ..services import SeedService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_seed_service(request: Request) -> SeedService:
    service = getattr(request.app.state, "seed_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Seed service is not configured")
    return service


class SeedContentRequest(BaseModel):
    """Base content seeding parameters."""

    skip_existing: bool = False
    only: Optional[List[str]] = None
    limit: Optional[int] = Field(default=None, gt=0)
    dry_run: bool = False
    generate_images: bool = False
    images_per_entity: int = Field(default=3, ge=1, le=10)


class SeedStylesRequest(BaseModel):
    """Style seeding parameters."""

    limit: Optional[int] = Field(default=None, gt=0)
    dry_run: bool = False
    generate_images: bool = False
    category_filter: Optional[str] = None
    sub_category_filter: Optional[str] = None
    room_type_filter: Optional[List[str]] = None
    execution_id: Optional[str] = None
    manual_mode: bool = False
    approach_id: Optional[str] = None
    color_id: Optional[str] = None
    price_level: PriceLevel = PriceLevel.REGULAR
    generate_room_profiles: bool = True


class ExecutionResponse(BaseModel):
    execution_id: str
    status: str


@router.post("/content")
async def seed_content(request: SeedContentRequest, service: SeedService = Depends(get_seed_service)):
    """Seed approaches, room types, colors, material categories, categories and sub-categories."""
    unknown = [kind for kind in request.only or [] if kind not in ENTITY_KINDS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown entity kinds: {', '.join(unknown)}")

    options = SeedOptions(
        skip_existing=request.skip_existing,
        only=request.only,
        limit=request.limit,
        dry_run=request.dry_run,
        generate_images=request.generate_images,
        images_per_entity=request.images_per_entity,
        on_progress=lambda message, current=None, total=None: logger.info(message),
    )
    result = await service.orchestrator.seed_all_content(options)
    return result.to_dict()


@router.post("/styles", response_model=ExecutionResponse)
async def seed_styles(
    request: SeedStylesRequest,
    background_tasks: BackgroundTasks,
    service: SeedService = Depends(get_seed_service),
) -> ExecutionResponse:
    """
    Start style generation in the background.

    Passing the ``execution_id`` of an interrupted run resumes it.

    Raises:
        HTTPException: 400 for incomplete manual selections, 404 for unknown executions
    """
    if request.manual_mode and not (request.approach_id and request.color_id):
        raise HTTPException(status_code=400, detail="Manual mode requires approach_id and color_id")

    if request.execution_id:
        execution = await service.tracker.get(request.execution_id)
        if execution is None:
            raise HTTPException(status_code=404, detail="Execution not found")
        execution_id = execution["id"]
    else:
        execution = await service.tracker.create(options=request.model_dump(exclude={"execution_id"}, mode="json"))
        execution_id = execution["id"]

    options = SeedOptions(
        skip_existing=True,
        limit=request.limit,
        dry_run=request.dry_run,
        generate_images=request.generate_images,
        category_filter=request.category_filter,
        sub_category_filter=request.sub_category_filter,
        room_type_filter=request.room_type_filter,
        manual_mode=request.manual_mode,
        approach_id=request.approach_id,
        color_id=request.color_id,
        price_level=request.price_level,
        generate_room_profiles=request.generate_room_profiles,
        on_progress=lambda message, current=None, total=None: logger.info(message),
    )
    background_tasks.add_task(service.run_styles, execution_id, options)

    logger.info(f"Queued style seeding execution {execution_id}")
    return ExecutionResponse(execution_id=execution_id, status="running")


@router.get("/executions/{execution_id}")
async def get_execution(execution_id: str, service: SeedService = Depends(get_seed_service)):
    """Get the status and result of a seeding execution."""
    execution = await service.tracker.get(execution_id)
    if execution is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return execution


@router.get("/metrics")
async def get_metrics(service: SeedService = Depends(get_seed_service)):
    """Aggregated AI usage for this process."""
    return {
        "operations": service.metrics.get_aggregated_metrics(),
        "tokens": service.token_tracker.get_usage(),
        "recent": [op.to_dict() for op in service.metrics.get_recent_operations()],
    }


@router.get("/estimate")
async def get_estimate(
    num_styles: int = Query(1, ge=1),
    generate_images: bool = True,
    generate_room_profiles: bool = True,
    room_types_count: int = Query(24, ge=0),
):
    """Estimated cost and duration of a style generation run."""
    breakdown = calculate_estimated_cost(
        num_styles,
        generate_images=generate_images,
        generate_room_profiles=generate_room_profiles,
        room_types_count=room_types_count,
    )
    minutes = estimate_generation_time(
        num_styles, generate_images=generate_images, generate_room_profiles=generate_room_profiles
    )
    return {
        "breakdown": breakdown.to_dict(),
        "total": format_cost(breakdown.grand_total),
        "minutes": minutes,
        "duration": format_time_estimate(minutes),
    }
