"""FastAPI routes for guide, flow box, and step CRUD."""

from fastapi import APIRouter, Depends, HTTPException, status

from flowguide.guides.schemas import (
    CreateFlowBoxRequest,
    CreateGuideRequest,
    CreateStepRequest,
    FlowBoxResponse,
    GuideDetailResponse,
    GuideSummary,
    StepResponse,
)
from flowguide.guides.service import FlowBoxNotFoundError, GuideNotFoundError, GuideService

router = APIRouter(prefix="/api", tags=["guides"])


def get_guide_service() -> GuideService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("GuideService not initialized")


@router.post("/guides", status_code=status.HTTP_201_CREATED)
async def create_guide(
    request: CreateGuideRequest,
    service: GuideService = Depends(get_guide_service),
) -> GuideDetailResponse:
    return await service.create_guide(request)


@router.get("/guides")
async def list_guides(
    service: GuideService = Depends(get_guide_service),
) -> list[GuideSummary]:
    return await service.list_guides()


@router.get("/guides/{guide_id}")
async def get_guide(
    guide_id: str,
    service: GuideService = Depends(get_guide_service),
) -> GuideDetailResponse:
    guide = await service.get_guide(guide_id)
    if guide is None:
        raise HTTPException(status_code=404, detail=f"Guide not found: {guide_id}")
    return guide


@router.get("/guides/{guide_id}/flowboxes")
async def list_flow_boxes(
    guide_id: str,
    service: GuideService = Depends(get_guide_service),
) -> list[FlowBoxResponse]:
    if not await service.guide_exists(guide_id):
        raise HTTPException(status_code=404, detail=f"Guide not found: {guide_id}")
    return await service.list_flow_boxes(guide_id)


@router.post("/guides/{guide_id}/flowboxes", status_code=status.HTTP_201_CREATED)
async def create_flow_box(
    guide_id: str,
    request: CreateFlowBoxRequest,
    service: GuideService = Depends(get_guide_service),
) -> FlowBoxResponse:
    try:
        flow_box_id = await service.create_flow_box(
            guide_id, request.title, request.description, request.position
        )
    except GuideNotFoundError:
        raise HTTPException(status_code=404, detail=f"Guide not found: {guide_id}")
    flow_box = await service.get_flow_box(flow_box_id)
    assert flow_box is not None
    return flow_box


@router.get("/flowboxes/{flow_box_id}/steps")
async def list_steps(
    flow_box_id: str,
    service: GuideService = Depends(get_guide_service),
) -> list[StepResponse]:
    if await service.get_flow_box(flow_box_id) is None:
        raise HTTPException(status_code=404, detail=f"Flow box not found: {flow_box_id}")
    return await service.list_steps(flow_box_id)


@router.post("/flowboxes/{flow_box_id}/steps", status_code=status.HTTP_201_CREATED)
async def create_step(
    flow_box_id: str,
    request: CreateStepRequest,
    service: GuideService = Depends(get_guide_service),
) -> StepResponse:
    try:
        step_id = await service.create_step(
            flow_box_id, request.title, request.content, request.position
        )
    except FlowBoxNotFoundError:
        raise HTTPException(status_code=404, detail=f"Flow box not found: {flow_box_id}")
    steps = await service.list_steps(flow_box_id)
    return next(s for s in steps if s.step_id == step_id)
