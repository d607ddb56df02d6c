"""Request and response schemas for guide, flow box, and step endpoints."""

from pydantic import BaseModel, ConfigDict, Field

# -- Requests --


class CreateGuideRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None


class CreateFlowBoxRequest(BaseModel):
    """Body for POST /api/guides/{guide_id}/flowboxes. Omit position to append."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    position: int | None = Field(default=None, ge=1)


class CreateStepRequest(BaseModel):
    """Body for POST /api/flowboxes/{flow_box_id}/steps. Omit position to append."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    content: str = ""
    position: int | None = Field(default=None, ge=1)


# -- Responses --


class StepResponse(BaseModel):
    step_id: str
    flow_box_id: str
    title: str
    content: str
    position: int
    is_visible: bool
    created_at: str


class FlowBoxResponse(BaseModel):
    flow_box_id: str
    guide_id: str
    title: str
    description: str | None
    position: int
    is_visible: bool
    created_at: str
    steps: list[StepResponse] = Field(default_factory=list)


class GuideSummary(BaseModel):
    guide_id: str
    title: str
    description: str | None
    flow_box_count: int
    created_at: str
    updated_at: str


class GuideDetailResponse(BaseModel):
    guide_id: str
    title: str
    description: str | None
    created_at: str
    updated_at: str
    flow_boxes: list[FlowBoxResponse] = Field(default_factory=list)
