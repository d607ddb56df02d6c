"""Pydantic schemas for the import API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -- Requests --


class CsvImportRequest(_CamelModel):
    csv_content: str


class MarkdownImportRequest(_CamelModel):
    markdown_content: str


# -- Results --


class FlowSummary(_CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str
    step_count: int


class ImportCounts(_CamelModel):
    model_config = ConfigDict(frozen=True)

    flow_boxes_created: int = 0
    steps_created: int = 0
    flows: list[FlowSummary] = Field(default_factory=list)

    @model_validator(mode="after")
    def _totals_match_flows(self) -> Self:
        if self.flow_boxes_created != len(self.flows):
            raise ValueError("flow_boxes_created must equal the number of flows")
        if self.steps_created != sum(f.step_count for f in self.flows):
            raise ValueError("steps_created must equal the sum of flow step counts")
        return self


class ImportResult(_CamelModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    results: ImportCounts = Field(default_factory=ImportCounts)
    imported_at: datetime
    warnings: list[str] = Field(default_factory=list)


# -- Preview --


class StepPreview(_CamelModel):
    title: str
    position: int
    content_preview: str


class FlowBoxPreview(_CamelModel):
    title: str
    description: str
    position: int
    steps: list[StepPreview]


class ImportPreviewResponse(_CamelModel):
    format_detected: str
    base_position: int
    flow_boxes: list[FlowBoxPreview]
    flow_box_count: int
    step_count: int
    warnings: list[str]
