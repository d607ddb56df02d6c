"""Intermediate representation for imported guide structure.

Both parsers produce FlowBoxDraft/StepDraft lists, which the assembler
numbers and the GuideService materializes. This decouples format-specific
parsing from storage.
"""

from dataclasses import dataclass, field
from enum import StrEnum


class ImportFormat(StrEnum):
    CSV = "csv"
    MARKDOWN = "markdown"


@dataclass(frozen=True)
class GuideImportRequest:
    """One import call: raw text destined for an existing guide."""

    target_guide_id: str
    format: ImportFormat
    raw_text: str


@dataclass
class StepDraft:
    """A step that has been parsed but not yet persisted."""

    title: str
    content: str = ""  # markdown
    source_position: int = 0


@dataclass
class FlowBoxDraft:
    """A flow box and its steps, in source order."""

    title: str
    description: str = ""
    steps: list[StepDraft] = field(default_factory=list)
    source_position: int = 0


@dataclass
class ParsedGuide:
    """Output of a structural importer: drafts plus non-fatal notices."""

    source_format: ImportFormat
    flow_boxes: list[FlowBoxDraft] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def step_count(self) -> int:
        return sum(len(fb.steps) for fb in self.flow_boxes)
