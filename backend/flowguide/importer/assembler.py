"""Assign display positions to parsed drafts.

Flow boxes are numbered from the guide's next free position so an import
appends after existing content; steps are numbered from 1 inside their flow
box. The input drafts are never modified.
"""

from dataclasses import replace

from flowguide.importer.errors import InvalidTitleError
from flowguide.importer.models import FlowBoxDraft


def _checked_title(title: str, what: str, context: str | None = None) -> str:
    trimmed = title.strip()
    if not trimmed:
        where = f" in flow {context!r}" if context else ""
        raise InvalidTitleError(f"{what} title is empty{where}")
    return trimmed


def assign_positions(
    flow_boxes: list[FlowBoxDraft], base_position: int = 1
) -> list[FlowBoxDraft]:
    """Return copies of the drafts with contiguous positions and trimmed titles.

    Pure: the same drafts and base_position always give the same result.
    Raises InvalidTitleError if any title is blank after trimming.
    """
    if base_position < 1:
        raise ValueError(f"base_position must be >= 1, got {base_position}")

    assembled: list[FlowBoxDraft] = []
    for offset, flow in enumerate(flow_boxes):
        flow_title = _checked_title(flow.title, "Flow")
        steps = [
            replace(
                step,
                title=_checked_title(step.title, "Step", flow_title),
                source_position=index,
            )
            for index, step in enumerate(flow.steps, start=1)
        ]
        assembled.append(replace(
            flow,
            title=flow_title,
            description=flow.description.strip(),
            steps=steps,
            source_position=base_position + offset,
        ))
    return assembled
