"""Package the outcome of one import into an ImportResult."""

from collections.abc import Sequence
from datetime import UTC, datetime

from flowguide.importer.errors import GuideImportError
from flowguide.importer.models import FlowBoxDraft
from flowguide.importer.schemas import FlowSummary, ImportCounts, ImportResult


def empty_flow_warnings(flow_boxes: Sequence[FlowBoxDraft]) -> list[str]:
    """One notice per flow box that will be created without any steps."""
    return [f"Flow {fb.title!r} has no steps" for fb in flow_boxes if not fb.steps]


def build_failure(error: GuideImportError) -> ImportResult:
    """Failed result naming the error. No counts: nothing was imported."""
    return ImportResult(
        success=False,
        message=error.message,
        imported_at=datetime.now(UTC),
    )


def build_result(
    flow_boxes: Sequence[FlowBoxDraft],
    failures: Sequence[GuideImportError] = (),
    warnings: Sequence[str] = (),
) -> ImportResult:
    """Summarize finalized drafts, or report the first failure.

    Imports are all-or-nothing, so any failure means an unsuccessful result
    with zero counts regardless of how many drafts were parsed before it.
    """
    if failures:
        return build_failure(failures[0])

    flows = [FlowSummary(name=fb.title, step_count=len(fb.steps)) for fb in flow_boxes]
    steps_created = sum(f.step_count for f in flows)
    return ImportResult(
        success=True,
        message=f"Successfully imported {len(flows)} flows with {steps_created} steps",
        results=ImportCounts(
            flow_boxes_created=len(flows),
            steps_created=steps_created,
            flows=flows,
        ),
        imported_at=datetime.now(UTC),
        warnings=[*warnings, *empty_flow_warnings(flow_boxes)],
    )
