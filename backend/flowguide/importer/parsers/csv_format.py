"""Parser for guide structure exported as a spreadsheet (CSV).

Columns are matched by header name, in any order: Flow Name, Flow
Description, Step Title, Content. Every row is one step. A new flow box
starts whenever the Flow Name changes from the previous row, so two
separate runs of the same name become two flow boxes.
"""

import logging

from flowguide.importer.errors import InvalidTitleError, MalformedInputError
from flowguide.importer.models import FlowBoxDraft, ImportFormat, ParsedGuide, StepDraft
from flowguide.importer.parsers.records import read_csv_records

logger = logging.getLogger(__name__)

FLOW_NAME = "Flow Name"
FLOW_DESCRIPTION = "Flow Description"
STEP_TITLE = "Step Title"
CONTENT = "Content"

REQUIRED_COLUMNS = (FLOW_NAME, FLOW_DESCRIPTION, STEP_TITLE, CONTENT)


def _normalize_header(name: str) -> str:
    return name.strip().lower()


def _column_index(header: list[str], line: int) -> dict[str, int]:
    """Map each required column to its position in the header row."""
    positions: dict[str, int] = {}
    for i, name in enumerate(header):
        # First occurrence wins if a column is repeated
        positions.setdefault(_normalize_header(name), i)

    missing = [c for c in REQUIRED_COLUMNS if _normalize_header(c) not in positions]
    if missing:
        raise MalformedInputError(
            f"CSV header is missing required columns: {', '.join(missing)}",
            line=line,
        )
    return {c: positions[_normalize_header(c)] for c in REQUIRED_COLUMNS}


def _cell(fields: list[str], index: int) -> str:
    """Field value, or empty string when the row is shorter than the header."""
    return fields[index] if index < len(fields) else ""


def _is_blank(fields: list[str]) -> bool:
    return not any(f.strip() for f in fields)


def parse_csv(text: str) -> ParsedGuide:
    """Parse CSV text into flow box drafts in file order.

    Raises MalformedInputError for empty input or a header lacking a
    required column, StructuralError for broken quoting, and
    InvalidTitleError for a step whose Flow Name is blank.
    """
    if not text.strip():
        raise MalformedInputError("CSV input is empty")

    records = read_csv_records(text)

    columns: dict[str, int] | None = None
    for line, fields in records:
        if not _is_blank(fields):
            columns = _column_index(fields, line)
            break
    if columns is None:
        raise MalformedInputError("CSV input has no header row")

    parsed = ParsedGuide(source_format=ImportFormat.CSV)
    current: FlowBoxDraft | None = None

    for line, fields in records:
        if _is_blank(fields):
            logger.debug("Skipping blank CSV row at line %d", line)
            continue

        flow_name = _cell(fields, columns[FLOW_NAME]).strip()
        step_title = _cell(fields, columns[STEP_TITLE]).strip()

        if flow_name and (current is None or flow_name != current.title):
            current = FlowBoxDraft(
                title=flow_name,
                description=_cell(fields, columns[FLOW_DESCRIPTION]).strip(),
            )
            parsed.flow_boxes.append(current)

        if not step_title:
            logger.info("Skipping CSV row at line %d: empty Step Title", line)
            parsed.warnings.append(f"Line {line}: row skipped, empty Step Title")
            continue

        # current is always set once a row has carried a Flow Name
        if not flow_name or current is None:
            raise InvalidTitleError(
                f"Flow Name is empty for step {step_title!r}", line=line
            )

        current.steps.append(StepDraft(
            title=step_title,
            content=_cell(fields, columns[CONTENT]).strip(),
        ))

    logger.debug(
        "Parsed CSV: %d flow boxes, %d steps",
        len(parsed.flow_boxes), parsed.step_count,
    )
    return parsed
