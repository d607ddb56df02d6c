"""Parser for guide structure written as Markdown.

Convention:

    ## Flow title
    *Optional one-line description*
    ### Step title
    Step content, any Markdown, until the next heading.

Lines before the first step heading of a flow are not step content and are
dropped. Fenced code blocks inside a step are kept whole, so a ``## comment``
in a shell snippet does not start a new flow. A fence still open at the end
of the document is a StructuralError.
"""

import logging
import re
from enum import Enum, auto

from flowguide.importer.errors import InvalidTitleError, MalformedInputError, StructuralError
from flowguide.importer.models import FlowBoxDraft, ImportFormat, ParsedGuide, StepDraft
from flowguide.importer.parsers.records import read_lines

logger = logging.getLogger(__name__)

FLOW_LEVEL = 2
STEP_LEVEL = 3

# Matched against the stripped line; "####" and "##x" are not headings
_HEADING = re.compile(r"^(#{2,3})(?:\s+(.*))?$")
_CLOSING_HASHES = re.compile(r"(?:^|\s+)#+$")
_FENCE = re.compile(r"^(`{3,}|~{3,})")


class _State(Enum):
    SEEKING = auto()
    IN_FLOW = auto()
    IN_STEP = auto()


def _heading_title(raw: str | None) -> str:
    if raw is None:
        return ""
    return _CLOSING_HASHES.sub("", raw.strip()).strip()


def _italic_description(line: str) -> str | None:
    """Return the text of a ``*description*`` line, or None if it isn't one."""
    s = line.strip()
    if len(s) < 3 or s[0] != "*" or s[-1] != "*" or "*" in s[1:-1]:
        return None
    return s[1:-1].strip() or None


def _closes_fence(stripped: str, fence: str) -> bool:
    run = len(stripped) - len(stripped.lstrip(fence[0]))
    return run >= len(fence) and not stripped[run:].strip()


class _Scanner:
    """Accumulates drafts while lines are fed in order."""

    def __init__(self) -> None:
        self.parsed = ParsedGuide(source_format=ImportFormat.MARKDOWN)
        self.state = _State.SEEKING
        self.flow: FlowBoxDraft | None = None
        self.step: StepDraft | None = None
        self.buffer: list[str] = []
        self.fence: str | None = None
        self.fence_line = 0

    def open_flow(self, title: str) -> FlowBoxDraft:
        self.close_flow()
        self.flow = FlowBoxDraft(title=title)
        self.state = _State.IN_FLOW
        return self.flow

    def open_step(self, title: str) -> None:
        self.close_step()
        self.step = StepDraft(title=title)
        self.buffer = []
        self.state = _State.IN_STEP

    def add_content(self, raw: str, stripped: str, line: int) -> None:
        self.buffer.append(raw)
        if self.fence is not None:
            if _closes_fence(stripped, self.fence):
                self.fence = None
            return
        match = _FENCE.match(stripped)
        if match:
            self.fence = match.group(1)
            self.fence_line = line

    def close_step(self) -> None:
        if self.state is not _State.IN_STEP:
            return
        assert self.flow is not None and self.step is not None
        self.step.content = "\n".join(self.buffer).strip()
        self.flow.steps.append(self.step)
        self.step = None
        self.buffer = []
        self.fence = None
        self.state = _State.IN_FLOW

    def close_flow(self) -> None:
        self.close_step()
        if self.state is not _State.IN_FLOW:
            return
        assert self.flow is not None
        self.parsed.flow_boxes.append(self.flow)
        self.flow = None
        self.state = _State.SEEKING


def parse_markdown(text: str) -> ParsedGuide:
    """Parse heading-structured Markdown into flow box drafts.

    Raises MalformedInputError for empty input, StructuralError for a step
    heading that has no flow heading above it or a code fence that is never
    closed, and InvalidTitleError for a heading with no title text.
    """
    if not text.strip():
        raise MalformedInputError("Markdown input is empty")

    lines = read_lines(text)
    scanner = _Scanner()
    i = 0

    while i < len(lines):
        raw = lines[i]
        i += 1
        stripped = raw.strip()

        if scanner.fence is not None:
            scanner.add_content(raw, stripped, i)
            continue

        heading = _HEADING.match(stripped)
        if heading is None:
            if scanner.state is _State.IN_STEP:
                scanner.add_content(raw, stripped, i)
            elif stripped:
                logger.debug("Discarding line %d: not inside a step", i)
            continue

        level = len(heading.group(1))
        title = _heading_title(heading.group(2))
        kind = "flow" if level == FLOW_LEVEL else "step"
        if not title:
            raise InvalidTitleError(f"{kind} heading has no title", line=i)

        if level == FLOW_LEVEL:
            flow = scanner.open_flow(title)
            if i < len(lines):
                description = _italic_description(lines[i])
                if description is not None:
                    flow.description = description
                    i += 1
        else:
            if scanner.state is _State.SEEKING:
                raise StructuralError(
                    f"step heading {stripped!r} appears before any flow heading",
                    line=i,
                )
            scanner.open_step(title)

    if scanner.fence is not None:
        raise StructuralError("unterminated code fence", line=scanner.fence_line)
    scanner.close_flow()

    logger.debug(
        "Parsed Markdown: %d flow boxes, %d steps",
        len(scanner.parsed.flow_boxes), scanner.parsed.step_count,
    )
    return scanner.parsed
