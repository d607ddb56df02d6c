"""ImportService: parses guide structure files, writes them into a guide."""

import logging
from dataclasses import replace

from flowguide.guides.service import GuideService
from flowguide.importer.assembler import assign_positions
from flowguide.importer.errors import GuideImportError, ImportTooLargeError, MalformedInputError
from flowguide.importer.models import GuideImportRequest, ImportFormat, ParsedGuide
from flowguide.importer.parsers.csv_format import parse_csv
from flowguide.importer.parsers.detection import detect_format
from flowguide.importer.parsers.markdown import parse_markdown
from flowguide.importer.reporter import build_result, empty_flow_warnings
from flowguide.importer.schemas import (
    FlowBoxPreview,
    ImportPreviewResponse,
    ImportResult,
    StepPreview,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMPORT_BYTES = 1024 * 1024


class ImportService:
    def __init__(
        self,
        guides: GuideService,
        *,
        max_import_bytes: int = DEFAULT_MAX_IMPORT_BYTES,
    ) -> None:
        self._guides = guides
        self._max_import_bytes = max_import_bytes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, request: GuideImportRequest, base_position: int = 1) -> ParsedGuide:
        """Parse raw text and number the drafts. No storage access.

        Raises GuideImportError on the first problem found.
        """
        parsed = self._parse(request.format, request.raw_text)
        return replace(
            parsed, flow_boxes=assign_positions(parsed.flow_boxes, base_position)
        )

    async def preview(
        self, guide_id: str, raw_text: str, fmt: ImportFormat
    ) -> ImportPreviewResponse | None:
        """Parse and position drafts against the guide without writing anything.

        Returns None if the guide does not exist. Raises GuideImportError.
        """
        if not await self._guides.guide_exists(guide_id):
            return None
        self._check_size(len(raw_text.encode("utf-8")))

        base_position = await self._guides.next_flow_box_position(guide_id)
        parsed = self.parse(GuideImportRequest(guide_id, fmt, raw_text), base_position)

        flow_boxes = [
            FlowBoxPreview(
                title=fb.title,
                description=fb.description,
                position=fb.source_position,
                steps=[
                    StepPreview(
                        title=step.title,
                        position=step.source_position,
                        content_preview=step.content[:200],
                    )
                    for step in fb.steps
                ],
            )
            for fb in parsed.flow_boxes
        ]
        return ImportPreviewResponse(
            format_detected=parsed.source_format.value,
            base_position=base_position,
            flow_boxes=flow_boxes,
            flow_box_count=len(flow_boxes),
            step_count=parsed.step_count,
            warnings=[*parsed.warnings, *empty_flow_warnings(parsed.flow_boxes)],
        )

    async def preview_upload(
        self,
        guide_id: str,
        content: bytes,
        filename: str | None,
        *,
        format_hint: ImportFormat | None = None,
    ) -> ImportPreviewResponse | None:
        """Decode an uploaded file, detect its format, and preview it."""
        if not await self._guides.guide_exists(guide_id):
            return None
        self._check_size(len(content))
        text = self._decode(content)
        fmt = format_hint or detect_format(filename, text)
        return await self.preview(guide_id, text, fmt)

    async def import_text(
        self, guide_id: str, raw_text: str, fmt: ImportFormat
    ) -> ImportResult | None:
        """Import raw text into a guide. Returns None if the guide does not exist.

        Parse problems come back as an unsuccessful ImportResult; nothing is
        written in that case.
        """
        if not await self._guides.guide_exists(guide_id):
            return None
        self._check_size(len(raw_text.encode("utf-8")))
        return await self._import(GuideImportRequest(guide_id, fmt, raw_text))

    async def import_upload(
        self,
        guide_id: str,
        content: bytes,
        filename: str | None,
        *,
        format_hint: ImportFormat | None = None,
    ) -> ImportResult | None:
        """Decode an uploaded file, detect its format, and import it."""
        if not await self._guides.guide_exists(guide_id):
            return None
        self._check_size(len(content))
        try:
            text = self._decode(content)
            fmt = format_hint or detect_format(filename, text)
        except GuideImportError as e:
            logger.warning("Rejected upload %r for guide %s: %s", filename, guide_id, e.message)
            return build_result([], failures=[e])
        return await self._import(GuideImportRequest(guide_id, fmt, text))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_size(self, size: int) -> None:
        if size > self._max_import_bytes:
            raise ImportTooLargeError(size, self._max_import_bytes)

    @staticmethod
    def _decode(content: bytes) -> str:
        """Decode uploaded bytes as UTF-8, tolerating a byte order mark."""
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"File is not valid UTF-8 text: {e}") from e

    @staticmethod
    def _parse(fmt: ImportFormat, text: str) -> ParsedGuide:
        """Route to the correct parser."""
        if fmt == ImportFormat.CSV:
            return parse_csv(text)
        if fmt == ImportFormat.MARKDOWN:
            return parse_markdown(text)
        raise MalformedInputError(f"Unknown format: {fmt}")

    async def _import(self, request: GuideImportRequest) -> ImportResult:
        """Parse and write one import. All or nothing.

        Final positions are assigned by materialize() inside its write
        transaction; parsing here only validates and numbers the drafts.
        """
        guide_id = request.target_guide_id
        try:
            parsed = self.parse(request)
        except GuideImportError as e:
            logger.warning("Import into guide %s failed: %s", guide_id, e.message)
            return build_result([], failures=[e])

        await self._guides.materialize(guide_id, parsed.flow_boxes)
        result = build_result(parsed.flow_boxes, warnings=parsed.warnings)
        logger.info(
            "Imported %s into guide %s: %d flow boxes, %d steps",
            request.format, guide_id,
            result.results.flow_boxes_created, result.results.steps_created,
        )
        return result
