"""Import API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, UploadFile

from flowguide.importer.errors import GuideImportError, ImportTooLargeError
from flowguide.importer.models import ImportFormat
from flowguide.importer.schemas import (
    CsvImportRequest,
    ImportPreviewResponse,
    ImportResult,
    MarkdownImportRequest,
)
from flowguide.importer.service import ImportService

router = APIRouter(prefix="/api/guides", tags=["import"])


def get_import_service() -> ImportService:
    """Dependency placeholder, overridden in the app lifespan."""
    raise RuntimeError("ImportService not configured")


def _guide_not_found(guide_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Guide not found: {guide_id}")


def _too_large(e: ImportTooLargeError) -> HTTPException:
    return HTTPException(status_code=413, detail=str(e))


def _finish(result: ImportResult | None, guide_id: str, response: Response) -> ImportResult:
    if result is None:
        raise _guide_not_found(guide_id)
    if not result.success:
        response.status_code = 422
    return result


@router.post("/{guide_id}/import-csv")
async def import_csv(
    guide_id: str,
    request: CsvImportRequest,
    response: Response,
    service: ImportService = Depends(get_import_service),
) -> ImportResult:
    """Import flow boxes and steps from CSV text."""
    try:
        result = await service.import_text(guide_id, request.csv_content, ImportFormat.CSV)
    except ImportTooLargeError as e:
        raise _too_large(e) from e
    return _finish(result, guide_id, response)


@router.post("/{guide_id}/import-markdown")
async def import_markdown(
    guide_id: str,
    request: MarkdownImportRequest,
    response: Response,
    service: ImportService = Depends(get_import_service),
) -> ImportResult:
    """Import flow boxes and steps from heading-structured Markdown."""
    try:
        result = await service.import_text(
            guide_id, request.markdown_content, ImportFormat.MARKDOWN
        )
    except ImportTooLargeError as e:
        raise _too_large(e) from e
    return _finish(result, guide_id, response)


@router.post("/{guide_id}/import")
async def import_file(
    guide_id: str,
    file: UploadFile,
    response: Response,
    format: ImportFormat | None = Query(None),
    service: ImportService = Depends(get_import_service),
) -> ImportResult:
    """Import an uploaded CSV or Markdown file; format is detected if omitted."""
    content = await file.read()
    try:
        result = await service.import_upload(
            guide_id, content, file.filename, format_hint=format
        )
    except ImportTooLargeError as e:
        raise _too_large(e) from e
    return _finish(result, guide_id, response)


@router.post("/{guide_id}/import/preview")
async def preview_file(
    guide_id: str,
    file: UploadFile,
    format: ImportFormat | None = Query(None),
    service: ImportService = Depends(get_import_service),
) -> ImportPreviewResponse:
    """Parse an uploaded file and show what would be created, without writing."""
    content = await file.read()
    try:
        preview = await service.preview_upload(
            guide_id, content, file.filename, format_hint=format
        )
    except ImportTooLargeError as e:
        raise _too_large(e) from e
    except GuideImportError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    if preview is None:
        raise _guide_not_found(guide_id)
    return preview
