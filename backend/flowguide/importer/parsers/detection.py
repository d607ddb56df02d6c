"""Auto-detect import format from filename and content."""

from pathlib import PurePath

from flowguide.importer.errors import MalformedInputError
from flowguide.importer.models import ImportFormat
from flowguide.importer.parsers.records import read_lines

_EXTENSIONS = {
    ".csv": ImportFormat.CSV,
    ".md": ImportFormat.MARKDOWN,
    ".markdown": ImportFormat.MARKDOWN,
}


def detect_format(filename: str | None, text: str) -> ImportFormat:
    """Detect import format, preferring the file extension.

    Without a known extension, a first line that names the Flow Name column
    means CSV and any ``## `` heading means Markdown.
    Raises MalformedInputError when neither applies.
    """
    if filename:
        fmt = _EXTENSIONS.get(PurePath(filename).suffix.lower())
        if fmt is not None:
            return fmt

    lines = [line.strip() for line in read_lines(text) if line.strip()]
    if not lines:
        raise MalformedInputError("Empty file: nothing to import")

    first = lines[0].lower()
    if "," in first and "flow name" in first:
        return ImportFormat.CSV
    if any(line.startswith("## ") for line in lines):
        return ImportFormat.MARKDOWN

    raise MalformedInputError("Unrecognized format: expected CSV or Markdown")
