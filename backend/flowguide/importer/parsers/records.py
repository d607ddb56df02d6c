"""Split raw import text into logical records (CSV rows or Markdown lines).

Knows nothing about flows or steps; the structural importers give the
records meaning.
"""

import csv
import io
from collections.abc import Iterator

from flowguide.importer.errors import StructuralError

_BOM = "\ufeff"

# A single Content cell may be as large as a whole import; the import size
# guard is what bounds it, not the csv module's 128 KiB default.
_FIELD_SIZE_LIMIT = 2**31 - 1
csv.field_size_limit(max(csv.field_size_limit(), _FIELD_SIZE_LIMIT))


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith(_BOM) else text


def read_lines(text: str) -> list[str]:
    """Split text into lines, normalizing CRLF and lone CR line endings."""
    text = strip_bom(text)
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def read_csv_records(text: str) -> Iterator[tuple[int, list[str]]]:
    """Yield (line_number, fields) for each CSV record.

    Commas inside double quotes do not delimit, ``""`` inside a quoted field
    is a literal quote, and quoted fields may span lines. line_number is the
    1-based line on which the record starts.

    Raises StructuralError for an unterminated quoted field or text after a
    closing quote.
    """
    reader = csv.reader(io.StringIO(strip_bom(text), newline=""), strict=True)
    start = 1
    while True:
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            if "unexpected end of data" in str(e):
                raise StructuralError(
                    "unterminated quoted field", line=start
                ) from e
            raise StructuralError(
                f"malformed quoting: {e}", line=reader.line_num
            ) from e
        yield start, fields
        start = reader.line_num + 1
