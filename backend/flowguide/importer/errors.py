"""Errors raised while turning raw import text into a draft tree.

Every parser failure is a GuideImportError. The import service catches them
at its boundary and reports them as a failed ImportResult; they never reach
the HTTP layer as exceptions.
"""


class GuideImportError(Exception):
    """Base class for import failures. ``kind`` is the user-facing category."""

    kind = "ImportError"

    def __init__(self, detail: str, *, line: int | None = None) -> None:
        self.detail = detail
        self.line = line
        super().__init__(detail)

    def __str__(self) -> str:
        if self.line is not None:
            return f"line {self.line}: {self.detail}"
        return self.detail

    @property
    def message(self) -> str:
        """Human-readable message, prefixed with the error kind."""
        return f"{self.kind}: {self}"


class MalformedInputError(GuideImportError):
    """Raw text is empty, undecodable, or lacks the required CSV columns."""

    kind = "MalformedInput"


class StructuralError(GuideImportError):
    """Text is readable but its structure is broken (orphan step, open quote)."""

    kind = "StructuralError"


class InvalidTitleError(GuideImportError):
    """A flow or step title is empty after trimming."""

    kind = "ValidationError"


class ImportTooLargeError(Exception):
    """Raised before parsing when input exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Import is {size} bytes; limit is {limit} bytes")
