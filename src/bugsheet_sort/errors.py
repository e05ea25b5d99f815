"""Error taxonomy — every failure a user can see while sorting a workbook."""

from __future__ import annotations

from collections.abc import Sequence


class BugSortError(Exception):
    """Base class; ``str(exc)`` is the message shown to the user."""


class FileTypeError(BugSortError):
    def __init__(self, file_name: str) -> None:
        super().__init__("Please upload a valid Excel file (.xlsx or .xls)")
        self.file_name = file_name


class FileSizeError(BugSortError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"File size exceeds {limit // (1024 * 1024)}MB. Please upload a smaller file."
        )
        self.size = size
        self.limit = limit


class FileReadError(BugSortError):
    def __init__(self) -> None:
        super().__init__("Error reading file. Please try again.")


class CodecError(BugSortError):
    """The spreadsheet bytes could not be decoded."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Error reading Excel file: {detail}. Run with --verbose for details."
        )
        self.detail = detail


class SheetNotFound(BugSortError):
    def __init__(self, sheet_names: Sequence[str]) -> None:
        self.sheet_names = list(sheet_names)
        super().__init__(
            'Excel file must contain a sheet named "Bugs Reported". '
            f"Found sheets: {', '.join(self.sheet_names)}"
        )


class MissingColumns(BugSortError):
    """Required columns are unresolved.

    ``discovered`` holds one ``(position, column, sample)`` triple per column
    of the first record, so callers can render their own listing.
    """

    def __init__(
        self,
        missing: Sequence[str],
        discovered: Sequence[tuple[int, str, str]],
    ) -> None:
        self.missing = list(missing)
        self.discovered = list(discovered)
        quoted = ", ".join(f'"{label}"' for label in self.missing)
        debug = ", ".join(
            f'Column {pos}: "{name}" (sample: "{sample}")'
            for pos, name, sample in self.discovered
        )
        super().__init__(f"Missing columns: {quoted}. Debug info: {debug}")


class SortError(BugSortError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Error sorting file: {detail}")
        self.detail = detail


class SerializationError(BugSortError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Error writing sorted file: {detail}")
        self.detail = detail
