"""Data models shared across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, NamedTuple

Record = dict[str, str]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Workbook ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Sheet:
    """One worksheet: header row plus records keyed by header name."""

    name: str
    columns: tuple[str, ...] = ()
    records: tuple[Record, ...] = ()

    @property
    def row_count(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class WorkbookSource:
    """The bytes a document was decoded from, and the engine that read them."""

    data: bytes = field(repr=False)
    engine: str = "openpyxl"


@dataclass(frozen=True)
class Document:
    """An ordered, immutable collection of sheets.

    Replacing a sheet builds a new ``Document``; the untouched sheets are the
    very same objects as in the source. ``replaced`` names the sheets whose
    records no longer match ``source``, so an encoder can write every other
    sheet back from the original workbook.
    """

    sheets: tuple[Sheet, ...] = ()
    source: WorkbookSource | None = field(default=None, compare=False)
    replaced: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        names = [sheet.name for sheet in self.sheets]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate sheet names: {names}")

    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]

    def sheet(self, name: str) -> Sheet:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        raise KeyError(name)

    def records(self, name: str) -> list[Record]:
        """Return shallow copies of the records of sheet *name*."""
        return [dict(record) for record in self.sheet(name).records]

    def replace_records(
        self,
        name: str,
        records: Sequence[Record],
        columns: Sequence[str] | None = None,
    ) -> Document:
        target = self.sheet(name)
        replacement = Sheet(
            name=name,
            columns=tuple(columns) if columns is not None else target.columns,
            records=tuple(records),
        )
        return Document(
            tuple(replacement if sheet is target else sheet for sheet in self.sheets),
            source=self.source,
            replaced=self.replaced | {name},
        )


# ── Sorting ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ColumnBinding:
    """Logical column roles bound to the concrete headers of one sheet."""

    new_existing: str | None = None
    priority: str | None = None
    bugs_text: str | None = None
    new_existing_is_placeholder: bool = False


class SortKey(NamedTuple):
    type_rank: int
    priority_rank: int
    date_value: int | None


@dataclass
class SortSummary:
    """Report of one sort run.

    Contract invariant: ``rows_out == rows_in`` (sorting never drops rows).
    """

    sheet_name: str = ""
    rows_in: int = 0
    rows_out: int = 0
    dated_rows: int = 0
    new_existing_column: str | None = None
    priority_column: str | None = None
    bugs_column: str | None = None
    relabelled_column: str | None = None
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.dated_rows = _to_non_negative_int(self.dated_rows, "dated_rows")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.rows_out != self.rows_in:
            raise ValueError("rows_out must equal rows_in")
        if self.dated_rows > self.rows_in:
            raise ValueError("dated_rows must be <= rows_in")

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet_name": self.sheet_name,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "dated_rows": self.dated_rows,
            "columns": {
                "new_existing": self.new_existing_column,
                "priority": self.priority_column,
                "bugs": self.bugs_column,
            },
            "relabelled_column": self.relabelled_column,
            "warnings": list(self.warnings),
        }
