"""I/O helpers — spreadsheet codec, document serialization, JSON artifacts."""

from __future__ import annotations

import io
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Protocol, cast

import pandas as pd
import xlrd
from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from bugsheet_sort.errors import CodecError
from bugsheet_sort.models import Document, Record, Sheet, WorkbookSource
from bugsheet_sort.resolver import is_placeholder_column

logger = logging.getLogger(__name__)

_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_AUTO_WIDTH_SAMPLE_ROWS = 300

HEADER_FONT = Font(name="Calibri", bold=True, size=11)


class SpreadsheetCodec(Protocol):
    """Converts workbook bytes to a :class:`Document` and back."""

    def decode(self, data: bytes) -> Document: ...

    def encode(self, document: Document) -> bytes: ...


# ── Decoding ─────────────────────────────────────────────────────


def _frame_to_sheet(name: str, df: pd.DataFrame) -> Sheet:
    columns = [str(c) for c in df.columns]
    df = df.copy()
    df.columns = pd.Index(columns)
    df = df.dropna(how="all")
    df = df.astype("string").fillna("")
    records: list[Record] = [
        {col: str(val) for col, val in zip(columns, row)}
        for row in df.itertuples(index=False, name=None)
    ]
    return Sheet(name=name, columns=tuple(columns), records=tuple(records))


def _excel_engine(data: bytes) -> str:
    return "xlrd" if data.startswith(_OLE2_MAGIC) else "openpyxl"


# ── Encoding ─────────────────────────────────────────────────────


def _sheet_columns(sheet: Sheet) -> list[str]:
    """Header row, extended by any keys the records carry beyond it."""
    columns = list(sheet.columns)
    seen = set(columns)
    for record in sheet.records:
        for key in record:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return columns


def _write_text_cell(ws: Worksheet, row: int, column: int, value: str) -> None:
    if value == "":
        return
    cell = ws.cell(row=row, column=column, value=ILLEGAL_CHARACTERS_RE.sub("", value))
    # Cells were decoded as display text; keep "=..." literal instead of a formula.
    cell.data_type = "s"


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, 50)


def _fill_worksheet(ws: Worksheet, sheet: Sheet) -> None:
    columns = _sheet_columns(sheet)
    if not columns:
        return

    for c_idx, col_name in enumerate(columns, 1):
        # A header the reader had to invent goes back out blank.
        if not is_placeholder_column(col_name):
            _write_text_cell(ws, 1, c_idx, col_name)
        ws.cell(row=1, column=c_idx).font = HEADER_FONT
    for r_idx, record in enumerate(sheet.records, 2):
        for c_idx, col_name in enumerate(columns, 1):
            _write_text_cell(ws, r_idx, c_idx, record.get(col_name, ""))
    ws.freeze_panes = "A2"
    _auto_width(ws)


def _rewrite_worksheet(ws: Worksheet, sheet: Sheet) -> None:
    for merged in list(ws.merged_cells.ranges):
        ws.unmerge_cells(str(merged))
    ws.delete_rows(1, ws.max_row)
    _fill_worksheet(ws, sheet)


# Legacy .xls sheets are rebuilt cell by cell from xlrd, keeping native types.


def _legacy_cell_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value)
    if cell.ctype == xlrd.XL_CELL_NUMBER:
        value = float(cell.value)
        return int(value) if value.is_integer() else value
    return ILLEGAL_CHARACTERS_RE.sub("", str(cell.value))


def _copy_legacy_sheet(ws: Worksheet, legacy: xlrd.sheet.Sheet, datemode: int) -> None:
    for r_idx in range(legacy.nrows):
        for c_idx in range(legacy.ncols):
            value = _legacy_cell_value(legacy.cell(r_idx, c_idx), datemode)
            if value is None:
                continue
            cell = ws.cell(row=r_idx + 1, column=c_idx + 1, value=value)
            if isinstance(value, str) and value.startswith("="):
                # xlrd only exposes cached results; this is literal text.
                cell.data_type = "s"


class ExcelCodec:
    """Spreadsheet codec backed by pandas (read) and openpyxl (write).

    Reads ``.xlsx`` through openpyxl and legacy ``.xls`` through xlrd; always
    writes ``.xlsx``. Only sheets listed in ``Document.replaced`` are written
    from their records. Every other sheet of an ``.xlsx`` source is left as
    it is in the original workbook; those of an ``.xls`` source are copied
    cell by cell with their native values.
    """

    def decode(self, data: bytes) -> Document:
        engine = _excel_engine(data)
        read_excel = cast(Callable[..., dict[Any, pd.DataFrame]], getattr(pd, "read_excel"))
        try:
            frames = read_excel(
                io.BytesIO(data), sheet_name=None, engine=engine, dtype="string"
            )
        except ImportError as exc:
            raise CodecError(
                "legacy .xls input needs 'xlrd'. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc
        except Exception as exc:
            raise CodecError(str(exc) or type(exc).__name__) from exc

        sheets = tuple(_frame_to_sheet(str(name), df) for name, df in frames.items())
        logger.debug("Decoded %d sheets with %s: %s", len(sheets), engine,
                     [sheet.name for sheet in sheets])
        return Document(sheets, source=WorkbookSource(data, engine))

    def encode(self, document: Document) -> bytes:
        if not document.sheets:
            raise ValueError("Workbook has no sheets to write")

        source = document.source
        if source is not None and source.engine == "openpyxl":
            wb = self._patch_source(document, source)
        else:
            wb = self._build(document, source)

        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def _patch_source(self, document: Document, source: WorkbookSource) -> Workbook:
        wb = load_workbook(io.BytesIO(source.data))
        for sheet in document.sheets:
            if sheet.name in document.replaced:
                logger.debug("Rewriting sheet %s (%d rows)", sheet.name, sheet.row_count)
                _rewrite_worksheet(wb[sheet.name], sheet)
        return wb

    def _build(self, document: Document, source: WorkbookSource | None) -> Workbook:
        legacy = None
        if source is not None:
            legacy = xlrd.open_workbook(file_contents=source.data)

        wb = Workbook()
        active_sheet = wb.active
        if active_sheet is not None:
            wb.remove(active_sheet)  # remove default sheet
        for sheet in document.sheets:
            ws = wb.create_sheet(title=sheet.name)
            if legacy is not None and sheet.name not in document.replaced:
                _copy_legacy_sheet(ws, legacy.sheet_by_name(sheet.name), legacy.datemode)
            else:
                _fill_worksheet(ws, sheet)
        return wb


def serialize_document(document: Document, codec: SpreadsheetCodec) -> bytes:
    return codec.encode(document)


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _atomic_write(path: Path, payload: bytes) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_bytes(payload)
    tmp_path.replace(path)
    return path


def write_bytes(path: Path, payload: bytes) -> Path:
    """Write *payload* to *path* atomically."""
    return _atomic_write(path, payload)


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    return _atomic_write(path, payload.encode("utf-8"))
