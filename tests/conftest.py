from __future__ import annotations

import io
from collections.abc import Sequence
from datetime import date
from typing import Any

import pytest
from openpyxl import Workbook

from bugsheet_sort.models import Document, Record, Sheet


class FakeCodec:
    """In-memory codec: ``decode`` hands back a fixed document."""

    def __init__(self, document: Document | None = None, *, fail_with: Exception | None = None) -> None:
        self.document = document
        self.fail_with = fail_with
        self.decoded: list[bytes] = []
        self.encoded: list[Document] = []
        self.encode_error: Exception | None = None

    def decode(self, data: bytes) -> Document:
        self.decoded.append(data)
        if self.fail_with is not None:
            raise self.fail_with
        assert self.document is not None
        return self.document

    def encode(self, document: Document) -> bytes:
        if self.encode_error is not None:
            raise self.encode_error
        self.encoded.append(document)
        return b"encoded:" + ",".join(document.sheet_names()).encode()


def make_sheet(name: str, rows: Sequence[Record]) -> Sheet:
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return Sheet(name=name, columns=tuple(columns), records=tuple(rows))


def bug_rows() -> list[Record]:
    """The four-row scenario: expected order is rows 0, 3, 2, 1."""
    return [
        {"ID": "1", "New/Existing": "New", "Priority": "Blocker", "Bugs": "10/01 crash"},
        {"ID": "2", "New/Existing": "Existing", "Priority": "Major", "Bugs": "05/01 slow"},
        {"ID": "3", "New/Existing": "New", "Priority": "Critical", "Bugs": "09/01 export"},
        {"ID": "4", "New/Existing": "New", "Priority": "Blocker", "Bugs": "no date"},
    ]


def xlsx_bytes(sheets: dict[str, list[list[Any]]]) -> bytes:
    wb = Workbook()
    default = wb.active
    assert default is not None
    wb.remove(default)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def february() -> date:
    return date(2026, 2, 15)


@pytest.fixture
def bug_document() -> Document:
    return Document(
        (
            make_sheet("Summary", [{"Sprint": "S42", "Open": "4"}]),
            make_sheet("Bugs Reported", bug_rows()),
            make_sheet("Notes", [{"Text": "keep me"}]),
        )
    )
